"""
Materials API - FastAPI router for materials catalog management.
"""
from fastapi import APIRouter, HTTPException, UploadFile, File
from pydantic import BaseModel
from typing import Optional

from ..engine.models import MaterialRecord
from ..services.materials_service import MaterialsService, read_upload
from ..config.settings import get_settings
from .state import engine

router = APIRouter(prefix="/materials", tags=["materials"])

# Initialize service; every write swaps a fresh catalog snapshot into the engine
settings = get_settings()
materials_service = MaterialsService(
    catalog_path=settings.materials_catalog,
    on_change=engine.reload_data,
    seed_path=settings.materials_seed,
)


# Pydantic models for API
class MaterialCreate(BaseModel):
    """Request model for creating a material."""
    code: str
    material_type: str
    description: str = ""
    puom: str = ""
    muom: str = ""
    pcp: float = 0.0
    unit_conversion_factor: float = 0.0
    overhead_factor: float = 1.0
    current_stock_puom: float = 0.0
    min_stock_puom: float = 0.0
    supplier: str = ""


class MaterialUpdate(BaseModel):
    """Request model for updating a material."""
    material_type: Optional[str] = None
    description: Optional[str] = None
    puom: Optional[str] = None
    muom: Optional[str] = None
    pcp: Optional[float] = None
    unit_conversion_factor: Optional[float] = None
    overhead_factor: Optional[float] = None
    current_stock_puom: Optional[float] = None
    min_stock_puom: Optional[float] = None
    supplier: Optional[str] = None


class MaterialResponse(BaseModel):
    """Response model for a material."""
    code: str
    material_type: str
    description: str
    puom: str
    muom: str
    pcp: float
    unit_conversion_factor: float
    overhead_factor: float
    mcp: float
    current_stock_puom: float
    min_stock_puom: float
    current_stock_muom: float
    min_stock_muom: float
    supplier: str
    low_stock: bool


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]
    mcp: float


def to_response(material: MaterialRecord) -> MaterialResponse:
    return MaterialResponse(**material.__dict__, low_stock=material.is_low_stock)


# Endpoints

@router.get("", response_model=list[MaterialResponse])
async def list_materials(material_type: Optional[str] = None, search: Optional[str] = None):
    """List materials, optionally filtered by type or search text."""
    materials = materials_service.list_materials(material_type=material_type, search=search)
    return [to_response(m) for m in materials]


@router.get("/stats")
async def get_stats():
    """Get catalog statistics."""
    return materials_service.get_stats()


@router.get("/low-stock", response_model=list[MaterialResponse])
async def low_stock():
    """Materials below their minimum stock level."""
    return [to_response(m) for m in materials_service.low_stock()]


@router.get("/{code}", response_model=MaterialResponse)
async def get_material(code: str):
    """Get a single material by code."""
    material = materials_service.get_material(code)
    if not material:
        raise HTTPException(status_code=404, detail=f"Material '{code}' not found")
    return to_response(material)


@router.post("", response_model=MaterialResponse)
async def create_material(material_data: MaterialCreate):
    """Create a new material."""
    material = MaterialRecord(**material_data.model_dump())

    # Validate first
    validation = materials_service.validate_material(material)
    if not validation.valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})

    try:
        created = materials_service.create_material(material)
        return to_response(created)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{code}", response_model=MaterialResponse)
async def update_material(code: str, updates: MaterialUpdate):
    """Update an existing material."""
    update_dict = updates.model_dump(exclude_unset=True)

    if not materials_service.get_material(code):
        raise HTTPException(status_code=404, detail=f"Material '{code}' not found")
    try:
        updated = materials_service.update_material(code, update_dict)
        return to_response(updated)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{code}")
async def delete_material(code: str):
    """Delete a material."""
    try:
        materials_service.delete_material(code)
        return {"success": True, "message": f"Material '{code}' deleted"}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/validate", response_model=ValidationResponse)
async def validate_material(material_data: MaterialCreate):
    """Validate a material without saving."""
    material = MaterialRecord(**material_data.model_dump())
    result = materials_service.validate_material(material)
    return ValidationResponse(
        valid=result.valid,
        errors=result.errors,
        warnings=result.warnings,
        mcp=result.mcp
    )


@router.post("/import")
async def import_materials(file: UploadFile = File(...), replace: bool = False):
    """Import a CSV in the materials header contract."""
    content = await file.read()
    try:
        buffer = read_upload(content, file.filename or "<upload>")
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"errors": [str(e)]})
    report = materials_service.import_csv(buffer, replace=replace)
    if not report["success"]:
        raise HTTPException(status_code=400, detail={"errors": report["errors"]})
    return report
