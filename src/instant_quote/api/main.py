from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, Union
import logging
import sys
from pathlib import Path

# Add src to path for internal imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from instant_quote import __version__
from instant_quote.config.settings import get_settings
from instant_quote.engine import (
    BracingMode,
    ProductType,
    QuoteConfiguration,
    QuoteResult,
    RoundOption,
    Unit,
    apply_change,
    build_configuration,
)
from instant_quote.api.materials_api import router as materials_router
from instant_quote.api.state import engine

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Instant Quote API",
    description="Pricing and SKU engine for custom canvas products",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include materials management API
app.include_router(materials_router)


class ConfigurationModel(BaseModel):
    """A product configuration as submitted by a form."""
    product_type: ProductType = ProductType.CANVAS
    height: float = 0.0
    width: float = 0.0
    diameter: float = 0.0
    major_axis: float = 0.0
    minor_axis: float = 0.0
    depth: str = ""
    unit: Unit = Unit.CM
    quantity: int = 1
    fabric_type: str = ""
    finish: str = ""
    tray_frame_addon: str = ""
    bracing_mode: BracingMode = BracingMode.STANDARD
    custom_h_braces: int = 0
    custom_w_braces: int = 0
    round_option: RoundOption = RoundOption.STRETCHED
    panel_has_fabric: bool = False

    def to_configuration(self) -> QuoteConfiguration:
        return build_configuration(self.model_dump())


class ChangeRequest(BaseModel):
    configuration: ConfigurationModel = ConfigurationModel()
    field: str
    value: Union[bool, int, float, str, None] = None


class CustomerModel(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class QuoteRecordRequest(BaseModel):
    configuration: ConfigurationModel
    customer: CustomerModel = CustomerModel()


def quote_response(result: QuoteResult) -> dict:
    payload = jsonable_encoder(result)
    payload["formatted_price"] = engine.format_money(result.price)
    return payload


@app.get("/")
async def root():
    return {"status": "online", "message": "Instant Quote API Active"}


@app.post("/quote")
async def calculate_quote(config: ConfigurationModel):
    try:
        configuration = config.to_configuration()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    # calculate() never raises; failures come back with status "error"
    return quote_response(engine.calculate(configuration))


@app.post("/quote/change")
async def change_configuration(req: ChangeRequest):
    try:
        updated = apply_change(req.configuration.to_configuration(), req.field, req.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "configuration": updated.to_dict(),
        "options": engine.options(updated),
        "quote": quote_response(engine.calculate(updated)),
    }


@app.post("/quote/record")
async def quote_record(req: QuoteRecordRequest):
    try:
        configuration = req.configuration.to_configuration()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    result = engine.calculate(configuration)
    customer = req.customer.model_dump()
    errors = engine.check_submission(result, customer)
    return {
        "ready": not errors,
        "errors": errors,
        "record": jsonable_encoder(result.to_record(customer)),
    }


@app.get("/options/{product_type}")
async def get_options(
    product_type: ProductType,
    fabric_type: str = "",
    depth: str = "",
    round_option: RoundOption = RoundOption.STRETCHED,
    panel_has_fabric: bool = False,
):
    config = QuoteConfiguration(
        product_type=product_type,
        fabric_type=fabric_type,
        depth=depth,
        round_option=round_option,
        panel_has_fabric=panel_has_fabric,
    )
    return engine.options(config)


@app.get("/system/status")
async def get_status():
    settings = get_settings()
    has_report = settings.build_report.exists()
    return {
        "engine_active": True,
        "pricing_policy": engine.policy.name,
        "policy_description": engine.policy.describe(),
        "materials_count": len(engine.catalog),
        "catalog_source": engine.catalog.source,
        "low_stock_count": len(engine.catalog.low_stock()),
        "catalog_last_build": settings.build_report.stat().st_mtime if has_report else None
    }
