"""
Materials Service - CRUD operations for the materials catalog.
Handles reading/writing the catalog CSV and keeping derived fields in step.
"""
import csv
import io
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Callable, Optional

from ..data.build_catalog import derive_values, load_materials, merge_catalog, write_catalog
from ..engine.catalog import CATALOG_COLUMNS, MATERIAL_TYPES, MaterialsCatalog
from ..engine.geometry import parse_num
from ..engine.models import MaterialRecord

logger = logging.getLogger(__name__)


NUMERIC_FIELDS = {f.name for f in fields(MaterialRecord) if f.type in (float, 'float')}
DERIVED_FIELDS = ('mcp', 'current_stock_muom', 'min_stock_muom')


def to_csv_row(material: MaterialRecord) -> dict:
    """Convert to catalog CSV row format."""
    row = {}
    for col, attr in CATALOG_COLUMNS.items():
        value = getattr(material, attr)
        row[col] = value if value is not None else ''
    return row


def from_csv_row(row: dict) -> MaterialRecord:
    """Create a MaterialRecord from a catalog CSV row."""
    values = {}
    for col, attr in CATALOG_COLUMNS.items():
        raw = row.get(col, '')
        if attr in NUMERIC_FIELDS:
            values[attr] = parse_num(raw)
        else:
            values[attr] = (raw or '').strip()
    return MaterialRecord(**values)


def with_derived(material: MaterialRecord) -> MaterialRecord:
    """Recompute mcp and MUOM stock from the purchase-side fields."""
    derived = derive_values(
        material.pcp,
        material.unit_conversion_factor,
        material.overhead_factor,
        material.current_stock_puom,
        material.min_stock_puom,
    )
    material.mcp = derived['mcp']
    material.current_stock_muom = derived['currentStockMUOM']
    material.min_stock_muom = derived['minStockMUOM']
    return material


def _to_number(key: str, value) -> float:
    """Strict numeric update; an explicit null or text is rejected, not zeroed."""
    if value is None or isinstance(value, bool):
        raise ValueError(f"{key} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number, got '{value}'")


def read_upload(data: bytes, name: str = "<upload>") -> io.StringIO:
    """
    Decode an uploaded CSV (UTF-8, with or without BOM) into a named buffer.

    Raises ValueError when the bytes are not UTF-8.
    """
    try:
        text = data.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValueError(f"{name} is not a UTF-8 encoded CSV file")
    buffer = io.StringIO(text)
    buffer.name = name
    return buffer


@dataclass
class ValidationResult:
    """Result of material validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    mcp: float = 0.0


class MaterialsService:
    """Service for managing the materials catalog CSV."""

    CSV_COLUMNS = list(CATALOG_COLUMNS)

    def __init__(self, catalog_path: Path, on_change: Optional[Callable[[], None]] = None,
                 seed_path: Optional[Path] = None):
        self.catalog_path = Path(catalog_path)
        self.seed_path = Path(seed_path) if seed_path else None
        self.on_change = on_change

    def _changed(self):
        if self.on_change is not None:
            self.on_change()

    def _base_frame(self):
        """
        Current catalog as a frame.

        Until the catalog CSV is first written the engine prices from the
        seed list, so that list is the base for reads and upserts too.
        """
        if self.catalog_path.exists():
            return MaterialsCatalog.from_csv(self.catalog_path).frame
        if self.seed_path is not None:
            frame, _ = load_materials(self.seed_path)
            return frame
        return MaterialsCatalog().frame

    def _read_materials(self) -> list[MaterialRecord]:
        if not self.catalog_path.exists():
            return MaterialsCatalog(self._base_frame()).records()

        materials = []
        with open(self.catalog_path, 'r', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            for row in reader:
                if not (row.get('code') or '').strip():
                    continue
                materials.append(from_csv_row(row))
        return materials

    def list_materials(self, material_type: Optional[str] = None, search: Optional[str] = None) -> list[MaterialRecord]:
        """List all materials, optionally filtered."""
        materials = []
        for material in self._read_materials():
            if material_type and material.material_type != material_type:
                continue
            if search:
                needle = search.lower()
                if needle not in material.code.lower() and needle not in material.description.lower():
                    continue
            materials.append(material)
        return materials

    def get_material(self, code: str) -> Optional[MaterialRecord]:
        """Get a single material by code."""
        for material in self.list_materials():
            if material.code == code:
                return material
        return None

    def create_material(self, material: MaterialRecord) -> MaterialRecord:
        """Create a new material."""
        material.code = material.code.strip()
        if self.get_material(material.code):
            raise ValueError(f"Material with code '{material.code}' already exists")

        validation = self.validate_material(material, is_new=True)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        materials = self.list_materials()
        materials.append(with_derived(material))
        self._write_materials(materials)
        logger.info("Created material %s", material.code)
        self._changed()
        return material

    def update_material(self, code: str, updates: dict) -> MaterialRecord:
        """Update an existing material; derived fields are recomputed."""
        materials = self.list_materials()

        for i, material in enumerate(materials):
            if material.code == code:
                break
        else:
            raise ValueError(f"Material with code '{code}' not found")

        for key, value in updates.items():
            if key == 'code' or key in DERIVED_FIELDS or not hasattr(material, key):
                continue
            if key in NUMERIC_FIELDS:
                value = _to_number(key, value)
            setattr(material, key, value)

        validation = self.validate_material(material, is_new=False)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))

        materials[i] = with_derived(material)
        self._write_materials(materials)
        logger.info("Updated material %s", code)
        self._changed()
        return materials[i]

    def delete_material(self, code: str) -> bool:
        """Delete a material."""
        materials = self.list_materials()
        remaining = [m for m in materials if m.code != code]

        if len(remaining) == len(materials):
            raise ValueError(f"Material with code '{code}' not found")

        self._write_materials(remaining)
        logger.info("Deleted material %s", code)
        self._changed()
        return True

    def validate_material(self, material: MaterialRecord, is_new: bool = True) -> ValidationResult:
        """Validate a material before saving."""
        result = ValidationResult(valid=True)

        if not material.code or not material.code.strip():
            result.errors.append("Code is required")
            result.valid = False

        if not material.description:
            result.errors.append("Description is required")
            result.valid = False

        if material.material_type not in MATERIAL_TYPES:
            result.errors.append(
                f"Material type must be one of: {', '.join(MATERIAL_TYPES)}"
            )
            result.valid = False

        if not material.puom or not material.muom:
            result.errors.append("Purchase and manufacturing units are required")
            result.valid = False

        if material.pcp < 0:
            result.errors.append("Purchase cost price must not be negative")
            result.valid = False

        if material.overhead_factor < 0:
            result.errors.append("Overhead factor must not be negative")
            result.valid = False

        if material.unit_conversion_factor <= 0:
            result.warnings.append("Unit conversion factor is not positive; mcp will be 0")

        if 0 < material.overhead_factor < 1:
            result.warnings.append(
                "Overhead factor below 1 reduces cost; use 1.25 for 25% overhead"
            )

        if is_new and material.code and self.get_material(material.code.strip()):
            result.errors.append(f"Material with code '{material.code}' already exists")
            result.valid = False

        if material.current_stock_puom < material.min_stock_puom:
            result.warnings.append("Current stock is below the minimum level")

        result.mcp = derive_values(
            material.pcp, material.unit_conversion_factor, material.overhead_factor
        )['mcp']
        return result

    def import_csv(self, source, replace: bool = False) -> dict:
        """
        Import materials from a file in the import header contract.

        Rows are upserted by code; invalid rows are skipped and reported.
        """
        incoming, report = load_materials(source)
        if report["errors"]:
            report["success"] = False
            return report

        existing = MaterialsCatalog().frame if replace else self._base_frame()

        write_catalog(merge_catalog(existing, incoming), self.catalog_path)
        report["success"] = True
        logger.info(
            "Imported %d materials (%d skipped) into %s",
            report["rows_imported"], len(report["skipped"]), self.catalog_path,
        )
        self._changed()
        return report

    def low_stock(self) -> list[MaterialRecord]:
        """Materials whose current stock is below their minimum."""
        return [m for m in self.list_materials() if m.is_low_stock]

    def _write_materials(self, materials: list[MaterialRecord]):
        """Write materials back to CSV."""
        self.catalog_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.catalog_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS)
            writer.writeheader()
            for material in materials:
                writer.writerow(to_csv_row(material))

    def get_stats(self) -> dict:
        """Get statistics about the catalog."""
        materials = self.list_materials()

        by_type = {}
        for m in materials:
            by_type[m.material_type] = by_type.get(m.material_type, 0) + 1

        low = [m.code for m in materials if m.is_low_stock]
        return {
            'total': len(materials),
            'by_type': by_type,
            'low_stock': len(low),
            'low_stock_codes': low,
            'zero_cost': len([m for m in materials if m.mcp <= 0]),
        }
