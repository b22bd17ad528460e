"""
Catalog Builder - imports material price lists into the derived catalog.

Reads CSV files in the import header contract, validates each row,
derives the manufacturing cost price (mcp) and MUOM stock levels, upserts
by code into the materials catalog and writes a JSON build report.
"""
import hashlib
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import get_settings, Settings
from ..engine.catalog import CATALOG_COLUMNS, MaterialsCatalog

logger = logging.getLogger(__name__)


# Header contract for material import files
IMPORT_COLUMNS = [
    'code', 'description', 'materialType', 'puom', 'pcp', 'muom',
    'unitConversionFactor', 'overheadFactor', 'currentStockPUOM',
    'minStockPUOM', 'supplier',
]
REQUIRED_FIELDS = [col for col in IMPORT_COLUMNS if col != 'supplier']
IMPORT_NUMERIC = ['pcp', 'unitConversionFactor', 'overheadFactor', 'currentStockPUOM', 'minStockPUOM']


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def check_header(columns) -> list[str]:
    """Columns of the import contract missing from a file header."""
    present = {str(c).strip() for c in columns}
    return [col for col in IMPORT_COLUMNS if col not in present]


def derive_values(pcp: float, unit_conversion_factor: float, overhead_factor: float,
                  current_stock_puom: float = 0.0, min_stock_puom: float = 0.0) -> dict:
    """
    Derived fields for one material.

    mcp is (pcp / unit_conversion_factor) * overhead_factor, and 0 when the
    conversion factor is not positive.
    """
    if unit_conversion_factor > 0:
        mcp = (pcp / unit_conversion_factor) * overhead_factor
    else:
        mcp = 0.0
    return {
        'mcp': mcp,
        'currentStockMUOM': current_stock_puom * unit_conversion_factor,
        'minStockMUOM': min_stock_puom * unit_conversion_factor,
    }


def derive_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Vectorized derive_values over a frame of numeric import columns."""
    frame = frame.copy()
    ucf = frame['unitConversionFactor']
    frame['mcp'] = ((frame['pcp'] / ucf.where(ucf > 0)) * frame['overheadFactor']).fillna(0.0)
    frame['currentStockMUOM'] = frame['currentStockPUOM'] * ucf
    frame['minStockMUOM'] = frame['minStockPUOM'] * ucf
    return frame


def parse_import(raw: pd.DataFrame) -> tuple[pd.DataFrame, list[dict]]:
    """
    Split raw import rows into valid (derived) rows and skipped rows.

    Returns (frame, skipped) where skipped holds {'row', 'code', 'reason'}
    with 1-based file line numbers (the header is line 1).
    """
    raw = raw.copy()
    raw.columns = [str(c).strip() for c in raw.columns]
    for col in IMPORT_COLUMNS:
        if col not in raw.columns:
            raw[col] = ''
        raw[col] = raw[col].fillna('').astype(str).str.strip()

    skipped = []
    keep = []
    for position, (_, row) in enumerate(raw.iterrows()):
        line = position + 2
        missing = [col for col in REQUIRED_FIELDS if row[col] == '']
        if missing:
            skipped.append({'row': line, 'code': row['code'], 'reason': f"Missing {', '.join(missing)}"})
            continue
        numbers = pd.to_numeric(row[IMPORT_NUMERIC], errors='coerce')
        bad = [col for col in IMPORT_NUMERIC if pd.isna(numbers[col])]
        if bad:
            skipped.append({'row': line, 'code': row['code'], 'reason': f"Not a number: {', '.join(bad)}"})
            continue
        if numbers['pcp'] < 0:
            skipped.append({'row': line, 'code': row['code'], 'reason': "pcp must not be negative"})
            continue
        keep.append(position)

    valid = raw.iloc[keep][IMPORT_COLUMNS].copy()
    for col in IMPORT_NUMERIC:
        valid[col] = pd.to_numeric(valid[col]).astype(float)
    valid = derive_frame(valid)
    return valid.reset_index(drop=True), skipped


def load_materials(source) -> tuple[pd.DataFrame, dict]:
    """
    Read and validate an import file (a path or an open buffer).

    Returns (frame, report). A missing or empty file, or a broken header,
    gives an empty frame and an error in the report.
    """
    is_path = isinstance(source, (str, Path))
    name = str(source) if is_path else getattr(source, 'name', '<upload>')
    report = {
        "path": name,
        "hash": get_file_hash(Path(source)) if is_path else "",
        "rows_read": 0,
        "rows_imported": 0,
        "skipped": [],
        "errors": [],
    }
    empty = pd.DataFrame(columns=list(CATALOG_COLUMNS))

    if is_path and not Path(source).exists():
        report["errors"].append(f"Import file not found: {name}")
        logger.warning("Import file not found: %s", name)
        return empty, report

    try:
        raw = pd.read_csv(source, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        report["errors"].append(f"Import file is empty: {name}")
        logger.warning("Import file is empty: %s", name)
        return empty, report

    missing_cols = check_header(raw.columns)
    if missing_cols:
        msg = f"Header is missing columns: {', '.join(missing_cols)}"
        report["errors"].append(msg)
        logger.warning("%s (%s)", msg, name)
        return empty, report

    frame, skipped = parse_import(raw)
    report["rows_read"] = len(raw)
    report["rows_imported"] = len(frame)
    report["skipped"] = skipped
    for item in skipped:
        logger.warning("Skipping row %d (%s) in %s: %s", item['row'], item['code'] or '?', name, item['reason'])
    return frame, report


def merge_catalog(existing: pd.DataFrame, incoming: pd.DataFrame) -> pd.DataFrame:
    """Upsert incoming rows by code; incoming wins."""
    columns = list(CATALOG_COLUMNS)
    frames = [f.reindex(columns=columns) for f in (existing, incoming) if not f.empty]
    if not frames:
        return pd.DataFrame(columns=columns)
    merged = pd.concat(frames, ignore_index=True)
    return merged.drop_duplicates('code', keep='last').reset_index(drop=True)


def write_catalog(frame: pd.DataFrame, path: Path):
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.reindex(columns=list(CATALOG_COLUMNS)).to_csv(path, index=False)


def build_materials_catalog(settings: Optional[Settings] = None,
                            source: Optional[Path] = None,
                            replace: bool = False) -> dict:
    """
    Import a materials file into the catalog CSV.

    Args:
        settings: Optional settings override
        source: Import file (defaults to the bundled seed list)
        replace: Start from an empty catalog instead of upserting

    Returns:
        Build report dictionary (also saved to settings.build_report)
    """
    settings = settings or get_settings()
    source = Path(source) if source else settings.materials_seed

    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "skipped_rows": [],
        "warnings": [],
        "errors": [],
    }

    incoming, load_report = load_materials(source)
    report["input_files"]["materials"] = {"path": load_report["path"], "hash": load_report["hash"]}
    report["skipped_rows"] = load_report["skipped"]
    report["errors"].extend(load_report["errors"])
    report["metrics"]["rows_read"] = load_report["rows_read"]
    report["metrics"]["rows_imported"] = load_report["rows_imported"]
    report["metrics"]["rows_skipped"] = len(load_report["skipped"])

    if report["errors"]:
        report["status"] = "failed"
        _save_report(report, settings.build_report)
        return report

    output_path = settings.materials_catalog
    if replace or not output_path.exists():
        existing = pd.DataFrame(columns=list(CATALOG_COLUMNS))
    else:
        existing = MaterialsCatalog.from_csv(output_path).frame

    overlap = set(existing['code']) & set(incoming['code'])
    report["metrics"]["materials_updated"] = len(overlap)
    report["metrics"]["materials_added"] = int(incoming['code'].nunique()) - len(overlap)

    merged = merge_catalog(existing, incoming)
    write_catalog(merged, output_path)

    catalog = MaterialsCatalog(merged)
    report["metrics"]["final_material_count"] = len(catalog)
    report["metrics"]["low_stock"] = [m.code for m in catalog.low_stock()]

    zero_mcp = [m.code for m in catalog.records() if m.mcp <= 0]
    if zero_mcp:
        report["warnings"].append(f"{len(zero_mcp)} materials have no manufacturing cost: {', '.join(zero_mcp)}")
    if report["skipped_rows"]:
        report["warnings"].append(f"{len(report['skipped_rows'])} rows skipped due to missing or invalid data")

    report["output_file"] = str(output_path)
    report["status"] = "success"
    logger.info("Materials catalog written to %s with %d materials", output_path, len(catalog))

    _save_report(report, settings.build_report)
    return report


def _save_report(report: dict, report_path: Path):
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, 'w') as f:
        json.dump(report, f, indent=2)
    logger.info("Build report saved to: %s", report_path)


if __name__ == "__main__":
    build_materials_catalog()
