"""
Materials Catalog - read-only snapshot of priced materials.

The engine only ever reads `mcp` from a record. Records are loaded from the
derived catalog CSV (see data/build_catalog.py) or from in-memory records.
"""
import logging
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from .models import MaterialRecord, MaterialLookup

logger = logging.getLogger(__name__)


# Catalog CSV column -> MaterialRecord attribute
CATALOG_COLUMNS = {
    'code': 'code',
    'materialType': 'material_type',
    'description': 'description',
    'puom': 'puom',
    'muom': 'muom',
    'pcp': 'pcp',
    'unitConversionFactor': 'unit_conversion_factor',
    'overheadFactor': 'overhead_factor',
    'mcp': 'mcp',
    'currentStockPUOM': 'current_stock_puom',
    'minStockPUOM': 'min_stock_puom',
    'currentStockMUOM': 'current_stock_muom',
    'minStockMUOM': 'min_stock_muom',
    'supplier': 'supplier',
}

NUMERIC_COLUMNS = [
    'pcp', 'unitConversionFactor', 'overheadFactor', 'mcp',
    'currentStockPUOM', 'minStockPUOM', 'currentStockMUOM', 'minStockMUOM',
]

MATERIAL_TYPES = (
    'Wood',
    'Fabric',
    'Sheet Materials',
    'Packaging',
    'Hardware/Components',
    'Mediums/Coatings',
    'Bought-in Profiles',
    'Profile',
)


class MaterialsCatalog:
    """
    Queryable set of priced material records keyed by `code`.

    A miss on `get_by_code` is not an error: the caller treats the cost
    line as zero. `lookup` returns the same answer as a typed result so the
    miss can be reported.
    """

    def __init__(self, frame: Optional[pd.DataFrame] = None, source: Optional[str] = None):
        if frame is None:
            frame = pd.DataFrame(columns=list(CATALOG_COLUMNS))
        self.frame = self._normalise(frame)
        self.source = source

    @classmethod
    def from_csv(cls, path: Path) -> 'MaterialsCatalog':
        """Load the derived catalog CSV. A missing file yields an empty catalog."""
        path = Path(path)
        if not path.exists():
            logger.warning("Materials catalog not found at %s; using empty catalog", path)
            return cls(source=str(path))

        frame = pd.read_csv(path, dtype={'code': str})
        logger.info("Loaded %d materials from %s", len(frame), path)
        return cls(frame, source=str(path))

    @classmethod
    def from_records(cls, records: Iterable[MaterialRecord]) -> 'MaterialsCatalog':
        """Build a catalog from MaterialRecord objects (or dicts)."""
        reverse = {attr: col for col, attr in CATALOG_COLUMNS.items()}
        rows = []
        for record in records:
            if isinstance(record, dict):
                record = MaterialRecord(**record)
            rows.append({reverse[attr]: getattr(record, attr) for attr in reverse})
        return cls(pd.DataFrame(rows, columns=list(CATALOG_COLUMNS)), source="memory")

    @staticmethod
    def _normalise(frame: pd.DataFrame) -> pd.DataFrame:
        frame = frame.copy()
        for col in CATALOG_COLUMNS:
            if col not in frame.columns:
                frame[col] = 0.0 if col in NUMERIC_COLUMNS else ''

        for col in NUMERIC_COLUMNS:
            frame[col] = pd.to_numeric(frame[col], errors='coerce').fillna(0.0)

        text_cols = [c for c in CATALOG_COLUMNS if c not in NUMERIC_COLUMNS]
        for col in text_cols:
            frame[col] = frame[col].fillna('').astype(str).str.strip()

        frame = frame[frame['code'] != '']
        # Handle potential duplicates by keeping the last entry (latest import wins)
        frame = frame.drop_duplicates('code', keep='last')
        frame.index = pd.Index(frame['code'].tolist())
        return frame

    def __len__(self) -> int:
        return len(self.frame)

    def __contains__(self, code: str) -> bool:
        return bool(code) and code in self.frame.index

    @property
    def empty(self) -> bool:
        return self.frame.empty

    def _to_record(self, row: pd.Series) -> MaterialRecord:
        return MaterialRecord(**{attr: row[col] for col, attr in CATALOG_COLUMNS.items()})

    def get_by_code(self, code: str) -> Optional[MaterialRecord]:
        """Exact-match lookup. Returns None for an unknown or empty code."""
        if not code or code not in self.frame.index:
            return None
        return self._to_record(self.frame.loc[code])

    def lookup(self, code: str) -> MaterialLookup:
        """Typed lookup used by the cost assembler."""
        return MaterialLookup(code=code, material=self.get_by_code(code))

    def list_by_type(self, material_type: str) -> list[MaterialRecord]:
        """All records with the given material type."""
        matches = self.frame[self.frame['materialType'] == material_type]
        return [self._to_record(row) for _, row in matches.iterrows()]

    def search(self, text: str = "", material_type: Optional[str] = None) -> pd.DataFrame:
        """Rows whose code or description contains `text` (literal, case-insensitive)."""
        frame = self.frame
        if text:
            mask = (
                frame['code'].str.contains(text, case=False, na=False, regex=False) |
                frame['description'].str.contains(text, case=False, na=False, regex=False)
            )
            frame = frame[mask]
        if material_type:
            frame = frame[frame['materialType'] == material_type]
        return frame.copy()

    def records(self) -> list[MaterialRecord]:
        return [self._to_record(row) for _, row in self.frame.iterrows()]

    def low_stock(self) -> list[MaterialRecord]:
        """Materials whose current stock is below their minimum."""
        low = self.frame[self.frame['currentStockPUOM'] < self.frame['minStockPUOM']]
        return [self._to_record(row) for _, row in low.iterrows()]
