"""
Shared fixtures: in-memory material catalogs, isolated settings and engines.
"""
import os
import sys
from pathlib import Path

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from instant_quote.config.settings import Settings
from instant_quote.engine import MaterialsCatalog, QuoteEngine, FlatMarkupPolicy, TieredVatPolicy


SEED_CSV = Path(src_path) / 'instant_quote' / 'data' / 'materials_seed.csv'


def material(code, material_type, mcp, **extra):
    return {'code': code, 'material_type': material_type, 'description': extra.pop('description', code), 'mcp': mcp, **extra}


# Three-material catalog used for the worked canvas examples
BASIC_MATERIALS = [
    material('12oz', 'Fabric', 0.01, description='12oz Cotton Duck'),
    material('P32', 'Wood', 0.02),
    material('CB', 'Wood', 0.015),
]

FULL_MATERIALS = BASIC_MATERIALS + [
    material('SUP', 'Fabric', 0.015, description='Superfine Cotton'),
    material('LIN', 'Fabric', 0.02, description='Belgian Linen'),
    material('OIL', 'Fabric', 0.03, description='Oil Primed Linen'),
    material('AAA', 'Fabric', 0.005, description='Artist Calico'),
    material('WPR', 'Mediums/Coatings', 0.002),
    material('BPR', 'Mediums/Coatings', 0.003),
    material('CLR', 'Mediums/Coatings', 0.001),
    material('P25', 'Wood', 0.015),
    material('P40', 'Wood', 0.025),
    material('P44', 'Wood', 0.03),
    material('P24', 'Wood', 0.012),
    material('P30', 'Wood', 0.016),
    material('P36', 'Wood', 0.02),
    material('P42', 'Wood', 0.024),
    material('PA', 'Bought-in Profiles', 0.03),
    material('T25W', 'Profile', 0.04),
    material('T32W', 'Profile', 0.045),
    material('T32B', 'Profile', 0.045),
    material('T40N', 'Profile', 0.05),
    material('WDG', 'Hardware/Components', 0.05),
    material('KEY', 'Hardware/Components', 0.06),
    material('BUB', 'Packaging', 0.0001),
    material('CAR', 'Packaging', 0.0001),
    material('PLY6', 'Sheet Materials', 0.001),
    material('MDF6', 'Sheet Materials', 0.0008),
]


@pytest.fixture
def basic_catalog():
    """12oz, P32 and CB only."""
    return MaterialsCatalog.from_records(BASIC_MATERIALS)


@pytest.fixture
def full_catalog():
    """Every material the cost lines reference."""
    return MaterialsCatalog.from_records(FULL_MATERIALS)


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in a temporary directory."""
    return Settings(
        project_root=tmp_path,
        materials_seed=SEED_CSV,
        materials_catalog=tmp_path / 'materials_catalog.csv',
        build_report=tmp_path / 'outputs' / 'build_report.json',
    )


@pytest.fixture
def engine(settings, full_catalog):
    """Tiered + VAT engine over the full catalog."""
    return QuoteEngine(settings=settings, catalog=full_catalog, policy=TieredVatPolicy())


@pytest.fixture
def flat_engine(settings, basic_catalog):
    """Flat 20% markup engine over the three-material catalog."""
    return QuoteEngine(settings=settings, catalog=basic_catalog, policy=FlatMarkupPolicy())
