"""Engine subpackage - configuration, costing, pricing and SKU encoding."""
from .catalog import MaterialsCatalog
from .configurator import apply_change, build_configuration, default_configuration
from .models import (
    INCOMPLETE_SKU,
    BracingMode,
    CostBreakdown,
    MaterialLookup,
    MaterialRecord,
    ProductType,
    QuoteConfiguration,
    QuoteResult,
    RoundOption,
    Unit,
)
from .pricing_policy import FlatMarkupPolicy, PricingPolicy, TieredVatPolicy, get_policy
from .quote_engine import QuoteEngine
from .sku import encode_sku

__all__ = [
    'QuoteEngine',
    'MaterialsCatalog',
    'apply_change',
    'build_configuration',
    'default_configuration',
    'encode_sku',
    'PricingPolicy',
    'FlatMarkupPolicy',
    'TieredVatPolicy',
    'get_policy',
    'INCOMPLETE_SKU',
    'BracingMode',
    'CostBreakdown',
    'MaterialLookup',
    'MaterialRecord',
    'ProductType',
    'QuoteConfiguration',
    'QuoteResult',
    'RoundOption',
    'Unit',
]
