"""
Option lists for the dependent form fields.

Each function returns a list of {'code', 'description'} dicts for the
current configuration. Fabric and coating options come from the catalog;
UNP and NAT are always offered since they cost nothing.
"""
from .catalog import MaterialsCatalog
from .constants import DEPTH_OPTIONS, FABRIC_12OZ, RAW_FABRICS, TRAY_FRAME_COLOR_CODES, TRAY_FRAME_EXCLUDED_DEPTH
from .models import ProductType, QuoteConfiguration, RoundOption, CURVED_TYPES


FABRIC_ORDER = (FABRIC_12OZ, 'SUP', 'LIN', 'OIL')

FINISH_NAMES = {
    'UNP': 'Unprimed',
    'NAT': 'Natural (Bare)',
    'WPR': 'Primed White',
    'BPR': 'Primed Black',
    'CLR': 'Clear Sealed',
}

COATING_TYPE = 'Mediums/Coatings'
FABRIC_TYPE = 'Fabric'


def depth_options(product_type) -> list[dict]:
    return [
        {'code': d, 'description': f"{d}mm Deep"}
        for d in DEPTH_OPTIONS[ProductType(product_type)]
    ]


def _fabric_sort_key(record):
    if record.code in FABRIC_ORDER:
        return (0, FABRIC_ORDER.index(record.code), '')
    return (1, 0, record.description)


def fabric_options(config: QuoteConfiguration, catalog: MaterialsCatalog) -> list[dict]:
    fabrics = sorted(catalog.list_by_type(FABRIC_TYPE), key=_fabric_sort_key)
    product = ProductType(config.product_type)

    if product in CURVED_TYPES:
        if config.round_option != RoundOption.STRETCHED:
            return []
        fabrics = [f for f in fabrics if f.code == FABRIC_12OZ]
    elif product == ProductType.PANEL:
        if not config.panel_has_fabric:
            return []
    elif product != ProductType.CANVAS:
        return []

    return [{'code': f.code, 'description': f.description} for f in fabrics]


def finish_options(config: QuoteConfiguration, catalog: MaterialsCatalog) -> list[dict]:
    product = ProductType(config.product_type)
    on_fabric = product == ProductType.CANVAS or (product == ProductType.PANEL and config.panel_has_fabric)

    if on_fabric:
        if config.fabric_type in RAW_FABRICS:
            return []
        if config.fabric_type == FABRIC_12OZ:
            free, coatings = 'UNP', ('WPR', 'BPR')
        elif config.fabric_type == 'LIN':
            free, coatings = 'UNP', ('WPR', 'CLR')
        else:
            return []
    elif product == ProductType.PANEL:
        free, coatings = 'NAT', ('WPR', 'BPR')
    elif product in CURVED_TYPES:
        if config.round_option != RoundOption.STRETCHED:
            return []
        free, coatings = 'UNP', ('WPR', 'BPR')
    elif product == ProductType.TRAY_FRAME:
        free, coatings = 'NAT', ('WPR', 'BPR', 'CLR')
    else:
        return []

    available = {m.code: m for m in catalog.list_by_type(COATING_TYPE)}
    options = [{'code': free, 'description': FINISH_NAMES[free]}]
    for code in coatings:
        if code in available:
            options.append({'code': code, 'description': FINISH_NAMES.get(code, available[code].description)})
    return options


def tray_frame_options(config: QuoteConfiguration) -> list[dict]:
    if config.product_type not in (ProductType.CANVAS, ProductType.PANEL):
        return []
    if config.depth == TRAY_FRAME_EXCLUDED_DEPTH:
        return []
    return [{'code': color, 'description': color} for color in TRAY_FRAME_COLOR_CODES]


def all_options(config: QuoteConfiguration, catalog: MaterialsCatalog) -> dict:
    """Every option list for a configuration, keyed by field name."""
    return {
        'depth': depth_options(config.product_type),
        'fabric_type': fabric_options(config, catalog),
        'finish': finish_options(config, catalog),
        'tray_frame_addon': tray_frame_options(config),
    }
