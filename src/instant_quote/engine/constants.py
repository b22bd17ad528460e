"""
Manufacturing and pricing constants.

These are empirically tuned workshop values. Keep them exactly as they are;
they are not derivable from the shape formulas.
"""
from .models import ProductType


CM_PER_INCH = 2.54

# Delivery banding
DELIVERY_MARGIN_CM = 10.0
STB_DELIVERY_LENGTH_MARGIN_CM = 5.0
STB_DELIVERY_BAND_WIDTH_CM = 10.0

# (upper bound of band area in cm², cost); last band is open-ended
DELIVERY_BANDS = (
    (2025.0, 5.00),
    (8100.0, 13.50),
    (16200.0, 27.00),
    (32000.0, 65.00),
    (48600.0, 90.00),
)
DELIVERY_MAX_COST = 140.00

# Material allowances
FABRIC_WASTE_MARGIN_CM = 24.0
PLY6_WASTE_MARGIN_CM = 2.0
MDF_LAYER_THICKNESS_MM = 6.0
MDF_RING_WIDTH_CM = 12.0

# Bracing
BRACE_STANDARD_INTERVAL_CM = 90.0
MAX_BRACES_PER_AXIS = 3
MAX_TOTAL_BRACES = 6
CAN_STB_BRACE_CLEARANCE_CM = 5.0
RND_OVL_BRACE_CLEARANCE_CM = 6.0
ROUND_BRACE_COUNT = 2

# Tray frame perimeter additions, per side, by depth code
TRAY_FRAME_ADDITIONS_CM = {
    '25': 4.2,
    '32': 3.4,
    '40': 3.4,
}
TRAY_FRAME_EXCLUDED_DEPTH = '44'
TRAY_FRAME_COLOR_CODES = {
    'White': 'W',
    'Black': 'B',
    'Wood': 'N',
}

# Hardware
BASE_WEDGE_COUNT = 8
WEDGES_PER_BRACE = 2
KEY_COUNT = 8

PACKAGING_MULTIPLIER = 2.2

# Material codes
FABRIC_12OZ = '12oz'
RAW_FABRICS = ('SUP', 'OIL')
NO_COST_FINISHES = ('UNP', 'NAT')
CLEAR_SEALER = 'CLR'
BRACE_MATERIAL = 'CB'
PANEL_PROFILE_MATERIAL = 'PA'
WEDGE_MATERIAL = 'WDG'
KEY_MATERIAL = 'KEY'
BUBBLE_WRAP_MATERIAL = 'BUB'
CARDBOARD_MATERIAL = 'CAR'
PLYWOOD_MATERIAL = 'PLY6'
MDF_MATERIAL = 'MDF6'

DEPTH_OPTIONS = {
    ProductType.CANVAS: ('25', '32', '40', '44'),
    ProductType.STRETCHER_BAR: ('25', '32', '40', '44'),
    ProductType.PANEL: ('25', '32', '44'),
    ProductType.TRAY_FRAME: ('25', '32', '40'),
    ProductType.ROUND: ('24', '30', '36', '42'),
    ProductType.OVAL: ('24', '30', '36', '42'),
}

# Pricing
DEFAULT_MARKUP_PERCENTAGE = 0.20
DEFAULT_TAX_RATE = 0.20
MINIMUM_QUOTE_PRICE = 25.00

# (upper bound of product area in cm², multiplier) for canvases
CANVAS_SALES_MULTIPLIERS = (
    (2025.0, 1.10),
    (8100.0, 1.50),
    (32000.0, 1.60),
)
CANVAS_MAX_SALES_MULTIPLIER = 1.70

SALES_MULTIPLIERS = {
    ProductType.PANEL: 1.33,
    ProductType.ROUND: 1.50,
    ProductType.OVAL: 1.50,
    ProductType.STRETCHER_BAR: 1.43,
    ProductType.TRAY_FRAME: 1.10,
}
