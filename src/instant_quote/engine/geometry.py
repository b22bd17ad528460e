"""
Dimension normalization and per-shape geometry.

All geometry is computed in centimeters.
"""
import math

from .constants import (
    CM_PER_INCH,
    DELIVERY_MARGIN_CM,
    STB_DELIVERY_LENGTH_MARGIN_CM,
    STB_DELIVERY_BAND_WIDTH_CM,
)
from .models import Geometry, ProductType, QuoteConfiguration, Unit, RECTANGULAR_TYPES


def parse_num(value) -> float:
    """Parse a form value the lenient way: anything unparseable is 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def to_cm(value, unit: Unit) -> float:
    """Convert an entered dimension to centimeters."""
    number = parse_num(value)
    if Unit(unit) == Unit.IN:
        return number * CM_PER_INCH
    return number


def ellipse_perimeter(a: float, b: float) -> float:
    """Ramanujan's approximation for semi-axes a and b."""
    return math.pi * (3 * (a + b) - math.sqrt((3 * a + b) * (a + 3 * b)))


def has_valid_dimensions(config: QuoteConfiguration) -> bool:
    """True when every dimension the product type needs is positive."""
    product = ProductType(config.product_type)
    if product in RECTANGULAR_TYPES:
        return parse_num(config.height) > 0 and parse_num(config.width) > 0
    if product == ProductType.ROUND:
        return parse_num(config.diameter) > 0
    if product == ProductType.OVAL:
        return parse_num(config.major_axis) > 0 and parse_num(config.minor_axis) > 0
    return False


def delivery_band_area(product: ProductType, geometry: Geometry) -> float:
    """Handling-size area used only to pick a delivery band."""
    h, w = geometry.height, geometry.width
    if product in (ProductType.CANVAS, ProductType.PANEL, ProductType.TRAY_FRAME):
        return (h + DELIVERY_MARGIN_CM) * (w + DELIVERY_MARGIN_CM)
    if product == ProductType.STRETCHER_BAR:
        return (max(h, w) + STB_DELIVERY_LENGTH_MARGIN_CM) * STB_DELIVERY_BAND_WIDTH_CM
    if product == ProductType.ROUND:
        d = geometry.diameter
        return (d + DELIVERY_MARGIN_CM) * (d + DELIVERY_MARGIN_CM)
    if product == ProductType.OVAL:
        return (geometry.major_axis + DELIVERY_MARGIN_CM) * (geometry.minor_axis + DELIVERY_MARGIN_CM)
    return 0.0


def resolve_geometry(config: QuoteConfiguration) -> Geometry:
    """
    Normalize the configuration's dimensions and compute shape metrics.

    A non-positive dimension gives zero area and perimeter so that every
    area- or length-driven cost line drops out.
    """
    product = ProductType(config.product_type)
    unit = Unit(config.unit)

    geometry = Geometry(
        height=to_cm(config.height, unit),
        width=to_cm(config.width, unit),
        diameter=to_cm(config.diameter, unit),
        major_axis=to_cm(config.major_axis, unit),
        minor_axis=to_cm(config.minor_axis, unit),
    )

    if has_valid_dimensions(config):
        if product in RECTANGULAR_TYPES:
            geometry.area = geometry.height * geometry.width
            geometry.perimeter = 2 * (geometry.height + geometry.width)
        elif product == ProductType.ROUND:
            geometry.area = math.pi * (geometry.diameter / 2) ** 2
            geometry.perimeter = math.pi * geometry.diameter
        elif product == ProductType.OVAL:
            a = geometry.major_axis / 2
            b = geometry.minor_axis / 2
            geometry.area = math.pi * a * b
            geometry.perimeter = ellipse_perimeter(a, b)

    geometry.delivery_band_area = delivery_band_area(product, geometry)
    return geometry
