"""
SKU Encoder - canonical product code for a configuration.

SKUs are built from the dimensions as entered (one decimal, in the entered
unit) and the selected codes. A configuration missing a required field
encodes to INCOMPLETE_SKU, which is the only signal the rest of the system
uses to withhold a price.
"""
from typing import Optional

from .constants import (
    BRACE_STANDARD_INTERVAL_CM,
    DEPTH_OPTIONS,
    FABRIC_12OZ,
    MAX_TOTAL_BRACES,
    RAW_FABRICS,
    TRAY_FRAME_COLOR_CODES,
    TRAY_FRAME_EXCLUDED_DEPTH,
)
from .cost_assembler import clamp_braces
from .geometry import parse_num, to_cm
from .models import (
    INCOMPLETE_SKU,
    BracingMode,
    ProductType,
    QuoteConfiguration,
    RoundOption,
    Unit,
)


FINISH_SKU_CODES = {
    'WPR': 'PRW',
    'BPR': 'PRB',
    'CLR': 'CSL',
}


def finish_code(finish: str) -> str:
    """SKU spelling of a finish code."""
    return FINISH_SKU_CODES.get(finish, finish)


def _dim(value) -> str:
    return f"{parse_num(value):.1f}"


def _join(*segments) -> str:
    return "-".join(s for s in segments if s)


def depth_code(config: QuoteConfiguration) -> Optional[str]:
    """'P{depth}' when the depth is valid for the product, else None."""
    product = ProductType(config.product_type)
    if config.depth in DEPTH_OPTIONS[product]:
        return f"P{config.depth}"
    return None


def tray_frame_segment(config: QuoteConfiguration) -> str:
    color = TRAY_FRAME_COLOR_CODES.get(config.tray_frame_addon)
    if not color:
        return ""
    if config.product_type not in (ProductType.CANVAS, ProductType.PANEL):
        return ""
    if config.depth == TRAY_FRAME_EXCLUDED_DEPTH:
        return ""
    return f"T{config.depth}{color}"


def custom_bracing_segment(config: QuoteConfiguration) -> str:
    if config.product_type not in (ProductType.CANVAS, ProductType.STRETCHER_BAR):
        return ""
    if config.bracing_mode != BracingMode.CUSTOM:
        return ""
    h_braces = clamp_braces(config.custom_h_braces)
    w_braces = clamp_braces(config.custom_w_braces)
    if 0 < h_braces + w_braces <= MAX_TOTAL_BRACES:
        return f"H{h_braces}W{w_braces}"
    return ""


def _positive(*values) -> bool:
    return all(parse_num(v) > 0 for v in values)


def encode_sku(config: QuoteConfiguration) -> str:
    """Encode a configuration, or return INCOMPLETE_SKU."""
    product = ProductType(config.product_type)
    unit = Unit(config.unit).value
    depth = depth_code(config)
    finish = finish_code(config.finish)

    if product == ProductType.CANVAS:
        finish_ok = config.fabric_type in RAW_FABRICS or bool(finish)
        if not (_positive(config.height, config.width) and depth and config.fabric_type and finish_ok):
            return INCOMPLETE_SKU
        return _join(
            product.value, _dim(config.height), _dim(config.width), depth, unit,
            config.fabric_type, finish, tray_frame_segment(config), custom_bracing_segment(config),
        )

    if product == ProductType.PANEL:
        raw_fabric = config.panel_has_fabric and config.fabric_type in RAW_FABRICS
        fabric_ok = bool(config.fabric_type) if config.panel_has_fabric else True
        finish_ok = raw_fabric or bool(finish)
        if not (_positive(config.height, config.width) and depth and fabric_ok and finish_ok):
            return INCOMPLETE_SKU
        longest = max(to_cm(config.height, config.unit), to_cm(config.width, config.unit))
        return _join(
            product.value, _dim(config.height), _dim(config.width), depth, unit,
            config.fabric_type if config.panel_has_fabric else "",
            finish, tray_frame_segment(config),
            "B1" if longest > BRACE_STANDARD_INTERVAL_CM else "",
        )

    if product in (ProductType.ROUND, ProductType.OVAL):
        stretched = config.round_option == RoundOption.STRETCHED
        if product == ProductType.ROUND:
            dims = (config.diameter,)
        else:
            dims = (config.major_axis, config.minor_axis)
        if not (_positive(*dims) and depth and (finish or not stretched)):
            return INCOMPLETE_SKU
        longest = max(to_cm(d, config.unit) for d in dims)
        return _join(
            product.value, *(_dim(d) for d in dims), depth, unit,
            FABRIC_12OZ if stretched else "",
            finish if stretched else "",
            "B2" if longest >= BRACE_STANDARD_INTERVAL_CM else "",
        )

    if product == ProductType.TRAY_FRAME:
        if not (_positive(config.height, config.width) and depth and finish):
            return INCOMPLETE_SKU
        return _join(
            product.value, _dim(config.height), _dim(config.width),
            f"D{config.depth}", unit, finish,
        )

    if product == ProductType.STRETCHER_BAR:
        if not (_positive(config.height, config.width) and depth):
            return INCOMPLETE_SKU
        return _join(
            product.value, _dim(config.height), _dim(config.width), depth, unit,
            custom_bracing_segment(config),
        )

    return INCOMPLETE_SKU


def is_complete(config: QuoteConfiguration) -> bool:
    return encode_sku(config) != INCOMPLETE_SKU
