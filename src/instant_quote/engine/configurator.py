"""
Dependent-field state machine for quote configurations.

`apply_change` is a pure reducer: it takes a configuration, a field name and
a raw form value and returns the next configuration. Downstream fields that
no longer make sense after a change are cleared or forced here, so the
pricing side never has to second-guess the form.
"""
import logging
from dataclasses import fields, replace

from .constants import FABRIC_12OZ, MAX_BRACES_PER_AXIS
from .geometry import parse_num
from .models import (
    BracingMode,
    ProductType,
    QuoteConfiguration,
    RoundOption,
    Unit,
    CURVED_TYPES,
)

logger = logging.getLogger(__name__)


DIMENSION_FIELDS = ('height', 'width', 'diameter', 'major_axis', 'minor_axis')
TEXT_FIELDS = ('depth', 'fabric_type', 'finish', 'tray_frame_addon')
CONFIG_FIELDS = tuple(f.name for f in fields(QuoteConfiguration))


def _parse_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    return bool(value)


def coerce_value(field: str, value):
    """Turn a raw form value into the type the configuration field holds."""
    if field == 'product_type':
        return ProductType(value)
    if field == 'unit':
        return Unit(value)
    if field == 'bracing_mode':
        return BracingMode(value)
    if field == 'round_option':
        return RoundOption(value)
    if field in DIMENSION_FIELDS:
        return parse_num(value)
    if field == 'quantity':
        return max(1, int(parse_num(value)))
    if field in ('custom_h_braces', 'custom_w_braces'):
        return max(0, min(int(parse_num(value)), MAX_BRACES_PER_AXIS))
    if field == 'panel_has_fabric':
        return _parse_bool(value)
    if field in TEXT_FIELDS:
        return '' if value is None else str(value).strip()
    raise ValueError(f"Unknown configuration field '{field}'")


def default_configuration(product_type=ProductType.CANVAS) -> QuoteConfiguration:
    """Fresh configuration for a product type, with its own defaults applied."""
    product = ProductType(product_type)
    config = QuoteConfiguration(product_type=product)
    if product in CURVED_TYPES:
        # Stretched is the default round option and always uses 12oz
        config = replace(config, fabric_type=FABRIC_12OZ)
    return config


def apply_change(config: QuoteConfiguration, field: str, value) -> QuoteConfiguration:
    """
    Apply one field change and return the resulting configuration.

    Raises ValueError for an unknown field or an invalid enum value.
    """
    if field not in CONFIG_FIELDS:
        raise ValueError(f"Unknown configuration field '{field}'")

    new_value = coerce_value(field, value)
    if getattr(config, field) == new_value:
        return config

    logger.debug("Configuration change %s: %r -> %r", field, getattr(config, field), new_value)

    if field == 'product_type':
        return default_configuration(new_value)

    if field == 'fabric_type':
        return replace(config, fabric_type=new_value, finish='')

    if field == 'depth':
        return replace(config, depth=new_value, tray_frame_addon='')

    if field == 'round_option':
        if config.product_type not in CURVED_TYPES:
            return replace(config, round_option=new_value)
        if new_value == RoundOption.FRAME_ONLY:
            return replace(config, round_option=new_value, fabric_type='', finish='')
        return replace(config, round_option=new_value, fabric_type=FABRIC_12OZ, finish='')

    if field == 'panel_has_fabric':
        if config.product_type != ProductType.PANEL:
            return replace(config, panel_has_fabric=new_value)
        if new_value:
            return replace(config, panel_has_fabric=True, fabric_type=FABRIC_12OZ, finish='')
        finish = config.finish if config.finish == 'NAT' else ''
        return replace(config, panel_has_fabric=False, fabric_type='', finish=finish)

    return replace(config, **{field: new_value})


def apply_changes(config: QuoteConfiguration, changes) -> QuoteConfiguration:
    """Apply a sequence of (field, value) pairs in order."""
    for field, value in changes:
        config = apply_change(config, field, value)
    return config


def build_configuration(data: dict) -> QuoteConfiguration:
    """
    Build a configuration from a flat dict of form values.

    Fields are coerced but dependent-field rules are not replayed: the
    dict is taken as the state the user ended up in.
    """
    values = {}
    for field, value in data.items():
        if value is None:
            continue
        values[field] = coerce_value(field, value)
    return QuoteConfiguration(**values)
