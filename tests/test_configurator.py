"""
Tests for the dependent-field reducer.
"""
import pytest

from instant_quote.engine.configurator import (
    apply_change,
    apply_changes,
    build_configuration,
    default_configuration,
)
from instant_quote.engine.models import (
    BracingMode,
    ProductType,
    QuoteConfiguration,
    RoundOption,
    Unit,
)


@pytest.fixture
def canvas():
    return QuoteConfiguration(
        height=80, width=60, depth='32', unit=Unit.IN, quantity=3,
        fabric_type='12oz', finish='WPR', tray_frame_addon='White',
        bracing_mode=BracingMode.CUSTOM, custom_h_braces=2, custom_w_braces=1,
    )


def test_product_change_resets_everything(canvas):
    config = apply_change(canvas, 'product_type', 'STB')
    assert config == QuoteConfiguration(product_type=ProductType.STRETCHER_BAR)


@pytest.mark.parametrize("product", ['RND', 'OVL'])
def test_round_products_default_to_stretched_12oz(canvas, product):
    config = apply_change(canvas, 'product_type', product)
    assert config.round_option == RoundOption.STRETCHED
    assert config.fabric_type == '12oz'
    assert config.finish == ''
    assert config.height == 0


def test_canvas_has_no_default_fabric():
    assert default_configuration('CAN').fabric_type == ''


def test_same_value_is_a_no_op(canvas):
    assert apply_change(canvas, 'fabric_type', '12oz') is canvas
    assert apply_change(canvas, 'height', '80') is canvas


def test_fabric_change_clears_finish(canvas):
    config = apply_change(canvas, 'fabric_type', 'LIN')
    assert config.fabric_type == 'LIN'
    assert config.finish == ''
    assert config.tray_frame_addon == 'White'


def test_depth_change_clears_tray_frame(canvas):
    config = apply_change(canvas, 'depth', '25')
    assert config.depth == '25'
    assert config.tray_frame_addon == ''
    assert config.finish == 'WPR'


def test_frame_only_clears_fabric_and_finish():
    config = QuoteConfiguration(product_type=ProductType.ROUND, fabric_type='12oz', finish='WPR')
    config = apply_change(config, 'round_option', 'FrameOnly')
    assert config.round_option == RoundOption.FRAME_ONLY
    assert config.fabric_type == ''
    assert config.finish == ''

    config = apply_change(config, 'round_option', 'Stretched')
    assert config.fabric_type == '12oz'
    assert config.finish == ''


def test_panel_fabric_toggle():
    config = QuoteConfiguration(product_type=ProductType.PANEL, finish='WPR')
    config = apply_change(config, 'panel_has_fabric', True)
    assert config.fabric_type == '12oz'
    assert config.finish == ''

    config = apply_change(config, 'finish', 'BPR')
    config = apply_change(config, 'panel_has_fabric', False)
    assert config.fabric_type == ''
    assert config.finish == ''


def test_panel_fabric_off_keeps_natural_finish():
    config = QuoteConfiguration(
        product_type=ProductType.PANEL, panel_has_fabric=True, fabric_type='12oz', finish='NAT'
    )
    config = apply_change(config, 'panel_has_fabric', 'false')
    assert config.panel_has_fabric is False
    assert config.finish == 'NAT'


@pytest.mark.parametrize("raw, expected", [('3', 3), ('0', 1), (-4, 1), ('abc', 1), (2.7, 2)])
def test_quantity_is_coerced(raw, expected):
    config = apply_change(QuoteConfiguration(quantity=5), 'quantity', raw)
    assert config.quantity == expected


@pytest.mark.parametrize("raw, expected", [(7, 3), ('2', 2), (-1, 0), ('x', 0)])
def test_custom_braces_are_clamped(raw, expected):
    config = apply_change(QuoteConfiguration(custom_h_braces=1), 'custom_h_braces', raw)
    assert config.custom_h_braces == expected


def test_unparseable_dimension_becomes_zero():
    config = apply_change(QuoteConfiguration(height=80), 'height', 'eighty')
    assert config.height == 0.0


def test_unknown_field_raises():
    with pytest.raises(ValueError):
        apply_change(QuoteConfiguration(), 'colour', 'red')


def test_invalid_product_type_raises():
    with pytest.raises(ValueError):
        apply_change(QuoteConfiguration(), 'product_type', 'XYZ')


def test_reducer_does_not_mutate_input(canvas):
    before = canvas.to_dict()
    apply_change(canvas, 'product_type', 'PAN')
    assert canvas.to_dict() == before


def test_apply_changes_replays_in_order():
    config = apply_changes(default_configuration(), [
        ('fabric_type', '12oz'),
        ('finish', 'WPR'),
        ('fabric_type', 'LIN'),
    ])
    assert config.fabric_type == 'LIN'
    assert config.finish == ''


def test_build_configuration_coerces_values():
    config = build_configuration({
        'product_type': 'PAN', 'height': '40', 'width': 30, 'depth': 25,
        'quantity': '0', 'panel_has_fabric': 'yes', 'unit': 'IN',
    })
    assert config.product_type == ProductType.PANEL
    assert config.height == 40.0
    assert config.depth == '25'
    assert config.quantity == 1
    assert config.panel_has_fabric is True
    assert config.unit == Unit.IN
