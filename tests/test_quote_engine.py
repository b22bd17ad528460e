"""
End-to-end quote calculations through QuoteEngine.
"""
import pytest

from instant_quote.engine import FlatMarkupPolicy, QuoteEngine, TieredVatPolicy
from instant_quote.engine.models import (
    INCOMPLETE_SKU,
    BracingMode,
    ProductType,
    QuoteConfiguration,
    RoundOption,
    Unit,
)
from instant_quote.engine.constants import CM_PER_INCH
from instant_quote.engine.quote_engine import STATUS_ERROR, STATUS_INCOMPLETE, STATUS_OK


CANVAS = dict(height=80, width=60, depth='32', fabric_type='12oz', finish='UNP')


class TestWorkedQuotes:
    """Known quotes over the three-material catalog with a flat 20% markup."""

    def test_standard_canvas(self, flat_engine):
        result = flat_engine.calculate(QuoteConfiguration(**CANVAS))
        assert result.status == STATUS_OK
        assert result.sku == "CAN-80.0-60.0-P32-CM-12oz-UNP"
        assert result.breakdown.delivery == 13.50
        assert result.breakdown.fabric == pytest.approx(87.36)
        assert result.breakdown.profile == pytest.approx(5.60)
        assert result.breakdown.subtotal == pytest.approx(106.46)
        assert result.price == pytest.approx(127.752)

    def test_same_canvas_in_inches(self, flat_engine):
        config = QuoteConfiguration(**{**CANVAS, 'height': 31.5, 'width': 23.6}, unit=Unit.IN)
        result = flat_engine.calculate(config)
        assert result.sku == "CAN-31.5-23.6-P32-IN-12oz-UNP"
        assert result.breakdown.delivery == 13.50
        assert result.breakdown.subtotal == pytest.approx(106.408, rel=1e-3)

    def test_small_round(self, flat_engine):
        config = QuoteConfiguration(product_type=ProductType.ROUND, diameter=50, depth='24', finish='UNP')
        result = flat_engine.calculate(config)
        assert result.status == STATUS_OK
        assert result.sku == "RND-50.0-P24-CM-12oz-UNP"
        assert result.breakdown.brace == 0

    def test_missing_finish_gives_no_price(self, flat_engine):
        result = flat_engine.calculate(QuoteConfiguration(**{**CANVAS, 'finish': ''}))
        assert result.status == STATUS_INCOMPLETE
        assert result.sku == INCOMPLETE_SKU
        assert result.price is None
        assert not result.is_priced

    def test_unknown_fabric_still_prices(self, flat_engine):
        result = flat_engine.calculate(QuoteConfiguration(**{**CANVAS, 'fabric_type': 'XYZ'}))
        assert result.status == STATUS_OK
        assert result.sku == "CAN-80.0-60.0-P32-CM-XYZ-UNP"
        assert result.breakdown.fabric == 0
        assert 'XYZ' in result.missing_materials
        assert result.breakdown.subtotal == pytest.approx(13.50 + 5.60)


def test_calculation_is_deterministic(engine):
    config = QuoteConfiguration(**CANVAS, tray_frame_addon='White')
    first = engine.calculate(config)
    second = engine.calculate(config)
    assert first.price == second.price
    assert first.breakdown == second.breakdown


# (non-dimension fields, dimensions in inches) for every product shape
PRODUCT_CASES = {
    'canvas': (dict(depth='32', fabric_type='12oz', finish='WPR'), dict(height=30, width=20)),
    'panel': (dict(product_type=ProductType.PANEL, depth='25', finish='WPR'), dict(height=16, width=12)),
    'panel-fabric': (
        dict(product_type=ProductType.PANEL, depth='32', panel_has_fabric=True, fabric_type='12oz', finish='BPR'),
        dict(height=40, width=12),
    ),
    'tray-frame': (dict(product_type=ProductType.TRAY_FRAME, depth='25', finish='WPR'), dict(height=12, width=16)),
    'stretcher-bar': (dict(product_type=ProductType.STRETCHER_BAR, depth='25'), dict(height=40, width=20)),
    'round': (dict(product_type=ProductType.ROUND, depth='24', finish='UNP'), dict(diameter=20)),
    'round-frame-only': (
        dict(product_type=ProductType.ROUND, depth='24', round_option=RoundOption.FRAME_ONLY),
        dict(diameter=40),
    ),
    'oval': (dict(product_type=ProductType.OVAL, depth='30', finish='WPR'), dict(major_axis=48, minor_axis=32)),
}

DIMENSION_CASES = [
    (name, dim)
    for name, (_, dims) in PRODUCT_CASES.items()
    for dim in dims
]


@pytest.mark.parametrize("name", list(PRODUCT_CASES))
def test_price_is_unit_invariant(engine, name):
    fields, inches = PRODUCT_CASES[name]
    cm = {dim: value * CM_PER_INCH for dim, value in inches.items()}
    cm_result = engine.calculate(QuoteConfiguration(**fields, **cm))
    in_result = engine.calculate(QuoteConfiguration(**fields, **inches, unit=Unit.IN))
    assert cm_result.status == in_result.status == STATUS_OK
    assert in_result.breakdown.subtotal == pytest.approx(cm_result.breakdown.subtotal)
    assert in_result.price == pytest.approx(cm_result.price)


@pytest.mark.parametrize("name, dim", DIMENSION_CASES)
def test_subtotal_grows_with_every_dimension(engine, name, dim):
    fields, dims = PRODUCT_CASES[name]
    base = {d: value * CM_PER_INCH for d, value in dims.items()}
    small = engine.calculate(QuoteConfiguration(**fields, **base))
    large = engine.calculate(QuoteConfiguration(**fields, **{**base, dim: base[dim] + 10}))
    assert small.status == large.status == STATUS_OK
    assert large.breakdown.subtotal > small.breakdown.subtotal
    assert large.price >= small.price


def test_minimum_price(flat_engine, engine):
    config = QuoteConfiguration(**{**CANVAS, 'height': 10, 'width': 10})
    assert flat_engine.calculate(config).price == pytest.approx(25.0)
    # tiered floor is applied before VAT
    assert engine.calculate(config).price == pytest.approx(30.0)


def test_custom_braces_are_capped(engine):
    config = QuoteConfiguration(
        **{**CANVAS, 'height': 200, 'width': 150},
        bracing_mode=BracingMode.CUSTOM, custom_h_braces=9, custom_w_braces=9,
    )
    result = engine.calculate(config)
    assert result.sku.endswith("-H3W3")
    assert result.breakdown.brace == pytest.approx((3 * 145 + 3 * 195) * 0.015)


def test_quantity_extends_price(engine):
    single = engine.calculate(QuoteConfiguration(**CANVAS))
    triple = engine.calculate(QuoteConfiguration(**CANVAS, quantity=3))
    assert triple.unit_price == pytest.approx(single.price)
    assert triple.price == pytest.approx(3 * single.price)
    assert triple.quantity == 3


def test_tiered_price_includes_vat(engine):
    result = engine.calculate(QuoteConfiguration(**CANVAS))
    b = result.breakdown
    assert b.final_price_before_vat == pytest.approx(b.subtotal * 1.50)
    assert b.final_price_with_vat == pytest.approx(b.final_price_before_vat * 1.20)
    assert result.policy == 'tiered_vat'


class ExplodingPolicy(FlatMarkupPolicy):
    def price_unit(self, subtotal, product_type, geometry):
        raise RuntimeError("pricing table unavailable")


def test_errors_become_error_results(settings, basic_catalog):
    engine = QuoteEngine(settings=settings, catalog=basic_catalog, policy=ExplodingPolicy())
    result = engine.calculate(QuoteConfiguration(**CANVAS))
    assert result.status == STATUS_ERROR
    assert result.price is None
    assert result.error == "pricing table unavailable"
    assert result.breakdown.subtotal == 0


def test_empty_catalog_warns(settings):
    from instant_quote.engine import MaterialsCatalog

    engine = QuoteEngine(settings=settings, catalog=MaterialsCatalog(), policy=FlatMarkupPolicy())
    result = engine.calculate(QuoteConfiguration(**CANVAS))
    assert result.status == STATUS_OK
    assert result.warnings
    assert result.breakdown.subtotal == 13.50


def test_missing_catalog_falls_back_to_seed(settings):
    engine = QuoteEngine(settings=settings, policy=TieredVatPolicy())
    assert '12oz' in engine.catalog
    assert engine.calculate(QuoteConfiguration(**CANVAS)).breakdown.fabric > 0


def test_trace_covers_pipeline(engine):
    result = engine.calculate(QuoteConfiguration(**CANVAS))
    steps = [t.step for t in result.trace]
    for step in ("SKU", "Geometry", "Delivery", "Pricing", "Extension"):
        assert step in steps
    assert "Pricing" in result.get_trace_text()


def test_to_record(engine):
    result = engine.calculate(QuoteConfiguration(**CANVAS, quantity=2))
    record = result.to_record({'name': 'Ada', 'email': 'ada@example.com'})
    assert record['sku'] == result.sku
    assert record['product_type'] == 'CAN'
    assert record['unit'] == 'CM'
    assert record['quantity'] == 2
    assert record['price'] == result.price
    assert record['customer_name'] == 'Ada'
    assert record['customer_phone'] is None
    assert record['cost_breakdown']['subtotal'] == result.breakdown.subtotal


def test_check_submission(engine):
    priced = engine.calculate(QuoteConfiguration(**CANVAS))
    assert engine.check_submission(priced, {'name': 'Ada', 'email': 'ada@example.com'}) == []
    assert engine.check_submission(priced, {'name': ' '}) == [
        "Customer name is required",
        "Customer email is required",
    ]

    incomplete = engine.calculate(QuoteConfiguration())
    errors = engine.check_submission(incomplete, {'name': 'Ada', 'email': 'ada@example.com'})
    assert "Please complete the product configuration" in errors
    assert "Quote has no price" in errors


def test_format_money(flat_engine):
    assert flat_engine.format_money(127.752) == "£127.75"
    assert flat_engine.format_money(None) == ""
