"""
Pricing policies - turn a cost subtotal into a sale price.

Two policies ship with the engine:

- FlatMarkupPolicy: one markup percentage on every product, no VAT.
- TieredVatPolicy: per-product sales multipliers (area-tiered for canvases)
  with VAT added on top.

Both enforce the same minimum price on the pre-VAT figure. The policy is
picked from settings, never guessed from the configuration.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..config.settings import Settings, get_settings
from .constants import (
    CANVAS_MAX_SALES_MULTIPLIER,
    CANVAS_SALES_MULTIPLIERS,
    DEFAULT_MARKUP_PERCENTAGE,
    DEFAULT_TAX_RATE,
    MINIMUM_QUOTE_PRICE,
    SALES_MULTIPLIERS,
)
from .models import CostBreakdown, Geometry, ProductType

logger = logging.getLogger(__name__)


@dataclass
class PricedUnit:
    """Per-unit pricing outcome."""
    multiplier: float
    before_vat: float
    with_vat: float
    floor_applied: bool = False


class PricingPolicy(ABC):
    """Base class. Subclasses implement `price_unit`."""

    name = "base"

    def __init__(self, minimum_price: float = MINIMUM_QUOTE_PRICE):
        self.minimum_price = minimum_price

    @abstractmethod
    def price_unit(self, subtotal: float, product_type: ProductType, geometry: Geometry) -> PricedUnit:
        """Price one unit from its cost subtotal."""

    def apply(self, breakdown: CostBreakdown, product_type: ProductType, geometry: Geometry) -> PricedUnit:
        """Fill the price fields of a breakdown whose subtotal is already set."""
        priced = self.price_unit(breakdown.subtotal, product_type, geometry)
        breakdown.final_price_before_vat = priced.before_vat
        breakdown.final_price_with_vat = priced.with_vat
        breakdown.markup_amount = priced.before_vat - breakdown.subtotal
        return priced

    def _floor(self, amount: float) -> tuple[float, bool]:
        if amount < self.minimum_price:
            return self.minimum_price, True
        return amount, False

    def describe(self) -> str:
        return self.name


class FlatMarkupPolicy(PricingPolicy):
    """subtotal x (1 + markup), floored at the minimum price."""

    name = "flat_markup"

    def __init__(self, markup_percentage: float = DEFAULT_MARKUP_PERCENTAGE,
                 minimum_price: float = MINIMUM_QUOTE_PRICE):
        super().__init__(minimum_price)
        self.markup_percentage = markup_percentage

    def price_unit(self, subtotal, product_type, geometry) -> PricedUnit:
        multiplier = 1 + self.markup_percentage
        price, floored = self._floor(subtotal * multiplier)
        return PricedUnit(multiplier=multiplier, before_vat=price, with_vat=price, floor_applied=floored)

    def describe(self) -> str:
        return f"Flat markup {self.markup_percentage:.0%}, minimum {self.minimum_price:.2f}"


class TieredVatPolicy(PricingPolicy):
    """Per-product sales multiplier, minimum price, then VAT."""

    name = "tiered_vat"

    def __init__(self, tax_rate: float = DEFAULT_TAX_RATE,
                 minimum_price: float = MINIMUM_QUOTE_PRICE):
        super().__init__(minimum_price)
        self.tax_rate = tax_rate

    @staticmethod
    def sales_multiplier(product_type: ProductType, area: float) -> float:
        product = ProductType(product_type)
        if product == ProductType.CANVAS:
            for upper, multiplier in CANVAS_SALES_MULTIPLIERS:
                if area < upper:
                    return multiplier
            return CANVAS_MAX_SALES_MULTIPLIER
        return SALES_MULTIPLIERS[product]

    def price_unit(self, subtotal, product_type, geometry) -> PricedUnit:
        multiplier = self.sales_multiplier(product_type, geometry.area)
        before_vat, floored = self._floor(subtotal * multiplier)
        return PricedUnit(
            multiplier=multiplier,
            before_vat=before_vat,
            with_vat=before_vat * (1 + self.tax_rate),
            floor_applied=floored,
        )

    def describe(self) -> str:
        return f"Tiered multipliers + VAT {self.tax_rate:.0%}, minimum {self.minimum_price:.2f}"


def get_policy(settings: Optional[Settings] = None) -> PricingPolicy:
    """Build the policy named in settings."""
    settings = settings or get_settings()
    if settings.pricing_policy == FlatMarkupPolicy.name:
        policy = FlatMarkupPolicy(
            markup_percentage=settings.markup_percentage,
            minimum_price=settings.minimum_quote_price,
        )
    elif settings.pricing_policy == TieredVatPolicy.name:
        policy = TieredVatPolicy(
            tax_rate=settings.tax_rate,
            minimum_price=settings.minimum_quote_price,
        )
    else:
        raise ValueError(f"Unknown pricing policy '{settings.pricing_policy}'")
    logger.info("Using pricing policy: %s", policy.describe())
    return policy
