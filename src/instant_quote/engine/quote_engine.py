"""
Quote Engine - orchestrates a single quote calculation with traceability.

Pipeline for every call (nothing is cached between calls):
1. Encode the SKU; an incomplete configuration stops here with no price
2. Normalize dimensions and resolve geometry
3. Assemble the per-unit cost breakdown from catalog prices
4. Apply the configured pricing policy
5. Extend by quantity

`calculate` is the error boundary: any exception raised while computing a
quote is logged and returned as an "error" result instead of propagating.
"""
import logging
from typing import Optional

from ..config.settings import Settings, get_settings
from .catalog import MaterialsCatalog
from .cost_assembler import CostAssembler
from .geometry import parse_num, resolve_geometry
from .models import INCOMPLETE_SKU, CostBreakdown, ProductType, QuoteConfiguration, QuoteResult
from .options import all_options
from .pricing_policy import PricingPolicy, get_policy
from .sku import encode_sku

logger = logging.getLogger(__name__)


STATUS_OK = "ok"
STATUS_INCOMPLETE = "incomplete"
STATUS_ERROR = "error"


class QuoteEngine:
    """
    Prices product configurations against a materials catalog snapshot.

    The catalog is replaced wholesale on reload, so a calculation always
    reads one consistent snapshot.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 catalog: Optional[MaterialsCatalog] = None,
                 policy: Optional[PricingPolicy] = None):
        self.settings = settings or get_settings()
        self.policy = policy or get_policy(self.settings)
        self.catalog = catalog if catalog is not None else self._load_catalog()
        self.assembler = CostAssembler(self.catalog)

    def _load_catalog(self) -> MaterialsCatalog:
        """Load the derived catalog, falling back to the bundled seed data."""
        catalog_path = self.settings.materials_catalog
        if catalog_path.exists():
            return MaterialsCatalog.from_csv(catalog_path)

        from ..data.build_catalog import load_materials

        logger.warning(
            "Materials catalog not found at %s; loading seed data from %s. "
            "Run scripts/build_all.py to build it.",
            catalog_path, self.settings.materials_seed,
        )
        frame, _ = load_materials(self.settings.materials_seed)
        return MaterialsCatalog(frame, source=str(self.settings.materials_seed))

    def reload_data(self):
        """Swap in a freshly loaded catalog snapshot."""
        catalog = self._load_catalog()
        self.catalog = catalog
        self.assembler = CostAssembler(catalog)
        logger.info("Reloaded materials catalog (%d materials)", len(catalog))

    def set_catalog(self, catalog: MaterialsCatalog):
        """Replace the catalog snapshot with an in-memory one."""
        self.catalog = catalog
        self.assembler = CostAssembler(catalog)

    def format_money(self, amount: Optional[float]) -> str:
        """Render an amount with the currency symbol and two decimals."""
        if amount is None:
            return ""
        return f"{self.settings.currency_symbol}{amount:.2f}"

    def options(self, config: QuoteConfiguration) -> dict:
        return all_options(config, self.catalog)

    def calculate(self, config: QuoteConfiguration) -> QuoteResult:
        """
        Calculate a quote with full traceability.

        Returns a QuoteResult whose status is "ok", "incomplete" or "error".
        Price is None unless the status is "ok".
        """
        quantity = max(1, int(parse_num(config.quantity)))
        result = QuoteResult(
            sku="",
            status=STATUS_INCOMPLETE,
            price=None,
            breakdown=CostBreakdown(),
            configuration=config,
            quantity=quantity,
            policy=self.policy.name,
        )

        try:
            return self._calculate(config, result)
        except Exception as exc:
            logger.exception("Error calculating quote for %s", config)
            failed = QuoteResult(
                sku=result.sku,
                status=STATUS_ERROR,
                price=None,
                breakdown=CostBreakdown(),
                configuration=config,
                quantity=quantity,
                policy=self.policy.name,
                error=str(exc),
            )
            failed.add_trace("Error", str(exc))
            return failed

    def _calculate(self, config: QuoteConfiguration, result: QuoteResult) -> QuoteResult:
        product = ProductType(config.product_type)

        result.sku = encode_sku(config)
        if result.sku == INCOMPLETE_SKU:
            result.add_trace("Validation", "Required fields missing", INCOMPLETE_SKU)
            return result
        result.add_trace("SKU", "Encoded configuration", result.sku)

        if self.catalog.empty:
            result.add_warning("Materials catalog is empty; all material costs are zero")

        geometry = resolve_geometry(config)
        result.add_trace(
            "Geometry",
            f"Area {geometry.area:.2f} cm², perimeter {geometry.perimeter:.2f} cm",
        )

        assembly = self.assembler.assemble(config, geometry)
        for step, description, value in assembly.trace:
            result.add_trace(step, description, value)
        result.missing_materials = list(assembly.missing_materials)

        breakdown = assembly.breakdown
        priced = self.policy.apply(breakdown, product, geometry)
        result.add_trace(
            "Pricing",
            f"{self.policy.describe()}; multiplier {priced.multiplier:.2f}",
            self.format_money(breakdown.final_price_before_vat),
        )
        if priced.floor_applied:
            result.add_trace("Minimum price", "Minimum quote price applied", self.format_money(self.policy.minimum_price))

        result.breakdown = breakdown
        result.unit_price = breakdown.final_price_with_vat
        result.price = result.unit_price * result.quantity
        result.status = STATUS_OK
        result.add_trace(
            "Extension",
            f"Quantity {result.quantity} × {self.format_money(result.unit_price)}",
            self.format_money(result.price),
        )
        return result

    def check_submission(self, result: QuoteResult, customer: Optional[dict] = None) -> list[str]:
        """
        Reasons a quote cannot be submitted yet. Empty list means it can.
        """
        customer = customer or {}
        errors = []
        if not result.sku or result.sku == INCOMPLETE_SKU:
            errors.append("Please complete the product configuration")
        if not result.is_priced or not result.price:
            errors.append("Quote has no price")
        if result.quantity < 1:
            errors.append("Quantity must be at least 1")
        if not str(customer.get("name") or "").strip():
            errors.append("Customer name is required")
        if not str(customer.get("email") or "").strip():
            errors.append("Customer email is required")
        return errors
