"""
Data models for the quote engine.

Uses dataclasses for structured, type-safe data representation.
The configuration is frozen: every change goes through the configurator
reducer and produces a new value.
"""
from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from typing import Optional


INCOMPLETE_SKU = "Incomplete configuration"


class ProductType(str, Enum):
    CANVAS = "CAN"
    PANEL = "PAN"
    ROUND = "RND"
    OVAL = "OVL"
    TRAY_FRAME = "TRA"
    STRETCHER_BAR = "STB"


class Unit(str, Enum):
    CM = "CM"
    IN = "IN"


class BracingMode(str, Enum):
    STANDARD = "Standard"
    NONE = "None"
    CUSTOM = "Custom"


class RoundOption(str, Enum):
    STRETCHED = "Stretched"
    FRAME_ONLY = "FrameOnly"


RECTANGULAR_TYPES = (
    ProductType.CANVAS,
    ProductType.PANEL,
    ProductType.TRAY_FRAME,
    ProductType.STRETCHER_BAR,
)
CURVED_TYPES = (ProductType.ROUND, ProductType.OVAL)


@dataclass
class TraceStep:
    """A single step in the quote calculation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class MaterialRecord:
    """A priced catalog entry. `mcp` is the per-MUOM cost the engine consumes."""
    code: str
    material_type: str
    description: str = ""
    puom: str = ""
    muom: str = ""
    pcp: float = 0.0
    unit_conversion_factor: float = 0.0
    overhead_factor: float = 0.0
    mcp: float = 0.0
    current_stock_puom: float = 0.0
    min_stock_puom: float = 0.0
    current_stock_muom: float = 0.0
    min_stock_muom: float = 0.0
    supplier: str = ""

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock_puom < self.min_stock_puom


@dataclass(frozen=True)
class MaterialLookup:
    """Outcome of a catalog lookup: either a material or the code that missed."""
    code: str
    material: Optional[MaterialRecord] = None

    @property
    def found(self) -> bool:
        return self.material is not None

    @property
    def mcp(self) -> float:
        if self.material is None:
            return 0.0
        return self.material.mcp or 0.0


@dataclass(frozen=True)
class QuoteConfiguration:
    """A product configuration as entered by the user."""
    product_type: ProductType = ProductType.CANVAS

    # Only the group matching product_type is read; 0 means "not entered"
    height: float = 0.0
    width: float = 0.0
    diameter: float = 0.0
    major_axis: float = 0.0
    minor_axis: float = 0.0

    depth: str = ""
    unit: Unit = Unit.CM
    quantity: int = 1

    fabric_type: str = ""
    finish: str = ""
    tray_frame_addon: str = ""  # "", "White", "Black" or "Wood"

    bracing_mode: BracingMode = BracingMode.STANDARD
    custom_h_braces: int = 0
    custom_w_braces: int = 0

    round_option: RoundOption = RoundOption.STRETCHED
    panel_has_fabric: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
        return data


@dataclass
class Geometry:
    """Shape metrics in centimeters."""
    height: float = 0.0
    width: float = 0.0
    diameter: float = 0.0
    major_axis: float = 0.0
    minor_axis: float = 0.0
    area: float = 0.0
    perimeter: float = 0.0
    delivery_band_area: float = 0.0


@dataclass
class CostBreakdown:
    """Named cost line items for one unit of the configured product."""
    delivery: float = 0.0
    fabric: float = 0.0
    finish: float = 0.0
    profile: float = 0.0
    tray_frame: float = 0.0
    brace: float = 0.0
    wedge: float = 0.0
    key: float = 0.0
    packaging: float = 0.0
    panel_material: float = 0.0
    round_material: float = 0.0
    subtotal: float = 0.0
    markup_amount: float = 0.0
    final_price_before_vat: float = 0.0
    final_price_with_vat: float = 0.0

    LINE_ITEMS = (
        'delivery', 'fabric', 'finish', 'profile', 'tray_frame', 'brace',
        'wedge', 'key', 'packaging', 'panel_material', 'round_material',
    )

    def line_total(self) -> float:
        """Sum of the cost line items (excludes markup and price fields)."""
        return sum(getattr(self, name) for name in self.LINE_ITEMS)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class QuoteResult:
    """Complete result of a quote calculation."""
    sku: str
    status: str  # "ok", "incomplete" or "error"
    price: Optional[float]
    breakdown: CostBreakdown
    configuration: QuoteConfiguration
    unit_price: Optional[float] = None
    quantity: int = 1
    policy: str = ""
    error: Optional[str] = None
    warnings: list[str] = field(default_factory=list)
    missing_materials: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def is_priced(self) -> bool:
        return self.status == "ok" and self.price is not None

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the result-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a result-level warning."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable result trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_record(self, customer: Optional[dict] = None) -> dict:
        """
        Field-for-field serialization of configuration and result.

        This is the payload handed to whatever store persists quotes.
        """
        customer = customer or {}
        return {
            **self.configuration.to_dict(),
            "sku": self.sku,
            "status": self.status,
            "price": self.price,
            "unit_price": self.unit_price,
            "policy": self.policy,
            "cost_breakdown": self.breakdown.to_dict(),
            "customer_name": customer.get("name"),
            "customer_email": customer.get("email"),
            "customer_phone": customer.get("phone"),
            "customer_address": customer.get("address"),
        }
