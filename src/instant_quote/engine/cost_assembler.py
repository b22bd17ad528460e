"""
Cost Assembler - builds the per-unit cost breakdown for a configuration.

Every line item is computed and guarded on its own. A material code that is
not in the catalog, a non-positive dimension, or a product type the line
does not apply to makes that line contribute zero; the rest of the
breakdown is still computed. Missing materials are collected so callers can
report them, but they never change the zero-cost behavior.
"""
import logging
import math
from dataclasses import dataclass, field

from . import constants as c
from .catalog import MaterialsCatalog
from .geometry import parse_num
from .models import (
    BracingMode,
    CostBreakdown,
    Geometry,
    ProductType,
    QuoteConfiguration,
    RoundOption,
    RECTANGULAR_TYPES,
)

logger = logging.getLogger(__name__)


@dataclass
class BraceLayout:
    """Brace counts and total brace length for one product."""
    h_braces: int = 0
    w_braces: int = 0
    count: int = 0
    length_cm: float = 0.0
    material_code: str = ""


@dataclass
class Assembly:
    """Output of one assembly run."""
    breakdown: CostBreakdown
    braces: BraceLayout
    missing_materials: list[str] = field(default_factory=list)
    trace: list[tuple] = field(default_factory=list)

    def note(self, step: str, description: str, value=None):
        self.trace.append((step, description, value))


def clamp_braces(value) -> int:
    """Clamp a per-axis brace count to 0..3."""
    count = int(parse_num(value))
    return max(0, min(count, c.MAX_BRACES_PER_AXIS))


def delivery_cost(band_area: float) -> float:
    """Step function over the delivery band area."""
    for upper, cost in c.DELIVERY_BANDS:
        if band_area < upper:
            return cost
    return c.DELIVERY_MAX_COST


def standard_brace_count(span_cm: float) -> int:
    """One brace per full 90cm of span, once the span exceeds 90cm, max 3."""
    if span_cm <= c.BRACE_STANDARD_INTERVAL_CM:
        return 0
    return min(math.floor(span_cm / c.BRACE_STANDARD_INTERVAL_CM), c.MAX_BRACES_PER_AXIS)


def is_stretched(config: QuoteConfiguration) -> bool:
    return (
        config.product_type in (ProductType.ROUND, ProductType.OVAL)
        and config.round_option == RoundOption.STRETCHED
    )


def effective_fabric(config: QuoteConfiguration) -> str:
    """Fabric code actually used for the product ('' when it has none)."""
    product = ProductType(config.product_type)
    if product == ProductType.CANVAS:
        return config.fabric_type
    if product == ProductType.PANEL and config.panel_has_fabric:
        return config.fabric_type
    if is_stretched(config):
        return c.FABRIC_12OZ
    return ""


def brace_layout(config: QuoteConfiguration, geometry: Geometry) -> BraceLayout:
    """Work out how many braces a product gets and how much timber they use."""
    product = ProductType(config.product_type)
    h, w = geometry.height, geometry.width
    layout = BraceLayout()

    if product in (ProductType.CANVAS, ProductType.STRETCHER_BAR):
        if config.bracing_mode == BracingMode.STANDARD:
            layout.h_braces = standard_brace_count(w)
            layout.w_braces = standard_brace_count(h)
        elif config.bracing_mode == BracingMode.CUSTOM:
            layout.h_braces = clamp_braces(config.custom_h_braces)
            layout.w_braces = clamp_braces(config.custom_w_braces)
        layout.count = layout.h_braces + layout.w_braces
        if 0 < layout.count <= c.MAX_TOTAL_BRACES:
            layout.length_cm = (
                layout.h_braces * max(0.0, w - c.CAN_STB_BRACE_CLEARANCE_CM)
                + layout.w_braces * max(0.0, h - c.CAN_STB_BRACE_CLEARANCE_CM)
            )
            layout.material_code = c.BRACE_MATERIAL

    elif product == ProductType.PANEL:
        if max(h, w) > c.BRACE_STANDARD_INTERVAL_CM:
            layout.count = 1
            layout.length_cm = max(0.0, min(h, w))
            if config.depth == '25':
                layout.material_code = c.BRACE_MATERIAL
            elif config.depth in ('32', '44'):
                layout.material_code = c.PANEL_PROFILE_MATERIAL

    elif product == ProductType.ROUND:
        d = geometry.diameter
        if d >= c.BRACE_STANDARD_INTERVAL_CM:
            layout.count = c.ROUND_BRACE_COUNT
            layout.length_cm = (d - c.RND_OVL_BRACE_CLEARANCE_CM) * layout.count
            layout.material_code = c.BRACE_MATERIAL

    elif product == ProductType.OVAL:
        major, minor = geometry.major_axis, geometry.minor_axis
        if max(major, minor) >= c.BRACE_STANDARD_INTERVAL_CM:
            layout.count = c.ROUND_BRACE_COUNT
            layout.length_cm = (
                (major - c.RND_OVL_BRACE_CLEARANCE_CM)
                + (minor - c.RND_OVL_BRACE_CLEARANCE_CM)
            )
            layout.material_code = c.BRACE_MATERIAL

    return layout


class CostAssembler:
    """
    Sequentially computes cost line items from geometry and catalog prices.

    Line order: delivery, fabric, finish, base material, profile,
    tray frame, braces, wedges, keys, packaging.
    """

    def __init__(self, catalog: MaterialsCatalog):
        self.catalog = catalog

    def _mcp(self, code: str, assembly: Assembly) -> float:
        """Unit cost for a code; a miss is recorded and costs nothing."""
        if not code:
            return 0.0
        lookup = self.catalog.lookup(code)
        if not lookup.found:
            if code not in assembly.missing_materials:
                assembly.missing_materials.append(code)
            logger.debug("Material %s not in catalog; line costed at 0", code)
            return 0.0
        return lookup.mcp

    def _has(self, code: str, assembly: Assembly) -> bool:
        """Whether a code is priced, recording the miss like _mcp does."""
        if not code:
            return False
        if code in self.catalog:
            return True
        self._mcp(code, assembly)
        return False

    def assemble(self, config: QuoteConfiguration, geometry: Geometry) -> Assembly:
        """Compute the full breakdown. Only subtotal is set on the price side."""
        assembly = Assembly(breakdown=CostBreakdown(), braces=BraceLayout())
        breakdown = assembly.breakdown

        breakdown.delivery = delivery_cost(geometry.delivery_band_area)
        assembly.note("Delivery", f"Band area {geometry.delivery_band_area:.2f} cm²", f"{breakdown.delivery:.2f}")

        fabric_area = self._fabric_area(config, geometry)
        breakdown.fabric = self._fabric_cost(config, fabric_area, assembly)
        breakdown.finish = self._finish_cost(config, geometry, fabric_area, assembly)
        breakdown.panel_material = self._panel_material_cost(config, geometry, assembly)
        breakdown.round_material = self._round_material_cost(config, geometry, assembly)
        breakdown.profile = self._profile_cost(config, geometry, assembly)
        breakdown.tray_frame = self._tray_frame_cost(config, geometry, assembly)

        assembly.braces = brace_layout(config, geometry)
        breakdown.brace = self._brace_cost(assembly)
        breakdown.wedge = self._wedge_cost(config, assembly)
        breakdown.key = self._key_cost(config, assembly)
        breakdown.packaging = self._packaging_cost(config, geometry, assembly)

        breakdown.subtotal = breakdown.line_total()
        assembly.note("Subtotal", "Sum of cost lines", f"{breakdown.subtotal:.2f}")

        if assembly.missing_materials:
            logger.debug(
                "Quote for %s costed with missing materials: %s",
                ProductType(config.product_type).value,
                ", ".join(assembly.missing_materials),
            )
        return assembly

    # --- Individual line items -------------------------------------------

    def _fabric_area(self, config: QuoteConfiguration, geometry: Geometry) -> float:
        """Fabric area including the stretching waste margin."""
        if geometry.area <= 0 or not effective_fabric(config):
            return 0.0
        margin = c.FABRIC_WASTE_MARGIN_CM
        product = ProductType(config.product_type)
        if product in (ProductType.CANVAS, ProductType.PANEL):
            return (geometry.height + margin) * (geometry.width + margin)
        if product == ProductType.ROUND:
            return (geometry.diameter + margin) ** 2
        if product == ProductType.OVAL:
            # Cut from a square sized on the minor axis
            return (geometry.minor_axis + margin) ** 2
        return 0.0

    def _fabric_cost(self, config, fabric_area: float, assembly: Assembly) -> float:
        fabric = effective_fabric(config)
        if fabric_area <= 0 or not fabric:
            return 0.0
        cost = self._mcp(fabric, assembly) * fabric_area
        assembly.note("Fabric", f"{fabric} over {fabric_area:.2f} cm²", f"{cost:.2f}")
        return cost

    def _finish_cost(self, config, geometry: Geometry, fabric_area: float, assembly: Assembly) -> float:
        product = ProductType(config.product_type)
        finish = config.finish
        if not finish or finish in c.NO_COST_FINISHES:
            return 0.0

        fabric = effective_fabric(config)
        if fabric:
            if fabric in c.RAW_FABRICS or fabric_area <= 0:
                return 0.0
            if not self._has(finish, assembly):
                return 0.0
            finish_mcp = self._mcp(finish, assembly)
            if fabric == c.FABRIC_12OZ and finish in ('WPR', 'BPR'):
                rate = finish_mcp * 2
            elif fabric == 'LIN' and finish == c.CLEAR_SEALER:
                rate = finish_mcp * 2
            elif fabric == 'LIN' and finish == 'WPR':
                # Linen is sealed before priming: two coats of each
                rate = self._mcp(c.CLEAR_SEALER, assembly) * 2 + finish_mcp * 2
            else:
                rate = finish_mcp
            cost = rate * fabric_area
        elif product in (ProductType.PANEL, ProductType.TRAY_FRAME):
            if geometry.area <= 0:
                return 0.0
            cost = self._mcp(finish, assembly) * geometry.area
        else:
            return 0.0

        assembly.note("Finish", f"{finish} on {fabric or 'bare'}", f"{cost:.2f}")
        return cost

    def _panel_material_cost(self, config, geometry: Geometry, assembly: Assembly) -> float:
        if config.product_type != ProductType.PANEL or config.panel_has_fabric:
            return 0.0
        if geometry.height <= 0 or geometry.width <= 0:
            return 0.0
        margin = c.PLY6_WASTE_MARGIN_CM
        cost = self._mcp(c.PLYWOOD_MATERIAL, assembly) * (geometry.height + margin) * (geometry.width + margin)
        assembly.note("Panel material", c.PLYWOOD_MATERIAL, f"{cost:.2f}")
        return cost

    def _round_material_cost(self, config, geometry: Geometry, assembly: Assembly) -> float:
        product = ProductType(config.product_type)
        if product not in (ProductType.ROUND, ProductType.OVAL):
            return 0.0
        depth_mm = parse_num(config.depth)
        if depth_mm <= 0:
            return 0.0

        ring = c.MDF_RING_WIDTH_CM
        layer_area = 0.0
        if product == ProductType.ROUND and geometry.diameter > ring:
            d = geometry.diameter
            layer_area = math.pi * ((d / 2.0) ** 2 - ((d - ring) / 2.0) ** 2)
        elif product == ProductType.OVAL and geometry.major_axis > ring and geometry.minor_axis > ring:
            major, minor = geometry.major_axis, geometry.minor_axis
            layer_area = math.pi * (
                (major / 2.0) * (minor / 2.0)
                - ((major - ring) / 2.0) * ((minor - ring) / 2.0)
            )

        layers = depth_mm / c.MDF_LAYER_THICKNESS_MM
        cost = self._mcp(c.MDF_MATERIAL, assembly) * layers * layer_area
        assembly.note("Round material", f"{layers:.1f} layers of {layer_area:.2f} cm²", f"{cost:.2f}")
        return cost

    def _profile_cost(self, config, geometry: Geometry, assembly: Assembly) -> float:
        if geometry.perimeter <= 0 or not config.depth:
            return 0.0
        multiplier = 1
        if config.product_type == ProductType.PANEL:
            if config.depth == '25':
                code = 'P25'
            elif config.depth == '32':
                code = c.PANEL_PROFILE_MATERIAL
            elif config.depth == '44':
                code = c.PANEL_PROFILE_MATERIAL
                multiplier = 2
            else:
                return 0.0
        else:
            code = f"P{config.depth}"

        cost = self._mcp(code, assembly) * geometry.perimeter * multiplier
        assembly.note("Profile", f"{code} x{multiplier} over {geometry.perimeter:.2f} cm", f"{cost:.2f}")
        return cost

    def _tray_frame_cost(self, config, geometry: Geometry, assembly: Assembly) -> float:
        color = c.TRAY_FRAME_COLOR_CODES.get(config.tray_frame_addon)
        if not color:
            return 0.0
        if config.product_type not in (ProductType.CANVAS, ProductType.PANEL):
            return 0.0
        if config.depth == c.TRAY_FRAME_EXCLUDED_DEPTH or config.depth not in c.TRAY_FRAME_ADDITIONS_CM:
            return 0.0
        if geometry.height <= 0 or geometry.width <= 0:
            return 0.0

        addition = c.TRAY_FRAME_ADDITIONS_CM[config.depth]
        perimeter = (geometry.height + addition) * 2 + (geometry.width + addition) * 2
        code = f"T{config.depth}{color}"
        cost = self._mcp(code, assembly) * perimeter
        assembly.note("Tray frame", f"{code} over {perimeter:.2f} cm", f"{cost:.2f}")
        return cost

    def _brace_cost(self, assembly: Assembly) -> float:
        braces = assembly.braces
        if braces.count <= 0 or braces.length_cm <= 0 or not braces.material_code:
            return 0.0
        cost = self._mcp(braces.material_code, assembly) * braces.length_cm
        assembly.note(
            "Braces",
            f"{braces.count} x {braces.material_code}, {braces.length_cm:.2f} cm total",
            f"{cost:.2f}",
        )
        return cost

    def _wedge_cost(self, config, assembly: Assembly) -> float:
        if config.product_type not in (ProductType.CANVAS, ProductType.STRETCHER_BAR):
            return 0.0
        wedges = c.BASE_WEDGE_COUNT
        if assembly.braces.count > 0:
            wedges += assembly.braces.count * c.WEDGES_PER_BRACE
        cost = self._mcp(c.WEDGE_MATERIAL, assembly) * wedges
        assembly.note("Wedges", f"{wedges} wedges", f"{cost:.2f}")
        return cost

    def _key_cost(self, config, assembly: Assembly) -> float:
        if config.product_type not in (ProductType.TRAY_FRAME, ProductType.PANEL):
            return 0.0
        cost = self._mcp(c.KEY_MATERIAL, assembly) * c.KEY_COUNT
        assembly.note("Keys", f"{c.KEY_COUNT} keys", f"{cost:.2f}")
        return cost

    def _packaging_cost(self, config, geometry: Geometry, assembly: Assembly) -> float:
        if geometry.area <= 0:
            return 0.0
        product = ProductType(config.product_type)
        if product in RECTANGULAR_TYPES:
            proxy = geometry.width * geometry.height
        elif product == ProductType.ROUND:
            proxy = geometry.diameter ** 2
        elif product == ProductType.OVAL:
            proxy = geometry.minor_axis ** 2
        else:
            return 0.0

        rate = self._mcp(c.BUBBLE_WRAP_MATERIAL, assembly) + self._mcp(c.CARDBOARD_MATERIAL, assembly)
        cost = proxy * c.PACKAGING_MULTIPLIER * rate
        assembly.note("Packaging", f"{proxy:.2f} cm² x {c.PACKAGING_MULTIPLIER}", f"{cost:.2f}")
        return cost
