"""
Streamlit UI for the Instant Quote tool.

Features:
- Quote builder with dependent fields driven by the configurator
- Live SKU, price and cost breakdown
- Export of the quote record to CSV
- Materials catalog view, low stock list and CSV import
- System info and catalog rebuild
"""
import streamlit as st
import pandas as pd
import sys
import json
from pathlib import Path
from datetime import datetime

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from instant_quote.config.settings import configure_logging, get_settings
from instant_quote.data.build_catalog import IMPORT_COLUMNS, build_materials_catalog
from instant_quote.engine import (
    INCOMPLETE_SKU,
    BracingMode,
    ProductType,
    QuoteEngine,
    RoundOption,
    Unit,
    apply_change,
    default_configuration,
)
from instant_quote.services.materials_service import MaterialsService, read_upload


st.set_page_config(
    page_title="Instant Quote",
    layout="wide",
    initial_sidebar_state="expanded"
)

PRODUCT_LABELS = {
    ProductType.CANVAS: "Canvas",
    ProductType.PANEL: "Panel",
    ProductType.ROUND: "Round",
    ProductType.OVAL: "Oval",
    ProductType.TRAY_FRAME: "Tray Frame",
    ProductType.STRETCHER_BAR: "Stretcher Bar Frame",
}

BREAKDOWN_LABELS = [
    ('delivery', "Delivery"),
    ('fabric', "Fabric"),
    ('finish', "Finish"),
    ('profile', "Profile"),
    ('tray_frame', "Tray Frame"),
    ('brace', "Braces"),
    ('wedge', "Wedges"),
    ('key', "Keys"),
    ('packaging', "Packaging"),
    ('panel_material', "Panel Material"),
    ('round_material', "Round Material"),
]


@st.cache_resource
def get_engine():
    """Get cached engine instance."""
    configure_logging()
    return QuoteEngine()


@st.cache_resource
def get_settings_cached():
    """Get cached settings."""
    return get_settings()


try:
    engine = get_engine()
    settings = get_settings_cached()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()

materials_service = MaterialsService(
    settings.materials_catalog, on_change=engine.reload_data, seed_path=settings.materials_seed
)


def change(field: str, value):
    """Route a widget change through the configurator."""
    st.session_state.config = apply_change(st.session_state.config, field, value)


def option_select(label: str, field: str, options: list[dict], allow_empty: bool = True):
    """Selectbox over {'code', 'description'} options bound to a config field."""
    codes = [o['code'] for o in options]
    names = {o['code']: o['description'] for o in options}
    if allow_empty:
        codes = [''] + codes
        names[''] = "Select..."
    current = getattr(st.session_state.config, field)
    index = codes.index(current) if current in codes else 0
    selected = st.selectbox(label, codes, index=index, format_func=lambda c: names.get(c, c))
    if selected != current:
        change(field, selected)
        st.rerun()


if 'config' not in st.session_state:
    st.session_state.config = default_configuration()


# ============================================================================
# SIDEBAR: Engine status
# ============================================================================
with st.sidebar:
    st.header("⚙️ Pricing")
    with st.container(border=True):
        st.markdown(f"**Policy:** `{engine.policy.name}`")
        st.caption(engine.policy.describe())
        st.caption(f"Materials loaded: {len(engine.catalog)}")

    low = engine.catalog.low_stock()
    if low:
        st.warning(f"⚠️ {len(low)} materials below minimum stock")
    if engine.catalog.empty:
        st.error("No materials loaded; all material costs are zero")


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Instant Quote")
st.caption(f"Quote Engine Active | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3 = st.tabs(["⚡ Quote Builder", "📦 Materials", "📊 System"])


# ============================================================================
# TAB 1: QUOTE BUILDER
# ============================================================================
with tab1:
    config = st.session_state.config
    options = engine.options(config)

    col1, col2 = st.columns([1.6, 1.4], gap="large")

    with col1:
        st.subheader("Configure Product")

        with st.container(border=True):
            product_codes = list(PRODUCT_LABELS)
            product = st.selectbox(
                "Product Type",
                product_codes,
                index=product_codes.index(config.product_type),
                format_func=lambda p: PRODUCT_LABELS[p],
                key="sel_product_type",
            )
            if product != config.product_type:
                change('product_type', product)
                st.rerun()

            c1, c2 = st.columns(2)
            with c1:
                unit = st.radio("Unit", [u.value for u in Unit], index=[u.value for u in Unit].index(config.unit.value), horizontal=True)
                if unit != config.unit.value:
                    change('unit', unit)
                    st.rerun()
            with c2:
                qty = st.number_input("Quantity", min_value=1, value=int(config.quantity), step=1)
                if qty != config.quantity:
                    change('quantity', qty)
                    st.rerun()

            # Dimensions depend on the shape
            if config.product_type == ProductType.ROUND:
                dims = [('diameter', "Diameter")]
            elif config.product_type == ProductType.OVAL:
                dims = [('major_axis', "Major Axis"), ('minor_axis', "Minor Axis")]
            else:
                dims = [('height', "Height"), ('width', "Width")]

            dim_cols = st.columns(len(dims))
            for (field, label), dim_col in zip(dims, dim_cols):
                with dim_col:
                    value = st.number_input(
                        f"{label} ({config.unit.value.lower()})",
                        min_value=0.0, value=float(getattr(config, field)), step=1.0,
                    )
                    if value != getattr(config, field):
                        change(field, value)
                        st.rerun()

            option_select("Depth", 'depth', options['depth'])

        with st.container(border=True):
            if config.product_type in (ProductType.ROUND, ProductType.OVAL):
                choice = st.radio(
                    "Round Option",
                    [r.value for r in RoundOption],
                    index=[r.value for r in RoundOption].index(config.round_option.value),
                    horizontal=True,
                )
                if choice != config.round_option.value:
                    change('round_option', choice)
                    st.rerun()

            if config.product_type == ProductType.PANEL:
                has_fabric = st.checkbox("Add fabric to panel", value=config.panel_has_fabric)
                if has_fabric != config.panel_has_fabric:
                    change('panel_has_fabric', has_fabric)
                    st.rerun()

            if options['fabric_type']:
                option_select("Fabric", 'fabric_type', options['fabric_type'])
            if options['finish']:
                option_select("Finish", 'finish', options['finish'])
            if options['tray_frame_addon']:
                option_select("Tray Frame", 'tray_frame_addon', options['tray_frame_addon'])

            if config.product_type in (ProductType.CANVAS, ProductType.STRETCHER_BAR):
                modes = [m.value for m in BracingMode]
                mode = st.radio("Bracing", modes, index=modes.index(config.bracing_mode.value), horizontal=True)
                if mode != config.bracing_mode.value:
                    change('bracing_mode', mode)
                    st.rerun()
                if config.bracing_mode == BracingMode.CUSTOM:
                    b1, b2 = st.columns(2)
                    with b1:
                        h = st.number_input("Horizontal braces", min_value=0, max_value=3, value=int(config.custom_h_braces))
                    with b2:
                        w = st.number_input("Vertical braces", min_value=0, max_value=3, value=int(config.custom_w_braces))
                    if h != config.custom_h_braces:
                        change('custom_h_braces', h)
                        st.rerun()
                    if w != config.custom_w_braces:
                        change('custom_w_braces', w)
                        st.rerun()

        if st.button("🔄 Reset", use_container_width=True):
            st.session_state.config = default_configuration(config.product_type)
            st.rerun()

    with col2:
        st.subheader("Quote Summary")
        result = engine.calculate(config)

        with st.container(border=True):
            st.markdown("##### SKU")
            st.code(result.sku or "Configure product...")

            if result.status == "error":
                st.error(f"Error calculating quote: {result.error}")
            elif result.sku == INCOMPLETE_SKU:
                st.info("Complete the configuration to see a price.")
            else:
                m1, m2 = st.columns(2)
                m1.metric("Total", engine.format_money(result.price))
                m2.metric("Per Unit", engine.format_money(result.unit_price))

                for warning in result.warnings:
                    st.warning(warning)

        if result.is_priced:
            breakdown = result.breakdown
            with st.expander("📊 Cost Breakdown", expanded=True):
                rows = [
                    {'Item': label, 'Cost': engine.format_money(getattr(breakdown, name))}
                    for name, label in BREAKDOWN_LABELS
                    if getattr(breakdown, name)
                ]
                rows.append({'Item': "Subtotal", 'Cost': engine.format_money(breakdown.subtotal)})
                rows.append({'Item': "Markup", 'Cost': engine.format_money(breakdown.markup_amount)})
                rows.append({'Item': "Price (ex VAT)", 'Cost': engine.format_money(breakdown.final_price_before_vat)})
                rows.append({'Item': "Price (inc VAT)", 'Cost': engine.format_money(breakdown.final_price_with_vat)})
                st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

            if result.missing_materials:
                st.caption(f"Not in catalog (costed at 0): {', '.join(result.missing_materials)}")

            with st.expander("🔍 Calculation Trace"):
                st.text(result.get_trace_text())

            with st.expander("✉️ Request this quote"):
                name = st.text_input("Name")
                email = st.text_input("Email")
                phone = st.text_input("Phone")
                address = st.text_area("Delivery address", height=80)
                customer = {'name': name, 'email': email, 'phone': phone, 'address': address}

                errors = engine.check_submission(result, customer)
                for err in errors:
                    st.caption(f"• {err}")

                record = result.to_record(customer)
                record['cost_breakdown'] = json.dumps(record['cost_breakdown'])
                st.download_button(
                    "📥 Download Quote (CSV)",
                    data=pd.DataFrame([record]).to_csv(index=False),
                    file_name=f"quote_{result.sku}.csv",
                    mime="text/csv",
                    disabled=bool(errors),
                    use_container_width=True
                )


# ============================================================================
# TAB 2: MATERIALS
# ============================================================================
with tab2:
    st.subheader("📦 Materials Catalog")

    col1, col2 = st.columns([2, 1])
    with col1:
        search_term = st.text_input("Search Materials", placeholder="Enter code or description...", label_visibility="collapsed")
    with col2:
        type_options = ["ALL"] + sorted(engine.catalog.frame['materialType'].unique().tolist())
        type_filter = st.selectbox("Type", type_options, label_visibility="collapsed")

    display = engine.catalog.search(search_term, None if type_filter == "ALL" else type_filter)

    cols_to_show = ['code', 'description', 'materialType', 'puom', 'pcp', 'muom', 'mcp',
                    'currentStockPUOM', 'minStockPUOM', 'supplier']
    st.dataframe(display[cols_to_show], use_container_width=True, hide_index=True, height=450)
    st.caption(f"Total materials: {len(engine.catalog):,} | Visible: {len(display):,}")

    if low:
        st.markdown("### ⚠️ Low Stock")
        st.dataframe(
            pd.DataFrame([{
                'Code': m.code,
                'Description': m.description,
                'Stock': f"{m.current_stock_puom:.2f} {m.puom}",
                'Min': f"{m.min_stock_puom:.2f} {m.puom}",
            } for m in low]),
            use_container_width=True,
            hide_index=True,
        )

    with st.expander("📤 Import Materials from CSV"):
        st.caption("Header row: `" + ",".join(IMPORT_COLUMNS) + "`")
        uploaded = st.file_uploader("Materials CSV", type=["csv"], label_visibility="collapsed")
        replace = st.checkbox("Replace the whole catalog", value=False)
        if uploaded is not None and st.button("Import", type="primary"):
            try:
                report = materials_service.import_csv(read_upload(uploaded.getvalue(), uploaded.name), replace=replace)
            except ValueError as e:
                report = {"success": False, "errors": [str(e)]}
            if report["success"]:
                st.success(f"Imported {report['rows_imported']} materials")
                if report["skipped"]:
                    st.warning(f"{len(report['skipped'])} rows skipped due to missing data")
                    st.dataframe(pd.DataFrame(report["skipped"]), hide_index=True)
            else:
                for err in report["errors"]:
                    st.error(err)


# ============================================================================
# TAB 3: SYSTEM INFO
# ============================================================================
with tab3:
    st.header("System Status")
    build_report_path = settings.build_report
    if build_report_path.exists():
        with open(build_report_path, 'r') as f:
            report = json.load(f)

        metrics = report.get('metrics', {})
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Materials", f"{metrics.get('final_material_count', 0):,}")
        c2.metric("Rows Skipped", f"{metrics.get('rows_skipped', 0):,}")
        c3.metric("Low Stock", f"{len(metrics.get('low_stock', [])):,}")
        c4.metric("Last Build", report.get('timestamp', '')[:10])

        for warning in report.get('warnings', []):
            st.warning(warning)
    else:
        st.info("No build report yet.")

    st.caption(f"Catalog source: {engine.catalog.source}")

    if st.button("🔨 Rebuild Catalog from Seed", type="secondary"):
        with st.spinner("Rebuilding..."):
            report = build_materials_catalog(settings, replace=True)
            engine.reload_data()
            if report["status"] == "success":
                st.toast("Catalog rebuilt successfully!")
            else:
                st.error("; ".join(report["errors"]))
            st.rerun()
