import streamlit as st
import requests
import json
import plotly.graph_objects as go
import pandas as pd

from lca_backend.app.batch import run_batch
from lca_backend.app.config import get_settings
from lca_backend.app.errors import IngestError
from lca_backend.app.ingest import ADVANCED_TEMPLATE_COLUMNS, build_template, read_spreadsheet
from lca_backend.app.lca_engine import build_lca_json
from lca_backend.app.scenarios import batch_averages, circularity_indicators, compare_routes, end_of_life_split

# --- PAGE CONFIG & SETUP ---
st.set_page_config(page_title="Metal Product LCA", page_icon="♻️", layout="wide")

# --- CONFIGURATION ---
settings = get_settings()
PDF_ENDPOINT = f"{settings.backend_url}/generate-lca-pdf"

METALS = ["aluminium", "copper", "steel", "nickel", "lithium", "zinc", "titanium"]
ROUTES = ["primary", "recycled", "mixed"]
ENERGY_SOURCES = ["grid", "renewable", "fossil", "mixed"]
TRANSPORT_MODES = ["road", "rail", "ship", "air", "multimodal"]
END_OF_LIFE = ["recycling", "reuse", "landfill"]
STAGE_LABELS = {"raw_materials": "Raw Materials", "manufacturing": "Manufacturing", "transportation": "Transportation"}
EOL_COLORS = {"Recycling": "#22c55e", "Reuse": "#3b82f6", "Energy Recovery": "#f59e0b", "Landfill": "#ef4444"}

# --- UI HELPER FUNCTIONS ---
def request_pdf_report(lca_json: dict):
    """Asks the backend for a narrative PDF. Returns (pdf_bytes, error_message)."""
    try:
        response = requests.post(PDF_ENDPOINT, json=lca_json, timeout=120)
    except requests.exceptions.RequestException as e:
        return None, f"Report service unreachable: {e}"
    if response.status_code != 200:
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        return None, f"Failed to generate PDF ({response.status_code}): {detail}"
    return response.content, None

def create_stage_chart(by_stage: dict):
    stages = [STAGE_LABELS.get(s, s) for s in by_stage]
    fig = go.Figure(data=[
        go.Bar(name="GWP (kg CO₂e)", x=stages, y=[v["gwp_kg_co2e"] for v in by_stage.values()], marker_color="#3B82F6", offsetgroup=1),
        go.Bar(name="CED (MJ)", x=stages, y=[v["ced_mj"] for v in by_stage.values()], marker_color="#10B981", yaxis="y2", offsetgroup=2),
    ])
    fig.update_layout(
        title_text="Contribution by Life-Cycle Stage", barmode="group", height=400,
        yaxis=dict(title="kg CO₂e"), yaxis2=dict(title="MJ", overlaying="y", side="right"),
    )
    return fig

def create_comparison_chart(rows: list):
    metrics = [("carbon_footprint_kg_co2e", "Carbon Footprint"), ("energy_use_mj", "Energy Use"), ("water_use_l", "Water Use (L)")]
    fig = go.Figure(data=[go.Bar(name=r["name"], x=[label for _, label in metrics], y=[r[key] for key, _ in metrics]) for r in rows])
    fig.update_layout(title_text="Conventional vs Circular Route", barmode="group", height=400)
    return fig

def create_eol_chart(split: list):
    fig = go.Figure(data=[go.Pie(
        labels=[s["name"] for s in split], values=[s["value"] for s in split],
        marker=dict(colors=[EOL_COLORS[s["name"]] for s in split]), textinfo="label+percent",
    )])
    fig.update_layout(title_text="End-of-Life Pathways", height=400)
    return fig

# --- INITIALIZE SESSION STATE ---
if "assessments" not in st.session_state: st.session_state["assessments"] = []
if "inputs" not in st.session_state: st.session_state["inputs"] = None

# --- MAIN APP UI ---
st.title("♻️ Metal Product Life Cycle Assessment")
st.markdown("Cradle-to-gate impact estimates per tonne of product. Emission factors are illustrative, not a calibrated database.")

with st.sidebar:
    st.header("⚙️ LCA Input Parameters")
    company_name = st.text_input("Company Name", value="")
    metal = st.selectbox("Metal", METALS)
    product_type = st.text_input("Product Type", value="Product")
    route = st.selectbox("Production Route", ROUTES)
    energy_source = st.selectbox("Energy Source", ENERGY_SOURCES)
    st.markdown("---")
    transport_km = st.number_input("Transport Distance (km)", min_value=0.0, value=500.0)
    transport_mode = st.selectbox("Transport Mode", TRANSPORT_MODES)
    recycled_content = st.slider("Recycled Content (%)", 0, 100, 0)
    end_of_life = st.selectbox("End-of-Life Option", END_OF_LIFE)
    geographical_scope = st.text_input("Geographical Scope", value="")
    intended_audience = st.text_input("Intended Audience", value="")

    if st.button("🚀 Run LCA Analysis", type="primary", use_container_width=True):
        payload = {
            "metal": metal, "productType": product_type, "productionRoute": route, "energySource": energy_source,
            "transportDistanceKm": transport_km, "transportMode": transport_mode, "recycledContentPercent": recycled_content,
            "companyName": company_name, "geographicalScope": geographical_scope, "intendedAudience": intended_audience,
        }
        st.session_state.inputs = {**payload, "endOfLife": end_of_life}
        st.session_state.assessments = [build_lca_json(payload)]

    st.markdown("---")
    st.header("📂 Batch Upload")
    uploaded = st.file_uploader("CSV or Excel process data", type=["csv", "xlsx", "xls"])
    if uploaded is not None and st.button("Run Batch", use_container_width=True):
        try:
            rows = read_spreadsheet(uploaded.getvalue(), uploaded.name)
        except IngestError as e:
            st.error(str(e)); rows = None
        if rows == []:
            st.warning("The uploaded file has no data rows.")
        elif rows:
            with st.spinner(f"🧠 Assessing {len(rows)} records..."):
                st.session_state.assessments = run_batch(rows, max_workers=4)
            st.session_state.inputs = rows[0]
    for kind in ("basic", "advanced"):
        filename, data, media_type = build_template(kind)
        st.download_button(f"📥 {kind.title()} template", data, filename, media_type, use_container_width=True)
    st.caption("Columns: " + ", ".join(ADVANCED_TEMPLATE_COLUMNS))

if st.session_state.assessments:
    assessments = st.session_state.assessments
    results = assessments[0]
    totals = results["impact_assessment_results"]["totals"]
    st.success(f"✅ Analysis Complete! ({len(assessments)} assessment{'s' if len(assessments) > 1 else ''})")

    averages = batch_averages(assessments) if len(assessments) > 1 else None
    if averages:
        st.subheader("📊 Batch Averages")
        a1, a2, a3, a4 = st.columns(4)
        a1.metric("Avg GWP (kg CO₂e)", f"{averages['avg_gwp_kg_co2e']:,.2f}")
        a2.metric("Avg CED (MJ)", f"{averages['avg_ced_mj']:,.2f}")
        a3.metric("Avg Water (m³)", f"{averages['avg_water_consumption_m3']:,.2f}")
        a4.metric("Avg MCI (%)", f"{averages['avg_mci_percent']:,.1f}")
        st.dataframe(pd.DataFrame([
            {"Report": r["project_details"]["report_id"], "Product": r["project_details"]["product_name"], **r["impact_assessment_results"]["totals"]}
            for r in assessments
        ]), use_container_width=True)
        st.markdown("---")

    st.subheader(f"🔎 {results['project_details']['product_name']} · {results['project_details']['report_id']}")
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("GWP (kg CO₂e)", f"{totals['gwp_kg_co2e']:,.2f}")
    col2.metric("CED (MJ)", f"{totals['ced_mj']:,.2f}")
    col3.metric("Water (m³)", f"{totals['water_consumption_m3']:,.2f}")
    col4.metric("MCI (%)", f"{totals['mci_percent']:,.1f}")

    st.subheader("♻️ Circularity Indicators")
    circularity = circularity_indicators(st.session_state.inputs, results)
    c1, c2, c3 = st.columns(3)
    with c1:
        st.metric("Material Recyclable", f"{circularity['recyclable_percent']:.0f}%")
        st.progress(min(100, int(circularity["recyclable_percent"])))
    c2.metric("Life Extension", f"{circularity['life_extension_years']} years", help="Expected extension")
    with c3:
        st.metric("Resource Efficiency", f"{circularity['resource_efficiency_score']}/100", delta=circularity["resource_efficiency_rating"].title(), delta_color="off")
        st.progress(circularity["resource_efficiency_score"])
    st.markdown("---")

    left, right = st.columns(2)
    with left:
        st.plotly_chart(create_stage_chart(results["impact_assessment_results"]["by_stage"]), use_container_width=True)
        st.plotly_chart(create_eol_chart(end_of_life_split(results, (st.session_state.inputs or {}).get("endOfLife"))), use_container_width=True)
    with right:
        st.plotly_chart(create_comparison_chart(compare_routes(st.session_state.inputs)), use_container_width=True)
        st.subheader("📄 Reports")
        st.download_button("📥 Download Report (JSON)", json.dumps(assessments if len(assessments) > 1 else results, indent=2), "LCA_Report.json", "application/json", use_container_width=True)
        if st.button("📝 Generate PDF Report", use_container_width=True):
            with st.spinner("Writing the LCA narrative..."):
                pdf_bytes, error = request_pdf_report(results)
            if error:
                st.error(error)
            else:
                st.download_button("📥 Download PDF", pdf_bytes, "LCA_Report.pdf", "application/pdf", use_container_width=True)
    with st.expander("🔬 View Detailed Data"): st.json(results)
