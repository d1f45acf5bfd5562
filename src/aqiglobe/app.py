"""AQI Globe — Streamlit app for live and predicted air-quality hotspots."""

import asyncio
import html
import time

import streamlit as st
from dotenv import load_dotenv

load_dotenv()

from aqiglobe.config import EngineConfig  # noqa: E402
from aqiglobe.context import SimulationContext  # noqa: E402
from aqiglobe.models import RotationMode  # noqa: E402
from aqiglobe.renderers.plotly_3d import render_globe_figure  # noqa: E402

_NUDGE = 40.0  # UI units per arrow press (0.2 rad)

st.set_page_config(
    page_title="AQI Globe",
    page_icon="🌍",
    layout="wide",
    initial_sidebar_state="expanded",
)

# --- Dark theme CSS ---
st.markdown(
    """
    <style>
    html, body, [data-testid="stAppViewContainer"], [data-testid="stMain"] {
        background-color: #000000 !important;
    }
    [data-testid="stHeader"], [data-testid="stToolbar"] {
        display: none !important;
    }
    [data-testid="stSidebar"] {
        background-color: #0a0f1a !important;
    }
    .overlay-box {
        background: rgba(0, 0, 0, 0.75);
        border-radius: 8px;
        padding: 0.8rem 1.2rem;
        color: #e8e8e8;
        margin-bottom: 0.5rem;
    }
    </style>
    """,
    unsafe_allow_html=True,
)

# --- Session state initialization ---
# The context lives for the whole browser session; nothing is module-global.
if "ctx" not in st.session_state:
    ctx = SimulationContext(EngineConfig.from_env())
    asyncio.run(ctx.refresh())
    st.session_state.ctx = ctx
    st.session_state.last_tick = time.monotonic()
    st.session_state.last_refresh = st.session_state.last_tick

ctx: SimulationContext = st.session_state.ctx
config = ctx.config

# --- Sidebar controls ---
with st.sidebar:
    st.markdown("### Rotation")
    real_time = st.checkbox(
        "Real-time rotation (1×)", value=ctx.clock.state.mode is RotationMode.REAL_TIME
    )
    speed = st.slider(
        "Speed",
        min_value=float(config.min_speed),
        max_value=float(config.max_speed),
        value=float(ctx.clock.state.speed_multiplier),
        step=0.1,
        disabled=real_time,
    )
    c1, c2, c3, c4 = st.columns(4)
    nudge = (0.0, 0.0)
    if c1.button("◀"):
        nudge = (-_NUDGE, 0.0)
    if c2.button("▶"):
        nudge = (_NUDGE, 0.0)
    if c3.button("▲"):
        nudge = (0.0, -_NUDGE)
    if c4.button("▼"):
        nudge = (0.0, _NUDGE)

    st.markdown("### Year")
    year = st.slider(
        "Year",
        min_value=config.min_year,
        max_value=config.max_year,
        value=ctx.selected_year,
        step=1,
        label_visibility="collapsed",
    )

    st.markdown("### City search")
    query = st.text_input("City", placeholder="e.g. Seoul", label_visibility="collapsed")
    submitted = st.button("Search", use_container_width=True)

# --- Input handlers ---
ctx.clock.set_real_time(real_time)
ctx.clock.set_speed(speed)
if nudge != (0.0, 0.0):
    ctx.clock.drag(*nudge)
if year != ctx.selected_year:
    asyncio.run(ctx.select_year(year))
if submitted and query.strip():
    with st.spinner("Looking up air quality..."):
        asyncio.run(ctx.search_city(query))

# Periodic refresh, checked on each rerun
if time.monotonic() - st.session_state.last_refresh >= config.refresh_interval:
    asyncio.run(ctx.refresh())
    st.session_state.last_refresh = time.monotonic()

# --- Globe ---
now = time.monotonic()
frame = ctx.frame(now - st.session_state.last_tick)
st.session_state.last_tick = now

fig = render_globe_figure(frame.snapshot, frame.rotation, radius=config.globe_radius)
st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})

# --- Search error ---
if ctx.last_search_error:
    st.markdown(
        f"<div class='overlay-box' style='border:1px solid #ff6b6b; color:#ff9999;'>"
        f"{html.escape(ctx.last_search_error)}</div>",
        unsafe_allow_html=True,
    )

# --- Hotspot details ---
keys = sorted(frame.snapshot.records)
if keys:
    selected = st.selectbox(
        "Hotspot",
        keys,
        format_func=lambda k: frame.snapshot.records[k].display_name,
    )
    explanation = ctx.tooltip_for(selected)
    if explanation is not None:
        record = frame.snapshot.records[selected]
        r, g, b = (int(255 * c) for c in record.color_weight)
        reasons = "".join(f"<li>{html.escape(line)}</li>" for line in explanation.reasoning)
        st.markdown(
            f"<div class='overlay-box' style='border:2px solid rgb({r},{g},{b});'>"
            f"<b>{explanation.data_kind.value} · {explanation.year}</b><br>"
            f"{html.escape(explanation.headline)}<br>"
            f"<i>{html.escape(explanation.band.description)}</i><br>"
            f"Health: {html.escape(explanation.band.health_effects)}<br>"
            f"Advice: {html.escape(explanation.band.recommendations)}<br>"
            f"Likely causes: {html.escape(explanation.band.causes)}"
            f"{f'<ul>{reasons}</ul>' if reasons else ''}</div>",
            unsafe_allow_html=True,
        )
