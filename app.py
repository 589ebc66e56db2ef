"""
Page Replacement Visualizer - FIFO, LRU, Optimal, Clock, MRU, Random & NFU

This application provides an interactive, step-by-step visualization of the
page replacement algorithms an Operating System uses when physical memory is
full:
    - First-In-First-Out (FIFO)
    - Least Recently Used (LRU)
    - Optimal (Belady's MIN)
    - Second Chance (Clock)
    - Most Recently Used (MRU)
    - Random Replacement
    - Not Frequently Used (NFU)

Built with Streamlit for the web interface and Plotly for visualizations.
The simulation itself lives in engine.py; this module only renders it.
"""

# =============================================================================
# IMPORTS
# =============================================================================

import random                        # Seeded source for the Random policy
import time                          # For pacing step playback
from typing import Optional

import streamlit as st               # Web application framework
import plotly.graph_objects as go    # Interactive plotting library

from engine import (
    ReplacementPolicy,
    SimulationResult,
    compare_policies,
    fault_curve,
    simulate,
)
from utils import (
    DEFAULT_FRAMES,
    DEFAULT_SEQUENCE,
    DEFAULT_SPEED,
    EMPTY_COLOR,
    FAULT_COLOR,
    HIT_COLOR,
    MAX_FRAMES,
    MIN_FRAMES,
    clamp_frame_count,
    fault_timeline,
    get_color,
    page_breakdown,
    parse_page_sequence,
    step_rows,
)


# =============================================================================
# ALGORITHM DESCRIPTIONS - shown on the Concepts page
# =============================================================================

POLICY_NOTES = {
    ReplacementPolicy.FIFO: {
        "description": "The oldest page in memory is replaced when a new page needs to be loaded.",
        "pros": ["Simple to implement", "Low overhead"],
        "cons": ["Ignores how often or how recently a page is used",
                 "Suffers from Belady's anomaly"],
    },
    ReplacementPolicy.LRU: {
        "description": "The page that hasn't been used for the longest time is replaced.",
        "pros": ["Good approximation of Optimal", "Immune to Belady's anomaly"],
        "cons": ["Needs a timestamp (or ordering) for every reference"],
    },
    ReplacementPolicy.OPTIMAL: {
        "description": "Replaces the page that won't be used for the longest time in the future.",
        "pros": ["Lowest possible page fault count", "Immune to Belady's anomaly"],
        "cons": ["Needs the future request sequence - a benchmark, not a real policy"],
    },
    ReplacementPolicy.SECOND_CHANCE: {
        "description": "A modified FIFO that gives referenced pages a second chance before replacement.",
        "pros": ["Cheap approximation of LRU", "Only one bit per frame"],
        "cons": ["Degenerates to FIFO when every bit is set",
                 "Still partially vulnerable to Belady's anomaly"],
    },
    ReplacementPolicy.MRU: {
        "description": "The most recently used page is replaced when a new page needs to be loaded.",
        "pros": ["Works well for cyclic scans larger than memory"],
        "cons": ["Poor for workloads with temporal locality"],
    },
    ReplacementPolicy.RANDOM: {
        "description": "A random page is selected for replacement when needed.",
        "pros": ["No bookkeeping at all"],
        "cons": ["Unpredictable - may evict a hot page"],
    },
    ReplacementPolicy.NFU: {
        "description": "Pages that are used less frequently are replaced first.",
        "pros": ["Keeps heavily used pages resident"],
        "cons": ["Counters never age: pages busy long ago stay resident"],
    },
}


# =============================================================================
# RENDERING HELPERS
# =============================================================================

def sequence_figure(result: SimulationResult, current: int) -> go.Figure:
    """
    Build the request strip: one box per request, current one highlighted.

    Requests already processed are colored by outcome (fault/hit), future
    requests are gray.
    """
    x = list(range(1, len(result.steps) + 1))
    colors = []
    for i, step in enumerate(result.steps):
        if i > current:
            colors.append(EMPTY_COLOR)
        else:
            colors.append(get_color(step.page_fault))

    fig = go.Figure(go.Bar(
        x=x,
        y=[1] * len(x),
        text=[str(s.request) for s in result.steps],
        textposition="inside",
        marker_color=colors,
        marker_line_width=[3 if i == current else 0 for i in range(len(x))],
        marker_line_color="black",
        hoverinfo="text",
        hovertext=[f"Step {i + 1}: page {s.request}" for i, s in enumerate(result.steps)],
    ))
    fig.update_layout(
        height=120,
        showlegend=False,
        margin=dict(l=10, r=10, t=10, b=10),
        yaxis=dict(showticklabels=False),
    )
    return fig


def frames_figure(result: SimulationResult, current: int) -> go.Figure:
    """Frame table after step ``current``; the slot holding the request is colored."""
    step = result.steps[current]

    x = []      # Frame indices
    text = []   # Labels for each frame
    colors = [] # red=fault loaded here, blue=hit, gray=other/free
    for frame_no, page in enumerate(step.frames):
        label = f"F{frame_no}: " + (f"P{page}" if page is not None else "Free")
        if step.second_chance_bits is not None:
            label += " (R=1)" if step.second_chance_bits[frame_no] else " (R=0)"
        text.append(label)
        x.append(frame_no)
        if page is not None and page == step.request:
            colors.append(get_color(step.page_fault))
        elif page is None:
            colors.append(get_color(None))
        else:
            colors.append("lightgreen")

    fig = go.Figure(go.Bar(
        x=x,
        y=[1] * len(x),
        text=text,
        marker_color=colors,
        hovertext=text,
        hoverinfo="text",
    ))
    fig.update_layout(
        height=180,
        showlegend=False,
        title=f"Step {current + 1}: request {step.request} -> "
              f"{'PAGE FAULT' if step.page_fault else 'HIT'}",
        yaxis=dict(showticklabels=False),
        xaxis=dict(tickmode="array", tickvals=x, ticktext=[f"F{i}" for i in x]),
    )
    return fig


def render_step(result: SimulationResult, current: int):
    """Render everything tied to the current step."""
    st.plotly_chart(sequence_figure(result, current), use_container_width=True,
                    key=f"sequence_{current}")
    st.plotly_chart(frames_figure(result, current), use_container_width=True,
                    key=f"frames_{current}")

    step = result.steps[current]
    if step.reference_counter is not None:
        label = "Usage counter" if result.policy == ReplacementPolicy.NFU else "Last used (step index)"
        st.caption(label)
        st.table([{"page": p, "value": v} for p, v in sorted(step.reference_counter.items())])


def render_results(result: SimulationResult, seed: int):
    """Summary metrics and charts for a whole run."""
    c1, c2, c3 = st.columns(3)
    c1.metric("Total Page Faults", result.total_page_faults)
    c2.metric("Page Hits", result.hits)
    c3.metric("Page Fault Rate", f"{result.page_fault_rate:.2%}")

    tab_line, tab_pie, tab_bar, tab_compare, tab_curve = st.tabs(
        ["Faults over time", "Hits vs Faults", "Per page", "Compare policies", "Faults vs frames"]
    )

    # ----- Cumulative faults -----
    with tab_line:
        rows = fault_timeline(result)
        fig = go.Figure()
        fig.add_trace(go.Scatter(
            x=[r["step"] for r in rows],
            y=[r["cumulative_faults"] for r in rows],
            mode="lines+markers",
            name="Cumulative faults",
            line=dict(color=FAULT_COLOR),
            hovertext=[f"request {r['request']}" for r in rows],
        ))
        fig.update_layout(height=300, xaxis_title="Step", yaxis_title="Faults")
        st.plotly_chart(fig, use_container_width=True)

    # ----- Hits vs faults pie -----
    with tab_pie:
        fig = go.Figure(go.Pie(
            labels=["Page Faults", "Page Hits"],
            values=[result.total_page_faults, result.hits],
            marker=dict(colors=[FAULT_COLOR, HIT_COLOR]),
        ))
        fig.update_layout(height=300)
        st.plotly_chart(fig, use_container_width=True)

    # ----- Per page breakdown -----
    with tab_bar:
        rows = page_breakdown(result)
        pages = [str(r["page"]) for r in rows]
        fig = go.Figure()
        fig.add_trace(go.Bar(x=pages, y=[r["faults"] for r in rows], name="Faults",
                             marker_color=FAULT_COLOR))
        fig.add_trace(go.Bar(x=pages, y=[r["hits"] for r in rows], name="Hits",
                             marker_color=HIT_COLOR))
        fig.update_layout(height=300, barmode="group", xaxis_title="Page")
        st.plotly_chart(fig, use_container_width=True)

    # ----- Same input, every policy -----
    with tab_compare:
        results = compare_policies(result.page_sequence, result.frame_count, make_rng(seed))
        names = list(results)
        fig = go.Figure(go.Bar(
            x=names,
            y=[r.total_page_faults for r in results.values()],
            marker_color=["orange" if n == result.policy else HIT_COLOR for n in names],
        ))
        fig.update_layout(height=300, title="Page faults by policy", yaxis_title="Faults")
        st.plotly_chart(fig, use_container_width=True)

    # ----- Belady's anomaly -----
    with tab_curve:
        curve = fault_curve(result.policy, result.page_sequence,
                            range(MIN_FRAMES, MAX_FRAMES + 1), make_rng(seed))
        fig = go.Figure(go.Scatter(
            x=list(curve), y=list(curve.values()), mode="lines+markers",
            line=dict(color=FAULT_COLOR),
        ))
        fig.update_layout(height=300, xaxis_title="Frames", yaxis_title="Faults",
                          title=f"{result.policy}: faults vs frame count")
        st.plotly_chart(fig, use_container_width=True)
        if any(curve[n + 1] > curve[n] for n in list(curve)[:-1]):
            st.warning("Belady's anomaly: more frames produced more faults for this sequence.")


def make_rng(seed: int) -> Optional[random.Random]:
    """Seeded source for the Random policy; 0 means use the global source."""
    return random.Random(seed) if seed else None


# =============================================================================
# STREAMLIT UI - Web Application Interface
# =============================================================================

# Configure the Streamlit page
st.set_page_config(page_title="Page Replacement Visualizer", layout="wide")

# Page selector for switching between Simulator and Concepts views
page = st.sidebar.radio("Choose View", ["Simulator", "Concepts"])

st.title("Page Replacement Visualizer")

# =============================================================================
# CONCEPTS PAGE - Educational Content
# =============================================================================

if page == "Concepts":
    st.header("Page Replacement Algorithms")
    st.markdown(
        """
        When a process references a page that is not in any physical frame a
        **page fault** occurs. If a free frame exists the page is loaded into
        the lowest free frame; otherwise the OS must choose a **victim** page
        to evict. The algorithms below differ only in how that victim is chosen.

        **Belady's anomaly**: with some policies (notably FIFO) giving a process
        *more* frames can cause *more* faults. Try `1 2 3 4 1 2 5 1 2 3 4 5`
        with 3 and then 4 frames.
        """
    )
    for policy in ReplacementPolicy.ALL:
        notes = POLICY_NOTES[policy]
        with st.expander(ReplacementPolicy.LABELS[policy], expanded=False):
            st.write(notes["description"])
            st.markdown("**Pros**\n" + "\n".join(f"- {p}" for p in notes["pros"]))
            st.markdown("**Cons**\n" + "\n".join(f"- {c}" for c in notes["cons"]))
    st.stop()  # Stop rendering - don't show simulator on Concepts page

# -----------------------------------------------------------------------------
# SIDEBAR - Simulation Settings
# -----------------------------------------------------------------------------

st.sidebar.header("Simulation Settings")

frame_count = st.sidebar.number_input(
    "Number of frames",
    min_value=MIN_FRAMES,
    max_value=MAX_FRAMES,
    value=DEFAULT_FRAMES,
    step=1,
)

policy = st.sidebar.selectbox(
    "Replacement Policy",
    options=list(ReplacementPolicy.ALL),
    format_func=lambda p: ReplacementPolicy.LABELS[p],
)

access_input = st.sidebar.text_area(
    "Page sequence (space or comma separated)",
    value=DEFAULT_SEQUENCE,
)

run_speed = st.sidebar.slider(
    "Playback speed (steps/sec)",
    min_value=0.5,
    max_value=5.0,
    value=DEFAULT_SPEED,
)

seed = st.sidebar.number_input(
    "Random seed (0 = unseeded)",
    min_value=0,
    value=0,
    step=1,
    help="Only used by the Random policy",
)

# -----------------------------------------------------------------------------
# SESSION STATE - Simulation Result Persistence
# -----------------------------------------------------------------------------

if "result" not in st.session_state:
    st.session_state.result = None
    st.session_state.step = 0

if st.sidebar.button("Run Simulation"):
    try:
        seq = parse_page_sequence(access_input)
        if len(seq) == 0:
            st.sidebar.warning("No pages to run")
        else:
            st.session_state.result = simulate(
                policy, seq, clamp_frame_count(frame_count), make_rng(seed)
            )
            st.session_state.step = 0
            st.sidebar.success("Simulation finished")
    except Exception as e:
        st.sidebar.error(str(e))

if st.sidebar.button("Reset Simulation"):
    st.session_state.result = None
    st.session_state.step = 0
    st.sidebar.success("Simulation reset")

result: Optional[SimulationResult] = st.session_state.result

if result is None:
    st.info("Enter a page sequence in the sidebar and click **Run Simulation**.")
    st.stop()

last_step = len(result.steps) - 1

# =============================================================================
# MAIN CONTENT AREA - Two Column Layout
# =============================================================================

st.subheader(f"{ReplacementPolicy.LABELS[result.policy]}: {result.frame_count} frames")

col1, col2 = st.columns([1, 2])

# -----------------------------------------------------------------------------
# LEFT COLUMN - Step Controls and Event Log
# -----------------------------------------------------------------------------

with col1:
    st.subheader("Controls")
    b1, b2, b3, b4 = st.columns(4)
    if b1.button("⏮ First"):
        st.session_state.step = 0
    if b2.button("◀ Prev") and st.session_state.step > 0:
        st.session_state.step -= 1
    if b3.button("Next ▶") and st.session_state.step < last_step:
        st.session_state.step += 1
    if b4.button("Last ⏭"):
        st.session_state.step = last_step
    play = st.button("Play from current step")

    st.write(f"Step {st.session_state.step + 1} of {last_step + 1}")

    # Most recent 20 events, newest first
    st.subheader("Event Log")
    for ev in result.event_log[-20:][::-1]:
        st.write(ev)

# -----------------------------------------------------------------------------
# RIGHT COLUMN - Step Visualization
# -----------------------------------------------------------------------------

with col2:
    placeholder = st.empty()
    if play:
        # Redraw each step in place; Streamlit keeps the last one
        for i in range(st.session_state.step, last_step + 1):
            with placeholder.container():
                render_step(result, i)
            time.sleep(1.0 / run_speed)
        st.session_state.step = last_step
    else:
        with placeholder.container():
            render_step(result, st.session_state.step)

# =============================================================================
# RESULTS - Summary Statistics and Charts
# =============================================================================

st.markdown("---")
st.subheader("Simulation Results")
render_results(result, seed)

st.subheader("Full Trace")
st.table(step_rows(result))
