# utils.py

import re
from typing import Dict, List, Optional

from engine import SimulationResult

# Simulation defaults
MIN_FRAMES = 1
MAX_FRAMES = 10
DEFAULT_FRAMES = 3
DEFAULT_SEQUENCE = "1 2 3 4 1 2 5 1 2 3 4 5"
MAX_SEQUENCE_LENGTH = 1000   # every step is rendered
DEFAULT_SPEED = 1.0          # steps/sec during playback

FAULT_COLOR = "#ef4444"
HIT_COLOR = "#3b82f6"
EMPTY_COLOR = "lightgray"

_SEPARATORS = re.compile(r"[\s,]+")


def parse_page_sequence(text: str) -> List[int]:
    """
    Turn free text like ``"1, 2 3,x 4"`` into ``[1, 2, 3, 4]``.

    Tokens are separated by whitespace and/or commas; tokens that are not
    integers are dropped.

    Raises:
        ValueError: If more than MAX_SEQUENCE_LENGTH pages remain
    """
    pages = []
    for token in _SEPARATORS.split(text or ""):
        try:
            pages.append(int(token))
        except ValueError:
            continue

    if len(pages) > MAX_SEQUENCE_LENGTH:
        raise ValueError(
            f"Page sequence too long: {len(pages)} pages (max {MAX_SEQUENCE_LENGTH})"
        )
    return pages


def clamp_frame_count(frame_count: int) -> int:
    return max(MIN_FRAMES, min(MAX_FRAMES, int(frame_count)))


def get_color(page_fault: Optional[bool]) -> str:
    """Return a color for a faulting / hit / empty frame slot."""
    if page_fault is None:
        return EMPTY_COLOR
    return FAULT_COLOR if page_fault else HIT_COLOR


def fault_timeline(result: SimulationResult) -> List[Dict[str, int]]:
    """One row per step with the running fault total."""
    rows = []
    cumulative = 0
    for i, step in enumerate(result.steps):
        if step.page_fault:
            cumulative += 1
        rows.append({
            "step": i + 1,
            "request": step.request,
            "page_fault": int(step.page_fault),
            "cumulative_faults": cumulative,
        })
    return rows


def page_breakdown(result: SimulationResult) -> List[Dict[str, int]]:
    """Fault and hit counts per requested page, ascending by page number."""
    counts: Dict[int, Dict[str, int]] = {}
    for step in result.steps:
        entry = counts.setdefault(step.request, {"page": step.request, "faults": 0, "hits": 0})
        if step.page_fault:
            entry["faults"] += 1
        else:
            entry["hits"] += 1
    return [counts[page] for page in sorted(counts)]


def step_rows(result: SimulationResult) -> List[Dict[str, object]]:
    """Trace table: one row per step, one column per frame."""
    rows = []
    for i, step in enumerate(result.steps):
        row = {"step": i + 1, "request": step.request}
        for frame_no, page in enumerate(step.frames):
            row[f"F{frame_no}"] = "-" if page is None else page
        row["result"] = "FAULT" if step.page_fault else "HIT"
        rows.append(row)
    return rows
