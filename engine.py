# engine.py
"""
Page replacement simulation engine.

Each ``simulate_*`` function runs one replacement policy over a page request
sequence and returns a full step-by-step trace. All seven share one driver
loop; only victim selection and bookkeeping differ, and those live in small
policy classes with hit/place/evict hooks.
"""

import random
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence


class ReplacementPolicy:
    """
    Names of the available page replacement algorithms.

    FIFO:          First-In-First-Out - circular insertion cursor
    LRU:           Least Recently Used - smallest last-use time
    OPTIMAL:       Belady's MIN - farthest next use in the future
    SECOND_CHANCE: Clock - FIFO with a per-frame reference bit
    MRU:           Most Recently Used - largest last-use time
    RANDOM:        uniformly random frame
    NFU:           Not Frequently Used - smallest usage counter
    """
    FIFO = "FIFO"
    LRU = "LRU"
    OPTIMAL = "Optimal"
    SECOND_CHANCE = "Second Chance"
    MRU = "MRU"
    RANDOM = "Random"
    NFU = "NFU"

    ALL = (FIFO, LRU, OPTIMAL, SECOND_CHANCE, MRU, RANDOM, NFU)

    LABELS = {
        FIFO: "First-In-First-Out (FIFO)",
        LRU: "Least Recently Used (LRU)",
        OPTIMAL: "Optimal",
        SECOND_CHANCE: "Second Chance (Clock)",
        MRU: "Most Recently Used (MRU)",
        RANDOM: "Random Replacement",
        NFU: "Not Frequently Used (NFU)",
    }


# -----------------------------
# Data model
# -----------------------------

@dataclass
class StepRecord:
    """
    State of memory after one page request.

    Attributes:
        request (int): Page requested at this step
        frames (List[Optional[int]]): Copy of the frame table after the request
        page_fault (bool): True if the page was not resident before the request
        reference_counter (Optional[Dict[int, int]]): Last-use time (LRU/MRU)
            or usage count (NFU) per page seen so far
        second_chance_bits (Optional[List[bool]]): Reference bit per frame
            (Second Chance only)
    """
    request: int
    frames: List[Optional[int]]
    page_fault: bool
    reference_counter: Optional[Dict[int, int]] = None
    second_chance_bits: Optional[List[bool]] = None


@dataclass
class SimulationResult:
    policy: str
    frame_count: int
    page_sequence: List[int]
    steps: List[StepRecord] = field(default_factory=list)
    total_page_faults: int = 0
    page_fault_rate: float = 0.0
    event_log: List[str] = field(default_factory=list)

    @property
    def hits(self) -> int:
        return len(self.steps) - self.total_page_faults

    @property
    def hit_ratio(self) -> float:
        return (self.hits / len(self.steps)) if self.steps else 0.0

    def to_dict(self) -> dict:
        """Return the result with the field names used by web consumers."""
        steps = []
        for step in self.steps:
            record = {
                "request": step.request,
                "frames": list(step.frames),
                "pageFault": step.page_fault,
            }
            if step.reference_counter is not None:
                record["referenceCounter"] = dict(step.reference_counter)
            if step.second_chance_bits is not None:
                record["secondChanceBits"] = list(step.second_chance_bits)
            steps.append(record)

        return {
            "pageSequence": list(self.page_sequence),
            "steps": steps,
            "totalPageFaults": self.total_page_faults,
            "pageFaultRate": self.page_fault_rate,
        }


class FrameTable:
    """
    Fixed number of frame slots, each holding a page number or None.

    Empty slots are filled left to right; a page is held by at most one slot.
    """

    def __init__(self, frame_count: int):
        self.slots: List[Optional[int]] = [None] * frame_count

    def __len__(self):
        return len(self.slots)

    def __getitem__(self, index: int) -> Optional[int]:
        return self.slots[index]

    def index_of(self, page: int) -> Optional[int]:
        for i, slot in enumerate(self.slots):
            if slot == page:
                return i
        return None

    def first_empty(self) -> Optional[int]:
        return self.index_of(None)

    def is_full(self) -> bool:
        return self.first_empty() is None

    def place(self, index: int, page: int) -> Optional[int]:
        """Put ``page`` in slot ``index`` and return the page it replaced."""
        evicted = self.slots[index]
        self.slots[index] = page
        return evicted

    def snapshot(self) -> List[Optional[int]]:
        return list(self.slots)


# -----------------------------
# Policies
# -----------------------------

class _Policy:
    """
    Bookkeeping hooks called by the shared driver loop.

    ``select_victim`` is only called when every frame is occupied.
    ``after_access`` runs once per request, after any fault handling.
    """
    name = None

    def __init__(self, frame_count: int, page_sequence: Sequence[int]):
        self.frame_count = frame_count
        self.page_sequence = page_sequence

    def before_access(self, page: int, time: int):
        pass

    def on_hit(self, index: int, page: int, time: int):
        pass

    def on_place(self, index: int, page: int, time: int):
        pass

    def select_victim(self, frames: FrameTable, time: int, log: List[str]) -> int:
        raise NotImplementedError

    def after_access(self, page: int, time: int):
        pass

    def annotate(self, record: StepRecord):
        pass


class _FIFO(_Policy):
    name = ReplacementPolicy.FIFO

    def __init__(self, frame_count, page_sequence):
        super().__init__(frame_count, page_sequence)
        self.cursor = 0

    def select_victim(self, frames, time, log):
        victim = self.cursor
        self.cursor = (self.cursor + 1) % self.frame_count
        return victim


class _RecencyPolicy(_Policy):
    """Shared last-use bookkeeping for LRU and MRU."""

    def __init__(self, frame_count, page_sequence):
        super().__init__(frame_count, page_sequence)
        self.last_used: Dict[int, int] = {}

    def after_access(self, page, time):
        self.last_used[page] = time

    def annotate(self, record):
        record.reference_counter = dict(self.last_used)


class _LRU(_RecencyPolicy):
    name = ReplacementPolicy.LRU

    def select_victim(self, frames, time, log):
        victim = 0
        for i in range(1, len(frames)):
            if self.last_used[frames[i]] < self.last_used[frames[victim]]:
                victim = i
        return victim


class _MRU(_RecencyPolicy):
    name = ReplacementPolicy.MRU

    def select_victim(self, frames, time, log):
        victim = 0
        for i in range(1, len(frames)):
            if self.last_used[frames[i]] > self.last_used[frames[victim]]:
                victim = i
        return victim


class _Optimal(_Policy):
    name = ReplacementPolicy.OPTIMAL

    def select_victim(self, frames, time, log):
        resident = set(frames.slots)
        next_use = {page: float('inf') for page in resident}

        for i in range(time + 1, len(self.page_sequence)):
            future_page = self.page_sequence[i]
            if future_page in resident and next_use[future_page] == float('inf'):
                next_use[future_page] = i

        victim = 0
        for i in range(1, len(frames)):
            if next_use[frames[i]] > next_use[frames[victim]]:
                victim = i
        return victim


class _SecondChance(_Policy):
    name = ReplacementPolicy.SECOND_CHANCE

    def __init__(self, frame_count, page_sequence):
        super().__init__(frame_count, page_sequence)
        self.bits: List[bool] = [False] * frame_count
        self.hand = 0

    def on_hit(self, index, page, time):
        self.bits[index] = True

    def on_place(self, index, page, time):
        self.bits[index] = False

    def select_victim(self, frames, time, log):
        # Terminates within two sweeps: every inspected bit is cleared.
        while self.bits[self.hand]:
            self.bits[self.hand] = False
            log.append(f"Second chance: Page {frames[self.hand]} in Frame {self.hand}")
            self.hand = (self.hand + 1) % self.frame_count
        victim = self.hand
        self.hand = (self.hand + 1) % self.frame_count
        return victim

    def annotate(self, record):
        record.second_chance_bits = list(self.bits)


class _Random(_Policy):
    name = ReplacementPolicy.RANDOM

    def __init__(self, frame_count, page_sequence, rng=None):
        super().__init__(frame_count, page_sequence)
        self.rng = rng if rng is not None else random

    def select_victim(self, frames, time, log):
        return self.rng.randrange(self.frame_count)


class _NFU(_Policy):
    name = ReplacementPolicy.NFU

    def __init__(self, frame_count, page_sequence):
        super().__init__(frame_count, page_sequence)
        self.usage: Dict[int, int] = {}

    def before_access(self, page, time):
        self.usage.setdefault(page, 0)

    def select_victim(self, frames, time, log):
        victim = 0
        for i in range(1, len(frames)):
            if self.usage[frames[i]] < self.usage[frames[victim]]:
                victim = i
        return victim

    def after_access(self, page, time):
        self.usage[page] += 1

    def annotate(self, record):
        record.reference_counter = dict(self.usage)


# -----------------------------
# Driver
# -----------------------------

def _check_frame_count(frame_count: int):
    if isinstance(frame_count, bool) or not isinstance(frame_count, int) or frame_count < 1:
        raise ValueError(f"Frame count must be a positive integer, got {frame_count!r}")


def _run(policy: _Policy, page_sequence: List[int], frame_count: int) -> SimulationResult:
    frames = FrameTable(frame_count)
    result = SimulationResult(
        policy=policy.name,
        frame_count=frame_count,
        page_sequence=page_sequence,
    )
    log = result.event_log

    for time, page in enumerate(page_sequence):
        policy.before_access(page, time)

        index = frames.index_of(page)
        page_fault = index is None

        if not page_fault:
            log.append(f"Hit: Page {page} in Frame {index}")
            policy.on_hit(index, page, time)
        else:
            result.total_page_faults += 1
            log.append(f"Fault: Page {page} not in memory")

            index = frames.first_empty()
            if index is not None:
                frames.place(index, page)
                log.append(f"Loaded: Page {page} -> Frame {index}")
            else:
                index = policy.select_victim(frames, time, log)
                evicted = frames.place(index, page)
                log.append(f"Evicting: Page {evicted} from Frame {index}")
                log.append(f"Loaded: Page {page} -> Frame {index} (replaced)")
            policy.on_place(index, page, time)

        policy.after_access(page, time)

        record = StepRecord(request=page, frames=frames.snapshot(), page_fault=page_fault)
        policy.annotate(record)
        result.steps.append(record)

    if page_sequence:
        result.page_fault_rate = result.total_page_faults / len(page_sequence)
    return result


def simulate_fifo(page_sequence: Iterable[int], frame_count: int) -> SimulationResult:
    """Evict the frame under a circular cursor that advances on each eviction."""
    _check_frame_count(frame_count)
    pages = list(page_sequence)
    return _run(_FIFO(frame_count, pages), pages, frame_count)


def simulate_lru(page_sequence: Iterable[int], frame_count: int) -> SimulationResult:
    """Evict the resident page with the oldest last use."""
    _check_frame_count(frame_count)
    pages = list(page_sequence)
    return _run(_LRU(frame_count, pages), pages, frame_count)


def simulate_optimal(page_sequence: Iterable[int], frame_count: int) -> SimulationResult:
    """
    Evict the resident page whose next request is farthest in the future.

    Pages never requested again count as infinitely far. Ties go to the
    lowest frame index.
    """
    _check_frame_count(frame_count)
    pages = list(page_sequence)
    return _run(_Optimal(frame_count, pages), pages, frame_count)


def simulate_second_chance(page_sequence: Iterable[int], frame_count: int) -> SimulationResult:
    """
    Clock algorithm.

    A hit sets the frame's reference bit. On eviction the hand sweeps from
    its last position, clearing set bits, and takes the first frame whose
    bit is already clear.
    """
    _check_frame_count(frame_count)
    pages = list(page_sequence)
    return _run(_SecondChance(frame_count, pages), pages, frame_count)


def simulate_mru(page_sequence: Iterable[int], frame_count: int) -> SimulationResult:
    """Evict the resident page with the newest last use."""
    _check_frame_count(frame_count)
    pages = list(page_sequence)
    return _run(_MRU(frame_count, pages), pages, frame_count)


def simulate_random(page_sequence: Iterable[int], frame_count: int, rng=None) -> SimulationResult:
    """
    Evict a uniformly random frame.

    Args:
        page_sequence: Page requests in order
        frame_count (int): Number of frames
        rng: Object with a ``randrange(n)`` method, e.g. ``random.Random(seed)``.
            Defaults to the global ``random`` module.
    """
    _check_frame_count(frame_count)
    pages = list(page_sequence)
    return _run(_Random(frame_count, pages, rng), pages, frame_count)


def simulate_nfu(page_sequence: Iterable[int], frame_count: int) -> SimulationResult:
    """Evict the resident page with the smallest total request count."""
    _check_frame_count(frame_count)
    pages = list(page_sequence)
    return _run(_NFU(frame_count, pages), pages, frame_count)


# -----------------------------
# Dispatcher
# -----------------------------

def simulate(policy: str, page_sequence: Iterable[int], frame_count: int, rng=None) -> SimulationResult:
    """
    Run the named replacement policy.

    Args:
        policy (str): One of ``ReplacementPolicy.ALL``
        page_sequence: Page requests in order
        frame_count (int): Number of frames (>= 1)
        rng: Random source, only used by the Random policy

    Returns:
        SimulationResult: Full trace and fault statistics

    Raises:
        ValueError: If the policy is unknown or frame_count is not positive
    """
    if policy == ReplacementPolicy.FIFO:
        return simulate_fifo(page_sequence, frame_count)
    elif policy == ReplacementPolicy.LRU:
        return simulate_lru(page_sequence, frame_count)
    elif policy == ReplacementPolicy.OPTIMAL:
        return simulate_optimal(page_sequence, frame_count)
    elif policy == ReplacementPolicy.SECOND_CHANCE:
        return simulate_second_chance(page_sequence, frame_count)
    elif policy == ReplacementPolicy.MRU:
        return simulate_mru(page_sequence, frame_count)
    elif policy == ReplacementPolicy.RANDOM:
        return simulate_random(page_sequence, frame_count, rng)
    elif policy == ReplacementPolicy.NFU:
        return simulate_nfu(page_sequence, frame_count)
    raise ValueError(f"Unknown replacement policy: {policy}")


def compare_policies(page_sequence: Iterable[int], frame_count: int, rng=None) -> "OrderedDict[str, SimulationResult]":
    """Run every policy over the same requests, in ``ReplacementPolicy.ALL`` order."""
    pages = list(page_sequence)
    return OrderedDict(
        (policy, simulate(policy, pages, frame_count, rng))
        for policy in ReplacementPolicy.ALL
    )


def fault_curve(policy: str, page_sequence: Iterable[int], frame_counts: Iterable[int], rng=None) -> Dict[int, int]:
    """
    Total page faults for each frame count.

    FIFO over ``1 2 3 4 1 2 5 1 2 3 4 5`` shows Belady's anomaly here:
    9 faults with 3 frames but 10 with 4.
    """
    pages = list(page_sequence)
    return {
        n: simulate(policy, pages, n, rng).total_page_faults
        for n in frame_counts
    }

