"""Tests for the page replacement engine.

Hand-checked traces for each policy plus properties every policy must keep:
one step per request, a fixed-size frame table with no duplicate pages,
fault totals that match the trace, and independent per-step snapshots.
"""

import random

import pytest

from engine import (
    FrameTable,
    ReplacementPolicy,
    compare_policies,
    fault_curve,
    simulate,
    simulate_fifo,
    simulate_lru,
    simulate_mru,
    simulate_nfu,
    simulate_optimal,
    simulate_random,
    simulate_second_chance,
)

BELADY = [1, 2, 3, 4, 1, 2, 5, 1, 2, 3, 4, 5]

DETERMINISTIC = [p for p in ReplacementPolicy.ALL if p != ReplacementPolicy.RANDOM]


def random_sequences(count=25, length=40, pages=8):
    rng = random.Random(1234)
    return [[rng.randrange(pages) for _ in range(length)] for _ in range(count)]


def run(policy, sequence, frame_count):
    return simulate(policy, sequence, frame_count, random.Random(7))


class _AlwaysLast:
    """Random source that always picks the last frame."""

    def randrange(self, n):
        return n - 1


# -- Frame table --------------------------------------------------------------


class TestFrameTable:
    """Verify the fixed-size slot table."""

    def test_starts_empty(self) -> None:
        table = FrameTable(3)
        assert table.snapshot() == [None, None, None]
        assert table.first_empty() == 0
        assert not table.is_full()

    def test_place_returns_replaced_page(self) -> None:
        table = FrameTable(2)
        assert table.place(0, 5) is None
        assert table.place(0, 6) == 5
        assert table.index_of(6) == 0
        assert table.index_of(5) is None

    def test_first_empty_is_lowest_index(self) -> None:
        table = FrameTable(3)
        table.place(1, 9)
        assert table.first_empty() == 0

    def test_snapshot_is_a_copy(self) -> None:
        table = FrameTable(2)
        snap = table.snapshot()
        table.place(0, 1)
        assert snap == [None, None]

    def test_is_full(self) -> None:
        table = FrameTable(1)
        table.place(0, 3)
        assert table.is_full()


# -- Shared properties ---------------------------------------------------------


@pytest.mark.parametrize("policy", ReplacementPolicy.ALL)
class TestTraceProperties:
    """Properties every policy must satisfy."""

    @pytest.mark.parametrize("frame_count", [1, 2, 3, 5])
    def test_one_step_per_request(self, policy, frame_count) -> None:
        for seq in random_sequences(count=5):
            result = run(policy, seq, frame_count)
            assert len(result.steps) == len(seq)
            assert [s.request for s in result.steps] == seq
            assert result.page_sequence == seq

    @pytest.mark.parametrize("frame_count", [1, 3, 4])
    def test_frames_fixed_length_without_duplicates(self, policy, frame_count) -> None:
        for seq in random_sequences(count=5):
            for step in run(policy, seq, frame_count).steps:
                assert len(step.frames) == frame_count
                resident = [p for p in step.frames if p is not None]
                assert len(resident) == len(set(resident))
                assert step.request in step.frames

    def test_fault_totals_match_trace(self, policy) -> None:
        for seq in random_sequences(count=5):
            result = run(policy, seq, 3)
            faults = sum(1 for s in result.steps if s.page_fault)
            assert result.total_page_faults == faults
            assert result.page_fault_rate == pytest.approx(faults / len(seq))
            assert result.hits == len(seq) - faults

    def test_fault_means_page_was_absent_before(self, policy) -> None:
        seq = random_sequences(count=1)[0]
        result = run(policy, seq, 3)
        before = [None, None, None]
        for step in result.steps:
            assert step.page_fault == (step.request not in before)
            before = step.frames

    def test_empty_sequence(self, policy) -> None:
        result = run(policy, [], 3)
        assert result.steps == []
        assert result.total_page_faults == 0
        assert result.page_fault_rate == 0.0

    @pytest.mark.parametrize("frame_count", [0, -1])
    def test_non_positive_frame_count_rejected(self, policy, frame_count) -> None:
        with pytest.raises(ValueError):
            run(policy, [1, 2, 3], frame_count)

    def test_snapshots_are_independent(self, policy) -> None:
        result = run(policy, BELADY, 3)
        first = list(result.steps[0].frames)
        result.steps[1].frames[0] = 99
        assert result.steps[0].frames == first
        assert result.steps[2].frames[0] != 99

    def test_initial_fill_is_left_to_right(self, policy) -> None:
        result = run(policy, [7, 8, 9, 7], 3)
        assert [s.frames for s in result.steps[:3]] == [
            [7, None, None],
            [7, 8, None],
            [7, 8, 9],
        ]

    def test_fits_in_memory_faults_once_per_page(self, policy) -> None:
        seq = [1, 2, 1, 3, 2, 1, 3]
        assert run(policy, seq, 5).total_page_faults == 3


@pytest.mark.parametrize("policy", DETERMINISTIC)
def test_deterministic_policies_repeat_exactly(policy) -> None:
    """Same input, same result, bit for bit."""
    seq = random_sequences(count=1)[0]
    assert simulate(policy, seq, 3) == simulate(policy, seq, 3)


@pytest.mark.parametrize("frame_count", [1, 2, 3, 4, 5])
def test_optimal_never_worse_than_any_policy(frame_count) -> None:
    """Belady's MIN is a lower bound on faults for every policy."""
    for seq in random_sequences() + [BELADY]:
        results = compare_policies(seq, frame_count, random.Random(3))
        best = results[ReplacementPolicy.OPTIMAL].total_page_faults
        for result in results.values():
            assert best <= result.total_page_faults


# -- FIFO ---------------------------------------------------------------------


class TestFIFO:
    """Circular cursor eviction."""

    def test_trace(self) -> None:
        result = simulate_fifo([1, 2, 3, 4, 1, 2, 5], 3)
        assert [s.frames for s in result.steps] == [
            [1, None, None],
            [1, 2, None],
            [1, 2, 3],
            [4, 2, 3],
            [4, 1, 3],
            [4, 1, 2],
            [5, 1, 2],
        ]
        assert result.total_page_faults == 7

    def test_hit_does_not_move_cursor(self) -> None:
        result = simulate_fifo([1, 2, 1, 3], 2)
        assert result.steps[-1].frames == [3, 2]
        assert result.total_page_faults == 3

    def test_beladys_anomaly(self) -> None:
        assert simulate_fifo(BELADY, 3).total_page_faults == 9
        assert simulate_fifo(BELADY, 4).total_page_faults == 10

    def test_no_annotations(self) -> None:
        step = simulate_fifo([1], 1).steps[0]
        assert step.reference_counter is None
        assert step.second_chance_bits is None


# -- LRU ----------------------------------------------------------------------


class TestLRU:
    """Evict the least recently used page."""

    def test_hit_protects_page(self) -> None:
        result = simulate_lru([1, 2, 3, 1, 4], 3)
        assert result.total_page_faults == 4
        assert result.steps[-1].frames == [1, 4, 3]
        assert 2 not in result.steps[-1].frames

    def test_reference_counter_holds_last_use_index(self) -> None:
        result = simulate_lru([1, 2, 3, 1, 4], 3)
        assert result.steps[-1].reference_counter == {1: 3, 2: 1, 3: 2, 4: 4}
        assert result.steps[0].reference_counter == {1: 0}

    def test_classic_counts(self) -> None:
        assert simulate_lru(BELADY, 3).total_page_faults == 10
        assert simulate_lru(BELADY, 4).total_page_faults == 8

    def test_reference_counter_snapshots_are_copies(self) -> None:
        result = simulate_lru([1, 2], 2)
        assert result.steps[0].reference_counter == {1: 0}


# -- Optimal ------------------------------------------------------------------


class TestOptimal:
    """Evict the page used farthest in the future."""

    def test_classic_trace(self) -> None:
        result = simulate_optimal(BELADY, 3)
        assert result.total_page_faults == 7
        assert result.steps[3].frames == [1, 2, 4]
        assert result.steps[6].frames == [1, 2, 5]
        assert result.steps[-1].frames == [4, 2, 5]

    def test_unused_pages_tie_break_on_lowest_frame(self) -> None:
        # Neither 1 nor 2 is requested again after 3 arrives
        result = simulate_optimal([1, 2, 3], 2)
        assert result.steps[-1].frames == [3, 2]

    def test_never_used_again_is_evicted_first(self) -> None:
        result = simulate_optimal([1, 2, 3, 1], 2)
        assert result.steps[2].frames == [1, 3]
        assert not result.steps[3].page_fault

    def test_four_frames(self) -> None:
        assert simulate_optimal(BELADY, 4).total_page_faults == 6


# -- Second Chance ------------------------------------------------------------


class TestSecondChance:
    """Clock with a reference bit per frame."""

    def test_referenced_page_survives_one_sweep(self) -> None:
        result = simulate_second_chance([1, 2, 3, 2, 4, 5], 3)
        assert result.steps[3].second_chance_bits == [False, True, False]
        assert result.steps[4].frames == [4, 2, 3]
        assert result.steps[5].frames == [4, 2, 5]
        assert result.steps[5].second_chance_bits == [False, False, False]
        assert result.total_page_faults == 5

    def test_hand_persists_between_evictions(self) -> None:
        result = simulate_second_chance([1, 2, 3, 4, 5], 3)
        assert result.steps[3].frames == [4, 2, 3]
        assert result.steps[4].frames == [4, 5, 3]

    def test_all_bits_set_falls_back_to_hand(self) -> None:
        result = simulate_second_chance([1, 2, 1, 2, 3], 2)
        assert result.steps[3].second_chance_bits == [True, True]
        assert result.steps[4].frames == [3, 2]
        assert result.steps[4].second_chance_bits == [False, False]

    def test_bits_align_with_frames(self) -> None:
        for seq in random_sequences(count=5):
            for step in simulate_second_chance(seq, 4).steps:
                assert len(step.second_chance_bits) == 4

    def test_bit_set_only_after_hit(self) -> None:
        result = simulate_second_chance([1, 2, 3], 3)
        for step in result.steps:
            assert not any(step.second_chance_bits)

    def test_eviction_logged(self) -> None:
        result = simulate_second_chance([1, 2, 1, 3], 2)
        assert "Second chance: Page 1 in Frame 0" in result.event_log
        assert "Evicting: Page 2 from Frame 1" in result.event_log


# -- MRU ----------------------------------------------------------------------


class TestMRU:
    """Evict the most recently used page."""

    def test_evicts_most_recent(self) -> None:
        result = simulate_mru([1, 2, 3, 1, 4], 3)
        assert result.steps[-1].frames == [4, 2, 3]
        assert result.total_page_faults == 4

    def test_reference_counter(self) -> None:
        result = simulate_mru([1, 2, 3, 1, 4], 3)
        assert result.steps[-1].reference_counter == {1: 3, 2: 1, 3: 2, 4: 4}

    def test_cyclic_scan(self) -> None:
        # MRU keeps the older pages of a loop one larger than memory
        result = simulate_mru([1, 2, 3, 1, 2, 3], 2)
        assert result.total_page_faults == 4


# -- Random -------------------------------------------------------------------


class TestRandom:
    """Random victims: check bounds and invariants, not exact traces."""

    def test_injected_source_picks_victim(self) -> None:
        result = simulate_random([1, 2, 3, 4], 3, _AlwaysLast())
        assert result.steps[-1].frames == [1, 2, 4]

    def test_seeded_runs_repeat(self) -> None:
        seq = random_sequences(count=1)[0]
        first = simulate_random(seq, 3, random.Random(42))
        second = simulate_random(seq, 3, random.Random(42))
        assert first == second

    def test_fills_like_every_other_policy(self) -> None:
        seq = [5, 6, 7, 5, 8, 9]
        rnd = simulate_random(seq, 3, random.Random(1))
        fifo = simulate_fifo(seq, 3)
        assert [s.frames for s in rnd.steps[:4]] == [s.frames for s in fifo.steps[:4]]

    def test_fault_bounds(self) -> None:
        for seq in random_sequences():
            result = simulate_random(seq, 3)
            assert len(set(seq)) <= result.total_page_faults <= len(seq)

    def test_unseeded_uses_global_source(self) -> None:
        random.seed(9)
        first = simulate_random(BELADY, 3)
        random.seed(9)
        second = simulate_random(BELADY, 3)
        assert first == second


# -- NFU ----------------------------------------------------------------------


class TestNFU:
    """Evict the page with the fewest requests."""

    def test_evicts_least_used(self) -> None:
        result = simulate_nfu([1, 1, 2, 3, 4], 3)
        assert result.steps[-1].frames == [1, 4, 3]
        assert result.total_page_faults == 4
        assert result.steps[-1].reference_counter == {1: 2, 2: 1, 3: 1, 4: 1}

    def test_counters_survive_eviction(self) -> None:
        result = simulate_nfu([1, 1, 2, 3, 4, 2], 3)
        assert result.steps[-1].frames == [1, 2, 3]
        assert result.steps[-1].reference_counter == {1: 2, 2: 2, 3: 1, 4: 1}

    def test_counter_counts_hits_and_faults(self) -> None:
        result = simulate_nfu([3, 3, 3], 1)
        assert [s.reference_counter for s in result.steps] == [{3: 1}, {3: 2}, {3: 3}]


# -- Dispatcher and helpers ----------------------------------------------------


class TestDispatch:
    """Name-based dispatch and multi-run helpers."""

    def test_unknown_policy(self) -> None:
        with pytest.raises(ValueError):
            simulate("LFU", [1, 2], 2)

    def test_result_names_policy(self) -> None:
        for policy in ReplacementPolicy.ALL:
            assert run(policy, [1], 1).policy == policy

    def test_compare_policies_order(self) -> None:
        results = compare_policies(BELADY, 3, random.Random(0))
        assert list(results) == list(ReplacementPolicy.ALL)

    def test_fault_curve_shows_anomaly(self) -> None:
        curve = fault_curve(ReplacementPolicy.FIFO, BELADY, [3, 4])
        assert curve == {3: 9, 4: 10}

    def test_to_dict_uses_consumer_names(self) -> None:
        data = simulate_second_chance([1, 1], 1).to_dict()
        assert data["pageSequence"] == [1, 1]
        assert data["totalPageFaults"] == 1
        assert data["pageFaultRate"] == 0.5
        assert data["steps"][1] == {
            "request": 1,
            "frames": [1],
            "pageFault": False,
            "secondChanceBits": [True],
        }
        assert "referenceCounter" in simulate_lru([1], 1).to_dict()["steps"][0]

    def test_event_log(self) -> None:
        result = simulate_fifo([1, 1, 2], 1)
        assert result.event_log == [
            "Fault: Page 1 not in memory",
            "Loaded: Page 1 -> Frame 0",
            "Hit: Page 1 in Frame 0",
            "Fault: Page 2 not in memory",
            "Evicting: Page 1 from Frame 0",
            "Loaded: Page 2 -> Frame 0 (replaced)",
        ]
