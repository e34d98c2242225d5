from __future__ import annotations

import random
import unittest
from datetime import datetime, timezone

from gachasim.draw import GachaDrawEngine, aggregate, sample_results
from gachasim.models import Operation, Prize


def _first_candidate() -> float:
    return 0.0


def _last_candidate() -> float:
    return 0.999999


class SampleResultsTests(unittest.TestCase):
    def test_exhausted_prize_leaves_candidate_set(self) -> None:
        prizes = [
            Prize(id="a", name="A", weight=1, limit=1),
            Prize(id="b", name="B", weight=1),
        ]
        results = sample_results(prizes, {}, 3, random=_first_candidate)
        self.assertEqual(results, {"a": 1, "b": 2})

    def test_walk_follows_list_order(self) -> None:
        prizes = [
            Prize(id="a", name="A", weight=1),
            Prize(id="b", name="B", weight=1),
            Prize(id="c", name="C", weight=2),
        ]
        self.assertEqual(sample_results(prizes, {}, 4, random=_first_candidate), {"a": 4})
        self.assertEqual(sample_results(prizes, {}, 4, random=_last_candidate), {"c": 4})
        # 0.3 * 4 = 1.2 lands in the second slot [1, 2).
        self.assertEqual(sample_results(prizes, {}, 2, random=lambda: 0.3), {"b": 2})

    def test_zero_weight_prizes_are_never_drawn(self) -> None:
        prizes = [
            Prize(id="zero", name="Zero", weight=0),
            Prize(id="one", name="One", weight=1),
        ]
        results = sample_results(prizes, {}, 10, random=_first_candidate)
        self.assertEqual(results, {"one": 10})

    def test_only_zero_weight_candidates_draws_nothing(self) -> None:
        prizes = [Prize(id="a", name="A", weight=0)]
        for source in (_first_candidate, _last_candidate, random.Random(7).random):
            self.assertEqual(sample_results(prizes, {}, 5, random=source), {})

    def test_all_limits_zero_stops_immediately(self) -> None:
        calls: list[int] = []

        def source() -> float:
            calls.append(1)
            return 0.5

        prizes = [
            Prize(id="a", name="A", weight=1, limit=0),
            Prize(id="b", name="B", weight=5, limit=0),
        ]
        self.assertEqual(sample_results(prizes, {}, 100, random=source), {})
        self.assertEqual(calls, [])

    def test_current_counts_reduce_headroom(self) -> None:
        prizes = [
            Prize(id="a", name="A", weight=1, limit=3),
            Prize(id="b", name="B", weight=1, limit=2),
        ]
        results = sample_results(prizes, {"a": 2, "b": 0}, 10, random=_first_candidate)
        self.assertEqual(results, {"a": 1, "b": 2})

    def test_input_counts_are_not_mutated(self) -> None:
        prizes = [Prize(id="a", name="A", weight=1, limit=5)]
        counts = {"a": 1}
        sample_results(prizes, counts, 3, random=_first_candidate)
        self.assertEqual(counts, {"a": 1})

    def test_top_of_range_draws_nothing_but_keeps_going(self) -> None:
        prizes = [Prize(id="a", name="A", weight=1)]
        values = iter([1.0, 0.5, 1.0])
        results = sample_results(prizes, {}, 3, random=lambda: next(values))
        self.assertEqual(results, {"a": 1})

    def test_limits_hold_over_many_random_batches(self) -> None:
        rng = random.Random(1234)
        prizes = [
            Prize(id="rare", name="Rare", weight=1, limit=2),
            Prize(id="uncommon", name="Uncommon", weight=5, limit=15),
            Prize(id="common", name="Common", weight=20, limit=40),
        ]
        engine = GachaDrawEngine(random=rng.random)
        history: list[Operation] = []
        for _ in range(20):
            operation = engine.draw(prizes, history, 5, "t1")
            drawn = sum(operation.results.values())
            self.assertLessEqual(drawn, 5)
            history.append(operation)
            totals = aggregate(prizes, history)
            for prize in prizes:
                self.assertLessEqual(totals[prize.id], prize.limit)

        totals = aggregate(prizes, history)
        self.assertEqual(sum(totals.values()), 57)
        self.assertEqual(totals, {"rare": 2, "uncommon": 15, "common": 40})


class GachaDrawEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.ids = iter(["op-1", "op-2", "op-3"])
        self.engine = GachaDrawEngine(
            random=_first_candidate,
            clock=lambda: self.now,
            id_factory=lambda: next(self.ids),
        )

    def test_draw_emits_record_with_requested_count(self) -> None:
        prizes = [
            Prize(id="a", name="A", weight=1, limit=1),
            Prize(id="b", name="B", weight=1),
        ]
        operation = self.engine.draw(prizes, [], 3, "t1")
        self.assertEqual(operation.id, "op-1")
        self.assertEqual(operation.results, {"a": 1, "b": 2})
        self.assertEqual(operation.count, 3)
        self.assertEqual(operation.target_id, "t1")
        self.assertEqual(operation.timestamp, self.now)
        self.assertIsNone(operation.gacha_id)

    def test_requested_count_kept_when_pool_runs_dry(self) -> None:
        prizes = [Prize(id="a", name="A", weight=1, limit=2)]
        operation = self.engine.draw(prizes, [], 5, "t1")
        self.assertEqual(operation.results, {"a": 2})
        self.assertEqual(operation.count, 5)
        self.assertEqual(operation.drawn, 2)

    def test_limits_are_global_across_targets(self) -> None:
        prizes = [
            Prize(id="a", name="A", weight=1, limit=1),
            Prize(id="b", name="B", weight=1),
        ]
        history = [Operation(count=1, results={"a": 1}, target_id="someone-else")]
        operation = self.engine.draw(prizes, history, 2, "t1")
        self.assertEqual(operation.results, {"b": 2})

    def test_zero_weight_pool_yields_empty_results(self) -> None:
        prizes = [Prize(id="a", name="A", weight=0)]
        operation = self.engine.draw(prizes, [], 5, "t1")
        self.assertEqual(operation.results, {})
        self.assertEqual(operation.count, 5)

    def test_all_limits_zero_yields_empty_results(self) -> None:
        prizes = [
            Prize(id="a", name="A", weight=3, limit=0),
            Prize(id="b", name="B", weight=1, limit=0),
        ]
        operation = self.engine.draw(prizes, [], 10, "t1")
        self.assertEqual(operation.results, {})

    def test_invalid_counts_are_rejected(self) -> None:
        prizes = [Prize(id="a", name="A", weight=1)]
        with self.assertRaises(ValueError):
            self.engine.draw(prizes, [], 0, "t1")
        with self.assertRaises(ValueError):
            self.engine.draw(prizes, [], -3, "t1")
        with self.assertRaises(TypeError):
            self.engine.draw(prizes, [], 1.5, "t1")  # type: ignore[arg-type]

    def test_default_engine_produces_fresh_ids(self) -> None:
        prizes = [Prize(id="a", name="A", weight=1)]
        engine = GachaDrawEngine()
        first = engine.draw(prizes, [], 1, "t1")
        second = engine.draw(prizes, [first], 1, "t1")
        self.assertNotEqual(first.id, second.id)
        self.assertEqual(second.results, {"a": 1})


if __name__ == "__main__":
    unittest.main()
