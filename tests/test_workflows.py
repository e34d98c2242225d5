from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from gachasim.db.engine import get_sessionmaker, make_engine
from gachasim.draw import GachaDrawEngine, overall_aggregation, target_aggregation
from gachasim.models import Base, Gacha, Operation
from gachasim.repositories import CategoryRepository, PrizeRepository, TargetRepository
from gachasim.workflows import (
    MAX_NUMBERED_PRIZES,
    add_numbered_prizes,
    add_prize_from_form,
    clear_operation_history,
    create_gacha,
    delete_numbered_prizes,
    delete_target,
    preview_numbered_prizes,
    pull_gacha,
    undo_operation,
    update_prize_field,
)


class _StepClock:
    def __init__(self) -> None:
        self.current = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class WorkflowTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)
        self.draw_engine = GachaDrawEngine(random=lambda: 0.0, clock=_StepClock())

    def tearDown(self) -> None:
        self.engine.dispose()


class PullGachaTests(WorkflowTestCase):
    def test_pull_appends_history_and_respects_limits(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session, "Stream")
            prizes = PrizeRepository(session, gacha)
            a = prizes.create("A", 1, limit=1)
            b = prizes.create("B", 1)
            target_id = gacha.targets[0].id

            operation = pull_gacha(session, gacha, 3, target_id, engine=self.draw_engine)
            self.assertEqual(operation.results, {a.id: 1, b.id: 2})
            self.assertEqual(operation.count, 3)
            self.assertEqual(operation.gacha_id, gacha.id)

            second = pull_gacha(session, gacha, 2, target_id, engine=self.draw_engine)
            self.assertEqual(second.results, {b.id: 2})
            gacha_id = gacha.id

        with self.Session() as session:
            gacha = session.get(Gacha, gacha_id)
            self.assertEqual(len(gacha.operation_history), 2)
            self.assertEqual(overall_aggregation(gacha), {a.id: 1, b.id: 4})

    def test_limits_span_targets(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            prize = PrizeRepository(session, gacha).create("Only", 1, limit=2)
            alice = TargetRepository(session, gacha).create("Alice")
            bob = TargetRepository(session, gacha).create("Bob")

            pull_gacha(session, gacha, 2, alice.id, engine=self.draw_engine)
            for_bob = pull_gacha(session, gacha, 5, bob.id, engine=self.draw_engine)

            self.assertEqual(for_bob.results, {})
            self.assertEqual(for_bob.count, 5)
            self.assertEqual(target_aggregation(gacha, alice.id), {prize.id: 2})
            self.assertEqual(target_aggregation(gacha, bob.id), {prize.id: 0})

    def test_unknown_target_is_rejected(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            PrizeRepository(session, gacha).create("A", 1)
            with self.assertRaises(ValueError):
                pull_gacha(session, gacha, 1, "nobody", engine=self.draw_engine)
            self.assertEqual(gacha.operation_history, [])

    def test_undo_and_bulk_undo_restore_headroom(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            prize = PrizeRepository(session, gacha).create("A", 1, limit=1)
            target_id = gacha.targets[0].id

            first = pull_gacha(session, gacha, 1, target_id, engine=self.draw_engine)
            self.assertEqual(overall_aggregation(gacha), {prize.id: 1})

            undo_operation(session, gacha, first.id)
            self.assertEqual(overall_aggregation(gacha), {prize.id: 0})

            again = pull_gacha(session, gacha, 1, target_id, engine=self.draw_engine)
            self.assertEqual(again.results, {prize.id: 1})
            pull_gacha(session, gacha, 1, target_id, engine=self.draw_engine)

            self.assertEqual(clear_operation_history(session, gacha), 2)
            self.assertEqual(overall_aggregation(gacha), {prize.id: 0})
            self.assertEqual(session.query(Operation).count(), 0)

    def test_deleted_prize_leaves_history_alone(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            prizes = PrizeRepository(session, gacha)
            a = prizes.create("A", 1)
            b = prizes.create("B", 1)
            target_id = gacha.targets[0].id
            operation = pull_gacha(session, gacha, 2, target_id, engine=self.draw_engine)

            prizes.delete(a.id)
            self.assertEqual(operation.results, {a.id: 2})
            self.assertEqual(overall_aggregation(gacha), {b.id: 0})


class NumberedPrizeTests(WorkflowTestCase):
    def test_add_and_delete_numbered_prizes(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            goods = CategoryRepository(session, gacha).create("Goods")
            created = add_numbered_prizes(
                session, gacha, "Card", 3, 6, 2.0, limit=1, category_id=goods.id
            )
            self.assertEqual([p.name for p in created], ["Card3", "Card4", "Card5", "Card6"])
            self.assertTrue(all(p.limit == 1 and p.category_id == goods.id for p in created))

            PrizeRepository(session, gacha).create("Card10", 1)
            removed = delete_numbered_prizes(session, gacha, "Card", 4, 5)
            self.assertEqual(removed, 2)
            self.assertEqual([p.name for p in gacha.prizes], ["Card3", "Card6", "Card10"])
            self.assertEqual(delete_numbered_prizes(session, gacha, "Missing", 1, 3), 0)

    def test_invalid_ranges(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            with self.assertRaises(ValueError):
                add_numbered_prizes(session, gacha, "Card", 5, 4, 1.0)
            with self.assertRaises(ValueError):
                add_numbered_prizes(session, gacha, "Card", 1, MAX_NUMBERED_PRIZES + 1, 1.0)
            with self.assertRaises(ValueError):
                add_numbered_prizes(session, gacha, "Card", 1, 3, -1.0)
            with self.assertRaises(ValueError):
                delete_numbered_prizes(session, gacha, "Card", 2, 1)
            self.assertEqual(gacha.prizes, [])

            created = add_numbered_prizes(session, gacha, "Card", 1, MAX_NUMBERED_PRIZES, 1.0)
            self.assertEqual(len(created), MAX_NUMBERED_PRIZES)


class FormInputTests(WorkflowTestCase):
    def test_preview_numbered_prizes(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            PrizeRepository(session, gacha).create("Rare", 80)
            self.assertEqual(preview_numbered_prizes(gacha, 2, 1, 10), 2.0)
            self.assertEqual(preview_numbered_prizes(gacha, 20, 5, 5), 20.0)
            self.assertEqual(preview_numbered_prizes(gacha, 2, 3, 1), 0.0)

    def test_add_prize_from_form(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            self.assertIsNone(add_prize_from_form(session, gacha, "A", ""))
            self.assertIsNone(add_prize_from_form(session, gacha, "  ", "1"))
            prize = add_prize_from_form(session, gacha, "A", "2.5", "abc")
            self.assertIsNotNone(prize)
            self.assertEqual(prize.weight, 2.5)
            self.assertIsNone(prize.limit)
            limited = add_prize_from_form(session, gacha, "B", "1", "4")
            self.assertEqual(limited.limit, 4)

    def test_update_prize_field(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            prize = PrizeRepository(session, gacha).create("A", 3, limit=2)

            update_prize_field(session, gacha, prize.id, "weight", "")
            self.assertEqual(prize.weight, 0.0)
            update_prize_field(session, gacha, prize.id, "weight", "heavy")
            self.assertEqual(prize.weight, 0.0)
            update_prize_field(session, gacha, prize.id, "weight", "7.5")
            self.assertEqual(prize.weight, 7.5)

            update_prize_field(session, gacha, prize.id, "limit", "lots")
            self.assertEqual(prize.limit, 2)
            update_prize_field(session, gacha, prize.id, "limit", "")
            self.assertIsNone(prize.limit)

            update_prize_field(session, gacha, prize.id, "name", "Renamed")
            self.assertEqual(prize.name, "Renamed")
            update_prize_field(session, gacha, prize.id, "name", "   ")
            self.assertEqual(prize.name, "Renamed")
            with self.assertRaises(ValueError):
                update_prize_field(session, gacha, prize.id, "position", "3")


class DeleteTargetTests(WorkflowTestCase):
    def test_selection_after_delete(self) -> None:
        with self.Session.begin() as session:
            gacha = create_gacha(session)
            repo = TargetRepository(session, gacha)
            none_target = gacha.targets[0]
            alice = repo.create("Alice")
            bob = repo.create("Bob")

            # Deleting the selected last target selects the one before it.
            self.assertEqual(delete_target(session, gacha, bob.id, bob.id), alice.id)
            # Deleting the selected non-last target selects the last one.
            self.assertEqual(delete_target(session, gacha, none_target.id, none_target.id), alice.id)
            # Deleting an unselected target keeps the selection.
            carol = repo.create("Carol")
            self.assertEqual(delete_target(session, gacha, carol.id, alice.id), alice.id)

            fallback_id = delete_target(session, gacha, alice.id, alice.id)
            self.assertEqual([t.id for t in gacha.targets], [fallback_id])
            self.assertEqual(gacha.targets[0].name, "なし")


if __name__ == "__main__":
    unittest.main()
