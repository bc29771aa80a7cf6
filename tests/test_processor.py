from datetime import datetime, timezone
import unittest

from miles_core.config import MatcherConfig
from miles_core.processor import (
    prepare_goals,
    prepare_promotions,
    promotions_to_dataframe,
    summarise_promotions,
)

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def _record(promotion_id, destino="Miami", milhas_min=20000, **extra):
    record = {
        "id": promotion_id,
        "programa": "Smiles",
        "destino": destino,
        "milhas_min": milhas_min,
        "link": f"https://example.com/{promotion_id}",
        "created_at": "2026-10-10T09:00:00Z",
    }
    record.update(extra)
    return record


class PromotionPipelineTests(unittest.TestCase):
    def test_malformed_records_are_dropped_with_warning(self) -> None:
        records = [
            _record("ok"),
            _record("no-destination", destino=""),
            _record("no-miles", milhas_min=None),
            _record("bad-miles", milhas_min="muitas"),
            _record("negative", milhas_min=-10),
        ]
        warnings = []

        promotions = prepare_promotions(records, MatcherConfig(), warnings, now=NOW)

        self.assertEqual([promotion.id for promotion in promotions], ["ok"])
        self.assertEqual(len(warnings), 1)
        self.assertIn("4", warnings[0])

    def test_pt_br_miles_strings_are_parsed(self) -> None:
        records = [_record("a", milhas_min="20.000"), _record("b", milhas_min="12.500,5 milhas")]

        promotions = prepare_promotions(records, MatcherConfig(), now=NOW)

        self.assertEqual([(p.id, p.milhas_min) for p in promotions], [("b", 12500.5), ("a", 20000)])
        self.assertIsInstance(promotions[1].milhas_min, int)

    def test_promotions_sorted_by_miles_and_limited(self) -> None:
        records = [_record(str(index), milhas_min=10000 + (5 - index) * 1000) for index in range(6)]

        promotions = prepare_promotions(records, MatcherConfig(limit=3), now=NOW)

        self.assertEqual([p.id for p in promotions], ["5", "4", "3"])

    def test_old_and_inactive_promotions_are_filtered(self) -> None:
        records = [
            _record("fresh"),
            _record("old", created_at="2026-08-01T00:00:00Z"),
            _record("inactive", is_active=False),
            _record("undated", created_at=None),
        ]

        promotions = prepare_promotions(records, MatcherConfig(), now=NOW)

        self.assertEqual([p.id for p in promotions], ["fresh", "undated"])
        self.assertTrue(promotions[0].created_at.startswith("2026-10-10T09:00:00"))

        everything = prepare_promotions(records, MatcherConfig(max_age_days=None), now=NOW)
        self.assertEqual({p.id for p in everything}, {"fresh", "old", "undated"})

    def test_duplicate_ids_keep_first_record(self) -> None:
        records = [_record("dup", destino="Miami"), _record("dup", destino="Paris")]

        promotions = prepare_promotions(records, MatcherConfig(), now=NOW)

        self.assertEqual(len(promotions), 1)
        self.assertEqual(promotions[0].destino, "Miami")

    def test_search_range_and_program_filters(self) -> None:
        records = [
            _record("lisboa", destino="Lisboa", milhas_min=15000, programa="LATAM Pass", titulo="Europa barata"),
            _record("paris", destino="Paris", milhas_min=35000, programa="Smiles"),
            _record("recife", destino="Recife", milhas_min=8000, programa="TudoAzul"),
        ]

        by_search = prepare_promotions(records, MatcherConfig(search_term="EUROPA"), now=NOW)
        self.assertEqual([p.id for p in by_search], ["lisboa"])

        by_range = prepare_promotions(records, MatcherConfig(min_miles=10000, max_miles=20000), now=NOW)
        self.assertEqual([p.id for p in by_range], ["lisboa"])

        by_program = prepare_promotions(records, MatcherConfig(programa="latam"), now=NOW)
        self.assertEqual([p.id for p in by_program], ["lisboa"])

    def test_integer_ids_survive_missing_values(self) -> None:
        df = promotions_to_dataframe([{"id": 7, "destino": "Miami", "milhas_min": 1}, {"destino": "Paris"}])

        self.assertEqual(df["id"].tolist()[0], 7)

        promotions = prepare_promotions([{"id": 7, "destino": "Miami", "milhas_min": 1}], MatcherConfig(), now=NOW)
        self.assertEqual(promotions[0].id, "7")

    def test_empty_input(self) -> None:
        self.assertEqual(prepare_promotions([], MatcherConfig(), now=NOW), [])


class GoalPreparationTests(unittest.TestCase):
    def test_completed_goals_are_skipped_by_default(self) -> None:
        records = [
            {"id": "g1", "name": "Miami", "target_miles": "50.000", "current_miles": 10000},
            {"id": "g2", "name": "Paris", "is_completed": True},
            {"id": "g3", "name": None, "description": None},
        ]

        goals = prepare_goals(records)

        self.assertEqual([goal.id for goal in goals], ["g1"])
        self.assertEqual(goals[0].target_miles, 50000)
        self.assertAlmostEqual(goals[0].progress, 0.2)
        self.assertEqual(goals[0].remaining_miles, 40000)
        self.assertEqual([goal.id for goal in prepare_goals(records, include_completed=True)], ["g1", "g2"])

    def test_textual_completed_flag_hides_goal(self) -> None:
        records = [{"id": "g1", "name": "Miami", "is_completed": "sim"}, {"id": "g2", "name": "Paris"}]

        self.assertEqual([goal.id for goal in prepare_goals(records)], ["g2"])


class SummaryTests(unittest.TestCase):
    def test_summary_statistics(self) -> None:
        promotions = prepare_promotions(
            [_record("a", milhas_min=10000), _record("b", milhas_min=30000)], MatcherConfig(), now=NOW
        )

        summary = summarise_promotions(promotions)

        self.assertEqual(summary["count"], 2)
        self.assertAlmostEqual(summary["average_miles"], 20000.0)
        self.assertAlmostEqual(summary["min_miles"], 10000.0)
        self.assertEqual(summarise_promotions([])["count"], 0)


if __name__ == "__main__":
    unittest.main()
