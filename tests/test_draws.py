import random
import tempfile
import unittest
from pathlib import Path

from boarcore.draws import DrawEngine, probability_table
from boarcore.models import NO_ITEM, GuildContext
from boarcore.rarity import RarityTable

from support import ScriptedRandom, make_config


class ProbabilityTableTests(unittest.TestCase):
    def test_boundaries_are_non_decreasing_and_end_at_one(self) -> None:
        samples = [
            {1: 70, 2: 30},
            {1: 0.1, 2: 0.2, 3: 0.7},
            {1: 3, 2: 3, 3: 3},
            {1: 1e-9, 2: 1e9},
            {4: 12.5, 7: 0.25, 9: 99},
        ]
        for weights in samples:
            with self.subTest(weights=weights):
                boundaries = [boundary for _rank, boundary in probability_table(weights)]
                self.assertEqual(boundaries, sorted(boundaries))
                self.assertAlmostEqual(boundaries[-1], 1.0)
                self.assertGreater(boundaries[0], 0.0)

    def test_tiers_are_ordered_from_lightest_to_heaviest(self) -> None:
        table = probability_table({1: 70, 2: 30})
        self.assertEqual([rank for rank, _ in table], [2, 1])
        self.assertAlmostEqual(table[0][1], 0.3)
        self.assertEqual(table[1][1], 1.0)

    def test_zero_weight_tiers_are_dropped(self) -> None:
        table = probability_table({1: 70, 2: 30, 3: 0})
        self.assertNotIn(3, [rank for rank, _ in table])

    def test_zero_total_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            probability_table({1: 0, 2: 0})


class DrawEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config = make_config(Path(self._tmp.name))
        self.table = RarityTable(self.config.rarities)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def engine(self, samples) -> DrawEngine:
        return DrawEngine(self.table, self.config.items, rng=ScriptedRandom(samples))

    def test_heavier_tier_owns_the_top_of_the_range(self) -> None:
        # common (70) spans (0.3, 1.0]; rare (30) spans [0, 0.3]
        self.assertEqual(self.engine([0.9, 0.6]).draw({1: 70, 2: 30}), ["bacon"])
        self.assertEqual(self.engine([0.31, 0.0]).draw({1: 70, 2: 30}), ["classic"])

    def test_sample_on_a_boundary_selects_that_tier(self) -> None:
        self.assertEqual(self.engine([0.3, 0.0]).draw({1: 70, 2: 30}), ["wizard"])

    def test_top_boundary_catches_float_error(self) -> None:
        engine = self.engine([0.9995])
        self.assertEqual(engine.roll_rank([(1, 0.5), (2, 0.999)]), 2)

    def test_sb_items_only_drawn_in_sb_guilds(self) -> None:
        regular = self.engine([0.1, 0.99]).draw({1: 70, 2: 30}, GuildContext(is_sb_server=False))
        sb = self.engine([0.1, 0.99]).draw({1: 70, 2: 30}, GuildContext(is_sb_server=True))
        self.assertEqual(regular, ["wizard"])
        self.assertEqual(sb, ["sb_tophat"])

    def test_tier_with_nothing_drawable_yields_empty_sentinel(self) -> None:
        engine = self.engine([0.5])
        self.assertEqual(engine.draw({3: 1.0}), [NO_ITEM])

    def test_without_extra_chance_exactly_one_result(self) -> None:
        engine = DrawEngine(self.table, self.config.items, rng=random.Random(7))
        for _ in range(200):
            self.assertEqual(len(engine.draw_base(extra_enabled=False, extra_value=250)), 1)

    def test_extra_chance_grants_guaranteed_and_bonus_draws(self) -> None:
        # bonus roll 0.7 misses the 50% remainder
        engine = self.engine([0.7] + [0.5, 0.0] * 3)
        self.assertEqual(len(engine.draw({1: 70, 2: 30}, None, True, 250)), 3)

        engine = self.engine([0.2] + [0.5, 0.0] * 4)
        self.assertEqual(len(engine.draw({1: 70, 2: 30}, None, True, 250)), 4)

    def test_whole_hundreds_skip_the_bonus_roll(self) -> None:
        engine = self.engine([0.5, 0.0] * 4)
        self.assertEqual(engine.draw({1: 70, 2: 30}, None, True, 300), ["classic"] * 4)
        self.assertEqual(engine._rng.remaining, 0)

    def test_extra_chance_of_250_never_gives_fewer_than_three(self) -> None:
        engine = DrawEngine(self.table, self.config.items, rng=random.Random(11))
        for _ in range(200):
            self.assertGreaterEqual(len(engine.draw_base(extra_enabled=True, extra_value=250)), 3)

    def test_negative_extra_chance_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.engine([]).draw({1: 1}, None, True, -5)

    def test_base_draws_never_come_from_non_daily_tiers(self) -> None:
        engine = DrawEngine(self.table, self.config.items, rng=random.Random(3))
        drawn = set()
        for _ in range(500):
            drawn.update(engine.draw_base())
        self.assertNotIn("creator", drawn)
        self.assertNotIn(NO_ITEM, drawn)
        self.assertLessEqual(drawn, {"classic", "bacon", "wizard"})

    def test_each_draw_is_logged(self) -> None:
        with self.assertLogs("boarcore.draws.rolls", level="DEBUG") as logs:
            drawn = self.engine([0.7, 0.9, 0.5, 0.1, 0.0]).draw({1: 70, 2: 30}, None, True, 150)
        self.assertEqual(drawn, ["bacon", "wizard"])
        self.assertEqual(len(logs.output), 2)


if __name__ == "__main__":
    unittest.main()
