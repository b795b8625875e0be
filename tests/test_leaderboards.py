import tempfile
import threading
import unittest
from pathlib import Path

from boarcore.leaderboards import LeaderboardAggregator, count_uniques, effective_multiplier, top_holder
from boarcore.models import BoardData, UserProfile
from boarcore.storage import GlobalFile, GlobalStore

from support import make_config


def profile(user_id: str, username: str, **values) -> UserProfile:
    return UserProfile(user_id=user_id, username=username, **values)


class MultiplierTests(unittest.TestCase):
    def test_each_stack_compounds_on_the_running_value(self) -> None:
        self.assertEqual(effective_multiplier(100, 3, 300), 117)

    def test_each_increase_is_capped(self) -> None:
        self.assertEqual(effective_multiplier(100, 3, 5), 115)

    def test_no_stacks_leaves_base_untouched(self) -> None:
        self.assertEqual(effective_multiplier(42, 0, 300), 42)


class TopHolderTests(unittest.TestCase):
    def test_highest_value_wins(self) -> None:
        board = BoardData(user_data={"1": ("a", 5), "2": ("b", 9), "3": ("c", 7)})
        self.assertEqual(top_holder(board), "2")

    def test_lowest_value_wins_when_lower_is_better(self) -> None:
        board = BoardData(user_data={"1": ("a", 5), "2": ("b", 9)})
        self.assertEqual(top_holder(board, lower_is_better=True), "1")

    def test_current_holder_keeps_a_tie(self) -> None:
        board = BoardData(user_data={"1": ("a", 9), "2": ("b", 9)}, top_user="2")
        self.assertEqual(top_holder(board), "2")

    def test_empty_board_has_no_holder(self) -> None:
        self.assertIsNone(top_holder(BoardData(top_user="1")))


class LeaderboardAggregatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config = make_config(Path(self._tmp.name))
        self.store = GlobalStore(self.config)
        self.boards = LeaderboardAggregator(self.store)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def load(self):
        return self.store.load(GlobalFile.LEADERBOARDS)

    def test_uniques_are_split_by_special_flag(self) -> None:
        user = profile("1", "alice", item_counts={"classic": 2, "bacon": 0, "wizard": 1, "sb_tophat": 1, "ghost": 4})
        self.assertEqual(count_uniques(user, self.config, special=False), 2)
        self.assertEqual(count_uniques(user, self.config, special=True), 1)

    def test_update_writes_every_configured_board(self) -> None:
        self.boards.update(
            profile(
                "1",
                "alice",
                score=250,
                total_items=4,
                item_counts={"classic": 3, "sb_tophat": 1},
                multiplier=100,
                miracles_active=3,
                fastest_time=1800,
            )
        )
        boards = self.load()
        self.assertEqual(boards["bucks"].user_data["1"], ("alice", 250))
        self.assertEqual(boards["total"].user_data["1"], ("alice", 4))
        self.assertEqual(boards["uniques"].user_data["1"], ("alice", 1))
        self.assertEqual(boards["uniquesSB"].user_data["1"], ("alice", 1))
        self.assertEqual(boards["multiplier"].user_data["1"], ("alice", 117))
        self.assertEqual(boards["fastest"].user_data["1"], ("alice", 1800))
        self.assertTrue(all(board.top_user == "1" for board in boards.values()))

    def test_zero_values_remove_the_entry(self) -> None:
        self.boards.update(profile("1", "alice", score=250, total_items=4))
        self.boards.update(profile("1", "alice", score=0, total_items=4))
        boards = self.load()
        self.assertNotIn("1", boards["bucks"].user_data)
        self.assertIsNone(boards["bucks"].top_user)
        self.assertIn("1", boards["total"].user_data)
        self.assertNotIn("1", boards["fastest"].user_data)

    def test_boards_never_store_non_positive_values(self) -> None:
        for index, score in enumerate([5, 0, -3, 12, 0, 7]):
            self.boards.update(profile(str(index), f"user{index}", score=score, total_items=score))
        for board_id, board in self.load().items():
            with self.subTest(board=board_id):
                self.assertTrue(all(value > 0 for _name, value in board.user_data.values()))

    def test_top_user_follows_the_best_value(self) -> None:
        self.boards.update(profile("1", "alice", score=100, fastest_time=900))
        self.boards.update(profile("2", "bob", score=300, fastest_time=1200))
        boards = self.load()
        self.assertEqual(boards["bucks"].top_user, "2")
        self.assertEqual(boards["fastest"].top_user, "1")

        self.boards.update(profile("1", "alice", score=300, fastest_time=900))
        self.assertEqual(self.load()["bucks"].top_user, "2")

    def test_remove_clears_the_user_and_refresh_recomputes(self) -> None:
        self.boards.update(profile("1", "alice", score=100))
        self.boards.update(profile("2", "bob", score=300))

        self.boards.remove("2")
        boards = self.load()
        self.assertTrue(all("2" not in board.user_data for board in boards.values()))
        self.assertIsNone(boards["bucks"].top_user)

        tops = self.boards.refresh_top_users()
        self.assertEqual(tops["bucks"], "1")
        self.assertEqual(self.load()["bucks"].top_user, "1")

    def test_concurrent_updates_keep_every_user(self) -> None:
        threads = [
            threading.Thread(target=self.boards.update, args=(profile(str(index), f"user{index}", score=index + 1),))
            for index in range(40)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        bucks = self.load()["bucks"]
        self.assertEqual(len(bucks.user_data), 40)
        self.assertEqual(bucks.top_user, "39")

    def test_missing_board_is_recreated_on_update(self) -> None:
        boards = self.load()
        del boards["total"]
        self.store.save(GlobalFile.LEADERBOARDS, boards)
        self.boards.update(profile("1", "alice", total_items=3))
        self.assertEqual(self.load()["total"].user_data["1"], ("alice", 3))

    def test_standings_are_ordered_best_first(self) -> None:
        self.boards.update(profile("1", "alice", score=100, fastest_time=900))
        self.boards.update(profile("2", "bob", score=300, fastest_time=1200))
        self.boards.update(profile("3", "cara", score=200, fastest_time=600))

        self.assertEqual([row[0] for row in self.boards.standings("bucks")], ["2", "3", "1"])
        self.assertEqual([row[0] for row in self.boards.standings("fastest", limit=2)], ["3", "1"])
        self.assertEqual(self.boards.standings("nope"), [])

    def test_unknown_metric_is_reported(self) -> None:
        config = make_config(Path(self._tmp.name), leaderboards=("bucks", "mystery"))
        with self.assertLogs("boarcore.leaderboards", level="WARNING") as logs:
            aggregator = LeaderboardAggregator(GlobalStore(config))
        self.assertIn("mystery", logs.output[0])

        aggregator.update(profile("1", "alice", score=10))
        boards = aggregator.store.load(GlobalFile.LEADERBOARDS)
        self.assertEqual(boards["mystery"], BoardData())


if __name__ == "__main__":
    unittest.main()
