"""Leaderboard upkeep for user profiles."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .config import BotConfig
from .models import BoardData, UserID, UserProfile
from .storage import GlobalFile, GlobalStore

logger = logging.getLogger("boarcore.leaderboards")

MIRACLE_STACK_RATE = 0.05


@dataclass(frozen=True)
class Metric:
    board_id: str
    value: Callable[[UserProfile, BotConfig], float]
    lower_is_better: bool = False


def effective_multiplier(base: int, active_stacks: int, increase_max: int) -> int:
    """Inflate ``base`` by each active stack in turn, 5% of the running value each, capped."""
    multiplier = base
    for _ in range(max(active_stacks, 0)):
        multiplier += min(math.ceil(multiplier * MIRACLE_STACK_RATE), increase_max)
    return multiplier


def count_uniques(profile: UserProfile, config: BotConfig, *, special: bool) -> int:
    total = 0
    for item_id, count in profile.item_counts.items():
        if count <= 0:
            continue
        item = config.items.get(item_id)
        if item is None:
            logger.debug("Ignoring unknown item '%s' in profile %s.", item_id, profile.user_id)
            continue
        if item.is_sb == special:
            total += 1
    return total


METRICS: Dict[str, Metric] = {
    metric.board_id: metric
    for metric in (
        Metric("bucks", lambda profile, _config: profile.score),
        Metric("total", lambda profile, _config: profile.total_items),
        Metric("uniques", lambda profile, config: count_uniques(profile, config, special=False)),
        Metric("uniquesSB", lambda profile, config: count_uniques(profile, config, special=True)),
        Metric("streak", lambda profile, _config: profile.streak),
        Metric("attempts", lambda profile, _config: profile.attempts),
        Metric("topAttempts", lambda profile, _config: profile.one_attempts),
        Metric("giftsUsed", lambda profile, _config: profile.gifts_used),
        Metric(
            "multiplier",
            lambda profile, config: effective_multiplier(
                profile.multiplier,
                profile.miracles_active,
                config.numbers.miracle_increase_max,
            ),
        ),
        Metric("fastest", lambda profile, _config: profile.fastest_time, lower_is_better=True),
    )
}


def top_holder(board: BoardData, *, lower_is_better: bool = False) -> Optional[UserID]:
    """Best-ranked user on ``board``; the current holder keeps the spot on ties."""
    best_user: Optional[UserID] = None
    best_value: Optional[float] = None
    for user_id, (_name, value) in board.user_data.items():
        if best_value is None or (value < best_value if lower_is_better else value > best_value):
            best_user, best_value = user_id, value
    current = board.top_user
    if current is not None and current in board.user_data and board.user_data[current][1] == best_value:
        return current
    return best_user


class LeaderboardAggregator:
    def __init__(self, store: GlobalStore) -> None:
        self.store = store
        self.config = store.config
        unknown = [board_id for board_id in self.config.leaderboards if board_id not in METRICS]
        if unknown:
            logger.warning("No metric defined for leaderboards %s; they will not be updated.", ", ".join(unknown))

    def update(self, profile: UserProfile) -> None:
        """Write the profile's current value into every configured board.

        All boards are saved together once every metric has been applied.
        """
        user_id = profile.user_id
        with self.store.transaction(GlobalFile.LEADERBOARDS) as boards:
            for board_id in self.config.leaderboards:
                metric = METRICS.get(board_id)
                if metric is None:
                    continue
                board = boards.setdefault(board_id, BoardData())
                value = metric.value(profile, self.config)
                if value > 0:
                    board.user_data[user_id] = (profile.username, value)
                else:
                    board.user_data.pop(user_id, None)
                board.top_user = top_holder(board, lower_is_better=metric.lower_is_better)

    def remove(self, user_id: UserID) -> None:
        """Drop the user from every board.

        Boards whose top holder was this user are left without one until
        ``refresh_top_users`` or the next ``update`` recomputes it.
        """
        with self.store.transaction(GlobalFile.LEADERBOARDS) as boards:
            for board in boards.values():
                board.user_data.pop(user_id, None)
                if board.top_user == user_id:
                    board.top_user = None
        logger.info("Removed %s from all leaderboards.", user_id)

    def refresh_top_users(self) -> Dict[str, Optional[UserID]]:
        with self.store.transaction(GlobalFile.LEADERBOARDS) as boards:
            for board_id, board in boards.items():
                metric = METRICS.get(board_id)
                board.top_user = top_holder(board, lower_is_better=bool(metric and metric.lower_is_better))
            return {board_id: board.top_user for board_id, board in boards.items()}

    def standings(self, board_id: str, limit: Optional[int] = None) -> List[Tuple[UserID, str, float]]:
        boards = self.store.load(GlobalFile.LEADERBOARDS)
        board = boards.get(board_id)
        if board is None:
            return []
        metric = METRICS.get(board_id)
        lower_is_better = bool(metric and metric.lower_is_better)
        rows = [(user_id, name, value) for user_id, (name, value) in board.user_data.items()]
        rows.sort(key=lambda row: row[2], reverse=not lower_is_better)
        return rows if limit is None else rows[:limit]


__all__ = [
    "LeaderboardAggregator",
    "METRICS",
    "Metric",
    "count_uniques",
    "effective_multiplier",
    "top_holder",
]
