"""Weekly quest rotation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from .draws import RandomSource, pick_index
from .models import QuestData
from .utils import epoch_ms

logger = logging.getLogger("boarcore.quests")

DAYS_PER_ROTATION = 7


def week_start_ms(now: datetime, one_day: int) -> int:
    """Epoch ms of the most recent Sunday midnight (UTC) before ``now``.

    Days are counted back in units of ``one_day`` milliseconds.
    """
    now = now.astimezone(timezone.utc)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    days_since_sunday = (now.weekday() + 1) % 7
    return epoch_ms(midnight) - days_since_sunday * one_day


def rotation_expired(data: QuestData, now: datetime, one_day: int) -> bool:
    return data.quests_start_timestamp + one_day * DAYS_PER_ROTATION < epoch_ms(now)


def rotate_quests(
    data: QuestData,
    quest_pool: Sequence[str],
    now: datetime,
    one_day: int,
    rng: RandomSource,
) -> QuestData:
    """Start a new rotation in place, drawing quests without replacement."""
    remaining = list(quest_pool)
    if len(remaining) < len(data.cur_quest_ids):
        logger.warning(
            "Only %d quests configured for %d slots; keeping the current rotation.",
            len(remaining),
            len(data.cur_quest_ids),
        )
        return data

    data.quests_start_timestamp = week_start_ms(now, one_day)
    for slot in range(len(data.cur_quest_ids)):
        data.cur_quest_ids[slot] = remaining.pop(pick_index(rng, len(remaining)))
    logger.info("Rotated quests: %s", ", ".join(data.cur_quest_ids))
    return data


__all__ = ["DAYS_PER_ROTATION", "rotate_quests", "rotation_expired", "week_start_ms"]
