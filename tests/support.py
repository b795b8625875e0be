"""Shared fixtures for the boarcore tests."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Iterable, List

from boarcore.config import BotConfig, NumberConfig, PathConfig
from boarcore.models import ItemDefinition, RarityTier


class ScriptedRandom:
    """Random source that replays a fixed list of samples."""

    def __init__(self, values: Iterable[float]) -> None:
        self._values: List[float] = list(values)

    def random(self) -> float:
        if not self._values:
            raise AssertionError("ScriptedRandom ran out of samples")
        return self._values.pop(0)

    @property
    def remaining(self) -> int:
        return len(self._values)


def make_config(data_dir: Path, **overrides) -> BotConfig:
    config = BotConfig(
        rarities=(
            RarityTier("common", 70, True, ("classic", "bacon")),
            RarityTier("rare", 30, True, ("wizard", "sb_tophat")),
            RarityTier("special", 5, False, ("creator",)),
        ),
        items={
            "classic": ItemDefinition("classic"),
            "bacon": ItemDefinition("bacon"),
            "wizard": ItemDefinition("wizard"),
            "sb_tophat": ItemDefinition("sb_tophat", is_sb=True),
            "creator": ItemDefinition("creator", blacklisted=True),
        },
        powerups=("miracle", "gift", "clone"),
        leaderboards=("bucks", "total", "uniques", "uniquesSB", "multiplier", "fastest"),
        quests=("spendBucks", "collectRarity", "cloneBoars", "sendGifts", "openGifts"),
        paths=PathConfig(database_folder=data_dir),
        numbers=NumberConfig(quest_slots=3),
    )
    return replace(config, **overrides)
