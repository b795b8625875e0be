"""Weighted item draws with extra-chance bonus draws."""

from __future__ import annotations

import logging
import random
from typing import List, Mapping, Optional, Protocol, Tuple

from .eligibility import valid_candidates
from .models import NO_ITEM, GuildContext, ItemDefinition
from .rarity import RarityTable

logger = logging.getLogger("boarcore.draws")
_roll_logger = logging.getLogger("boarcore.draws.rolls")

ProbabilityTable = List[Tuple[int, float]]


class RandomSource(Protocol):
    def random(self) -> float: ...


_default_rng = random.Random()


def probability_table(weights: Mapping[int, float]) -> ProbabilityTable:
    """Convert rank weights into ascending cumulative probability boundaries.

    Zero-weight ranks are dropped. The last boundary is exactly 1.0.
    """
    positive = [(rank, float(weight)) for rank, weight in weights.items() if weight > 0]
    if not positive:
        raise ValueError("Rarity weights must sum to a positive total.")
    positive.sort(key=lambda entry: entry[1])

    total = 0.0
    running: List[Tuple[int, float]] = []
    for rank, weight in positive:
        total += weight
        running.append((rank, total))
    return [(rank, cumulative / total) for rank, cumulative in running]


def pick_index(rng: RandomSource, length: int) -> int:
    """Uniform index in ``range(length)`` from a single ``random()`` sample."""
    return min(int(rng.random() * length), length - 1)


class DrawEngine:
    """Rolls item IDs from rarity tiers for a guild."""

    def __init__(
        self,
        rarities: RarityTable,
        items: Mapping[str, ItemDefinition],
        *,
        rng: Optional[RandomSource] = None,
    ) -> None:
        self.rarities = rarities
        self.items = items
        self._rng: RandomSource = rng or _default_rng

    def draw_count(self, extra_enabled: bool, extra_value: int) -> int:
        if extra_value < 0:
            raise ValueError(f"Extra chance cannot be negative: {extra_value}")
        count = 1
        if not extra_enabled:
            return count
        count += extra_value // 100
        remainder = extra_value % 100
        if remainder and self._rng.random() < remainder / 100:
            count += 1
        return count

    def roll_rank(self, table: ProbabilityTable) -> int:
        sample = self._rng.random()
        max_boundary = table[-1][1]
        for rank, boundary in table:
            # The top boundary catches anything float error left over.
            if sample > boundary and boundary != max_boundary:
                continue
            return rank
        return table[-1][0]

    def roll_item(self, rank: int, guild: Optional[GuildContext]) -> str:
        candidates = valid_candidates(self.rarities.tier(rank), guild, self.items)
        if not candidates:
            return NO_ITEM
        return candidates[pick_index(self._rng, len(candidates))]

    def draw(
        self,
        weights: Mapping[int, float],
        guild: Optional[GuildContext] = None,
        extra_enabled: bool = False,
        extra_value: int = 0,
    ) -> List[str]:
        """Draw one item ID plus any extra-chance bonus draws.

        ``weights`` maps tier rank to weight (see ``RarityTable.base_weights``).
        A draw whose tier has nothing drawable for the guild yields ``NO_ITEM``.
        """
        table = probability_table(weights)
        count = self.draw_count(extra_enabled, extra_value)

        drawn: List[str] = []
        for _ in range(count):
            rank = self.roll_rank(table)
            item_id = self.roll_item(rank, guild)
            _roll_logger.debug("Rolled item with ID '%s' from rank %d", item_id, rank)
            drawn.append(item_id)
        return drawn

    def draw_base(self, guild: Optional[GuildContext] = None, extra_enabled: bool = False, extra_value: int = 0) -> List[str]:
        return self.draw(self.rarities.base_weights(), guild, extra_enabled, extra_value)


__all__ = ["DrawEngine", "ProbabilityTable", "RandomSource", "pick_index", "probability_table"]
