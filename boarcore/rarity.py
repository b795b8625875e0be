"""Rarity tiers ordered by weight."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from .models import RarityTier

logger = logging.getLogger("boarcore.rarity")

UNKNOWN_RANK = 0


class RarityLookupError(LookupError):
    """Raised when an item ID is not a member of any configured tier."""


class RarityTable:
    """Tiers sorted by descending weight; rank 1 is the most common tier."""

    def __init__(self, tiers: Iterable[RarityTier]) -> None:
        ordered = sorted(tiers, key=lambda tier: tier.weight, reverse=True)
        if not ordered:
            raise ValueError("A rarity table needs at least one tier.")
        self._tiers: Tuple[RarityTier, ...] = tuple(ordered)
        self._rank_by_item: Dict[str, int] = {}
        for rank, tier in enumerate(self._tiers, start=1):
            for item_id in tier.items:
                self._rank_by_item.setdefault(item_id, rank)

    @property
    def tiers(self) -> Tuple[RarityTier, ...]:
        return self._tiers

    def ranks(self) -> List[int]:
        return list(range(1, len(self._tiers) + 1))

    def tier(self, rank: int) -> RarityTier:
        if rank < 1 or rank > len(self._tiers):
            raise KeyError(f"No rarity tier with rank {rank}")
        return self._tiers[rank - 1]

    def find_rarity(self, item_id: str, *, strict: bool = False) -> Tuple[int, RarityTier]:
        """Return ``(rank, tier)`` for ``item_id``.

        An ID that belongs to no tier is a configuration error. With
        ``strict`` it raises ``RarityLookupError``; otherwise it is logged and
        ``(UNKNOWN_RANK, lowest_weight_tier)`` is returned so callers can keep
        going. Rank 0 must never be treated as a real draw result.
        """
        rank = self._rank_by_item.get(item_id)
        if rank is not None:
            return rank, self._tiers[rank - 1]
        if strict:
            raise RarityLookupError(f"Item '{item_id}' does not belong to any rarity tier.")
        logger.error("Item '%s' does not belong to any rarity tier; falling back to rank 0.", item_id)
        return UNKNOWN_RANK, self._tiers[-1]

    def base_weights(self) -> Dict[int, float]:
        """Rank to weight for the base draw pool; non-daily tiers weigh 0."""
        return {
            rank: (tier.weight if tier.from_daily else 0.0)
            for rank, tier in enumerate(self._tiers, start=1)
        }


__all__ = ["RarityLookupError", "RarityTable", "UNKNOWN_RANK"]
