"""Per-guild eligibility rules for drawable items."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Tuple

from .models import GuildContext, ItemDefinition, RarityTier

logger = logging.getLogger("boarcore.eligibility")


def is_drawable(item: ItemDefinition, guild: Optional[GuildContext]) -> bool:
    if item.blacklisted:
        return False
    if item.is_sb and not (guild is not None and guild.is_sb_server):
        return False
    return True


def valid_candidates(
    tier: RarityTier,
    guild: Optional[GuildContext],
    items: Mapping[str, ItemDefinition],
) -> Tuple[str, ...]:
    """Return the tier's drawable item IDs for ``guild``, in tier order.

    An empty tuple is a normal outcome when every member is excluded.
    """
    candidates = []
    for item_id in tier.items:
        item = items.get(item_id)
        if item is None:
            logger.warning("Rarity '%s' lists unknown item '%s'; skipping.", tier.key, item_id)
            continue
        if is_drawable(item, guild):
            candidates.append(item_id)
    return tuple(candidates)


__all__ = ["is_drawable", "valid_candidates"]
