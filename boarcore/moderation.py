"""Helpers for the banned-user list.

The list maps a user ID to the epoch-ms time at which their ban ends.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Optional

from .models import UserID
from .storage import GlobalFile, GlobalStore
from .utils import epoch_ms, utc_now

logger = logging.getLogger("boarcore.moderation")


def ban_user(store: GlobalStore, user_id: UserID, until: datetime) -> None:
    with store.transaction(GlobalFile.BANNED_USERS) as banned:
        banned[user_id] = epoch_ms(until)
    logger.info("Banned %s until %s.", user_id, until.isoformat())


def unban_user(store: GlobalStore, user_id: UserID) -> bool:
    with store.transaction(GlobalFile.BANNED_USERS) as banned:
        removed = banned.pop(user_id, None) is not None
    if removed:
        logger.info("Unbanned %s.", user_id)
    return removed


def is_banned(store: GlobalStore, user_id: UserID, now: Optional[datetime] = None) -> bool:
    banned: Dict[UserID, int] = store.load(GlobalFile.BANNED_USERS)
    expires = banned.get(user_id)
    if expires is None:
        return False
    return expires > epoch_ms(now or utc_now())


def prune_expired_bans(store: GlobalStore, now: Optional[datetime] = None) -> int:
    cutoff = epoch_ms(now or utc_now())
    with store.transaction(GlobalFile.BANNED_USERS) as banned:
        expired = [user_id for user_id, expires in banned.items() if expires <= cutoff]
        for user_id in expired:
            del banned[user_id]
    return len(expired)


__all__ = ["ban_user", "is_banned", "prune_expired_bans", "unban_user"]
