"""Per-guild configuration documents."""

from __future__ import annotations

import logging
import threading
import weakref
from pathlib import Path
from typing import Optional

from .config import BotConfig
from .models import GuildData
from .storage import read_json
from .utils import write_json_atomic

logger = logging.getLogger("boarcore.guilds")


class GuildStore:
    """One JSON document per guild ID, each guarded by its own lock.

    Locks are held weakly: a guild's lock lives only while some caller holds
    or waits on it, so IDs of deleted guilds do not accumulate.
    """

    def __init__(self, config: BotConfig) -> None:
        self.config = config
        self._locks: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def path_for(self, guild_id: str) -> Path:
        """Document path for ``guild_id``, which must be a plain numeric snowflake."""
        if not (guild_id.isascii() and guild_id.isdigit()):
            raise ValueError(f"Invalid guild ID: {guild_id!r}")
        return self.config.paths.guild_dir / f"{guild_id}.json"

    def lock(self, guild_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(guild_id)
            if lock is None:
                lock = self._locks[guild_id] = threading.RLock()
            return lock

    def _read(self, guild_id: str) -> Optional[GuildData]:
        path = self.path_for(guild_id)
        payload = read_json(path)
        if payload is None:
            return None
        try:
            return GuildData.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed guild data %s: %s", path, exc)
            return None

    def get(self, guild_id: Optional[str], create: bool = False) -> Optional[GuildData]:
        """Return the guild's data, or ``None`` when it has not been set up.

        With ``create`` a default, not-yet-configured document is written
        first and read back.
        """
        if not guild_id:
            return None
        with self.lock(guild_id):
            data = self._read(guild_id)
            if data is not None:
                return data
            if not create:
                logger.debug("Guild %s has no setup data.", guild_id)
                return None
            logger.info("Creating guild data file for %s.", guild_id)
            write_json_atomic(self.path_for(guild_id), GuildData().to_dict())
            return self._read(guild_id)

    def save(self, guild_id: str, data: GuildData) -> None:
        with self.lock(guild_id):
            write_json_atomic(self.path_for(guild_id), data.to_dict())

    def remove(self, guild_id: str) -> bool:
        """Delete the guild's document if its setup was never completed.

        Fully set-up guilds are left alone; use ``purge`` to force deletion.
        """
        with self.lock(guild_id):
            data = self._read(guild_id)
            if data is None or data.fully_setup:
                return False
            return self._delete(guild_id)

    def purge(self, guild_id: str) -> bool:
        with self.lock(guild_id):
            return self._delete(guild_id)

    def _delete(self, guild_id: str) -> bool:
        path = self.path_for(guild_id)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.error("Guild data %s was already deleted.", path)
            return False
        logger.info("Deleted guild data for %s.", guild_id)
        return True


__all__ = ["GuildStore"]
