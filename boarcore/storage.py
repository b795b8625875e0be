"""JSON-backed global datasets with lazy creation and reconciliation.

Every dataset lives in its own document under the configured global data
folder. Reads never fail: a missing, unreadable or malformed document is
replaced with a fresh default. Writes go through a temporary file and
``os.replace`` and any ``OSError`` reaches the caller.
"""

from __future__ import annotations

import json
import logging
import random
import threading
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from .config import BotConfig
from .draws import RandomSource
from .ledger import CompensationLedger, Payout, buyer_payout, order_payouts, seller_payout
from .models import BoardData, GitHubData, ItemData, ItemsData, PowerupData, QuestData
from .quests import rotate_quests, rotation_expired
from .utils import utc_now, write_json_atomic

logger = logging.getLogger("boarcore.storage")

Clock = Callable[[], datetime]


class GlobalFile(Enum):
    ITEMS = "items"
    LEADERBOARDS = "leaderboards"
    BANNED_USERS = "banned_users"
    POWERUPS = "powerups"
    QUESTS = "quests"


class StoreError(Exception):
    """Raised when a dataset cannot be reconciled safely."""


def read_json(path: Path) -> Optional[Any]:
    """Return the parsed document at ``path`` or ``None`` if it is unusable."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Unable to read %s: %s", path, exc)
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return None


class GlobalStore:
    """Owns the global dataset documents and the locks that guard them."""

    def __init__(
        self,
        config: BotConfig,
        *,
        ledger: Optional[CompensationLedger] = None,
        rng: Optional[RandomSource] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.config = config
        self._ledger = ledger
        self._rng: RandomSource = rng or random.Random()
        self._clock = clock
        self._locks: Dict[GlobalFile, threading.RLock] = {kind: threading.RLock() for kind in GlobalFile}

    def path_for(self, kind: GlobalFile) -> Path:
        paths = self.config.paths
        file_names = {
            GlobalFile.ITEMS: paths.item_data_file,
            GlobalFile.LEADERBOARDS: paths.leaderboards_file,
            GlobalFile.BANNED_USERS: paths.banned_users_file,
            GlobalFile.POWERUPS: paths.powerup_data_file,
            GlobalFile.QUESTS: paths.quest_data_file,
        }
        return paths.global_dir / file_names[kind]

    def lock(self, kind: GlobalFile) -> threading.RLock:
        return self._locks[kind]

    # ----- Encoding -----
    def _default(self, kind: GlobalFile) -> Any:
        if kind is GlobalFile.ITEMS:
            return ItemsData(powerups={powerup_id: ItemData() for powerup_id in self.config.powerups})
        if kind is GlobalFile.LEADERBOARDS:
            return {board_id: BoardData() for board_id in self.config.leaderboards}
        if kind is GlobalFile.BANNED_USERS:
            return {}
        if kind is GlobalFile.POWERUPS:
            return PowerupData()
        return QuestData(cur_quest_ids=[""] * self.config.numbers.quest_slots)

    @staticmethod
    def _decode(kind: GlobalFile, payload: Any) -> Any:
        if kind is GlobalFile.ITEMS:
            return ItemsData.from_dict(payload)
        if kind is GlobalFile.POWERUPS:
            return PowerupData.from_dict(payload)
        if kind is GlobalFile.QUESTS:
            return QuestData.from_dict(payload)
        if not isinstance(payload, dict):
            raise TypeError(f"{kind.value} must be a JSON object")
        if kind is GlobalFile.LEADERBOARDS:
            return {str(board_id): BoardData.from_dict(board) for board_id, board in payload.items()}
        return {str(user_id): int(expires) for user_id, expires in payload.items()}

    @staticmethod
    def _encode(kind: GlobalFile, data: Any) -> Any:
        if kind is GlobalFile.LEADERBOARDS:
            return {board_id: board.to_dict() for board_id, board in data.items()}
        if kind is GlobalFile.BANNED_USERS:
            return dict(data)
        return data.to_dict()

    # ----- Load / save -----
    def load(self, kind: GlobalFile) -> Any:
        """Return the dataset, creating and persisting a default if needed."""
        path = self.path_for(kind)
        with self._locks[kind]:
            payload = read_json(path)
            data = None
            if payload is not None:
                try:
                    data = self._decode(kind, payload)
                except (KeyError, TypeError, ValueError) as exc:
                    logger.warning("Discarding malformed global data file %s: %s", path, exc)
            if data is None:
                logger.info("Creating global data file '%s'...", path.name)
                data = self._default(kind)
                self.save(kind, data)
            return data

    def save(self, kind: GlobalFile, data: Any) -> None:
        with self._locks[kind]:
            write_json_atomic(self.path_for(kind), self._encode(kind, data))

    def load_and_reconcile(self, kind: GlobalFile) -> Any:
        """Load the dataset, sync it with the current config and persist it."""
        with self._locks[kind]:
            data = self.reconcile(kind, self.load(kind))
            self.save(kind, data)
            return data

    @contextmanager
    def transaction(self, kind: GlobalFile, *, reconcile: bool = False) -> Iterator[Any]:
        """Hold the dataset's lock across load, mutation and save.

        The dataset is saved only if the block finishes without raising.
        """
        with self._locks[kind]:
            data = self.load_and_reconcile(kind) if reconcile else self.load(kind)
            yield data
            self.save(kind, data)

    # ----- Reconciliation -----
    def reconcile(self, kind: GlobalFile, data: Any) -> Any:
        if kind is GlobalFile.ITEMS:
            return self._reconcile_items(data)
        if kind is GlobalFile.LEADERBOARDS:
            return self._reconcile_leaderboards(data)
        if kind is GlobalFile.QUESTS:
            return self._reconcile_quests(data)
        return data

    def _reconcile_items(self, data: ItemsData) -> ItemsData:
        configured = self.config.powerups
        for powerup_id in configured:
            if powerup_id not in data.powerups:
                logger.info("Adding market entry for new powerup '%s'.", powerup_id)
                data.powerups[powerup_id] = ItemData()

        retired = [powerup_id for powerup_id in data.powerups if powerup_id not in configured]
        if not retired:
            return data
        if self._ledger is None:
            owed = [powerup_id for powerup_id in retired if order_payouts(powerup_id, data.powerups[powerup_id])]
            if owed:
                raise StoreError(
                    f"Retired powerups {', '.join(owed)} have open orders but no compensation ledger is configured."
                )

        # Orders leave the item as they are credited and the drained state is
        # written even when a credit fails, so a retry pays only what is left.
        try:
            for powerup_id in retired:
                item = data.powerups[powerup_id]
                credited = 0
                for orders, payout_for in ((item.buyers, buyer_payout), (item.sellers, seller_payout)):
                    while orders:
                        self._ledger.credit(payout_for(powerup_id, orders[0]))  # type: ignore[union-attr]
                        orders.pop(0)
                        credited += 1
                del data.powerups[powerup_id]
                logger.info("Retired powerup '%s' after %d payouts.", powerup_id, credited)
        finally:
            self.save(GlobalFile.ITEMS, data)
        return data

    def pending_payouts(self) -> Dict[str, List[Payout]]:
        """Payouts that reconciling the items dataset would make, without writing.

        A missing or malformed items document owes nothing.
        """
        path = self.path_for(GlobalFile.ITEMS)
        with self._locks[GlobalFile.ITEMS]:
            payload = read_json(path)
        if payload is None:
            return {}
        try:
            items = ItemsData.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Cannot preview payouts from malformed %s: %s", path, exc)
            return {}
        return {
            powerup_id: order_payouts(powerup_id, item)
            for powerup_id, item in items.powerups.items()
            if powerup_id not in self.config.powerups
        }

    def _reconcile_leaderboards(self, data: Dict[str, BoardData]) -> Dict[str, BoardData]:
        configured = self.config.leaderboards
        for board_id in configured:
            if board_id not in data:
                data[board_id] = BoardData()
        for board_id in [board_id for board_id in data if board_id not in configured]:
            logger.info("Dropping leaderboard '%s' that is no longer configured.", board_id)
            del data[board_id]
        return data

    def _reconcile_quests(self, data: QuestData) -> QuestData:
        now = self._clock()
        one_day = self.config.numbers.one_day
        if rotation_expired(data, now, one_day):
            rotate_quests(data, self.config.quests, now, one_day, self._rng)
        return data

    # ----- Release metadata cache -----
    def github_path(self) -> Optional[Path]:
        file_name = self.config.paths.github_file
        if not file_name:
            return None
        return self.config.paths.global_dir / file_name

    def load_github_data(self, is_available: Callable[[], bool]) -> Optional[GitHubData]:
        """Return the release cache, creating it only if updates can be posted."""
        path = self.github_path()
        if path is None:
            return None
        payload = read_json(path)
        if payload is not None:
            try:
                return GitHubData.from_dict(payload)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Discarding malformed release cache %s: %s", path, exc)

        try:
            available = bool(is_available())
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("Updates channel check failed: %s", exc)
            available = False
        if not available:
            logger.debug("Updates channel unavailable; not creating %s.", path.name)
            return None

        data = GitHubData()
        write_json_atomic(path, data.to_dict())
        return data

    def save_github_data(self, data: GitHubData) -> None:
        path = self.github_path()
        if path is None:
            raise StoreError("No release cache file is configured.")
        write_json_atomic(path, data.to_dict())


__all__ = ["GlobalFile", "GlobalStore", "StoreError", "read_json"]
