"""Dataclasses and shared type definitions for boarcore.

Persisted datasets keep the camelCase keys of the JSON documents on disk;
the dataclasses expose snake_case attributes and convert with ``to_dict`` /
``from_dict``. ``from_dict`` raises ``KeyError``, ``TypeError`` or
``ValueError`` on malformed payloads so the store can treat them as corrupt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

UserID = str
BoardEntry = Tuple[str, float]

NO_ITEM = ""


@dataclass(frozen=True)
class ItemDefinition:
    item_id: str
    blacklisted: bool = False
    is_sb: bool = False


@dataclass(frozen=True)
class RarityTier:
    key: str
    weight: float
    from_daily: bool = True
    items: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class GuildContext:
    is_sb_server: bool = False


def _require_mapping(payload: object, what: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise TypeError(f"{what} must be a JSON object, got {type(payload).__name__}")
    return payload


def _require_list(payload: object, what: str) -> List[Any]:
    if not isinstance(payload, list):
        raise TypeError(f"{what} must be a JSON array, got {type(payload).__name__}")
    return payload


@dataclass
class OrderRecord:
    user_id: UserID
    num: int
    price: int
    filled_amount: int = 0
    claimed_amount: int = 0
    list_time: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "userID": self.user_id,
            "num": self.num,
            "price": self.price,
            "filledAmount": self.filled_amount,
            "claimedAmount": self.claimed_amount,
            "listTime": self.list_time,
        }

    @classmethod
    def from_dict(cls, payload: object) -> "OrderRecord":
        data = _require_mapping(payload, "order")
        return cls(
            user_id=str(data["userID"]),
            num=int(data["num"]),
            price=int(data["price"]),
            filled_amount=int(data.get("filledAmount", 0)),
            claimed_amount=int(data.get("claimedAmount", 0)),
            list_time=int(data.get("listTime", 0)),
        )


@dataclass
class ItemData:
    """Open market orders for one item plus its recent trade history."""

    buyers: List[OrderRecord] = field(default_factory=list)
    sellers: List[OrderRecord] = field(default_factory=list)
    # Price history entries are owned by the market UI and passed through as-is.
    last_buys: List[Any] = field(default_factory=list)
    last_sells: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "buyers": [order.to_dict() for order in self.buyers],
            "sellers": [order.to_dict() for order in self.sellers],
            "lastBuys": list(self.last_buys),
            "lastSells": list(self.last_sells),
        }

    @classmethod
    def from_dict(cls, payload: object) -> "ItemData":
        data = _require_mapping(payload, "item data")
        return cls(
            buyers=[OrderRecord.from_dict(entry) for entry in _require_list(data.get("buyers", []), "buyers")],
            sellers=[OrderRecord.from_dict(entry) for entry in _require_list(data.get("sellers", []), "sellers")],
            last_buys=list(_require_list(data.get("lastBuys", []), "lastBuys")),
            last_sells=list(_require_list(data.get("lastSells", []), "lastSells")),
        )


@dataclass
class ItemsData:
    powerups: Dict[str, ItemData] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {"powerups": {item_id: item.to_dict() for item_id, item in self.powerups.items()}}

    @classmethod
    def from_dict(cls, payload: object) -> "ItemsData":
        data = _require_mapping(payload, "items data")
        powerups = _require_mapping(data.get("powerups", {}), "powerups")
        return cls(powerups={str(key): ItemData.from_dict(value) for key, value in powerups.items()})


@dataclass
class BoardData:
    user_data: Dict[UserID, BoardEntry] = field(default_factory=dict)
    top_user: Optional[UserID] = None

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "userData": {user_id: [name, value] for user_id, (name, value) in self.user_data.items()},
        }
        if self.top_user is not None:
            payload["topUser"] = self.top_user
        return payload

    @classmethod
    def from_dict(cls, payload: object) -> "BoardData":
        data = _require_mapping(payload, "board")
        user_data: Dict[UserID, BoardEntry] = {}
        for user_id, entry in _require_mapping(data.get("userData", {}), "userData").items():
            name, value = _require_list(entry, "board entry")
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValueError(f"Board value for {user_id} is not a number: {value!r}")
            user_data[str(user_id)] = (str(name), value)
        top_user = data.get("topUser")
        return cls(user_data=user_data, top_user=str(top_user) if top_user is not None else None)


@dataclass
class QuestData:
    quests_start_timestamp: int = 0
    cur_quest_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "questsStartTimestamp": self.quests_start_timestamp,
            "curQuestIDs": list(self.cur_quest_ids),
        }

    @classmethod
    def from_dict(cls, payload: object) -> "QuestData":
        data = _require_mapping(payload, "quest data")
        return cls(
            quests_start_timestamp=int(data.get("questsStartTimestamp", 0)),
            cur_quest_ids=[str(item) for item in _require_list(data.get("curQuestIDs", []), "curQuestIDs")],
        )


@dataclass
class PowerupData:
    """Bookkeeping for powerup spawn messages across guilds."""

    messages_info: Dict[str, List[str]] = field(default_factory=dict)
    failed_servers: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "messagesInfo": {key: list(value) for key, value in self.messages_info.items()},
            "failedServers": dict(self.failed_servers),
        }

    @classmethod
    def from_dict(cls, payload: object) -> "PowerupData":
        data = _require_mapping(payload, "powerup data")
        messages = _require_mapping(data.get("messagesInfo", {}), "messagesInfo")
        failed = _require_mapping(data.get("failedServers", {}), "failedServers")
        return cls(
            messages_info={str(key): [str(item) for item in _require_list(value, "messages")] for key, value in messages.items()},
            failed_servers={str(key): int(value) for key, value in failed.items()},
        )


@dataclass
class GuildData:
    fully_setup: bool = False
    is_sb_server: bool = False
    channels: List[str] = field(default_factory=list)
    trade_channel: str = ""

    def context(self) -> GuildContext:
        return GuildContext(is_sb_server=self.is_sb_server)

    def to_dict(self) -> Dict[str, object]:
        return {
            "fullySetup": self.fully_setup,
            "isSBServer": self.is_sb_server,
            "channels": list(self.channels),
            "tradeChannel": self.trade_channel,
        }

    @classmethod
    def from_dict(cls, payload: object) -> "GuildData":
        data = _require_mapping(payload, "guild data")
        return cls(
            fully_setup=bool(data.get("fullySetup", False)),
            is_sb_server=bool(data.get("isSBServer", False)),
            channels=[str(item) for item in _require_list(data.get("channels", []), "channels")],
            trade_channel=str(data.get("tradeChannel", "") or ""),
        )


@dataclass
class GitHubData:
    last_release: str = ""
    last_commit: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {"lastRelease": self.last_release, "lastCommit": self.last_commit}

    @classmethod
    def from_dict(cls, payload: object) -> "GitHubData":
        data = _require_mapping(payload, "github data")
        return cls(
            last_release=str(data.get("lastRelease", "") or ""),
            last_commit=str(data.get("lastCommit", "") or ""),
        )


@dataclass
class UserProfile:
    """Read-only view of a user's collection record used to rank them."""

    user_id: UserID
    username: str
    score: int = 0
    total_items: int = 0
    item_counts: Mapping[str, int] = field(default_factory=dict)
    streak: int = 0
    attempts: int = 0
    one_attempts: int = 0
    gifts_used: int = 0
    multiplier: int = 0
    miracles_active: int = 0
    fastest_time: int = 0


__all__ = [
    "BoardData",
    "BoardEntry",
    "GitHubData",
    "GuildContext",
    "GuildData",
    "ItemData",
    "ItemDefinition",
    "ItemsData",
    "NO_ITEM",
    "OrderRecord",
    "PowerupData",
    "QuestData",
    "RarityTier",
    "UserID",
    "UserProfile",
]
