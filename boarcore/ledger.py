"""Compensation payouts owed to users when a market item is retired."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from .models import ItemData, OrderRecord, UserID
from .utils import write_json_atomic

logger = logging.getLogger("boarcore.ledger")


@dataclass(frozen=True)
class Payout:
    user_id: UserID
    item_id: str
    units: int
    score: int

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


class CompensationLedger(Protocol):
    """Credits users for open orders on an item that no longer exists.

    Implementations belong to the user-data component that owns collection
    records; the store only reports what each user is owed. ``credit`` may
    raise, in which case the order stays on the item and is retried later.
    """

    def credit(self, payout: Payout) -> None: ...


def buyer_payout(item_id: str, order: OrderRecord) -> Payout:
    """Filled but unclaimed units come back as items, the unfilled rest as score."""
    return Payout(
        user_id=order.user_id,
        item_id=item_id,
        units=order.filled_amount - order.claimed_amount,
        score=(order.num - order.filled_amount) * order.price,
    )


def seller_payout(item_id: str, order: OrderRecord) -> Payout:
    """Unfilled units come back as items, filled but unclaimed ones as score."""
    return Payout(
        user_id=order.user_id,
        item_id=item_id,
        units=order.num - order.filled_amount,
        score=(order.filled_amount - order.claimed_amount) * order.price,
    )


def order_payouts(item_id: str, item: ItemData) -> List[Payout]:
    """Every open order on ``item``, buyers first, valued for its owner."""
    return [buyer_payout(item_id, order) for order in item.buyers] + [
        seller_payout(item_id, order) for order in item.sellers
    ]


class RecordingLedger:
    """Ledger that keeps payouts in memory for a caller to apply later.

    With ``journal`` set, the full payout list is rewritten to that JSON file
    after every credit so the record outlives the process.
    """

    def __init__(self, journal: Optional[Path] = None) -> None:
        self.payouts: List[Payout] = []
        self.journal = journal

    def credit(self, payout: Payout) -> None:
        logger.info(
            "Compensating %s for retired item '%s': %d units, %d score",
            payout.user_id,
            payout.item_id,
            payout.units,
            payout.score,
        )
        self.payouts.append(payout)
        if self.journal is not None:
            write_json_atomic(self.journal, [entry.to_dict() for entry in self.payouts])

    def totals(self) -> Dict[UserID, Tuple[int, int]]:
        """Per-user ``(units, score)`` sums across every recorded payout."""
        summary: Dict[UserID, Tuple[int, int]] = {}
        for payout in self.payouts:
            units, score = summary.get(payout.user_id, (0, 0))
            summary[payout.user_id] = (units + payout.units, score + payout.score)
        return summary


__all__ = [
    "CompensationLedger",
    "Payout",
    "RecordingLedger",
    "buyer_payout",
    "order_payouts",
    "seller_payout",
]
