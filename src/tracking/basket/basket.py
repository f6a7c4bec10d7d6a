"""Basket aggregate — one physical basket's shopping session.

State Machine:
    PENDING/ACTIVE (open) → CHECKOUT → PAID | CANCELLED

Open baskets take sensor syncs and quantity adjustments. A basket in
CHECKOUT waits for the cashier's decision. PAID and CANCELLED are terminal:
nothing moves a basket out of them.

The item list is stored as JSON text in first-seen order and replaced
wholesale by every sync, since each sensor report is a presence snapshot.
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from tracking.basket.items import Item, total_of
from tracking.domain import tracking
from tracking.exceptions import InvalidState, ItemNotFound


class BasketStatus(Enum):
    PENDING = "Pending"
    ACTIVE = "Active"
    CHECKOUT = "Checkout"
    PAID = "Paid"
    CANCELLED = "Cancelled"


OPEN_STATUSES = frozenset({BasketStatus.PENDING, BasketStatus.ACTIVE})
TERMINAL_STATUSES = frozenset({BasketStatus.PAID, BasketStatus.CANCELLED})

_STATE_FIELDS = ("items", "seen_identifiers", "status", "created_at", "updated_at", "last_observed_at")


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize timezone awareness for comparison; naive values are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@tracking.aggregate
class Basket:
    basket_id = String(identifier=True, required=True, max_length=255)
    items = Text(default="[]")  # JSON: list of {id, name, unit_price, quantity}
    seen_identifiers = Text(default="[]")  # JSON: sorted raw identifiers folded into items
    status = String(choices=BasketStatus, default=BasketStatus.PENDING.value)
    created_at = DateTime()
    updated_at = DateTime()
    last_observed_at = DateTime()

    @invariant.post
    def item_ids_must_be_unique(self):
        ids = [item["id"] for item in json.loads(self.items or "[]")]
        if len(ids) != len(set(ids)):
            raise ValidationError({"items": ["Item ids must be unique within a basket"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, basket_id, now, status=BasketStatus.PENDING):
        return cls(
            basket_id=basket_id,
            items="[]",
            seen_identifiers="[]",
            status=status.value,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_state(cls, basket_id, state):
        return cls(basket_id=basket_id, **state)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> BasketStatus:
        return BasketStatus(self.status)

    @property
    def is_open(self) -> bool:
        return self.current_status in OPEN_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATUSES

    def line_items(self) -> list[Item]:
        return [Item.from_dict(data) for data in json.loads(self.items or "[]")]

    def seen(self) -> list[str]:
        return json.loads(self.seen_identifiers or "[]")

    @property
    def total(self) -> Decimal:
        return total_of(self.line_items())

    def holds(self, items) -> bool:
        """True when the basket already holds exactly ``items`` in that order."""
        return self.line_items() == list(items)

    def is_stale(self, observed_at) -> bool:
        """True when a report observed at ``observed_at`` predates the last applied one."""
        if observed_at is None or self.last_observed_at is None:
            return False
        return as_utc(observed_at) < as_utc(self.last_observed_at)

    def is_idle_since(self, cutoff) -> bool:
        return self.is_open and self.updated_at is not None and as_utc(self.updated_at) <= as_utc(cutoff)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def ensure_syncable(self):
        if self.current_status == BasketStatus.CHECKOUT:
            raise InvalidState(f"Basket {self.basket_id} is at checkout and cannot be synced")
        if self.is_terminal:
            raise InvalidState(f"Basket {self.basket_id} is {self.status} and cannot be synced")

    def replace_items(self, items, now, observed_at=None):
        """Replace the item list with a new presence snapshot and mark the basket active."""
        self.ensure_syncable()

        self.items = json.dumps([item.to_dict() for item in items])
        self.seen_identifiers = json.dumps(sorted(item.id for item in items))
        self.status = BasketStatus.ACTIVE.value
        self.touch(now, observed_at)

    def touch(self, now, observed_at=None):
        self.updated_at = now
        if observed_at is not None:
            self.last_observed_at = observed_at

    def adjust_quantity(self, item_id, delta, now) -> Item:
        """Shift one item's quantity by ``delta``, never below 1."""
        if not self.is_open:
            raise InvalidState(f"Quantities can only be adjusted in an open basket, basket is {self.status}")

        items = self.line_items()
        index = next((i for i, item in enumerate(items) if item.id == item_id), None)
        if index is None:
            raise ItemNotFound(self.basket_id, item_id)

        adjusted = items[index].with_quantity(max(1, items[index].quantity + delta))
        items[index] = adjusted
        self.items = json.dumps([item.to_dict() for item in items])
        self.updated_at = now
        return adjusted

    def start_checkout(self, now):
        if not self.is_open:
            raise InvalidState(f"Only open baskets can be checked out, basket is {self.status}")

        self.status = BasketStatus.CHECKOUT.value
        self.updated_at = now

    def decide(self, paid, now):
        """Record the cashier's decision: PAID when ``paid`` else CANCELLED."""
        if self.is_terminal:
            raise InvalidState(f"Basket {self.basket_id} is already {self.status}")

        self.status = BasketStatus.PAID.value if paid else BasketStatus.CANCELLED.value
        self.updated_at = now

    # -------------------------------------------------------------------
    # Rollback support
    # -------------------------------------------------------------------
    def capture_state(self) -> dict:
        return {name: getattr(self, name) for name in _STATE_FIELDS}

    def restore_state(self, state):
        for name in _STATE_FIELDS:
            setattr(self, name, state[name])
