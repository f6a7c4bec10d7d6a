"""Audit records — immutable snapshots of one state-changing basket action."""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from tracking.basket.items import Item, total_of


class AuditAction(Enum):
    SYNCED = "Synced"
    CHECKOUT_STARTED = "Checkout_Started"
    PAID = "Paid"
    CANCELLED = "Cancelled"
    QUANTITY_ADJUSTED = "Quantity_Adjusted"
    AUTO_CLEANUP = "Auto_Cleanup"
    ARCHIVED = "Archived"


@dataclass(frozen=True)
class AuditRecord:
    basket_id: str
    action: AuditAction
    items: tuple[Item, ...]
    total: Decimal
    recorded_at: datetime
    detail: str | None = None
    sequence: int | None = None  # assigned by the sink on append

    @classmethod
    def capture(cls, basket, action, recorded_at, detail=None) -> "AuditRecord":
        """Snapshot ``basket``'s items and total as they stand right now."""
        items = tuple(basket.line_items())
        return cls(
            basket_id=basket.basket_id,
            action=action,
            items=items,
            total=total_of(items),
            recorded_at=recorded_at,
            detail=detail,
        )

    def with_sequence(self, sequence: int) -> "AuditRecord":
        return replace(self, sequence=sequence)

    def to_dict(self) -> dict:
        return {
            "basket_id": self.basket_id,
            "action": self.action.value,
            "items": [item.to_dict() for item in self.items],
            "total": str(self.total),
            "recorded_at": self.recorded_at.isoformat(),
            "detail": self.detail,
            "sequence": self.sequence,
        }

    @classmethod
    def from_dict(cls, data) -> "AuditRecord":
        return cls(
            basket_id=data["basket_id"],
            action=AuditAction(data["action"]),
            items=tuple(Item.from_dict(item) for item in data["items"]),
            total=Decimal(data["total"]),
            recorded_at=datetime.fromisoformat(data["recorded_at"]),
            detail=data.get("detail"),
            sequence=data.get("sequence"),
        )
