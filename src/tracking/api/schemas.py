"""Pydantic request/response schemas for the basket tracking API.

Field names are camelCase on the wire (``basketId``); snake_case is accepted
on input as well. Request payload fields that gateways get wrong in many
ways are typed loosely here and validated by the lifecycle manager, so that
a malformed payload is answered with 400 rather than a schema error.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class SyncRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"basketId": "basket-07", "identifiers": ["E200-0001", "E200-0001", "E200-0042"]},
                {"basketId": "basket-07", "items": [{"id": "E200-0001", "name": "Milk 1L", "unitPrice": "1.29", "quantity": 2}]},
            ]
        },
    )

    basket_id: Any = None
    identifiers: Any = None
    items: Any = None
    observed_at: datetime | None = None


class BasketRequest(CamelModel):
    basket_id: Any = None


class DecisionRequest(CamelModel):
    basket_id: Any = None
    paid: Any = None


class AdjustQuantityRequest(CamelModel):
    basket_id: Any = None
    item_id: Any = None
    delta: Any = None


class SweepRequest(CamelModel):
    as_of: datetime | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
class ItemSchema(CamelModel):
    id: str
    name: str
    unit_price: Decimal
    quantity: int

    @classmethod
    def from_item(cls, item) -> "ItemSchema":
        return cls(id=item.id, name=item.name, unit_price=item.unit_price, quantity=item.quantity)


class BasketResponse(CamelModel):
    basket_id: str
    status: str
    items: list[ItemSchema]
    total: Decimal
    seen_identifiers: list[str]
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_basket(cls, basket) -> "BasketResponse":
        items = basket.line_items()
        return cls(
            basket_id=basket.basket_id,
            status=basket.status,
            items=[ItemSchema.from_item(item) for item in items],
            total=basket.total,
            seen_identifiers=basket.seen(),
            created_at=basket.created_at,
            updated_at=basket.updated_at,
        )


class TotalResponse(CamelModel):
    basket_id: str
    total: Decimal


class CheckoutResponse(CamelModel):
    checkout_payload: str
    qr_code: str
    total: Decimal


class DecisionResponse(CamelModel):
    status: str = "ok"
    basket_status: str


class AuditEntrySchema(CamelModel):
    basket_id: str
    action: str
    items: list[ItemSchema]
    total: Decimal
    recorded_at: datetime
    detail: str | None = None
    sequence: int | None = None

    @classmethod
    def from_record(cls, record) -> "AuditEntrySchema":
        return cls(
            basket_id=record.basket_id,
            action=record.action.value,
            items=[ItemSchema.from_item(item) for item in record.items],
            total=record.total,
            recorded_at=record.recorded_at,
            detail=record.detail,
            sequence=record.sequence,
        )


class SweepResponse(CamelModel):
    status: str = "ok"
    swept: int
