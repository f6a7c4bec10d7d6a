"""Basket items — the Item value type and the identifier aggregator.

Sensor gateways report baskets in one of two shapes:

- a raw list of identifiers, one per physical item instance, which
  :func:`aggregate` resolves against the catalog and counts;
- an already-structured item list (presence sync), which
  :func:`normalize_items` validates and deduplicates.

Both return items in first-seen order with unique ids.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from tracking.catalog.port import Catalog
from tracking.exceptions import InvalidPayload

_ID_KEYS = ("id", "uid", "display_id")
_PRICE_KEYS = ("unit_price", "unitPrice", "price")


@dataclass(frozen=True)
class Item:
    id: str
    name: str
    unit_price: Decimal
    quantity: int = 1

    def __post_init__(self):
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool) or self.quantity < 1:
            raise ValueError(f"Item {self.id} quantity must be a positive integer")
        if not isinstance(self.unit_price, Decimal) or self.unit_price < 0:
            raise ValueError(f"Item {self.id} unit price must be a non-negative Decimal")

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> "Item":
        return Item(id=self.id, name=self.name, unit_price=self.unit_price, quantity=quantity)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "Item":
        return cls(
            id=data["id"],
            name=data["name"],
            unit_price=Decimal(data["unit_price"]),
            quantity=data["quantity"],
        )


def _require_list(value, field_name: str) -> Sequence:
    # A bare string is a sequence too, but never a valid identifier list
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise InvalidPayload(f"{field_name} must be a list")
    return value


def aggregate(identifiers, catalog: Catalog) -> list[Item]:
    """Resolve raw identifiers into a deduplicated, counted, priced item list.

    Unknown identifiers are dropped: unregistered tags and sensor noise are
    expected. Repeated identifiers collapse into one item whose quantity is
    the number of occurrences.
    """
    identifiers = _require_list(identifiers, "identifiers")

    counts: dict[str, int] = {}
    for identifier in identifiers:
        if not isinstance(identifier, str) or not identifier:
            raise InvalidPayload("identifiers must be non-empty strings")
        counts[identifier] = counts.get(identifier, 0) + 1

    items = []
    for identifier, count in counts.items():
        entry = catalog.resolve(identifier)
        if entry is None:
            continue
        if entry.price < 0:
            raise InvalidPayload(f"Catalog entry for {identifier} has a negative price")
        items.append(Item(id=identifier, name=entry.name, unit_price=entry.price, quantity=count))
    return items


def _first_present(data: Mapping, keys: Sequence[str]):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _parse_item(data) -> Item:
    if isinstance(data, Item):
        return data
    if not isinstance(data, Mapping):
        raise InvalidPayload("items must be objects")

    item_id = _first_present(data, _ID_KEYS)
    if not isinstance(item_id, str) or not item_id:
        raise InvalidPayload("Each item needs a non-empty id")

    name = data.get("name", item_id)
    if not isinstance(name, str):
        raise InvalidPayload(f"Item {item_id} name must be a string")

    raw_price = _first_present(data, _PRICE_KEYS)
    if raw_price is None or isinstance(raw_price, bool):
        raise InvalidPayload(f"Item {item_id} needs a unit price")
    try:
        unit_price = Decimal(str(raw_price))
    except InvalidOperation as exc:
        raise InvalidPayload(f"Item {item_id} unit price is not a number") from exc
    if not unit_price.is_finite() or unit_price < 0:
        raise InvalidPayload(f"Item {item_id} unit price cannot be negative")

    quantity = data.get("quantity", 1)
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise InvalidPayload(f"Item {item_id} quantity must be a positive integer")

    return Item(id=item_id, name=name, unit_price=unit_price, quantity=quantity)


def normalize_items(payload) -> list[Item]:
    """Validate a presence-sync item list and merge duplicate ids.

    The first occurrence of an id fixes its name and price; later ones only
    add to its quantity.
    """
    payload = _require_list(payload, "items")

    merged: dict[str, Item] = {}
    for raw in payload:
        item = _parse_item(raw)
        existing = merged.get(item.id)
        if existing is None:
            merged[item.id] = item
        else:
            merged[item.id] = existing.with_quantity(existing.quantity + item.quantity)
    return list(merged.values())


def total_of(items: Sequence[Item]) -> Decimal:
    return sum((item.subtotal for item in items), Decimal("0"))
