"""Product catalog port (abstract interface).

The catalog maps a sensor identifier (RFID tag UID) to the product's display
name and unit price. Basket tracking only ever reads from it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CatalogEntry:
    """Display name and unit price registered for one identifier."""

    name: str
    price: Decimal

    def __post_init__(self):
        if not isinstance(self.price, Decimal):
            object.__setattr__(self, "price", Decimal(str(self.price)))
        if self.price < 0:
            raise ValueError(f"Catalog price for {self.name!r} cannot be negative")


class Catalog(ABC):
    """Abstract catalog interface."""

    @abstractmethod
    def resolve(self, identifier: str) -> CatalogEntry | None:
        """Return the entry for ``identifier``, or None if it is not registered."""
        ...
