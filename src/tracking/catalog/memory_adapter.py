"""In-memory catalog, optionally loaded from a JSON file.

The JSON file maps identifiers to ``{"name": ..., "price": ...}`` objects::

    {"E200-0001": {"name": "Milk 1L", "price": "1.29"}}
"""

import json
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path

from tracking.catalog.port import Catalog, CatalogEntry


class InMemoryCatalog(Catalog):
    def __init__(self, entries: Mapping[str, CatalogEntry] | None = None) -> None:
        self._entries: dict[str, CatalogEntry] = dict(entries or {})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping]) -> "InMemoryCatalog":
        catalog = cls()
        for identifier, entry in data.items():
            catalog.register(identifier, entry["name"], entry["price"])
        return catalog

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryCatalog":
        with open(path, encoding="utf-8") as fh:
            return cls.from_mapping(json.load(fh))

    def register(self, identifier: str, name: str, price) -> CatalogEntry:
        try:
            entry = CatalogEntry(name=name, price=Decimal(str(price)))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid price {price!r} for {identifier}") from exc
        self._entries[identifier] = entry
        return entry

    def resolve(self, identifier: str) -> CatalogEntry | None:
        return self._entries.get(identifier)

    def __len__(self) -> int:
        return len(self._entries)
