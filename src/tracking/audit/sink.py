"""Audit sink port and adapters.

``append`` stores a record and returns it with its sequence number;
``query_by_basket`` returns one basket's records oldest first. Sinks never
update or delete what they stored.
"""

import itertools
import json
import threading
import uuid
from abc import ABC, abstractmethod
from decimal import Decimal
from pathlib import Path

from protean.utils.globals import current_domain

from tracking.audit.entry import AuditEntry
from tracking.audit.record import AuditAction, AuditRecord
from tracking.basket.basket import as_utc
from tracking.basket.items import Item
from tracking.exceptions import AuditUnavailable


def _ordering_key(record: AuditRecord):
    return (as_utc(record.recorded_at), record.sequence or 0)


class AuditSink(ABC):
    @abstractmethod
    def append(self, record: AuditRecord) -> AuditRecord:
        """Persist ``record`` and return it with its sequence number set."""
        ...

    @abstractmethod
    def query_by_basket(self, basket_id: str) -> list[AuditRecord]:
        """Return every record for ``basket_id`` in the order they happened."""
        ...

    @abstractmethod
    def query_by_action(self, action: AuditAction) -> list[AuditRecord]:
        """Return every record of ``action`` across all baskets, oldest first."""
        ...


class RepositoryAuditSink(AuditSink):
    """Audit sink backed by the AuditEntry repository.

    Must be called inside an active ``tracking`` domain context.
    """

    def __init__(self) -> None:
        self._sequence = itertools.count(1)
        self._sequence_lock = threading.Lock()

    def _next_sequence(self) -> int:
        with self._sequence_lock:
            return next(self._sequence)

    def append(self, record: AuditRecord) -> AuditRecord:
        record = record.with_sequence(self._next_sequence())
        try:
            current_domain.repository_for(AuditEntry).add(
                AuditEntry(
                    entry_id=str(uuid.uuid4()),
                    basket_id=record.basket_id,
                    action=record.action.value,
                    items=json.dumps([item.to_dict() for item in record.items]),
                    total=str(record.total),
                    detail=record.detail,
                    sequence=record.sequence,
                    recorded_at=record.recorded_at,
                )
            )
        except Exception as exc:
            raise AuditUnavailable(f"Could not append audit entry for basket {record.basket_id}") from exc
        return record

    def query_by_basket(self, basket_id: str) -> list[AuditRecord]:
        return self._query(f"basket {basket_id}", basket_id=basket_id)

    def query_by_action(self, action: AuditAction) -> list[AuditRecord]:
        return self._query(f"action {action.value}", action=action.value)

    def _query(self, scope, **filters) -> list[AuditRecord]:
        try:
            repo = current_domain.repository_for(AuditEntry)
            entries = repo._dao.query.filter(**filters).all().items
        except Exception as exc:
            raise AuditUnavailable(f"Could not read audit entries for {scope}") from exc

        records = [
            AuditRecord(
                basket_id=entry.basket_id,
                action=AuditAction(entry.action),
                items=tuple(Item.from_dict(item) for item in json.loads(entry.items)),
                total=Decimal(entry.total),
                recorded_at=entry.recorded_at,
                detail=entry.detail,
                sequence=entry.sequence,
            )
            for entry in entries
        ]
        return sorted(records, key=_ordering_key)


class JsonLinesAuditSink(AuditSink):
    """Audit sink appending one JSON object per line to a local file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._last_sequence = None

    def _load(self) -> list[AuditRecord]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as fh:
            return [AuditRecord.from_dict(json.loads(line)) for line in fh if line.strip()]

    def append(self, record: AuditRecord) -> AuditRecord:
        with self._lock:
            try:
                if self._last_sequence is None:
                    self._last_sequence = max((r.sequence or 0 for r in self._load()), default=0)
                record = record.with_sequence(self._last_sequence + 1)
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as fh:
                    fh.write(json.dumps(record.to_dict()) + "\n")
            except (OSError, ValueError, KeyError) as exc:
                raise AuditUnavailable(f"Could not append to audit log {self.path}") from exc
            self._last_sequence = record.sequence
        return record

    def query_by_basket(self, basket_id: str) -> list[AuditRecord]:
        return sorted((r for r in self._read_all() if r.basket_id == basket_id), key=_ordering_key)

    def query_by_action(self, action: AuditAction) -> list[AuditRecord]:
        return sorted((r for r in self._read_all() if r.action == action), key=_ordering_key)

    def _read_all(self) -> list[AuditRecord]:
        with self._lock:
            try:
                return self._load()
            except (OSError, ValueError, KeyError) as exc:
                raise AuditUnavailable(f"Could not read audit log {self.path}") from exc
