"""Audit entry — append-only persisted form of an AuditRecord.

Each entry is its own aggregate: created once by the repository audit sink
and never loaded for change.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from tracking.audit.record import AuditAction
from tracking.domain import tracking


@tracking.aggregate
class AuditEntry:
    entry_id = Identifier(identifier=True, required=True)
    basket_id = String(required=True, max_length=255)
    action = String(required=True, choices=AuditAction)
    items = Text(required=True)  # JSON: list of {id, name, unit_price, quantity}
    total = String(required=True, max_length=32)
    detail = String(max_length=50)
    sequence = Integer(required=True)
    recorded_at = DateTime(required=True)
