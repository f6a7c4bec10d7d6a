"""Basket lifecycle manager — applies sensor syncs, checkouts and cashier decisions.

Every operation on a basket runs inside that basket's exclusive scope, so
its status, items, timestamps and audit append never interleave with another
operation on the same basket. Baskets with different ids never wait on each
other.

Each logical operation writes the basket store first and then appends one
audit record. The append is retried; if it still fails, the store is put
back to its previous committed state and the caller gets AuditUnavailable.
"""

from contextlib import contextmanager
from datetime import UTC, datetime

import structlog

from tracking.audit.record import AuditAction, AuditRecord
from tracking.audit.sink import AuditSink
from tracking.basket.basket import OPEN_STATUSES, Basket, BasketStatus, as_utc
from tracking.basket.items import aggregate, normalize_items
from tracking.basket.locks import BasketLocks
from tracking.basket.store import BasketStore
from tracking.catalog.port import Catalog
from tracking.domain import tracking
from tracking.exceptions import AuditUnavailable, BasketNotFound, InvalidPayload, InvalidState

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _require_id(value, field_name="basket_id") -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidPayload(f"{field_name} is required")
    return value.strip()


class BasketLifecycleManager:
    def __init__(
        self,
        store: BasketStore,
        audit: AuditSink,
        catalog: Catalog,
        domain=tracking,
        clock=_utc_now,
        audit_attempts: int = 2,
    ) -> None:
        self.store = store
        self.audit = audit
        self.catalog = catalog
        self.domain = domain
        self.clock = clock
        self.audit_attempts = max(1, audit_attempts)
        self.locks = BasketLocks()

    # -------------------------------------------------------------------
    # Scope and time
    # -------------------------------------------------------------------
    @contextmanager
    def _exclusive(self, basket_id):
        with self.locks.hold(basket_id), self.domain.domain_context():
            yield

    def now(self) -> datetime:
        return self.clock()

    def _now_for(self, basket: Basket | None) -> datetime:
        # Timestamps for one basket never go backwards, keeping its audit trail ordered
        now = self.clock()
        if basket is not None and basket.updated_at is not None and as_utc(basket.updated_at) > as_utc(now):
            return as_utc(basket.updated_at)
        return now

    def _load(self, basket_id) -> Basket:
        basket = self.store.find(basket_id)
        if basket is None:
            raise BasketNotFound(basket_id)
        return basket

    # -------------------------------------------------------------------
    # Persistence: store first, then audit, undo the store on audit failure
    # -------------------------------------------------------------------
    def _append(self, record: AuditRecord) -> AuditRecord:
        for attempt in range(1, self.audit_attempts + 1):
            try:
                return self.audit.append(record)
            except AuditUnavailable as exc:
                logger.warning(
                    "Audit append failed",
                    basket_id=record.basket_id,
                    action=record.action.value,
                    attempt=attempt,
                    error=str(exc),
                )
                if attempt == self.audit_attempts:
                    raise

    def _commit(self, basket: Basket, previous_state, action, now, detail=None) -> AuditRecord:
        """Save ``basket`` and log ``action``; ``previous_state`` is None for a new basket."""
        self.store.upsert(basket)
        try:
            return self._append(AuditRecord.capture(basket, action, now, detail))
        except AuditUnavailable:
            if previous_state is None:
                self._undo(basket.basket_id, lambda: self.store.delete(basket))
            else:
                basket.restore_state(previous_state)
                self._undo(basket.basket_id, lambda: self.store.upsert(basket))
            raise

    def _retire(self, basket: Basket, action, now) -> AuditRecord:
        """Delete ``basket`` and log ``action`` with its final snapshot."""
        state = basket.capture_state()
        record = AuditRecord.capture(basket, action, now)
        self.store.delete(basket)
        try:
            return self._append(record)
        except AuditUnavailable:
            self._undo(basket.basket_id, lambda: self.store.upsert(Basket.from_state(basket.basket_id, state)))
            raise

    def _undo(self, basket_id, restore):
        try:
            restore()
        except Exception:
            logger.exception("Could not roll back basket after audit failure", basket_id=basket_id)
            raise
        logger.info("Rolled back basket after audit failure", basket_id=basket_id)

    # -------------------------------------------------------------------
    # Sensor syncs
    # -------------------------------------------------------------------
    def sync(self, basket_id, identifiers=None, items=None, observed_at=None) -> Basket:
        """Replace a basket's items with the gateway's latest presence snapshot.

        Accepts either raw ``identifiers`` (resolved through the catalog) or a
        structured ``items`` list, never both. Creates the basket if needed.
        Stale reports (observed before the last applied one) and duplicate
        reports (same items as already held) leave the audit trail untouched.
        """
        basket_id = _require_id(basket_id)
        if (identifiers is None) == (items is None):
            raise InvalidPayload("Provide exactly one of identifiers or items")
        if observed_at is not None and not isinstance(observed_at, datetime):
            raise InvalidPayload("observed_at must be a datetime")
        new_items = aggregate(identifiers, self.catalog) if items is None else normalize_items(items)

        with self._exclusive(basket_id):
            basket = self.store.find(basket_id)
            if basket is not None:
                basket.ensure_syncable()
                if basket.is_stale(observed_at):
                    logger.info("Ignoring stale sensor report", basket_id=basket_id, observed_at=str(observed_at))
                    return basket

            now = self._now_for(basket)
            if basket is None:
                basket = Basket.create(basket_id, now, status=BasketStatus.ACTIVE)
                previous_state = None
            else:
                previous_state = basket.capture_state()

            if previous_state is not None and basket.current_status == BasketStatus.ACTIVE and basket.holds(new_items):
                basket.touch(now, observed_at)
                self.store.upsert(basket)
                logger.debug("Duplicate sensor report", basket_id=basket_id)
                return basket

            basket.replace_items(new_items, now, observed_at)
            self._commit(basket, previous_state, AuditAction.SYNCED, now)
            logger.info("Basket synced", basket_id=basket_id, item_count=len(new_items), total=str(basket.total))
            return basket

    def open(self, basket_id) -> Basket:
        """Register an empty PENDING basket, or return the one already stored."""
        basket_id = _require_id(basket_id)
        with self._exclusive(basket_id):
            basket = self.store.find(basket_id)
            if basket is None:
                basket = Basket.create(basket_id, self.now())
                self.store.upsert(basket)
                logger.info("Basket opened", basket_id=basket_id)
            return basket

    def adjust_quantity(self, basket_id, item_id, delta):
        basket_id = _require_id(basket_id)
        item_id = _require_id(item_id, "item_id")
        if not isinstance(delta, int) or isinstance(delta, bool) or delta == 0:
            raise InvalidPayload("delta must be a non-zero integer")

        with self._exclusive(basket_id):
            basket = self._load(basket_id)
            previous_state = basket.capture_state()
            now = self._now_for(basket)
            item = basket.adjust_quantity(item_id, delta, now)
            direction = "increase" if delta > 0 else "decrease"
            self._commit(basket, previous_state, AuditAction.QUANTITY_ADJUSTED, now, detail=direction)
            logger.info(
                "Item quantity adjusted",
                basket_id=basket_id,
                item_id=item_id,
                delta=delta,
                quantity=item.quantity,
            )
            return item

    # -------------------------------------------------------------------
    # Checkout and cashier decisions
    # -------------------------------------------------------------------
    def checkout(self, basket_id) -> str:
        """Move an open basket to CHECKOUT and return its checkout payload.

        The payload is just the basket id; contents and prices stay off the
        scannable code. Repeating checkout on a basket already at checkout
        returns the same payload without logging again.
        """
        return self.checkout_basket(basket_id).basket_id

    def checkout_basket(self, basket_id) -> Basket:
        """As ``checkout``, returning the basket as it stood when checkout committed."""
        basket_id = _require_id(basket_id)
        with self._exclusive(basket_id):
            basket = self._load(basket_id)
            if basket.current_status == BasketStatus.CHECKOUT:
                return basket

            previous_state = basket.capture_state()
            now = self._now_for(basket)
            basket.start_checkout(now)
            self._commit(basket, previous_state, AuditAction.CHECKOUT_STARTED, now)
            logger.info("Checkout started", basket_id=basket_id, total=str(basket.total))
            return basket

    def decide(self, basket_id, paid) -> Basket:
        basket_id = _require_id(basket_id)
        if not isinstance(paid, bool):
            raise InvalidPayload("paid must be a boolean")

        with self._exclusive(basket_id):
            basket = self._load(basket_id)
            previous_state = basket.capture_state()
            now = self._now_for(basket)
            basket.decide(paid, now)
            action = AuditAction.PAID if paid else AuditAction.CANCELLED
            self._commit(basket, previous_state, action, now)
            logger.info("Basket decided", basket_id=basket_id, status=basket.status, total=str(basket.total))
            return basket

    def archive(self, basket_id) -> AuditRecord:
        """Remove a PAID or CANCELLED basket from the store, freeing its id."""
        basket_id = _require_id(basket_id)
        with self._exclusive(basket_id):
            basket = self._load(basket_id)
            if not basket.is_terminal:
                raise InvalidState(f"Only paid or cancelled baskets can be archived, basket is {basket.status}")
            record = self._retire(basket, AuditAction.ARCHIVED, self._now_for(basket))
            logger.info("Basket archived", basket_id=basket_id, status=basket.status)
            return record

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, basket_id) -> Basket:
        basket_id = _require_id(basket_id)
        with self._exclusive(basket_id):
            return self._load(basket_id)

    def get_total(self, basket_id):
        return self.get(basket_id).total

    def audit_trail(self, basket_id) -> list[AuditRecord]:
        basket_id = _require_id(basket_id)
        with self._exclusive(basket_id):
            return self.audit.query_by_basket(basket_id)

    def audit_entries(self, action: AuditAction) -> list[AuditRecord]:
        """Every audit record of ``action``; ARCHIVED lists the sessions removed by ``archive``."""
        with self.domain.domain_context():
            return self.audit.query_by_action(action)

    def list_baskets(self, statuses) -> list[Basket]:
        with self.domain.domain_context():
            return self.store.scan(statuses)

    # -------------------------------------------------------------------
    # Idle expiry
    # -------------------------------------------------------------------
    def idle_basket_ids(self, cutoff) -> list[str]:
        with self.domain.domain_context():
            baskets = self.store.scan(OPEN_STATUSES, predicate=lambda b: b.is_idle_since(cutoff))
        return [basket.basket_id for basket in baskets]

    def retire_idle(self, basket_id, cutoff) -> bool:
        """Delete an open basket untouched since ``cutoff``, logging AUTO_CLEANUP.

        Re-checks the basket under its lock: a basket that was synced,
        checked out or removed since the scan is left alone.
        """
        with self._exclusive(basket_id):
            basket = self.store.find(basket_id)
            if basket is None or not basket.is_idle_since(cutoff):
                return False
            self._retire(basket, AuditAction.AUTO_CLEANUP, self._now_for(basket))
            logger.info(
                "Retired idle basket",
                basket_id=basket_id,
                item_count=len(basket.line_items()),
                last_updated=str(basket.updated_at),
            )
            return True
