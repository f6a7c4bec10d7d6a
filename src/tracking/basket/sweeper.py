"""Expiry sweeper — retires open baskets left idle beyond a threshold.

Runs on a background thread every ``interval`` seconds, or on demand via
``sweep()`` (the maintenance endpoint and ``manage.py sweep`` call it
directly). Only PENDING and ACTIVE baskets are ever retired; baskets at
checkout or already decided are left alone.
"""

import threading
from datetime import timedelta

import structlog
from protean.exceptions import InvalidOperationError, ValidationError

from tracking.basket.lifecycle import BasketLifecycleManager
from tracking.exceptions import BasketTrackingError

logger = structlog.get_logger(__name__)


class ExpirySweeper:
    def __init__(
        self,
        lifecycle: BasketLifecycleManager,
        idle_threshold: timedelta = timedelta(minutes=30),
        interval: float = 300.0,
    ) -> None:
        self.lifecycle = lifecycle
        self.idle_threshold = idle_threshold
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def sweep(self, as_of=None) -> int:
        """Retire every idle open basket and return how many were retired."""
        as_of = as_of or self.lifecycle.now()
        cutoff = as_of - self.idle_threshold

        logger.info(
            "Checking for idle baskets",
            cutoff=cutoff.isoformat(),
            threshold_minutes=self.idle_threshold.total_seconds() / 60,
        )

        basket_ids = self.lifecycle.idle_basket_ids(cutoff)
        if not basket_ids:
            logger.info("No idle baskets found")
            return 0

        retired_count = 0
        for basket_id in basket_ids:
            try:
                if self.lifecycle.retire_idle(basket_id, cutoff):
                    retired_count += 1
            except (BasketTrackingError, ValidationError, InvalidOperationError, ValueError, ArithmeticError) as exc:
                logger.warning("Failed to retire idle basket", basket_id=basket_id, error=str(exc))

        logger.info("Idle basket sweep complete", retired_count=retired_count)
        return retired_count

    # -------------------------------------------------------------------
    # Background loop
    # -------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> threading.Thread:
        if self.running:
            return self._thread

        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="basket-expiry-sweeper", daemon=True)
        self._thread.start()
        logger.info("Expiry sweeper started", interval_seconds=self.interval)
        return self._thread

    def stop(self, timeout: float = 5.0) -> None:
        if not self.running:
            return

        self._stop.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Expiry sweeper stopped")

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Idle basket sweep failed")
