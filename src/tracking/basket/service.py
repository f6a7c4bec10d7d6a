"""Lifecycle manager and sweeper factory.

The HTTP routes, the sweeper and the management CLI share one manager so
they share its per-basket locks. get_lifecycle() builds it from settings on
first use; set_lifecycle() swaps it (useful for tests).
"""

from tracking.audit.sink import AuditSink, JsonLinesAuditSink, RepositoryAuditSink
from tracking.basket.lifecycle import BasketLifecycleManager
from tracking.basket.store import RepositoryBasketStore
from tracking.basket.sweeper import ExpirySweeper
from tracking.catalog import get_catalog
from tracking.config import get_settings

_current_lifecycle: BasketLifecycleManager | None = None
_current_sweeper: ExpirySweeper | None = None


def _default_audit_sink(settings) -> AuditSink:
    if settings.audit_log_path:
        return JsonLinesAuditSink(settings.audit_log_path)
    return RepositoryAuditSink()


def get_lifecycle() -> BasketLifecycleManager:
    global _current_lifecycle
    if _current_lifecycle is None:
        settings = get_settings()
        _current_lifecycle = BasketLifecycleManager(
            store=RepositoryBasketStore(),
            audit=_default_audit_sink(settings),
            catalog=get_catalog(),
            audit_attempts=settings.audit_attempts,
        )
    return _current_lifecycle


def set_lifecycle(lifecycle: BasketLifecycleManager) -> None:
    global _current_lifecycle
    reset_lifecycle()
    _current_lifecycle = lifecycle


def get_sweeper() -> ExpirySweeper:
    global _current_sweeper
    if _current_sweeper is None:
        settings = get_settings()
        _current_sweeper = ExpirySweeper(
            get_lifecycle(),
            idle_threshold=settings.idle_threshold,
            interval=settings.sweep_interval_seconds,
        )
    return _current_sweeper


def reset_lifecycle() -> None:
    """Drop the shared manager and sweeper, stopping the sweeper if it runs."""
    global _current_lifecycle, _current_sweeper
    if _current_sweeper is not None:
        _current_sweeper.stop()
    _current_lifecycle = None
    _current_sweeper = None
