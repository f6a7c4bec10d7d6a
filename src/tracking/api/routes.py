"""FastAPI routes for basket tracking — sensor syncs, terminal reads and decisions.

Handlers are plain ``def`` so FastAPI runs them on its worker threads:
requests for different baskets proceed in parallel while the lifecycle
manager serializes requests for the same basket.
"""

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tracking.api.schemas import (
    AdjustQuantityRequest,
    AuditEntrySchema,
    BasketRequest,
    BasketResponse,
    CheckoutResponse,
    DecisionRequest,
    DecisionResponse,
    ItemSchema,
    SweepRequest,
    SweepResponse,
    SyncRequest,
    TotalResponse,
)
from tracking.audit.record import AuditAction
from tracking.basket.basket import BasketStatus
from tracking.basket.service import get_lifecycle, get_sweeper
from tracking.exceptions import BasketTrackingError, InvalidPayload
from tracking.qr import get_qr_encoder


def _http_error(exc: BasketTrackingError) -> HTTPException:
    headers = {"Retry-After": "1"} if exc.retryable else None
    return HTTPException(
        status_code=exc.status_code,
        detail={"error": exc.code, "message": str(exc)},
        headers=headers,
    )


def _describe(errors) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in errors
    )


async def invalid_request_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer a body that does not parse into the request schema as an invalid payload."""
    return JSONResponse(
        status_code=InvalidPayload.status_code,
        content={"detail": {"error": InvalidPayload.code, "message": _describe(exc.errors())}},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, invalid_request_handler)


# ---------------------------------------------------------------------------
# Basket Router
# ---------------------------------------------------------------------------
basket_router = APIRouter(tags=["baskets"])


@basket_router.post("/sync", response_model=BasketResponse)
def sync_basket(body: SyncRequest) -> BasketResponse:
    """Apply a sensor gateway report: raw identifiers or a structured item list."""
    try:
        basket = get_lifecycle().sync(
            body.basket_id,
            identifiers=body.identifiers,
            items=body.items,
            observed_at=body.observed_at,
        )
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return BasketResponse.from_basket(basket)


@basket_router.post("/basket", status_code=201, response_model=BasketResponse)
def open_basket(body: BasketRequest) -> BasketResponse:
    try:
        basket = get_lifecycle().open(body.basket_id)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return BasketResponse.from_basket(basket)


@basket_router.get("/basket/{basket_id}", response_model=BasketResponse)
def get_basket(basket_id: str) -> BasketResponse:
    try:
        basket = get_lifecycle().get(basket_id)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return BasketResponse.from_basket(basket)


@basket_router.get("/basket/{basket_id}/total", response_model=TotalResponse)
def get_basket_total(basket_id: str) -> TotalResponse:
    try:
        total = get_lifecycle().get_total(basket_id)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return TotalResponse(basket_id=basket_id, total=total)


@basket_router.get("/baskets", response_model=list[BasketResponse])
def list_baskets(status: list[BasketStatus] = Query(default=[BasketStatus.PAID, BasketStatus.CANCELLED])):
    """List stored baskets by status; defaults to decided baskets awaiting archival."""
    try:
        baskets = get_lifecycle().list_baskets(status)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return [BasketResponse.from_basket(basket) for basket in baskets]


@basket_router.post("/checkout", response_model=CheckoutResponse)
def checkout_basket(body: BasketRequest) -> CheckoutResponse:
    """Move the basket to checkout and hand the terminal its QR payload."""
    try:
        basket = get_lifecycle().checkout_basket(body.basket_id)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    payload = basket.basket_id
    return CheckoutResponse(
        checkout_payload=payload,
        qr_code=get_qr_encoder().encode(payload),
        total=basket.total,
    )


@basket_router.post("/decision", response_model=DecisionResponse)
def record_decision(body: DecisionRequest) -> DecisionResponse:
    try:
        basket = get_lifecycle().decide(body.basket_id, body.paid)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return DecisionResponse(basket_status=basket.status)


@basket_router.post("/adjustQuantity", response_model=ItemSchema)
def adjust_quantity(body: AdjustQuantityRequest) -> ItemSchema:
    try:
        item = get_lifecycle().adjust_quantity(body.basket_id, body.item_id, body.delta)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return ItemSchema.from_item(item)


@basket_router.post("/basket/{basket_id}/archive", response_model=AuditEntrySchema)
def archive_basket(basket_id: str) -> AuditEntrySchema:
    """Remove a paid or cancelled basket so the physical basket can start a new session."""
    try:
        record = get_lifecycle().archive(basket_id)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return AuditEntrySchema.from_record(record)


# ---------------------------------------------------------------------------
# Audit Router
# ---------------------------------------------------------------------------
audit_router = APIRouter(prefix="/audit", tags=["audit"])


@audit_router.get("", response_model=list[AuditEntrySchema])
def list_audit_entries(action: AuditAction = Query(default=AuditAction.ARCHIVED)) -> list[AuditEntrySchema]:
    """Audit entries of one action across baskets; defaults to archived sessions."""
    try:
        records = get_lifecycle().audit_entries(action)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return [AuditEntrySchema.from_record(record) for record in records]


@audit_router.get("/{basket_id}", response_model=list[AuditEntrySchema])
def get_audit_trail(basket_id: str) -> list[AuditEntrySchema]:
    try:
        records = get_lifecycle().audit_trail(basket_id)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return [AuditEntrySchema.from_record(record) for record in records]


# ---------------------------------------------------------------------------
# Maintenance Router
# ---------------------------------------------------------------------------
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@maintenance_router.post("/sweep", response_model=SweepResponse)
def sweep_idle_baskets(body: SweepRequest | None = None) -> SweepResponse:
    """Retire idle open baskets now instead of waiting for the background sweeper."""
    try:
        swept = get_sweeper().sweep(as_of=body.as_of if body else None)
    except BasketTrackingError as exc:
        raise _http_error(exc) from exc
    return SweepResponse(swept=swept)
