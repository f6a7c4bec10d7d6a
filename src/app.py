"""SmartBasket FastAPI application.

Serves sensor gateway syncs and checkout terminal requests synchronously
via HTTP. The lifecycle manager pushes the tracking domain context around
each basket operation, so route handlers run on FastAPI's worker threads.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import tracking.catalog  # noqa: F401  # load before domain traversal to avoid a partial-module import cycle
from tracking.domain import tracking
from tracking.utils.logging import bind_request_context, clear_request_context, configure_logging

configure_logging()
tracking.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="SmartBasket API",
    description="RFID smart basket session tracking: sensor syncs, checkout and cashier decisions",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind the request path and method to every log line emitted while serving it."""
    clear_request_context()
    bind_request_context(method=request.method, path=request.url.path)
    try:
        return await call_next(request)
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from tracking.api import audit_router, basket_router, maintenance_router, register_error_handlers  # noqa: E402

app.include_router(basket_router)
app.include_router(audit_router)
app.include_router(maintenance_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    from tracking.basket.service import get_sweeper

    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": tracking.name},
            "sweeper": {"running": get_sweeper().running},
        }
    )
