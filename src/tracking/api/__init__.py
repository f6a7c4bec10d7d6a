from tracking.api.routes import audit_router, basket_router, maintenance_router, register_error_handlers

__all__ = ["basket_router", "audit_router", "maintenance_router", "register_error_handlers"]
