"""Error taxonomy for basket tracking.

Every error carries the HTTP status it maps to at the API boundary and a
stable machine-readable ``code``.
"""


class BasketTrackingError(Exception):
    """Base class for all basket tracking errors."""

    status_code = 500
    code = "basket_tracking_error"
    retryable = False


class InvalidPayload(BasketTrackingError):
    """Malformed or missing required fields. No state was changed."""

    status_code = 400
    code = "invalid_payload"


class BasketNotFound(BasketTrackingError):
    status_code = 404
    code = "basket_not_found"

    def __init__(self, basket_id):
        super().__init__(f"Basket {basket_id} not found")
        self.basket_id = basket_id


class ItemNotFound(BasketTrackingError):
    status_code = 404
    code = "item_not_found"

    def __init__(self, basket_id, item_id):
        super().__init__(f"Item {item_id} not found in basket {basket_id}")
        self.basket_id = basket_id
        self.item_id = item_id


class InvalidState(BasketTrackingError):
    """The operation is not permitted in the basket's current status."""

    status_code = 409
    code = "invalid_state"


class StoreUnavailable(BasketTrackingError):
    """The basket store failed. Safe to retry."""

    status_code = 503
    code = "store_unavailable"
    retryable = True


class AuditUnavailable(BasketTrackingError):
    """The audit log failed and the operation was rolled back. Safe to retry."""

    status_code = 503
    code = "audit_unavailable"
    retryable = True
