"""
Errors raised by the coupon engine.

Only orchestrator-level preconditions (identity, status, type) and storage
failures are errors. A coupon that simply does not fit a cart is never an
error during discovery; it is left out of the candidate list.
"""


class CouponEngineError(Exception):
    """Base class for all coupon engine errors."""

    code = "COUPON_ERROR"

    def __init__(self, message: str, coupon_id: str = None):
        super().__init__(message)
        self.message = message
        self.coupon_id = coupon_id


class CouponNotFound(CouponEngineError):
    code = "COUPON_NOT_FOUND"

    def __init__(self, coupon_id: str):
        super().__init__(f"Coupon with ID {coupon_id} not found", coupon_id)


class CouponAlreadyExists(CouponEngineError):
    code = "COUPON_ALREADY_EXISTS"

    def __init__(self, coupon_id: str):
        super().__init__(f"Coupon with ID {coupon_id} already exists", coupon_id)


class CouponInactive(CouponEngineError):
    code = "COUPON_INACTIVE"

    def __init__(self, coupon_id: str):
        super().__init__(f"Coupon {coupon_id} is not active", coupon_id)


class CouponExpired(CouponEngineError):
    code = "COUPON_EXPIRED"

    def __init__(self, coupon_id: str):
        super().__init__(f"Coupon {coupon_id} has expired", coupon_id)


class UsageLimitExceeded(CouponEngineError):
    code = "USAGE_LIMIT_EXCEEDED"

    def __init__(self, coupon_id: str):
        super().__init__(f"Coupon {coupon_id} usage limit exceeded", coupon_id)


class CouponNotApplicable(CouponEngineError):
    """The coupon passed the status gate but the cart does not satisfy its conditions."""

    code = "COUPON_NOT_APPLICABLE"

    def __init__(self, coupon_id: str):
        super().__init__(f"Coupon {coupon_id} is not applicable to this cart", coupon_id)


class UnknownCouponType(CouponEngineError):
    code = "UNKNOWN_COUPON_TYPE"

    def __init__(self, coupon_type: str, coupon_id: str = None):
        super().__init__(f"Invalid coupon type: {coupon_type}", coupon_id)
        self.coupon_type = coupon_type


class BackendUnavailable(CouponEngineError):
    """Transient storage failure (connection, timeout, lock acquisition)."""

    code = "BACKEND_UNAVAILABLE"

    def __init__(self, message: str, coupon_id: str = None):
        super().__init__(message, coupon_id)
