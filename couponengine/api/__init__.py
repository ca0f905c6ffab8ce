"""
API module for the coupon engine.

Provides REST endpoints for coupon management, discovery and application.
"""
from couponengine.api.models import (
    ApplicableCouponsResponse,
    ApplyCouponResponse,
    CartRequest,
    HealthResponse,
)

__all__ = [
    "CartRequest",
    "ApplicableCouponsResponse",
    "ApplyCouponResponse",
    "HealthResponse",
]
