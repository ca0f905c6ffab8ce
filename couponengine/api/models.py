"""
Pydantic models for coupon API requests and responses.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List

from couponengine.core.models import ApplicableCandidate, Cart


class CartRequest(BaseModel):
    """Request body for discovery and application endpoints."""
    cart: Cart = Field(description="Cart to evaluate; total_amount is computed when omitted")

    @field_validator("cart")
    @classmethod
    def _cart_has_items(cls, cart: Cart) -> Cart:
        if not cart.items:
            raise ValueError("cart must contain at least one item")
        return cart


class ApplicableCouponsResponse(BaseModel):
    """Response model for coupon discovery, best discount first."""
    applicable_coupons: List[ApplicableCandidate]


class ApplyCouponResponse(BaseModel):
    """Response model for coupon application."""
    updated_cart: Cart


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Body returned for engine errors."""
    error: str = Field(description="Machine-readable error code, e.g. COUPON_EXPIRED")
    detail: Any = Field(description="Human-readable message or validation errors")


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    service: str
    version: str
    backend: str
    backend_reachable: bool
    config: Dict[str, Any]
    seeded: Optional[int] = None
