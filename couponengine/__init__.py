"""
Coupon Engine - discount discovery and application for shopping carts.

Three coupon types:
- cart: percentage or fixed discount on the cart total
- product: discount on items matching product ids or categories
- bxgy: buy X get Y free, with a repetition limit
"""

from couponengine.core.config import EngineConfig, get_config, set_config
from couponengine.core.models import ApplicableCandidate, Cart, CartItem, Coupon, CouponType
from couponengine.core.service import CouponService

__all__ = [
    'CouponService',
    'Cart',
    'CartItem',
    'Coupon',
    'CouponType',
    'ApplicableCandidate',
    'EngineConfig',
    'get_config',
    'set_config',
]

__version__ = '0.1.0'
