"""
Coupon persistence: key-value backends and the coupon repository.
"""
from couponengine.data.backends import InMemoryBackend, KeyValueBackend, RedisBackend, create_backend
from couponengine.data.coupon_store import CouponStore

__all__ = [
    "KeyValueBackend",
    "RedisBackend",
    "InMemoryBackend",
    "create_backend",
    "CouponStore",
]
