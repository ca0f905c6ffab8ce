"""
Status gate: which coupons may be evaluated at all.

A coupon passes when it is active, not expired at the evaluation instant and
still under its usage limit. Whether it fits a particular cart is the
strategies' job, not the gate's.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from couponengine.core.errors import CouponExpired, CouponInactive, UsageLimitExceeded
from couponengine.core.models import CouponBase


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return utc_now()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def is_expired(coupon: CouponBase, now: Optional[datetime] = None) -> bool:
    return coupon.expiry_date is not None and coupon.expiry_date < _as_utc(now)


def is_usage_exhausted(coupon: CouponBase) -> bool:
    return coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit


def check_coupon_status(coupon: CouponBase, now: Optional[datetime] = None) -> None:
    """
    Raise the error describing why a coupon cannot be used right now.

    Raises:
        CouponInactive, CouponExpired, UsageLimitExceeded (checked in that order)
    """
    if not coupon.is_active:
        raise CouponInactive(coupon.id)
    if is_expired(coupon, now):
        raise CouponExpired(coupon.id)
    if is_usage_exhausted(coupon):
        raise UsageLimitExceeded(coupon.id)


def filter_eligible(coupons: Iterable[CouponBase], now: Optional[datetime] = None) -> List[CouponBase]:
    """Keep the coupons that are active, unexpired and under their usage limit."""
    moment = _as_utc(now)
    return [
        coupon for coupon in coupons
        if coupon.is_active and not is_expired(coupon, moment) and not is_usage_exhausted(coupon)
    ]
