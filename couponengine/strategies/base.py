"""
Uniform contract implemented by every discount strategy.
"""
from abc import ABC, abstractmethod
from typing import List, Sequence

from couponengine.core.models import ApplicableCandidate, Cart, CouponBase, CouponType


class CouponStrategy(ABC):
    """
    Computes eligibility and discount for one coupon shape.

    Strategies are stateless and shared across requests. They assume the
    coupons they receive already passed the status gate (active, unexpired,
    under their usage limit) and only judge whether the cart fits.

    ``is_applicable`` and ``calculate_discount`` never mutate their inputs.
    ``apply_discount`` returns a new cart; calling it twice for the same coupon
    on the same cart counts the discount twice, so callers must apply a coupon
    at most once.
    """

    coupon_type: CouponType

    def is_applicable(self, cart: Cart, coupons: Sequence[CouponBase]) -> List[ApplicableCandidate]:
        """Return one candidate per coupon that fits the cart with a positive discount."""
        if not cart.items:
            return []

        applicable = []
        for coupon in coupons:
            discount = self.evaluate(cart, coupon)
            if discount <= 0:
                continue
            applicable.append(ApplicableCandidate(
                coupon_id=coupon.id,
                type=self.coupon_type,
                discount=discount,
            ))
        return applicable

    def evaluate(self, cart: Cart, coupon: CouponBase) -> int:
        """Discount the coupon gives this cart, or 0 when it is not eligible."""
        if not self.is_eligible(cart, coupon):
            return 0
        return self.calculate_discount(cart, coupon)

    @abstractmethod
    def is_eligible(self, cart: Cart, coupon: CouponBase) -> bool:
        """Check the coupon's conditions against the cart."""

    @abstractmethod
    def calculate_discount(self, cart: Cart, coupon: CouponBase) -> int:
        """Discount in minor units, floored and never negative."""

    @abstractmethod
    def apply_discount(self, cart: Cart, coupon: CouponBase) -> Cart:
        """Return a copy of the cart with the discount realised."""
