"""
Cart-wide coupons: a discount on the whole cart total.
"""
from couponengine.core import money
from couponengine.core.models import Cart, CartWideCoupon, CouponType, PercentageDiscount
from couponengine.strategies.base import CouponStrategy


class CartWideStrategy(CouponStrategy):

    coupon_type = CouponType.CART_WIDE

    def is_eligible(self, cart: Cart, coupon: CartWideCoupon) -> bool:
        conditions = coupon.conditions
        total = cart.total_amount

        if total < conditions.min_cart_value:
            return False
        if conditions.max_cart_value is not None and total > conditions.max_cart_value:
            return False
        if conditions.min_items is not None and len(cart.items) < conditions.min_items:
            return False
        return True

    def calculate_discount(self, cart: Cart, coupon: CartWideCoupon) -> int:
        details = coupon.discount_details
        total = cart.total_amount

        if isinstance(details, PercentageDiscount):
            discount = money.cap(money.percentage_of(total, details.value), details.max_discount)
        else:
            discount = money.floor_amount(details.value)

        # A fixed discount larger than the cart would push sub_total below zero
        return money.clamp(discount, total)

    def apply_discount(self, cart: Cart, coupon: CartWideCoupon) -> Cart:
        discount = self.calculate_discount(cart, coupon)
        return cart.model_copy(
            update={
                "discounted_amount": discount,
                "sub_total": cart.total_amount - discount,
            },
            deep=True,
        )
