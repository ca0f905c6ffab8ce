"""
Product-scoped coupons: a discount on every item matching the coupon's
product ids or categories.
"""
from typing import List, Tuple

from couponengine.core import money
from couponengine.core.models import Cart, CartItem, CouponType, PercentageDiscount, ProductScopedCoupon
from couponengine.strategies.base import CouponStrategy


class ProductScopedStrategy(CouponStrategy):

    coupon_type = CouponType.PRODUCT_SCOPED

    def is_eligible(self, cart: Cart, coupon: ProductScopedCoupon) -> bool:
        conditions = coupon.conditions
        matched = [item for item in cart.items if conditions.matches(item)]
        if not matched:
            return False
        if conditions.min_quantity is not None:
            return sum(item.quantity for item in matched) >= conditions.min_quantity
        return True

    def calculate_discount(self, cart: Cart, coupon: ProductScopedCoupon) -> int:
        return sum(discount for _, discount in self._item_discounts(cart, coupon))

    def apply_discount(self, cart: Cart, coupon: ProductScopedCoupon) -> Cart:
        updated = cart.model_copy(deep=True)
        total_discount = 0

        for index, discount in self._item_discounts(cart, coupon):
            item = updated.items[index]
            item.total_discount = discount
            item.final_price = item.subtotal - discount
            item.applied_coupon_ids.append(coupon.id)
            total_discount += discount

        updated.discounted_amount = money.clamp(total_discount, updated.total_amount)
        updated.sub_total = updated.total_amount - updated.discounted_amount
        return updated

    def _item_discounts(self, cart: Cart, coupon: ProductScopedCoupon) -> List[Tuple[int, int]]:
        """(item index, discount) for every matched item, in cart order."""
        conditions = coupon.conditions
        discounts = []
        for index, item in enumerate(cart.items):
            if not conditions.matches(item):
                continue
            discounts.append((index, self._discount_for_item(item, coupon)))
        return discounts

    @staticmethod
    def _discount_for_item(item: CartItem, coupon: ProductScopedCoupon) -> int:
        details = coupon.discount_details
        if isinstance(details, PercentageDiscount):
            discount = money.cap(money.percentage_of(item.subtotal, details.value), details.max_discount)
        else:
            # Fixed amount per unit
            discount = money.per_unit(details.value, item.quantity)
        return money.clamp(discount, item.subtotal)
