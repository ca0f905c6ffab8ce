"""
Buy-X-get-Y coupons: buying the required quantities earns free units of the
"get" products, once per repetition up to the coupon's repetition limit.

Example: buy 2 of A, get 1 of B, limit 2. A cart with A x5 earns
min(5 // 2, 2) = 2 repetitions, i.e. 2 free B. With only B x1 in the cart,
1 unit of B is free.
"""
from dataclasses import dataclass, field
from typing import Dict, List

from couponengine.core import money
from couponengine.core.models import BuyXGetYCoupon, Cart, CouponType
from couponengine.strategies.base import CouponStrategy


@dataclass
class FreeGrant:
    """Free units granted on one cart line."""
    item_index: int
    product_id: str
    free_quantity: int
    discount: int


@dataclass
class BuyXGetYPlan:
    """Repetition count and free-unit distribution for one (cart, coupon) pair."""
    required_buy_qty: int
    total_buy_qty_in_cart: int
    max_repetitions: int
    actual_repetitions: int
    entitlement: int
    grants: List[FreeGrant] = field(default_factory=list)

    @property
    def free_quantity(self) -> int:
        return sum(grant.free_quantity for grant in self.grants)

    @property
    def discount(self) -> int:
        return sum(grant.discount for grant in self.grants)


def _quantity_in_cart(cart: Cart, product_id: str) -> int:
    return sum(item.quantity for item in cart.items if item.product_id == product_id)


def build_plan(cart: Cart, coupon: BuyXGetYCoupon) -> BuyXGetYPlan:
    """
    Work out how many times the deal triggers and which lines get free units.

    Free units go to the get entries in their declared order. Each entry takes
    as much of the remaining entitlement as the cart holds of that product;
    lines of the same product are filled in cart order.
    """
    conditions = coupon.conditions

    required_buy_qty = sum(entry.quantity for entry in conditions.buy_products)
    total_buy_qty = sum(_quantity_in_cart(cart, entry.product_id) for entry in conditions.buy_products)

    if required_buy_qty <= 0:
        return BuyXGetYPlan(required_buy_qty, total_buy_qty, 0, 0, 0)

    max_repetitions = total_buy_qty // required_buy_qty
    actual_repetitions = min(max_repetitions, conditions.repetition_limit)
    required_get_qty = sum(entry.quantity for entry in conditions.get_products)
    entitlement = actual_repetitions * required_get_qty

    granted: Dict[int, int] = {}
    remaining = entitlement
    for entry in conditions.get_products:
        if remaining <= 0:
            break
        for index, item in enumerate(cart.items):
            if remaining <= 0:
                break
            if item.product_id != entry.product_id:
                continue
            available = item.quantity - granted.get(index, 0)
            take = min(remaining, available)
            if take > 0:
                granted[index] = granted.get(index, 0) + take
                remaining -= take

    grants = []
    for index in sorted(granted):
        item = cart.items[index]
        free_quantity = granted[index]
        grants.append(FreeGrant(
            item_index=index,
            product_id=item.product_id,
            free_quantity=free_quantity,
            discount=money.floor_amount(free_quantity * item.price),
        ))

    return BuyXGetYPlan(
        required_buy_qty=required_buy_qty,
        total_buy_qty_in_cart=total_buy_qty,
        max_repetitions=max_repetitions,
        actual_repetitions=actual_repetitions,
        entitlement=entitlement,
        grants=grants,
    )


class BuyXGetYStrategy(CouponStrategy):

    coupon_type = CouponType.BUY_X_GET_Y

    def is_eligible(self, cart: Cart, coupon: BuyXGetYCoupon) -> bool:
        return self._plan_is_eligible(build_plan(cart, coupon))

    def calculate_discount(self, cart: Cart, coupon: BuyXGetYCoupon) -> int:
        return build_plan(cart, coupon).discount

    def evaluate(self, cart: Cart, coupon: BuyXGetYCoupon) -> int:
        # One plan answers both eligibility and discount
        plan = build_plan(cart, coupon)
        if not self._plan_is_eligible(plan):
            return 0
        return plan.discount

    @staticmethod
    def _plan_is_eligible(plan: BuyXGetYPlan) -> bool:
        return plan.actual_repetitions > 0 and plan.free_quantity > 0

    def apply_discount(self, cart: Cart, coupon: BuyXGetYCoupon) -> Cart:
        plan = build_plan(cart, coupon)
        updated = cart.model_copy(deep=True)

        for grant in plan.grants:
            item = updated.items[grant.item_index]
            item.free_quantity = grant.free_quantity
            item.total_discount = grant.discount
            item.final_price = item.subtotal - grant.discount
            item.applied_coupon_ids.append(coupon.id)

        updated.discounted_amount = money.clamp(plan.discount, updated.total_amount)
        updated.sub_total = updated.total_amount - updated.discounted_amount
        return updated
