"""
Lookup table from coupon type tag to its strategy instance.
"""
from typing import Dict, Iterable, Optional

from couponengine.core.errors import UnknownCouponType
from couponengine.core.models import CouponType, normalize_type_tag
from couponengine.strategies.base import CouponStrategy
from couponengine.strategies.buy_x_get_y import BuyXGetYStrategy
from couponengine.strategies.cart_wide import CartWideStrategy
from couponengine.strategies.product_scoped import ProductScopedStrategy


class StrategyRegistry:
    """Maps coupon types to the stateless strategy that evaluates them."""

    def __init__(self, strategies: Iterable[CouponStrategy]):
        self._strategies: Dict[CouponType, CouponStrategy] = {
            strategy.coupon_type: strategy for strategy in strategies
        }

    def find(self, coupon_type) -> Optional[CouponStrategy]:
        """Strategy for a type tag, or None if the tag is not registered."""
        try:
            key = CouponType(normalize_type_tag(coupon_type))
        except ValueError:
            return None
        return self._strategies.get(key)

    def get(self, coupon_type, coupon_id: str = None) -> CouponStrategy:
        """Strategy for a type tag; raises UnknownCouponType if there is none."""
        strategy = self.find(coupon_type)
        if strategy is None:
            tag = coupon_type.value if isinstance(coupon_type, CouponType) else coupon_type
            raise UnknownCouponType(str(tag), coupon_id)
        return strategy

    @property
    def types(self):
        return list(self._strategies)


# Shared instances; strategies hold no state
CART_WIDE = CartWideStrategy()
PRODUCT_SCOPED = ProductScopedStrategy()
BUY_X_GET_Y = BuyXGetYStrategy()

_BUILTIN = {
    CouponType.CART_WIDE: CART_WIDE,
    CouponType.PRODUCT_SCOPED: PRODUCT_SCOPED,
    CouponType.BUY_X_GET_Y: BUY_X_GET_Y,
}


def create_registry(enabled_types: Optional[Iterable[str]] = None) -> StrategyRegistry:
    """
    Build a registry over the built-in strategies.

    Args:
        enabled_types: Type tags to register (default: all). Unknown tags are ignored.
    """
    if enabled_types is None:
        return StrategyRegistry(_BUILTIN.values())

    strategies = []
    for tag in enabled_types:
        try:
            strategies.append(_BUILTIN[CouponType(normalize_type_tag(tag))])
        except ValueError:
            continue
    return StrategyRegistry(strategies)
