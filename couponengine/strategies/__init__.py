"""
Discount strategies, one per coupon type:
- cart: percentage or fixed discount on the whole cart
- product: discount on items matching product ids or categories
- bxgy: free units of "get" products for buying "buy" products
"""
from couponengine.strategies.base import CouponStrategy
from couponengine.strategies.buy_x_get_y import BuyXGetYStrategy
from couponengine.strategies.cart_wide import CartWideStrategy
from couponengine.strategies.product_scoped import ProductScopedStrategy
from couponengine.strategies.registry import StrategyRegistry, create_registry

__all__ = [
    "CouponStrategy",
    "CartWideStrategy",
    "ProductScopedStrategy",
    "BuyXGetYStrategy",
    "StrategyRegistry",
    "create_registry",
]
