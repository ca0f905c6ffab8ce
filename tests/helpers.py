"""Builders for carts and coupons used across the test suite."""

from couponengine.core.models import Cart, CartItem, parse_coupon


def item(product_id, quantity, price, category=None):
    return CartItem(product_id=product_id, quantity=quantity, price=price, category=category)


def make_cart(*items, total=None, cart_id="cart-1"):
    return Cart(id=cart_id, items=list(items), total_amount=total)


def percentage(value, max_discount=None):
    details = {"type": "percentage", "value": value}
    if max_discount is not None:
        details["max_discount"] = max_discount
    return details


def fixed(value):
    return {"type": "fixed", "value": value}


def cart_coupon(coupon_id="CART10", discount=None, **fields):
    conditions = fields.pop("conditions", {"min_cart_value": 0})
    return parse_coupon({
        "id": coupon_id,
        "name": fields.pop("name", f"Cart coupon {coupon_id}"),
        "type": "cart",
        "conditions": conditions,
        "discount_details": discount or percentage(10),
        **fields,
    })


def product_coupon(coupon_id="PROD20", product_ids=None, categories=None, discount=None,
                   min_quantity=None, **fields):
    conditions = {"product_ids": product_ids or [], "categories": categories or []}
    if min_quantity is not None:
        conditions["min_quantity"] = min_quantity
    return parse_coupon({
        "id": coupon_id,
        "name": fields.pop("name", f"Product coupon {coupon_id}"),
        "type": "product",
        "conditions": conditions,
        "discount_details": discount or percentage(20),
        **fields,
    })


def bxgy_coupon(coupon_id="B2G1", buy=None, get=None, repetition_limit=2, **fields):
    buy = buy or [("A", 2)]
    get = get or [("B", 1)]
    return parse_coupon({
        "id": coupon_id,
        "name": fields.pop("name", f"Buy X get Y {coupon_id}"),
        "type": "bxgy",
        "conditions": {
            "buy_products": [{"product_id": p, "quantity": q} for p, q in buy],
            "get_products": [{"product_id": p, "quantity": q} for p, q in get],
            "repetition_limit": repetition_limit,
        },
        **fields,
    })
