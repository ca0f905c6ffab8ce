"""Tests for cart and coupon models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from couponengine.core.models import (
    BuyXGetYCoupon,
    Cart,
    CartWideCoupon,
    CouponType,
    CouponUpdate,
    FreeProductDiscount,
    ProductScopedCoupon,
    parse_coupon,
)

from helpers import item, make_cart


def _raw(type_tag, conditions, discount=None, **fields):
    data = {"id": "C1", "name": "Coupon", "type": type_tag, "conditions": conditions, **fields}
    if discount is not None:
        data["discount_details"] = discount
    return data


class TestCart:
    def test_total_computed_when_omitted(self):
        cart = make_cart(item("A", 2, 150), item("B", 1, 200))
        assert cart.total_amount == 500
        assert cart.discounted_amount == 0
        assert cart.sub_total == 500

    def test_zero_total_is_recomputed(self):
        cart = make_cart(item("A", 3, 100), total=0)
        assert cart.total_amount == 300

    def test_supplied_total_is_kept(self):
        cart = make_cart(item("A", 1, 100), total=1000)
        assert cart.total_amount == 1000

    def test_discount_cannot_exceed_total(self):
        with pytest.raises(ValidationError):
            Cart(items=[item("A", 1, 100)], discounted_amount=200)

    def test_item_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            item("A", 0, 100)


class TestCouponUnion:
    def test_variant_selected_by_type(self):
        cart = parse_coupon(_raw("cart", {"min_cart_value": 100}, {"type": "percentage", "value": 10}))
        product = parse_coupon(_raw("product", {"product_ids": ["A"]}, {"type": "fixed", "value": 5}))
        bxgy = parse_coupon(_raw("bxgy", {
            "buy_products": [{"product_id": "A", "quantity": 2}],
            "get_products": [{"product_id": "B", "quantity": 1}],
        }))
        assert isinstance(cart, CartWideCoupon)
        assert isinstance(product, ProductScopedCoupon)
        assert isinstance(bxgy, BuyXGetYCoupon)
        assert bxgy.coupon_type is CouponType.BUY_X_GET_Y

    def test_legacy_type_tags_are_normalized(self):
        coupon = parse_coupon(_raw("Product", {"categories": ["Books"]}, {"type": "percentage", "value": 5}))
        assert isinstance(coupon, ProductScopedCoupon)
        assert coupon.type == "product"

        coupon = parse_coupon(_raw("BxGy", {
            "buy_products": [{"product_id": "A", "quantity": 1}],
            "get_products": [{"product_id": "B", "quantity": 1}],
        }))
        assert coupon.type == "bxgy"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_coupon(_raw("mystery", {}, {"type": "fixed", "value": 5}))

    def test_conditions_must_match_type(self):
        with pytest.raises(ValidationError):
            parse_coupon(_raw("bxgy", {"min_cart_value": 100}))

    def test_product_conditions_need_a_target(self):
        with pytest.raises(ValidationError):
            parse_coupon(_raw("product", {"min_quantity": 2}, {"type": "fixed", "value": 5}))

    def test_cart_value_range_checked(self):
        with pytest.raises(ValidationError):
            parse_coupon(_raw("cart", {"min_cart_value": 500, "max_cart_value": 100},
                              {"type": "fixed", "value": 5}))

    def test_cart_coupon_needs_an_amount_discount(self):
        with pytest.raises(ValidationError):
            parse_coupon(_raw("cart", {}, {"type": "free_product"}))

    def test_bxgy_defaults_to_free_product(self):
        coupon = parse_coupon(_raw("bxgy", {
            "buy_products": [{"product_id": "A", "quantity": 2}],
            "get_products": [{"product_id": "B", "quantity": 1}],
        }))
        assert isinstance(coupon.discount_details, FreeProductDiscount)
        assert coupon.conditions.repetition_limit == 1

    def test_percentage_bounds(self):
        with pytest.raises(ValidationError):
            parse_coupon(_raw("cart", {}, {"type": "percentage", "value": 150}))

    def test_used_count_cannot_exceed_limit(self):
        with pytest.raises(ValidationError):
            parse_coupon(_raw("cart", {}, {"type": "fixed", "value": 5}, usage_limit=1, used_count=2))

    def test_naive_expiry_read_as_utc(self):
        coupon = parse_coupon(_raw("cart", {}, {"type": "fixed", "value": 5},
                                   expiry_date="2030-01-01T00:00:00"))
        assert coupon.expiry_date == datetime(2030, 1, 1, tzinfo=timezone.utc)


class TestCouponUpdate:
    def test_requires_a_field(self):
        with pytest.raises(ValidationError):
            CouponUpdate()

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            CouponUpdate(colour="red")

    def test_tracks_set_fields(self):
        update = CouponUpdate(is_active=False)
        assert update.model_dump(exclude_unset=True) == {"is_active": False}

    def test_used_count_not_updatable(self):
        with pytest.raises(ValidationError):
            CouponUpdate(used_count=0)

    def test_body_id_is_ignored(self):
        update = CouponUpdate(id="OTHER", name="Renamed")
        assert update.changes() == {"name": "Renamed"}

    def test_id_alone_is_not_an_update(self):
        with pytest.raises(ValidationError):
            CouponUpdate(id="OTHER")
