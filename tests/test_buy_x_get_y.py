"""Tests for the buy-X-get-Y strategy and its repetition/entitlement plan."""

from couponengine.core.models import CouponType
from couponengine.strategies import buy_x_get_y
from couponengine.strategies.buy_x_get_y import BuyXGetYStrategy, build_plan

from helpers import bxgy_coupon, item, make_cart

strategy = BuyXGetYStrategy()


class TestPlan:
    def test_entitlement_limited_by_stock_of_get_product(self):
        """Buy 2 A get 1 B, limit 2: A x5 earns 2 repetitions but only 1 B is in the cart."""
        cart = make_cart(item("A", 5, 100), item("B", 1, 300))
        coupon = bxgy_coupon(buy=[("A", 2)], get=[("B", 1)], repetition_limit=2)

        plan = build_plan(cart, coupon)
        assert plan.required_buy_qty == 2
        assert plan.total_buy_qty_in_cart == 5
        assert plan.max_repetitions == 2
        assert plan.actual_repetitions == 2
        assert plan.entitlement == 2
        assert plan.free_quantity == 1
        assert strategy.calculate_discount(cart, coupon) == 300

    def test_repetition_limit_caps_repetitions(self):
        cart = make_cart(item("A", 10, 100), item("B", 5, 300))
        coupon = bxgy_coupon(repetition_limit=2)

        plan = build_plan(cart, coupon)
        assert plan.max_repetitions == 5
        assert plan.actual_repetitions == 2
        assert plan.free_quantity == 2
        assert plan.discount == 600

    def test_buy_requirements_are_summed(self):
        cart = make_cart(item("A", 3, 100), item("C", 1, 50))
        coupon = bxgy_coupon(buy=[("A", 1), ("B", 1)], get=[("C", 1)], repetition_limit=5)

        plan = build_plan(cart, coupon)
        assert plan.required_buy_qty == 2
        assert plan.total_buy_qty_in_cart == 3
        assert plan.actual_repetitions == 1

    def test_get_entries_served_in_declared_order(self):
        cart = make_cart(item("A", 2, 100), item("B", 2, 300), item("C", 2, 50))

        c_first = bxgy_coupon(get=[("C", 1), ("B", 1)], repetition_limit=1)
        plan = build_plan(cart, c_first)
        assert plan.entitlement == 2
        assert [(g.product_id, g.free_quantity) for g in plan.grants] == [("C", 2)]
        assert plan.discount == 100

        b_first = bxgy_coupon(get=[("B", 1), ("C", 1)], repetition_limit=1)
        plan = build_plan(cart, b_first)
        assert [(g.product_id, g.free_quantity) for g in plan.grants] == [("B", 2)]
        assert plan.discount == 600

    def test_entitlement_spills_to_next_entry(self):
        cart = make_cart(item("A", 2, 100), item("B", 1, 300), item("C", 3, 50))
        coupon = bxgy_coupon(get=[("B", 1), ("C", 1)], repetition_limit=1)

        plan = build_plan(cart, coupon)
        assert [(g.product_id, g.free_quantity) for g in plan.grants] == [("B", 1), ("C", 1)]
        assert plan.discount == 350

    def test_duplicate_lines_filled_in_cart_order(self):
        cart = make_cart(item("A", 4, 100), item("B", 1, 300), item("B", 2, 300))
        coupon = bxgy_coupon(repetition_limit=3)

        plan = build_plan(cart, coupon)
        assert plan.entitlement == 2
        assert [(g.item_index, g.free_quantity) for g in plan.grants] == [(1, 1), (2, 1)]

    def test_repetitions_monotonic_and_grants_bounded(self):
        coupon = bxgy_coupon(buy=[("A", 3)], get=[("B", 2)], repetition_limit=3)
        previous = 0
        for quantity in range(1, 15):
            cart = make_cart(item("A", quantity, 100), item("B", 4, 200))
            plan = build_plan(cart, coupon)
            assert plan.actual_repetitions >= previous
            assert plan.free_quantity <= 4
            previous = plan.actual_repetitions
        assert previous == 3


class TestEligibility:
    def test_insufficient_buy_quantity(self):
        cart = make_cart(item("A", 1, 100), item("B", 1, 300))
        coupon = bxgy_coupon()
        assert strategy.is_applicable(cart, [coupon]) == []
        assert strategy.calculate_discount(cart, coupon) == 0

    def test_get_product_missing_from_cart(self):
        cart = make_cart(item("A", 4, 100))
        assert strategy.is_applicable(cart, [bxgy_coupon()]) == []

    def test_free_item_priced_zero_gives_no_candidate(self):
        cart = make_cart(item("A", 2, 100), item("B", 1, 0))
        assert strategy.is_applicable(cart, [bxgy_coupon()]) == []

    def test_candidate_reports_discount(self):
        cart = make_cart(item("A", 5, 100), item("B", 1, 300))
        candidates = strategy.is_applicable(cart, [bxgy_coupon()])
        assert len(candidates) == 1
        assert candidates[0].coupon_id == "B2G1"
        assert candidates[0].type is CouponType.BUY_X_GET_Y
        assert candidates[0].discount == 300


class TestApply:
    def test_writes_free_quantity_and_totals(self):
        cart = make_cart(item("A", 5, 100), item("B", 1, 300))
        updated = strategy.apply_discount(cart, bxgy_coupon())

        buy_line, free_line = updated.items
        assert free_line.free_quantity == 1
        assert free_line.total_discount == 300
        assert free_line.final_price == 0
        assert free_line.applied_coupon_ids == ["B2G1"]
        assert buy_line.free_quantity == 0
        assert buy_line.applied_coupon_ids == []
        assert updated.total_amount == 800
        assert updated.discounted_amount == 300
        assert updated.sub_total == 500

    def test_partial_free_quantity_keeps_invariant(self):
        cart = make_cart(item("A", 2, 100), item("B", 3, 250))
        updated = strategy.apply_discount(cart, bxgy_coupon())

        line = updated.items[1]
        assert line.free_quantity == 1
        assert line.final_price == line.quantity * line.price - line.total_discount == 500
        assert updated.sub_total == updated.total_amount - updated.discounted_amount

    def test_input_cart_untouched(self):
        cart = make_cart(item("A", 5, 100), item("B", 1, 300))
        before = cart.model_dump()
        strategy.apply_discount(cart, bxgy_coupon())
        assert cart.model_dump() == before

    def test_evaluation_is_pure_and_repeatable(self):
        cart = make_cart(item("A", 5, 100), item("B", 3, 300))
        coupon = bxgy_coupon(repetition_limit=2)
        cart_before = cart.model_dump()
        coupon_before = coupon.model_dump()

        first = strategy.is_applicable(cart, [coupon])
        second = strategy.is_applicable(cart, [coupon])

        assert first == second
        assert strategy.calculate_discount(cart, coupon) == strategy.calculate_discount(cart, coupon) == 600
        assert first[0].discount == 600
        assert cart.model_dump() == cart_before
        assert coupon.model_dump() == coupon_before

    def test_plan_built_once_per_coupon(self, monkeypatch):
        calls = []

        def counting_plan(cart, coupon):
            calls.append(coupon.id)
            return build_plan(cart, coupon)

        monkeypatch.setattr(buy_x_get_y, "build_plan", counting_plan)
        cart = make_cart(item("A", 4, 100), item("B", 2, 300))

        candidates = strategy.is_applicable(cart, [bxgy_coupon("B2G1"), bxgy_coupon("B5", buy=[("A", 5)])])

        assert [c.coupon_id for c in candidates] == ["B2G1"]
        assert calls == ["B2G1", "B5"]
