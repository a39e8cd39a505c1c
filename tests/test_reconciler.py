# tests/test_reconciler.py
import logging
from decimal import Decimal

import pytest

from bogo.domain.bogo import FreeTag, RuleInput
from bogo.engine import MAX_DEPTH, RecursionFault
from bogo.engine.pricing import price_cart
from tests.fakes import InMemoryCart, Shop


def test_buy_two_get_one_scenario(shop):
    p1 = shop.add(1)
    assert shop.apply("BOGO")
    assert shop.cart.free_lines() == []

    shop.add(1)
    assert shop.free_quantity(2) == 1
    assert 'Free product "Mouse" has been added to your cart!' in shop.notices("success")

    totals = price_cart(shop.cart.list_lines(), shop.products, shop.ctx.settings)
    free = shop.cart.free_lines()[0]
    priced = {t.line_id: t for t in totals.lines}
    assert priced[free.id].unit_price == Decimal("0.00")
    assert priced[free.id].label == "FREE - BOGO Offer"
    assert totals.total == Decimal("20.00")

    shop.set_quantity(p1.id, 1)
    assert shop.cart.free_lines() == []

    shop.add(1)
    assert shop.free_quantity(2) == 1


def test_free_line_carries_full_tag(shop):
    shop.add(1, 2)
    shop.apply("BOGO")

    [line] = shop.cart.free_lines()
    rule = shop.rules.get_rules(1)[0]
    assert line.free.coupon_code == "BOGO"
    assert line.free.rule_id == rule.id
    assert line.free.discount_percentage == Decimal("100")
    assert line.free.unique_key


def test_apply_twice_changes_nothing(shop):
    shop.add(1, 4)
    shop.apply("BOGO")
    before = shop.cart.list_lines()

    assert shop.engine.on_coupon_applied(shop.ctx, "BOGO")
    assert shop.cart.list_lines() == before


def test_sweep_twice_yields_same_state(shop):
    line = shop.add(1, 4)
    shop.apply("BOGO")

    shop.set_quantity(line.id, 3)
    first = shop.cart.state()
    shop.engine.on_quantity_changed(shop.ctx, shop.cart.lines[line.id])
    assert shop.cart.state() == first
    assert shop.free_quantity(2) == 1


def test_apply_then_remove_restores_paid_lines(shop):
    shop.add(1, 3)
    shop.add(2, 1)
    paid = shop.cart.list_lines()

    shop.apply("BOGO")
    assert shop.free_quantity(2) == 1

    shop.remove_coupon("BOGO")
    assert shop.cart.list_lines() == paid


def test_removing_one_coupon_keeps_the_others_free_lines(shop):
    other = shop.coupons.add("MORE")
    shop.rules.add_rule(other.id, buy=1, get=2, buy_qty=1, get_qty=1)
    shop.add(1, 2)
    shop.apply("BOGO")
    shop.apply("MORE")
    assert shop.free_quantity(2, "BOGO") == 1
    assert shop.free_quantity(2, "MORE") == 2

    shop.remove_coupon("BOGO")
    assert shop.free_quantity(2, "BOGO") == 0
    assert shop.free_quantity(2, "MORE") == 2


def test_parent_rule_counts_all_variants(variable_shop):
    s = variable_shop
    coupon = s.coupons.add("SHIRTS")
    s.rules.add_rule(coupon.id, buy=10, get=2, buy_qty=2)
    s.apply("SHIRTS")

    s.add(11)
    assert s.free_quantity(2) == 0
    s.add(12)
    assert s.free_quantity(2) == 1


def test_variant_rule_ignores_sibling_variants(variable_shop):
    s = variable_shop
    coupon = s.coupons.add("RED")
    s.rules.add_rule(coupon.id, buy=11, get=2, buy_qty=2)
    s.apply("RED")

    s.add(11)
    s.add(12)
    assert s.free_quantity(2) == 0


def test_free_variant_is_stored_under_its_parent(variable_shop):
    s = variable_shop
    coupon = s.coupons.add("SHIRT4MOUSE")
    s.rules.add_rule(coupon.id, buy=2, get=12)
    s.add(2)
    s.apply("SHIRT4MOUSE")

    [line] = s.cart.free_lines()
    assert (line.product_ref, line.variant_ref, line.quantity) == (10, 12, 1)


def test_cap_limits_granted_units(shop):
    coupon = shop.coupons.add("ONCE")
    shop.rules.add_rule(coupon.id, buy=1, get=2, buy_qty=1, max_free=1)
    shop.add(1, 9)
    shop.apply("ONCE")
    assert shop.free_quantity(2, "ONCE") == 1


def test_out_of_stock_free_product_is_reported(shop):
    shop.products.add(2, price="5.00", name="Mouse", in_stock=False)
    shop.add(1, 2)
    paid = shop.cart.list_lines()

    assert shop.apply("BOGO")
    assert shop.cart.list_lines() == paid
    assert shop.notices("warning") == ['The free product "Mouse" is out of stock and cannot be added.']


def test_refused_line_does_not_stop_other_rules(shop):
    shop.products.add(3, price="2.00", name="Pad")
    shop.rules.add_rule(1, buy=1, get=3, buy_qty=1)
    shop.cart.refuse.add(2)
    shop.add(1, 2)

    shop.apply("BOGO")
    assert shop.free_quantity(2) == 0
    assert shop.free_quantity(3) == 2
    assert any("cannot be added" in m for m in shop.notices("warning"))


def test_coupon_without_rules_is_a_configuration_fault():
    s = Shop()
    s.products.add(1)
    s.coupons.add("EMPTY")
    s.add(1, 3)
    paid = s.cart.list_lines()

    assert s.apply("EMPTY")
    assert s.cart.list_applied_coupons() == []
    assert s.cart.list_lines() == paid
    assert s.notices("error") == ["No BOGO rules found for this coupon."]


def test_no_eligible_products_notice(shop):
    shop.products.add(7)
    shop.add(7)

    assert shop.apply("BOGO")
    assert shop.cart.list_applied_coupons() == ["BOGO"]
    assert shop.cart.free_lines() == []
    assert shop.notices("notice") == ["No eligible products in cart for BOGO offer."]


def test_non_bogo_coupon_is_ignored(shop):
    shop.coupons.add("TENOFF", discount_type="percent")
    shop.add(1, 2)
    assert shop.engine.on_coupon_applied(shop.ctx, "TENOFF")
    assert shop.cart.free_lines() == []


def test_auto_add_disabled():
    s = Shop(auto_add_enabled=False)
    s.products.add(1)
    s.products.add(2)
    coupon = s.coupons.add("BOGO")
    s.rules.add_rule(coupon.id, buy=1, get=2)
    s.add(1, 2)

    assert s.apply("BOGO")
    s.add(1)
    assert s.cart.free_lines() == []
    assert s.notices("notice") == ["BOGO auto-add is disabled in settings."]


def test_tagged_addition_does_not_trigger_evaluation(shop):
    shop.apply("BOGO")
    shop.cart.add_paid(1, 2)

    tag = FreeTag(coupon_code="BOGO", rule_id=1, discount_percentage=Decimal("100"), unique_key="k")
    shop.engine.on_item_added(shop.ctx, 2, None, tag=tag)
    assert shop.cart.free_lines() == []

    shop.engine.on_item_added(shop.ctx, 1, None)
    assert shop.free_quantity(2) == 1


def test_surplus_free_units_are_trimmed(shop):
    coupon = shop.coupons.add("EACH")
    shop.rules.add_rule(coupon.id, buy=1, get=2)
    line = shop.add(1, 3)
    shop.apply("EACH")
    assert shop.free_quantity(2, "EACH") == 3

    # paid quantity drops behind the engine's back, next addition trims
    shop.cart.set_line_quantity(line.id, 1)
    shop.engine.on_item_added(shop.ctx, 1, None)
    assert shop.free_quantity(2, "EACH") == 1


def test_removing_buy_line_clears_free_lines(shop):
    line = shop.add(1, 2)
    shop.apply("BOGO")
    assert shop.free_quantity(2) == 1

    shop.remove(line.id)
    assert shop.cart.list_lines() == []


def test_free_line_events_are_ignored(shop):
    shop.add(1, 2)
    shop.apply("BOGO")
    [free] = shop.cart.free_lines()

    shop.engine.on_quantity_changed(shop.ctx, free)
    shop.engine.on_item_removed(shop.ctx, free)
    assert shop.cart.free_lines() == [free]


def test_rebuild_follows_coupon_application_order(shop):
    other = shop.coupons.add("MORE")
    shop.rules.add_rule(other.id, buy=1, get=2, buy_qty=1)
    line = shop.add(1, 2)
    shop.apply("MORE")
    shop.apply("BOGO")

    shop.set_quantity(line.id, 4)
    codes = [l.free.coupon_code for l in shop.cart.free_lines()]
    assert codes == ["MORE", "BOGO"]
    assert shop.free_quantity(2, "MORE") == 4
    assert shop.free_quantity(2, "BOGO") == 2


def test_validate_drops_lines_of_missing_coupons(shop):
    shop.add(1, 2)
    shop.apply("BOGO")
    shop.cart.applied.remove("BOGO")

    assert shop.engine.validate(shop.ctx)
    assert shop.cart.free_lines() == []
    assert not shop.engine.validate(shop.ctx)


def test_validate_drops_lines_of_replaced_rules(shop):
    shop.add(1, 2)
    shop.apply("BOGO")
    shop.rules.replace_rules(1, [RuleInput(buy_product_ref=1, buy_quantity=2, get_product_ref=2)])

    assert shop.engine.validate(shop.ctx)
    assert shop.cart.free_lines() == []


def test_validate_keeps_lines_that_still_hold(shop):
    shop.add(1, 2)
    shop.apply("BOGO")
    before = shop.cart.list_lines()

    assert not shop.engine.validate(shop.ctx)
    assert shop.cart.list_lines() == before


def test_validate_drops_lines_once_rule_stops_qualifying(shop):
    line = shop.add(1, 2)
    shop.apply("BOGO")
    shop.cart.set_line_quantity(line.id, 1)

    assert shop.engine.validate(shop.ctx)
    assert shop.cart.free_lines() == []


def test_call_past_depth_cap_raises_without_mutation(shop):
    shop.add(1, 2)
    shop.cart.apply_coupon("BOGO")
    shop.ctx.depth = MAX_DEPTH

    with pytest.raises(RecursionFault):
        shop.engine.on_coupon_applied(shop.ctx, "BOGO")

    assert shop.cart.free_lines() == []
    assert shop.ctx.depth == MAX_DEPTH


class ReentrantCart(InMemoryCart):
    """Fires the coupon hook again from inside add_line, before storing the line."""

    def __init__(self, coupons, engine):
        super().__init__(coupons)
        self.engine = engine
        self.ctx = None
        self.hook_calls = 0

    def add_line(self, product_ref, variant_ref, quantity, tag):
        if tag is not None:
            self.hook_calls += 1
            self.engine.on_coupon_applied(self.ctx, tag.coupon_code)
        return super().add_line(product_ref, variant_ref, quantity, tag)


class ChainingCart(InMemoryCart):
    """Stores each free line, then fires the hook of the next coupon in the chain."""

    def __init__(self, coupons, engine, chain):
        super().__init__(coupons)
        self.engine = engine
        self.chain = chain
        self.ctx = None

    def add_line(self, product_ref, variant_ref, quantity, tag):
        line_id = super().add_line(product_ref, variant_ref, quantity, tag)
        if tag is not None:
            self.engine.on_coupon_applied(self.ctx, self.chain[tag.coupon_code])
        return line_id


def attach(shop, cart):
    shop.cart = cart
    shop.ctx.cart = cart
    cart.ctx = shop.ctx
    return cart


def test_reentrant_host_never_over_grants(shop, caplog):
    cart = attach(shop, ReentrantCart(shop.coupons, shop.engine))
    cart.add_paid(1, 2)
    cart.apply_coupon("BOGO")
    before = cart.state()

    with caplog.at_level(logging.ERROR, logger="bogo"):
        assert shop.engine.on_coupon_applied(shop.ctx, "BOGO")

    assert cart.hook_calls == MAX_DEPTH
    assert "aborted" in caplog.text
    assert shop.ctx.depth == 0
    assert shop.free_quantity(2) <= 1
    assert cart.state() == before


def test_aborted_pass_rolls_back_stored_free_lines(shop, caplog):
    other = shop.coupons.add("MORE")
    shop.rules.add_rule(other.id, buy=1, get=2, buy_qty=1)
    cart = attach(shop, ChainingCart(shop.coupons, shop.engine, {"BOGO": "MORE", "MORE": "BOGO"}))
    cart.add_paid(1, 2)
    cart.apply_coupon("BOGO")
    cart.apply_coupon("MORE")
    before = cart.state()

    with caplog.at_level(logging.ERROR, logger="bogo"):
        shop.engine.on_coupon_applied(shop.ctx, "BOGO")

    assert "aborted" in caplog.text
    assert cart.state() == before
    assert cart.list_applied_coupons() == ["BOGO", "MORE"]
    assert shop.ctx.notices == []
