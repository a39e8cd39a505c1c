# tests/fakes.py
from decimal import Decimal
from typing import Dict, List

from bogo.domain.bogo import (
    BOGO_DISCOUNT_TYPE,
    CartLine,
    CouponInfo,
    EngineSettings,
    FreeTag,
    ProductInfo,
    Rule,
    RuleInput,
)
from bogo.engine import BogoEngine, CartContext, LineRefused


class FakeProducts:
    def __init__(self):
        self.products: Dict[int, ProductInfo] = {}

    def add(self, ref, price="10.00", name=None, parent=None, in_stock=True) -> ProductInfo:
        info = ProductInfo(
            ref=ref,
            is_variant=parent is not None,
            parent_ref=parent,
            in_stock=in_stock,
            price=Decimal(price),
            display_name=name or f"Product {ref}",
        )
        self.products[ref] = info
        return info

    def resolve(self, product_ref):
        return self.products.get(product_ref)


class FakeCoupons:
    def __init__(self):
        self.by_code: Dict[str, CouponInfo] = {}

    def add(self, code, discount_type=BOGO_DISCOUNT_TYPE, valid=True, auto_apply=None) -> CouponInfo:
        coupon = CouponInfo(
            id=len(self.by_code) + 1,
            code=code,
            discount_type=discount_type,
            valid=valid,
            auto_apply=auto_apply,
        )
        self.by_code[code] = coupon
        return coupon

    def get_coupon(self, code):
        return self.by_code.get(code)

    def list_bogo_coupons(self):
        return [c for c in self.by_code.values() if c.is_bogo and c.valid]


class FakeRuleStore:
    def __init__(self):
        self.rules: Dict[int, List[Rule]] = {}
        self._next_id = 1

    def add_rule(self, coupon_id, buy, get, buy_qty=1, get_qty=1, discount="100", max_free=None) -> Rule:
        rule = Rule(
            id=self._next_id,
            coupon_id=coupon_id,
            buy_product_ref=buy,
            buy_quantity=buy_qty,
            get_product_ref=get,
            get_quantity=get_qty,
            discount_percentage=Decimal(discount),
            max_free_quantity=max_free,
        )
        self._next_id += 1
        self.rules.setdefault(coupon_id, []).append(rule)
        return rule

    def get_rules(self, coupon_id):
        return list(self.rules.get(coupon_id, []))

    def replace_rules(self, coupon_id, rules: List[RuleInput]):
        self.rules[coupon_id] = []
        for r in rules:
            self.add_rule(
                coupon_id, r.buy_product_ref, r.get_product_ref, r.buy_quantity, r.get_quantity,
                str(r.discount_percentage), r.max_free_quantity,
            )
        return self.get_rules(coupon_id)


class InMemoryCart:
    def __init__(self, coupons: FakeCoupons):
        self.coupons = coupons
        self.lines: Dict[int, CartLine] = {}
        self.applied: List[str] = []
        self.auto: set = set()
        self.refuse: set = set()
        self._next_id = 1

    # CartSink
    def add_line(self, product_ref, variant_ref, quantity, tag: FreeTag | None) -> int:
        if (variant_ref or product_ref) in self.refuse:
            raise LineRefused("not purchasable")
        line = CartLine(id=self._next_id, product_ref=product_ref, variant_ref=variant_ref,
                        quantity=quantity, free=tag)
        self.lines[line.id] = line
        self._next_id += 1
        return line.id

    def set_line_quantity(self, line_id, quantity):
        if quantity <= 0:
            self.lines.pop(line_id, None)
        else:
            self.lines[line_id] = self.lines[line_id].model_copy(update={"quantity": quantity})

    def remove_line(self, line_id):
        self.lines.pop(line_id, None)

    def list_lines(self):
        return list(self.lines.values())

    def list_applied_coupons(self):
        return list(self.applied)

    def apply_coupon(self, code, auto=False):
        coupon = self.coupons.get_coupon(code)
        if coupon is None or not coupon.valid or code in self.applied:
            return False
        self.applied.append(code)
        if auto:
            self.auto.add(code)
        return True

    def remove_coupon(self, code):
        if code in self.applied:
            self.applied.remove(code)
        self.auto.discard(code)

    def is_auto_applied(self, code):
        return code in self.auto

    # helpers
    def add_paid(self, product_ref, quantity, variant_ref=None) -> CartLine:
        for line in self.lines.values():
            if not line.is_free and line.product_ref == product_ref and line.variant_ref == variant_ref:
                self.set_line_quantity(line.id, line.quantity + quantity)
                return self.lines[line.id]
        line_id = self.add_line(product_ref, variant_ref, quantity, None)
        return self.lines[line_id]

    def paid_lines(self):
        return [l for l in self.lines.values() if not l.is_free]

    def free_lines(self):
        return [l for l in self.lines.values() if l.is_free]

    def state(self):
        """Cart contents without ids or merge tokens."""
        return [
            (l.product_ref, l.variant_ref, l.quantity,
             l.free.coupon_code if l.free else None,
             l.free.rule_id if l.free else None)
            for l in self.lines.values()
        ]


class RecordingUsageSink:
    def __init__(self):
        self.records = []

    def record(self, rule_id, order_id, user_id, free_quantity):
        self.records.append((rule_id, order_id, user_id, free_quantity))


class Shop:
    """Engine wired to the fakes plus the few host actions the tests need."""

    def __init__(self, **settings):
        settings.setdefault("auto_apply_enabled", False)
        self.products = FakeProducts()
        self.coupons = FakeCoupons()
        self.rules = FakeRuleStore()
        self.cart = InMemoryCart(self.coupons)
        self.engine = BogoEngine()
        self.ctx = CartContext(self.cart, self.products, self.rules, self.coupons, EngineSettings(**settings))

    def add(self, ref, quantity=1) -> CartLine:
        info = self.products.resolve(ref)
        if info.is_variant:
            line = self.cart.add_paid(info.parent_ref, quantity, variant_ref=info.ref)
        else:
            line = self.cart.add_paid(ref, quantity)
        self.engine.on_item_added(self.ctx, line.product_ref, line.variant_ref)
        return line

    def remove(self, line_id):
        line = self.cart.lines[line_id]
        self.cart.remove_line(line_id)
        self.engine.on_item_removed(self.ctx, line)

    def set_quantity(self, line_id, quantity):
        self.cart.set_line_quantity(line_id, quantity)
        self.engine.on_quantity_changed(self.ctx, self.cart.lines[line_id])

    def apply(self, code) -> bool:
        if not self.cart.apply_coupon(code):
            return False
        if not self.engine.on_coupon_applied(self.ctx, code):
            self.cart.remove_coupon(code)
        return True

    def remove_coupon(self, code):
        self.cart.remove_coupon(code)
        self.engine.on_coupon_removed(self.ctx, code)

    def free_quantity(self, ref, code=None):
        return sum(
            l.quantity for l in self.cart.free_lines()
            if l.ref == ref and (code is None or l.free.coupon_code == code)
        )

    def notices(self, level=None):
        return [n.message for n in self.ctx.notices if level is None or n.level == level]
