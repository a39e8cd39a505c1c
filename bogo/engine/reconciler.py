# bogo/engine/reconciler.py
from typing import Callable, Iterator, List, Tuple
from uuid import uuid4

from bogo.domain.bogo import CartLine, CartTotals, CouponInfo, FreeTag, Rule
from bogo.engine.auto_apply import AutoApplySelector
from bogo.engine.context import CartContext
from bogo.engine.eligibility import eligible_free_quantity, qualifies
from bogo.engine.errors import ConfigurationFault, LineRefused, RecursionFault
from bogo.engine.matcher import RuleMatcher
from bogo.engine.pricing import price_cart
from bogo.engine.quantities import QuantityAggregator, free_lines_for
from bogo.utils.logging import get_logger

logger = get_logger(__name__)

# free lines, (code, auto-applied) pairs, notice count
Snapshot = Tuple[List[CartLine], List[Tuple[str, bool]], int]


class BogoEngine:
    """
    Keeps the free lines of a cart in step with its paid contents.

    The host cart calls one transition per event:
    - on_item_added / on_item_removed / on_quantity_changed
    - on_coupon_applied / on_coupon_removed
    - validate (before checkout or display), calculate_totals

    Transitions never raise for business conditions, the outcome is reported
    through ``ctx.notices``. A transition re-entered past ``MAX_DEPTH`` aborts
    the whole outermost call, and the free lines and applied coupons go back
    to what they were when it started.
    """

    def __init__(self):
        self.auto_apply = AutoApplySelector(self)

    # =====================================================
    # TRANSITIONS
    # =====================================================
    def on_item_added(self, ctx: CartContext, product_ref: int, variant_ref: int | None = None,
                      tag: FreeTag | None = None) -> None:
        if tag is not None:
            # free lines are written by the engine, they never trigger it
            return
        self._guarded(ctx, "on_item_added", lambda: self._item_added(ctx, product_ref, variant_ref))

    def on_item_removed(self, ctx: CartContext, line: CartLine) -> None:
        if line.is_free:
            return
        self._guarded(ctx, "on_item_removed", lambda: self._sweep(ctx))

    def on_quantity_changed(self, ctx: CartContext, line: CartLine) -> None:
        if line.is_free:
            return
        self._guarded(ctx, "on_quantity_changed", lambda: self._sweep(ctx))

    def on_coupon_applied(self, ctx: CartContext, code: str) -> bool:
        """
        Grants the free items of a freshly applied coupon.
        Returns False when the coupon is misconfigured and must not stay applied.
        """
        return self._guarded(ctx, "on_coupon_applied", lambda: self._coupon_applied(ctx, code), fallback=True)

    def on_coupon_removed(self, ctx: CartContext, code: str) -> None:
        self._guarded(ctx, "on_coupon_removed", lambda: self._coupon_removed(ctx, code))

    def validate(self, ctx: CartContext) -> bool:
        """
        Drops free lines whose coupon is gone or whose rule no longer holds.
        Returns True when something was removed.
        """
        return self._guarded(ctx, "validate", lambda: self._validate(ctx), fallback=False)

    def calculate_totals(self, ctx: CartContext) -> CartTotals:
        self._guarded(ctx, "calculate_totals", lambda: self._totals_auto_apply(ctx))
        return price_cart(ctx.cart.list_lines(), ctx.products, ctx.settings)

    # =====================================================
    # RECURSION GUARD
    # =====================================================
    def _guarded(self, ctx: CartContext, name: str, body: Callable, fallback=None):
        if ctx.depth > 0:
            # nested call, a fault belongs to the outermost transition
            with ctx.enter(name):
                return body()

        snapshot = self._snapshot(ctx)
        try:
            with ctx.enter(name):
                return body()
        except RecursionFault as e:
            self._recursion_fault(e)
            self._restore(ctx, snapshot)
            return fallback

    @staticmethod
    def _snapshot(ctx: CartContext) -> Snapshot:
        free = [line for line in ctx.cart.list_lines() if line.is_free]
        coupons = [(code, ctx.cart.is_auto_applied(code)) for code in ctx.cart.list_applied_coupons()]
        return free, coupons, len(ctx.notices)

    @staticmethod
    def _restore(ctx: CartContext, snapshot: Snapshot) -> None:
        free_before, coupons_before, notice_count = snapshot
        before = {line.id: line for line in free_before}
        current = {line.id: line for line in ctx.cart.list_lines() if line.is_free}

        for line_id, line in current.items():
            if line_id not in before:
                ctx.cart.remove_line(line_id)
            elif line.quantity != before[line_id].quantity:
                ctx.cart.set_line_quantity(line_id, before[line_id].quantity)

        for line_id, line in before.items():
            if line_id in current:
                continue
            try:
                ctx.cart.add_line(line.product_ref, line.variant_ref, line.quantity, line.free)
            except LineRefused as e:
                logger.warning(f"Could not restore free line {line_id}: {e.reason}")

        applied = ctx.cart.list_applied_coupons()
        codes_before = dict(coupons_before)
        for code in applied:
            if code not in codes_before:
                ctx.cart.remove_coupon(code)
        for code, auto in coupons_before:
            if code not in applied:
                ctx.cart.apply_coupon(code, auto=auto)

        # notices of the aborted pass describe changes that were rolled back
        del ctx.notices[notice_count:]
        logger.info("Cart restored to its state before the aborted BOGO pass")

    # =====================================================
    # INTERNALS
    # =====================================================
    def _item_added(self, ctx: CartContext, product_ref: int, variant_ref: int | None) -> None:
        logger.debug(f"Item added: product={product_ref} variant={variant_ref}")
        self.auto_apply.run(ctx)

        if not ctx.settings.auto_add_enabled:
            return

        agg = self._aggregator(ctx)
        for coupon in self._applied_bogo_coupons(ctx):
            for rule in ctx.rules.get_rules(coupon.id):
                if agg.matcher.matches(rule, product_ref, variant_ref):
                    self._reconcile_rule(ctx, coupon, rule, agg)

    def _coupon_applied(self, ctx: CartContext, code: str) -> bool:
        coupon = ctx.coupons.get_coupon(code)
        if coupon is None or not coupon.is_bogo:
            return True

        logger.info(f"Processing BOGO coupon {coupon.code} (id {coupon.id})")
        return self._process_coupon(ctx, coupon, announce=True)

    def _coupon_removed(self, ctx: CartContext, code: str) -> None:
        for line in ctx.cart.list_lines():
            if line.is_free and line.free.coupon_code == code:
                logger.info(f"Removing free line {line.id} of coupon {code}")
                ctx.cart.remove_line(line.id)

    def _validate(self, ctx: CartContext) -> bool:
        changed = False
        lines = ctx.cart.list_lines()
        applied = set(ctx.cart.list_applied_coupons())
        agg = self._aggregator(ctx)

        for line in lines:
            if not line.is_free:
                continue

            if line.free.coupon_code not in applied or not self._rule_still_holds(ctx, agg, lines, line):
                logger.info(
                    f"Free line {line.id} (coupon {line.free.coupon_code}, rule {line.free.rule_id}) "
                    f"no longer valid, removing"
                )
                ctx.cart.remove_line(line.id)
                changed = True
        return changed

    def _totals_auto_apply(self, ctx: CartContext) -> None:
        # auto-apply runs once per totals pass, never from a nested one
        if ctx.in_totals:
            return
        ctx.in_totals = True
        try:
            self.auto_apply.run(ctx)
        finally:
            ctx.in_totals = False

    def _sweep(self, ctx: CartContext) -> None:
        self._rebuild(ctx)
        self.auto_apply.run(ctx)

    def _rebuild(self, ctx: CartContext) -> None:
        """Clear every free line, then re-grant per applied coupon in application order."""
        for line in ctx.cart.list_lines():
            if line.is_free:
                ctx.cart.remove_line(line.id)

        for coupon in self._applied_bogo_coupons(ctx):
            self._process_coupon(ctx, coupon, announce=False)

    def _process_coupon(self, ctx: CartContext, coupon: CouponInfo, announce: bool) -> bool:
        if not ctx.settings.auto_add_enabled:
            ctx.notify("notice", "BOGO auto-add is disabled in settings.")
            return True

        try:
            rules = self._rules_for(ctx, coupon)
        except ConfigurationFault as e:
            logger.error(str(e))
            ctx.notify("error", "No BOGO rules found for this coupon.")
            return False

        agg = self._aggregator(ctx)
        paid = [line for line in ctx.cart.list_lines() if not line.is_free]
        if not any(agg.matcher.matches(rule, l.product_ref, l.variant_ref) for rule in rules for l in paid):
            if announce:
                ctx.notify("notice", "No eligible products in cart for BOGO offer.")
            return True

        for rule in rules:
            self._reconcile_rule(ctx, coupon, rule, agg)
        return True

    def _reconcile_rule(self, ctx: CartContext, coupon: CouponInfo, rule: Rule, agg: QuantityAggregator) -> None:
        lines = ctx.cart.list_lines()
        bought = agg.bought_quantity(lines, rule.buy_product_ref)
        already_free = agg.free_quantity(lines, rule.get_product_ref, coupon.code)
        eligible = eligible_free_quantity(rule, bought)
        delta = eligible - already_free

        logger.debug(
            f"Rule {rule.id} of {coupon.code}: bought={bought} already_free={already_free} "
            f"eligible={eligible} delta={delta}"
        )

        if delta > 0:
            self._add_free(ctx, coupon, rule, delta)
        elif delta < 0:
            self._shrink_free(ctx, free_lines_for(lines, rule.get_product_ref, coupon.code), eligible)

    def _add_free(self, ctx: CartContext, coupon: CouponInfo, rule: Rule, quantity: int) -> None:
        info = ctx.products.resolve(rule.get_product_ref)
        name = info.display_name if info and info.display_name else "Product"

        if info is None or not info.exists or not info.in_stock:
            logger.warning(f"Free product {rule.get_product_ref} of rule {rule.id} unavailable, not added")
            ctx.notify("warning", f'The free product "{name}" is out of stock and cannot be added.')
            return

        if info.is_variant:
            product_ref, variant_ref = info.parent_ref, info.ref
        else:
            product_ref, variant_ref = info.ref, None

        tag = FreeTag(
            coupon_code=coupon.code,
            rule_id=rule.id,
            discount_percentage=rule.discount_percentage,
            unique_key=uuid4().hex,
        )

        try:
            line_id = ctx.cart.add_line(product_ref, variant_ref, quantity, tag)
        except LineRefused as e:
            logger.warning(f"Cart refused free product {rule.get_product_ref}: {e.reason}")
            ctx.notify("warning", f'The free product "{name}" cannot be added: {e.reason}')
            return

        logger.info(f"Added free line {line_id}: {quantity} x {rule.get_product_ref} (rule {rule.id})")
        ctx.notify("success", f'Free product "{name}" has been added to your cart!')

    def _shrink_free(self, ctx: CartContext, lines: List[CartLine], eligible: int) -> None:
        keep = eligible
        for line in lines:
            if keep >= line.quantity:
                keep -= line.quantity
            elif keep > 0:
                logger.info(f"Free line {line.id}: quantity {line.quantity} -> {keep}")
                ctx.cart.set_line_quantity(line.id, keep)
                keep = 0
            else:
                logger.info(f"Free line {line.id} no longer earned, removing")
                ctx.cart.remove_line(line.id)

    def _rule_still_holds(self, ctx: CartContext, agg: QuantityAggregator, lines: List[CartLine],
                          line: CartLine) -> bool:
        coupon = ctx.coupons.get_coupon(line.free.coupon_code)
        if coupon is None:
            return False

        for rule in ctx.rules.get_rules(coupon.id):
            if rule.id == line.free.rule_id:
                return qualifies(rule, agg.bought_quantity(lines, rule.buy_product_ref))
        return False

    @staticmethod
    def _rules_for(ctx: CartContext, coupon: CouponInfo) -> List[Rule]:
        rules = ctx.rules.get_rules(coupon.id)
        if not rules:
            raise ConfigurationFault(f"BOGO coupon {coupon.code} has no rules")
        return rules

    def _applied_bogo_coupons(self, ctx: CartContext) -> Iterator[CouponInfo]:
        for code in ctx.cart.list_applied_coupons():
            coupon = ctx.coupons.get_coupon(code)
            if coupon is not None and coupon.is_bogo:
                yield coupon

    @staticmethod
    def _aggregator(ctx: CartContext) -> QuantityAggregator:
        return QuantityAggregator(RuleMatcher(ctx.products))

    @staticmethod
    def _recursion_fault(e: RecursionFault) -> None:
        logger.error(f"BOGO evaluation aborted: {e}")
