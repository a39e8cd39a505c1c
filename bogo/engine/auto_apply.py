# bogo/engine/auto_apply.py
from typing import TYPE_CHECKING, List

from bogo.domain.bogo import CartLine, CouponInfo, Rule
from bogo.engine.context import CartContext
from bogo.engine.eligibility import qualifies
from bogo.engine.matcher import RuleMatcher
from bogo.engine.quantities import QuantityAggregator
from bogo.utils.logging import get_logger

if TYPE_CHECKING:
    from bogo.engine.reconciler import BogoEngine

logger = get_logger(__name__)


class AutoApplySelector:
    """
    Applies BOGO coupons the cart qualifies for and takes back the ones it
    applied earlier once they stop qualifying. Qualification compares the raw
    bought quantity with ``buy_quantity``; the free-quantity cap plays no part.
    """

    def __init__(self, engine: "BogoEngine"):
        self.engine = engine

    def wants_auto_apply(self, ctx: CartContext, coupon: CouponInfo) -> bool:
        if not ctx.settings.auto_apply_enabled:
            return False
        # unset per-coupon flag means enabled
        return coupon.auto_apply is None or coupon.auto_apply

    def cart_qualifies(self, agg: QuantityAggregator, lines: List[CartLine], rules: List[Rule]) -> bool:
        return any(qualifies(rule, agg.bought_quantity(lines, rule.buy_product_ref)) for rule in rules)

    def run(self, ctx: CartContext) -> None:
        if not ctx.settings.auto_apply_enabled:
            return

        agg = QuantityAggregator(RuleMatcher(ctx.products))
        self._apply_qualifying(ctx, agg)
        self._remove_unqualified(ctx, agg)

    def _apply_qualifying(self, ctx: CartContext, agg: QuantityAggregator) -> None:
        applied = set(ctx.cart.list_applied_coupons())

        for coupon in ctx.coupons.list_bogo_coupons():
            if coupon.code in applied or not self.wants_auto_apply(ctx, coupon):
                continue

            rules = ctx.rules.get_rules(coupon.id)
            if not rules or not self.cart_qualifies(agg, ctx.cart.list_lines(), rules):
                continue

            if not ctx.cart.apply_coupon(coupon.code, auto=True):
                logger.info(f"Cart refused auto-apply of {coupon.code}")
                continue

            logger.info(f"Auto-applied BOGO coupon {coupon.code}")
            ctx.notify("success", f'BOGO offer "{coupon.code}" has been automatically applied!')
            self.engine.on_coupon_applied(ctx, coupon.code)

    def _remove_unqualified(self, ctx: CartContext, agg: QuantityAggregator) -> None:
        for code in ctx.cart.list_applied_coupons():
            if not ctx.cart.is_auto_applied(code):
                continue

            coupon = ctx.coupons.get_coupon(code)
            if coupon is None or not coupon.is_bogo or not self.wants_auto_apply(ctx, coupon):
                continue

            rules = ctx.rules.get_rules(coupon.id)
            if self.cart_qualifies(agg, ctx.cart.list_lines(), rules):
                continue

            ctx.cart.remove_coupon(code)
            logger.info(f"Auto-removed BOGO coupon {code}")
            ctx.notify("notice", f'BOGO offer "{code}" has been removed as you no longer qualify.')
            self.engine.on_coupon_removed(ctx, code)
