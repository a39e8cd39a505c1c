# bogo/engine/quantities.py
from typing import Iterable, List

from bogo.domain.bogo import CartLine
from bogo.engine.matcher import RuleMatcher


def free_lines_for(lines: Iterable[CartLine], product_ref: int, coupon_code: str) -> List[CartLine]:
    return [
        line for line in lines
        if line.is_free and line.free.coupon_code == coupon_code and line.ref == product_ref
    ]


class QuantityAggregator:
    def __init__(self, matcher: RuleMatcher):
        self.matcher = matcher

    def bought_quantity(self, lines: Iterable[CartLine], target_ref: int) -> int:
        """Paid units counting towards a buy target (parent targets expand to variants)."""
        return sum(
            line.quantity for line in lines
            if not line.is_free
            and self.matcher.target_matches(target_ref, line.product_ref, line.variant_ref)
        )

    def free_quantity(self, lines: Iterable[CartLine], product_ref: int, coupon_code: str) -> int:
        # exact match only, free lines are created against the rule's get product
        return sum(line.quantity for line in free_lines_for(lines, product_ref, coupon_code))
