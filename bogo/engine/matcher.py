# bogo/engine/matcher.py
from bogo.domain.bogo import Rule
from bogo.engine.ports import ProductLookup


class RuleMatcher:
    """
    Decides whether a rule target covers a cart line.

    A variant target matches only that exact variant. A parent (or simple)
    target matches the product itself and any variant whose parent it is.
    """

    def __init__(self, products: ProductLookup):
        self.products = products

    def is_variant(self, ref: int) -> bool:
        info = self.products.resolve(ref)
        return bool(info and info.is_variant)

    def parent_of(self, variant_ref: int) -> int | None:
        info = self.products.resolve(variant_ref)
        return info.parent_ref if info else None

    def target_matches(self, target_ref: int, product_ref: int, variant_ref: int | None = None) -> bool:
        if self.is_variant(target_ref):
            return variant_ref == target_ref

        if product_ref == target_ref:
            return True

        if variant_ref:
            return self.parent_of(variant_ref) == target_ref
        return False

    def matches(self, rule: Rule, product_ref: int, variant_ref: int | None = None) -> bool:
        return self.target_matches(rule.buy_product_ref, product_ref, variant_ref)
