# bogo/engine/ports.py
"""Collaborator contracts the engine depends on.

Everything the engine touches outside of itself goes through one of these.
The SQLAlchemy/HTTP implementations live in ``bogo.services`` and
``bogo.repos``; the test-suite uses in-memory versions.
"""
from typing import List, Protocol, Sequence

from bogo.domain.bogo import CartLine, CouponInfo, FreeTag, ProductInfo, Rule, RuleInput


class CartSink(Protocol):
    def add_line(self, product_ref: int, variant_ref: int | None, quantity: int, tag: FreeTag | None) -> int:
        """Returns the new line id, raises LineRefused when the cart says no."""

    def set_line_quantity(self, line_id: int, quantity: int) -> None: ...

    def remove_line(self, line_id: int) -> None: ...

    def list_lines(self) -> List[CartLine]: ...

    def list_applied_coupons(self) -> List[str]:
        """Coupon codes in application order."""

    def apply_coupon(self, code: str, auto: bool = False) -> bool: ...

    def remove_coupon(self, code: str) -> None: ...

    def is_auto_applied(self, code: str) -> bool: ...


class ProductLookup(Protocol):
    def resolve(self, product_ref: int) -> ProductInfo | None: ...


class RuleStore(Protocol):
    def get_rules(self, coupon_id: int) -> List[Rule]: ...

    def replace_rules(self, coupon_id: int, rules: Sequence[RuleInput]) -> List[Rule]: ...


class CouponDirectory(Protocol):
    def get_coupon(self, code: str) -> CouponInfo | None: ...

    def list_bogo_coupons(self) -> List[CouponInfo]:
        """Active, valid coupons of the BOGO type."""


class UsageSink(Protocol):
    def record(self, rule_id: int, order_id: int, user_id: int | None, free_quantity: int) -> None: ...
