# bogo/engine/context.py
from contextlib import contextmanager
from typing import List

from bogo.domain.bogo import EngineSettings, Notice
from bogo.engine.errors import RecursionFault
from bogo.engine.ports import CartSink, CouponDirectory, ProductLookup, RuleStore

MAX_DEPTH = 2


class CartContext:
    """
    Everything one engine call needs: the cart it works on, its collaborators
    and the notices raised while working. One context per request.
    """

    def __init__(
        self,
        cart: CartSink,
        products: ProductLookup,
        rules: RuleStore,
        coupons: CouponDirectory,
        settings: EngineSettings | None = None,
    ):
        self.cart = cart
        self.products = products
        self.rules = rules
        self.coupons = coupons
        self.settings = settings or EngineSettings()
        self.notices: List[Notice] = []
        self.depth = 0
        self.in_totals = False

    def notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))

    def drain_notices(self) -> List[Notice]:
        notices, self.notices = self.notices, []
        return notices

    @contextmanager
    def enter(self, transition: str):
        if self.depth >= MAX_DEPTH:
            raise RecursionFault(f"{transition} re-entered at depth {self.depth}")
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1
