# bogo/services/cart_session.py
from decimal import Decimal
from typing import List

from bogo.data.models.cart import CartModel
from bogo.data.models.cart_item import CartItemModel
from bogo.domain.bogo import CartLine, EngineSettings, FreeTag
from bogo.engine.context import CartContext
from bogo.engine.errors import LineRefused
from bogo.engine.ports import ProductLookup
from bogo.repos.cart_repo import CartRepo
from bogo.repos.coupon_repo import CouponRepo
from bogo.repos.rule_repo import RuleRepo
from bogo.utils.logging import get_logger

logger = get_logger(__name__)


def to_line(item: CartItemModel) -> CartLine:
    free = None
    if item.bogo_free:
        free = FreeTag(
            coupon_code=item.bogo_coupon_code,
            rule_id=item.bogo_rule_id,
            discount_percentage=item.bogo_discount_percentage,
            unique_key=item.bogo_unique_key,
        )
    return CartLine(
        id=item.id,
        product_ref=item.product_id,
        variant_ref=item.variant_id,
        quantity=item.quantity,
        unit_price=Decimal(str(item.price)),
        free=free,
    )


class CartSession:
    """
    One stored cart seen through the engine's CartSink contract.
    Writes are flushed, the calling use case commits.
    """

    def __init__(self, cart: CartModel, repo: CartRepo, coupons: CouponRepo, products: ProductLookup):
        self.cart = cart
        self.repo = repo
        self.coupons = coupons
        self.products = products

    def add_line(self, product_ref: int, variant_ref: int | None, quantity: int, tag: FreeTag | None) -> int:
        if quantity <= 0:
            raise LineRefused("quantity must be greater than 0")
        if self.cart.status != "ACTIVE":
            raise LineRefused("cart can no longer be modified")

        info = self.products.resolve(variant_ref or product_ref)
        if info is None:
            raise LineRefused("product does not exist")

        item = CartItemModel(
            cart_id=self.cart.id,
            product_id=product_ref,
            variant_id=variant_ref,
            quantity=quantity,
            price=info.price,
        )
        if tag is not None:
            item.bogo_free = True
            item.bogo_coupon_code = tag.coupon_code
            item.bogo_rule_id = tag.rule_id
            item.bogo_discount_percentage = tag.discount_percentage
            item.bogo_unique_key = tag.unique_key

        self.repo.add_cart_item(item)
        return item.id

    def set_line_quantity(self, line_id: int, quantity: int) -> None:
        item = self.repo.get_cart_item(self.cart.id, line_id)
        if item is None:
            return
        if quantity <= 0:
            self.repo.delete_cart_item(item)
            return
        item.quantity = quantity
        self.repo.add_cart_item(item)

    def remove_line(self, line_id: int) -> None:
        item = self.repo.get_cart_item(self.cart.id, line_id)
        if item is not None:
            self.repo.delete_cart_item(item)

    def list_lines(self) -> List[CartLine]:
        return [to_line(i) for i in self.repo.get_cart_items(self.cart.id)]

    def list_applied_coupons(self) -> List[str]:
        return [link.coupon.code for link in self.repo.get_cart_coupons(self.cart.id)]

    def is_auto_applied(self, code: str) -> bool:
        link = self._link(code)
        return bool(link and link.auto_applied)

    def apply_coupon(self, code: str, auto: bool = False) -> bool:
        coupon = self.coupons.get_by_code(code)
        if coupon is None or not coupon.is_valid():
            logger.info(f"Coupon {code} refused for cart {self.cart.id}: unknown or invalid")
            return False
        if self._link(coupon.code) is not None:
            return False

        self.repo.attach_coupon(self.cart.id, coupon, auto)
        return True

    def remove_coupon(self, code: str) -> None:
        link = self._link(code)
        if link is not None:
            self.repo.detach_coupon(link)

    def _link(self, code: str):
        code = code.strip().lower()
        for link in self.repo.get_cart_coupons(self.cart.id):
            if link.coupon.code.lower() == code:
                return link
        return None


def build_context(db, cart: CartModel, products: ProductLookup, settings: EngineSettings | None = None) -> CartContext:
    coupons = CouponRepo(db)
    return CartContext(
        cart=CartSession(cart, CartRepo(db), coupons, products),
        products=products,
        rules=RuleRepo(db),
        coupons=coupons,
        settings=settings or EngineSettings.from_settings(),
    )
