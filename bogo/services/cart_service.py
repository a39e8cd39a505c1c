# bogo/services/cart_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from bogo.data.models.cart import CartModel
from bogo.domain.bogo import CartTotals, EngineSettings
from bogo.engine import BogoEngine, CartContext, LineRefused
from bogo.engine.pricing import price_cart
from bogo.engine.ports import ProductLookup
from bogo.repos.cart_repo import CartRepo
from bogo.repos.coupon_repo import CouponRepo
from bogo.services.cart_session import build_context, to_line
from bogo.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Cart use cases. Commands (add, remove, set quantity, coupons, finalize)
    mutate the cart and hand the event to the BOGO engine; the query (get)
    validates free lines and prices the cart. One commit per use case.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductLookup,
        engine: BogoEngine | None = None,
        settings: EngineSettings | None = None,
    ):
        self.db = db
        self.repo = CartRepo(db)
        self.coupons = CouponRepo(db)
        self.product_client = product_client
        self.engine = engine or BogoEngine()
        self.settings = settings or EngineSettings.from_settings()

    # query
    def get_cart(self, cart_id: int, user_id: int) -> Dict[str, Any] | None:
        cart = self.repo.get_cart(cart_id)

        if not cart:
            return None

        if cart.user_id != user_id:
            raise PermissionError("No access to this cart")

        ctx = self._context(cart)
        if cart.status == "ACTIVE":
            self.engine.validate(ctx)
            totals = self.engine.calculate_totals(ctx)
            self.repo.commit()
        else:
            totals = price_cart(ctx.cart.list_lines(), self.product_client, self.settings)

        return self._view(cart, ctx, totals)

    # commands
    def create_cart(self, user_id: int) -> Dict[str, Any]:
        existing = self.repo.get_active_cart_by_user(user_id)
        if existing:
            logger.info(f"User {user_id} already has active cart {existing.id}")
            return self.get_cart(existing.id, user_id)

        created = self.repo.create_cart(CartModel(user_id=user_id, status="ACTIVE"))
        logger.info(f"Created cart {created.id} for user {user_id}")
        return self.get_cart(created.id, user_id)

    def add_product(
        self,
        user_id: int,
        cart_id: int,
        product_id: int,
        quantity: int,
        variant_id: int | None = None,
    ) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("Quantity must be greater than 0")

        cart = self._load(cart_id, user_id)

        logger.info(f"Resolving product {variant_id or product_id} via product-service")
        info = self.product_client.resolve(variant_id or product_id)
        if info is None:
            raise ValueError("Product does not exist")
        if not info.in_stock:
            raise ValueError("Product is out of stock")

        # variants are stored under their parent, like the storefront does
        if info.is_variant:
            product_ref, variant_ref = info.parent_ref, info.ref
        else:
            product_ref, variant_ref = info.ref, None

        ctx = self._context(cart)
        existing = self.repo.get_paid_item(cart.id, product_ref, variant_ref)

        if existing:
            logger.info(
                f"Product {info.ref} already in cart {cart.id}, quantity "
                f"{existing.quantity} -> {existing.quantity + quantity}"
            )
            existing.quantity += quantity
            existing.price = info.price
            self.repo.add_cart_item(existing)
        else:
            try:
                ctx.cart.add_line(product_ref, variant_ref, quantity, None)
            except LineRefused as e:
                raise ValueError(e.reason)

        self.engine.on_item_added(ctx, product_ref, variant_ref)
        self.repo.commit()

        return self._view(cart, ctx)

    def remove_line(self, user_id: int, cart_id: int, line_id: int) -> Dict[str, Any]:
        cart = self._load(cart_id, user_id)
        item = self._paid_item(cart, line_id)

        logger.info(f"Removing line {line_id} from cart {cart.id}")
        line = to_line(item)
        ctx = self._context(cart)
        ctx.cart.remove_line(item.id)

        self.engine.on_item_removed(ctx, line)
        self.repo.commit()

        return self._view(cart, ctx)

    def set_quantity(self, user_id: int, cart_id: int, line_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 0:
            raise ValueError("Quantity cannot be negative")
        if quantity == 0:
            return self.remove_line(user_id, cart_id, line_id)

        cart = self._load(cart_id, user_id)
        item = self._paid_item(cart, line_id)

        logger.info(f"Line {line_id} of cart {cart.id}: quantity {item.quantity} -> {quantity}")
        ctx = self._context(cart)
        ctx.cart.set_line_quantity(item.id, quantity)

        self.engine.on_quantity_changed(ctx, to_line(item))
        self.repo.commit()

        return self._view(cart, ctx)

    def apply_coupon(self, user_id: int, cart_id: int, code: str) -> Dict[str, Any]:
        cart = self._load(cart_id, user_id)
        coupon = self.coupons.get_by_code(code)
        if coupon is None:
            raise ValueError("Coupon does not exist")

        ctx = self._context(cart)
        if not ctx.cart.apply_coupon(coupon.code):
            raise ValueError("Coupon cannot be applied to this cart")

        logger.info(f"Coupon {coupon.code} applied to cart {cart.id}")
        if not self.engine.on_coupon_applied(ctx, coupon.code):
            # misconfigured offer, do not keep it on the cart
            ctx.cart.remove_coupon(coupon.code)
        self.repo.commit()

        return self._view(cart, ctx)

    def remove_coupon(self, user_id: int, cart_id: int, code: str) -> Dict[str, Any]:
        cart = self._load(cart_id, user_id)
        ctx = self._context(cart)

        applied = {c.lower(): c for c in ctx.cart.list_applied_coupons()}
        canonical = applied.get(code.strip().lower())
        if canonical is None:
            raise ValueError("Coupon is not applied to this cart")

        logger.info(f"Removing coupon {canonical} from cart {cart.id}")
        ctx.cart.remove_coupon(canonical)
        self.engine.on_coupon_removed(ctx, canonical)
        self.repo.commit()

        return self._view(cart, ctx)

    def finalize_cart(self, user_id: int, cart_id: int) -> Dict[str, Any]:
        cart = self._load(cart_id, user_id)

        ctx = self._context(cart)
        self.engine.validate(ctx)

        if not self.repo.get_cart_items(cart.id):
            raise ValueError("Cannot finalize an empty cart")

        cart.status = "FINALIZED"
        self.repo.commit()
        logger.info(f"Cart {cart.id} finalized")

        return self._view(cart, ctx)

    # helpers
    def _load(self, cart_id: int, user_id: int) -> CartModel:
        cart = self.repo.get_cart(cart_id)

        if not cart:
            raise ValueError("Cart does not exist")

        if cart.user_id != user_id:
            raise PermissionError("No access to this cart")

        if cart.status != "ACTIVE":
            raise ValueError("Cart can no longer be modified")

        return cart

    def _paid_item(self, cart: CartModel, line_id: int):
        item = self.repo.get_cart_item(cart.id, line_id)
        if item is None:
            raise ValueError("Cart line does not exist")
        if item.bogo_free:
            raise ValueError("Free items are managed by their offer and cannot be changed")
        return item

    def _context(self, cart: CartModel) -> CartContext:
        return build_context(self.db, cart, self.product_client, self.settings)

    def _view(self, cart: CartModel, ctx: CartContext, totals: CartTotals | None = None) -> Dict[str, Any]:
        lines = ctx.cart.list_lines()
        if totals is None:
            totals = price_cart(lines, self.product_client, self.settings)
        priced = {t.line_id: t for t in totals.lines}

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "items": [
                {
                    "id": line.id,
                    "product_id": line.product_ref,
                    "variant_id": line.variant_ref,
                    "quantity": line.quantity,
                    "original_price": priced[line.id].original_unit_price,
                    "price": priced[line.id].unit_price,
                    "line_total": priced[line.id].line_total,
                    "label": priced[line.id].label,
                    "free": line.is_free,
                    "coupon_code": line.free.coupon_code if line.free else None,
                    "rule_id": line.free.rule_id if line.free else None,
                    "discount_percentage": line.free.discount_percentage if line.free else None,
                }
                for line in lines
            ],
            "coupons": ctx.cart.list_applied_coupons(),
            "subtotal": totals.subtotal_before,
            "discount": totals.free_discount_total,
            "total": totals.total,
            "notices": [n.model_dump() for n in ctx.drain_notices()],
        }
