# bogo/services/order_service.py
from sqlalchemy.orm import Session

from bogo.data.models.order import OrderModel
from bogo.domain.bogo import EngineSettings
from bogo.engine import UsageRecorder
from bogo.engine.pricing import price_cart
from bogo.engine.ports import ProductLookup, UsageSink
from bogo.repos.cart_repo import CartRepo
from bogo.repos.order_repo import OrderRepo
from bogo.services.cart_session import build_context
from bogo.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Order domain, kept apart from CartService.
    Placing an order is where BOGO usage gets recorded.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductLookup,
        usage_sink: UsageSink,
        settings: EngineSettings | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.product_client = product_client
        self.usage_sink = usage_sink
        self.usage_recorder = UsageRecorder()
        self.settings = settings or EngineSettings.from_settings()

    def create_order_from_cart(self, cart_id: int, user_id: int):
        """
        1. Checks the cart is finalized
        2. Prices it (free lines at their discounted price)
        3. Creates the order and counts coupon usage
        4. Records which rule granted which free line
        """
        cart = self.carts.get_cart(cart_id)

        if not cart:
            raise ValueError("Cart does not exist")

        if cart.user_id != user_id:
            raise PermissionError("No access to this cart")

        if cart.status != "FINALIZED":
            raise ValueError("Cart must be finalized before placing an order")

        ctx = build_context(self.db, cart, self.product_client, self.settings)
        lines = ctx.cart.list_lines()
        if not lines:
            raise ValueError("Cart is empty")

        totals = price_cart(lines, self.product_client, self.settings)

        order = self.repo.add_order(
            OrderModel(
                cart_id=cart.id,
                user_id=user_id,
                status="PROCESSING",
                total=totals.total,
            )
        )
        for link in self.carts.get_cart_coupons(cart.id):
            link.coupon.usage_count = (link.coupon.usage_count or 0) + 1
        cart.status = "ORDERED"
        self.db.commit()

        logger.info(f"Order {order.id} created from cart {cart.id}")

        self.usage_recorder.record_order(ctx, order.id, user_id, self.usage_sink)

        return self._as_dict(order)

    def get_order(self, order_id: int, user_id: int):
        order = self.repo.get_order(order_id)

        if not order:
            raise ValueError("Order does not exist")

        if order.user_id != user_id:
            raise PermissionError("No access to this order")

        return self._as_dict(order)

    @staticmethod
    def _as_dict(order: OrderModel):
        return {
            "id": order.id,
            "cart_id": order.cart_id,
            "user_id": order.user_id,
            "status": order.status,
            "total": order.total,
            "created_at": order.created_at,
        }
