# bogo/engine/usage.py
from bogo.engine.context import CartContext
from bogo.engine.ports import UsageSink
from bogo.utils.logging import get_logger

logger = get_logger(__name__)


class UsageRecorder:
    """Reports which rule granted which free line once an order is placed."""

    def record_order(self, ctx: CartContext, order_id: int, user_id: int | None, sink: UsageSink) -> int:
        recorded = 0
        for line in ctx.cart.list_lines():
            if not line.is_free:
                continue
            sink.record(line.free.rule_id, order_id, user_id, line.quantity)
            recorded += 1

        logger.info(f"Order {order_id}: recorded {recorded} BOGO free line(s)")
        return recorded
