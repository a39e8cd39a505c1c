#import all models so SQLAlchemy registers them in Base.metadata

from bogo.data.models.coupon import CouponModel
from bogo.data.models.bogo_rule import BogoRuleModel
from bogo.data.models.bogo_usage import BogoUsageModel
from bogo.data.models.cart import CartModel
from bogo.data.models.cart_item import CartItemModel
from bogo.data.models.cart_coupon import CartCouponModel
from bogo.data.models.order import OrderModel

__all__ = [
    "CouponModel",
    "BogoRuleModel",
    "BogoUsageModel",
    "CartModel",
    "CartItemModel",
    "CartCouponModel",
    "OrderModel",
]
