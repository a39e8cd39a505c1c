from sqlalchemy import Boolean, Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from bogo.data.database import Base


class CartCouponModel(Base):
    """Coupon applied to a cart. Row id is the application order."""

    __tablename__ = "cart_coupons"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False)
    auto_applied = Column(Boolean, nullable=False, default=False)

    cart = relationship("CartModel", back_populates="coupons")
    coupon = relationship("CouponModel", back_populates="cart_links")

    __table_args__ = (
        UniqueConstraint("cart_id", "coupon_id", name="u_cart_coupon"),
        {"sqlite_autoincrement": True},
    )
