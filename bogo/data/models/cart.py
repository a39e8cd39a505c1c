#bogo/data/models/cart.py
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from bogo.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=True, index=True)

    status = Column(String, nullable=False, default="ACTIVE")  # ACTIVE, FINALIZED
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )
    coupons = relationship(
        "CartCouponModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartCouponModel.id",
    )
