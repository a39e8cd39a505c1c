from sqlalchemy import Boolean, Column, Integer, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from bogo.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"
    # ids are line identities, never reused
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, nullable=False)
    variant_id = Column(Integer, nullable=True)

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    # free line tags, all set or all NULL
    bogo_free = Column(Boolean, nullable=False, default=False)
    bogo_coupon_code = Column(String(64), nullable=True, index=True)
    bogo_rule_id = Column(Integer, nullable=True)
    bogo_discount_percentage = Column(Numeric(5, 2), nullable=True)
    bogo_unique_key = Column(String(32), nullable=True, unique=True)

    cart = relationship("CartModel", back_populates="items")
