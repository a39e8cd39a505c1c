from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship

from bogo.data.database import Base


class BogoRuleModel(Base):
    __tablename__ = "bogo_rules"
    # rule ids tag free lines and usage rows, a replaced rule never hands its id on
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)

    buy_product_id = Column(Integer, nullable=False, index=True)
    buy_quantity = Column(Integer, nullable=False, default=1)
    get_product_id = Column(Integer, nullable=False, index=True)
    get_quantity = Column(Integer, nullable=False, default=1)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=100)
    max_free_quantity = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    coupon = relationship("CouponModel", back_populates="rules")
