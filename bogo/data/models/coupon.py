from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from bogo.data.database import Base


class CouponModel(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    discount_type = Column(String(32), nullable=False)  # bogo_coupon, percent, fixed

    active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)

    # NULL = enabled
    auto_apply = Column(Boolean, nullable=True)

    rules = relationship(
        "BogoRuleModel",
        back_populates="coupon",
        cascade="all, delete-orphan",
        order_by="BogoRuleModel.id",
    )
    cart_links = relationship("CartCouponModel", back_populates="coupon", cascade="all, delete-orphan")

    def is_valid(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        if not self.active:
            return False
        if self.expires_at is not None:
            expires = self.expires_at
            if expires.tzinfo is None:
                # sqlite hands naive datetimes back
                expires = expires.replace(tzinfo=timezone.utc)
            if expires < now:
                return False
        if self.usage_limit is not None and (self.usage_count or 0) >= self.usage_limit:
            return False
        return True
