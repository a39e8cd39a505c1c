from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer

from bogo.data.database import Base


class BogoUsageModel(Base):
    __tablename__ = "bogo_usage"

    id = Column(Integer, primary_key=True)
    rule_id = Column(Integer, nullable=False, index=True)
    order_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    free_quantity = Column(Integer, nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
