# bogo/repos/usage_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from bogo.data.models.bogo_usage import BogoUsageModel


class UsageRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_usage(self, usage: BogoUsageModel) -> BogoUsageModel:
        self.db.add(usage)
        self.db.commit()
        self.db.refresh(usage)
        return usage

    def get_usage_for_order(self, order_id: int) -> List[BogoUsageModel]:
        return self.db.execute(
            select(BogoUsageModel).where(BogoUsageModel.order_id == order_id).order_by(BogoUsageModel.id)
        ).scalars().all()
