# bogo/repos/coupon_repo.py
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bogo.data.models.coupon import CouponModel
from bogo.domain.bogo import BOGO_DISCOUNT_TYPE, CouponInfo


def to_info(coupon: CouponModel) -> CouponInfo:
    return CouponInfo(
        id=coupon.id,
        code=coupon.code,
        discount_type=coupon.discount_type,
        valid=coupon.is_valid(),
        auto_apply=coupon.auto_apply,
    )


class CouponRepo:
    """Coupon lookups; also serves as the engine's coupon directory."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, coupon_id: int) -> CouponModel | None:
        return self.db.get(CouponModel, coupon_id)

    def get_by_code(self, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(func.lower(CouponModel.code) == code.strip().lower())
        ).scalars().first()

    def create(self, coupon: CouponModel) -> CouponModel:
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete(self, coupon: CouponModel) -> None:
        self.db.delete(coupon)
        self.db.commit()

    # CouponDirectory
    def get_coupon(self, code: str) -> CouponInfo | None:
        coupon = self.get_by_code(code)
        return to_info(coupon) if coupon else None

    def list_bogo_coupons(self) -> List[CouponInfo]:
        rows = self.db.execute(
            select(CouponModel)
            .where(CouponModel.discount_type == BOGO_DISCOUNT_TYPE, CouponModel.active.is_(True))
            .order_by(CouponModel.id)
        ).scalars().all()
        return [to_info(c) for c in rows if c.is_valid()]
