# bogo/services/coupon_service.py
from typing import List, Sequence

from sqlalchemy.orm import Session

from bogo.data.models.coupon import CouponModel
from bogo.domain.bogo import BOGO_DISCOUNT_TYPE, Rule, RuleInput
from bogo.domain.schemas import CouponCreate
from bogo.repos.coupon_repo import CouponRepo
from bogo.repos.rule_repo import RuleRepo
from bogo.utils.logging import get_logger

logger = get_logger(__name__)


class CouponService:
    def __init__(self, db: Session):
        self.repo = CouponRepo(db)
        self.rules = RuleRepo(db)

    def create_coupon(self, payload: CouponCreate) -> CouponModel:
        if self.repo.get_by_code(payload.code):
            raise ValueError("Coupon code already exists")

        coupon = self.repo.create(
            CouponModel(
                code=payload.code.strip(),
                discount_type=payload.discount_type,
                active=payload.active,
                expires_at=payload.expires_at,
                usage_limit=payload.usage_limit,
                auto_apply=payload.auto_apply,
            )
        )
        logger.info(f"Coupon {coupon.code} created ({coupon.discount_type})")
        return coupon

    def get_rules(self, coupon_id: int) -> List[Rule]:
        self._get(coupon_id)
        return self.rules.get_rules(coupon_id)

    def replace_rules(self, coupon_id: int, rules: Sequence[RuleInput]) -> List[Rule]:
        coupon = self._get(coupon_id)
        if coupon.discount_type != BOGO_DISCOUNT_TYPE:
            raise ValueError("Only BOGO coupons carry rules")

        saved = self.rules.replace_rules(coupon_id, rules)
        logger.info(f"Coupon {coupon.code}: rule set replaced ({len(saved)} rules)")
        return saved

    def delete_coupon(self, coupon_id: int) -> None:
        coupon = self._get(coupon_id)
        self.repo.delete(coupon)
        logger.info(f"Coupon {coupon_id} deleted with its rules")

    def _get(self, coupon_id: int) -> CouponModel:
        coupon = self.repo.get(coupon_id)
        if not coupon:
            raise ValueError("Coupon does not exist")
        return coupon
