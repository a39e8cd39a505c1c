# bogo/repos/rule_repo.py
from typing import List, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from bogo.data.models.bogo_rule import BogoRuleModel
from bogo.domain.bogo import Rule, RuleInput


def to_rule(row: BogoRuleModel) -> Rule:
    return Rule(
        id=row.id,
        coupon_id=row.coupon_id,
        buy_product_ref=row.buy_product_id,
        buy_quantity=row.buy_quantity,
        get_product_ref=row.get_product_id,
        get_quantity=row.get_quantity,
        discount_percentage=row.discount_percentage,
        max_free_quantity=row.max_free_quantity,
    )


class RuleRepo:
    """Rule store. Rules come back in definition order."""

    def __init__(self, db: Session):
        self.db = db

    def get_rules(self, coupon_id: int) -> List[Rule]:
        rows = self.db.execute(
            select(BogoRuleModel).where(BogoRuleModel.coupon_id == coupon_id).order_by(BogoRuleModel.id)
        ).scalars().all()
        return [to_rule(r) for r in rows]

    def replace_rules(self, coupon_id: int, rules: Sequence[RuleInput]) -> List[Rule]:
        # delete-then-insert, one transaction
        try:
            self.db.execute(delete(BogoRuleModel).where(BogoRuleModel.coupon_id == coupon_id))
            for rule in rules:
                self.db.add(
                    BogoRuleModel(
                        coupon_id=coupon_id,
                        buy_product_id=rule.buy_product_ref,
                        buy_quantity=rule.buy_quantity,
                        get_product_id=rule.get_product_ref,
                        get_quantity=rule.get_quantity,
                        discount_percentage=rule.discount_percentage,
                        max_free_quantity=rule.max_free_quantity,
                    )
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.get_rules(coupon_id)
