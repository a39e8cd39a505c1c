# bogo/api/routers/coupons.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from bogo.data.database import get_db
from bogo.domain.schemas import CouponCreate, CouponOut, RulesIn, RulesOut
from bogo.services.coupon_service import CouponService

router = APIRouter(prefix="/coupons", tags=["coupons"])


@router.post("/", response_model=CouponOut, status_code=201)
def create_coupon(payload: CouponCreate, db: Session = Depends(get_db)):
    service = CouponService(db)
    try:
        return service.create_coupon(payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{coupon_id}/rules", response_model=RulesOut)
def get_rules(coupon_id: int, db: Session = Depends(get_db)):
    service = CouponService(db)
    try:
        return {"coupon_id": coupon_id, "rules": service.get_rules(coupon_id)}
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{coupon_id}/rules", response_model=RulesOut)
def replace_rules(coupon_id: int, payload: RulesIn, db: Session = Depends(get_db)):
    """
    Saves the coupon's whole rule set (delete-then-insert, no partial update).
    """
    service = CouponService(db)
    try:
        return {"coupon_id": coupon_id, "rules": service.replace_rules(coupon_id, payload.rules)}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{coupon_id}", status_code=204)
def delete_coupon(coupon_id: int, db: Session = Depends(get_db)):
    service = CouponService(db)
    try:
        service.delete_coupon(coupon_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
