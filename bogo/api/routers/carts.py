#bogo/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from bogo.api.deps import get_product_client
from bogo.data.database import get_db
from bogo.domain.schemas import (
    CouponCodeIn,
    CreateCartIn,
    ItemIn,
    CartOut,
    QuantityIn,
)
from bogo.engine.ports import ProductLookup
from bogo.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session = Depends(get_db), products: ProductLookup = Depends(get_product_client)):
    return CartService(db=db, product_client=products)


def _run(call, *args, **kwargs):
    try:
        return call(*args, **kwargs)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/", response_model=CartOut)
def create_cart(payload: CreateCartIn, svc: CartService = Depends(get_service)):
    return svc.create_cart(payload.user_id)


@router.get("/{cart_id}", response_model=CartOut)
def get_cart(cart_id: int, user_id: int = Query(...), svc: CartService = Depends(get_service)):
    cart = _run(svc.get_cart, cart_id, user_id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")
    return cart


@router.post("/{cart_id}/items", response_model=CartOut)
def add_item(
    cart_id: int,
    payload: ItemIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return _run(
        svc.add_product,
        user_id=user_id,
        cart_id=cart_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
        variant_id=payload.variant_id,
    )


@router.patch("/{cart_id}/items/{line_id}", response_model=CartOut)
def set_quantity(
    cart_id: int,
    line_id: int,
    payload: QuantityIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return _run(svc.set_quantity, user_id, cart_id, line_id, payload.quantity)


@router.delete("/{cart_id}/items/{line_id}", response_model=CartOut)
def remove_item(
    cart_id: int,
    line_id: int,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return _run(svc.remove_line, user_id, cart_id, line_id)


@router.post("/{cart_id}/coupons", response_model=CartOut)
def apply_coupon(
    cart_id: int,
    payload: CouponCodeIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return _run(svc.apply_coupon, user_id, cart_id, payload.code)


@router.delete("/{cart_id}/coupons/{code}", response_model=CartOut)
def remove_coupon(
    cart_id: int,
    code: str,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    return _run(svc.remove_coupon, user_id, cart_id, code)


@router.post("/{cart_id}/finalize", response_model=CartOut)
def finalize_cart(cart_id: int, user_id: int = Query(...), svc: CartService = Depends(get_service)):
    return _run(svc.finalize_cart, user_id, cart_id)
