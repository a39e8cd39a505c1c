# bogo/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from bogo.api.deps import get_product_client, get_usage_sink
from bogo.data.database import get_db
from bogo.domain.schemas import OrderCreate, OrderOut
from bogo.engine.ports import ProductLookup, UsageSink
from bogo.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    products: ProductLookup = Depends(get_product_client),
    usage_sink: UsageSink = Depends(get_usage_sink),
):
    return OrderService(db, product_client=products, usage_sink=usage_sink)


@router.post("/", response_model=OrderOut, status_code=201)
def create_order(payload: OrderCreate, svc: OrderService = Depends(get_service)):
    """
    Creates an order from a finalized cart and records BOGO usage
    asynchronously.
    """
    try:
        return svc.create_order_from_cart(payload.cart_id, payload.user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, user_id: int = Query(...), svc: OrderService = Depends(get_service)):
    try:
        return svc.get_order(order_id, user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
