# bogo/repos/cart_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from bogo.data.models.cart import CartModel
from bogo.data.models.cart_coupon import CartCouponModel
from bogo.data.models.cart_item import CartItemModel
from bogo.data.models.coupon import CouponModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id, CartModel.status == "ACTIVE")
        ).scalars().first()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    # items
    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        return self.db.execute(
            select(CartItemModel).where(CartItemModel.cart_id == cart_id).order_by(CartItemModel.id)
        ).scalars().all()

    def get_cart_item(self, cart_id: int, item_id: int) -> CartItemModel | None:
        item = self.db.get(CartItemModel, item_id)
        if item is None or item.cart_id != cart_id:
            return None
        return item

    def get_paid_item(self, cart_id: int, product_id: int, variant_id: int | None) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
                CartItemModel.variant_id.is_(None) if variant_id is None else CartItemModel.variant_id == variant_id,
                CartItemModel.bogo_free.is_(False),
            )
        ).scalars().first()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    # applied coupons
    def get_cart_coupons(self, cart_id: int) -> List[CartCouponModel]:
        return self.db.execute(
            select(CartCouponModel).where(CartCouponModel.cart_id == cart_id).order_by(CartCouponModel.id)
        ).scalars().all()

    def attach_coupon(self, cart_id: int, coupon: CouponModel, auto: bool) -> CartCouponModel:
        link = CartCouponModel(cart_id=cart_id, coupon_id=coupon.id, auto_applied=auto)
        self.db.add(link)
        self.db.flush()
        return link

    def detach_coupon(self, link: CartCouponModel) -> None:
        self.db.delete(link)
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
