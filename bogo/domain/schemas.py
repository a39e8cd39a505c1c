# bogo/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime

from bogo.domain.bogo import Notice, Rule, RuleInput


class ItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product or variant id (> 0)")
    variant_id: int | None = Field(None, gt=0, description="Variant id for variable products")
    quantity: int = Field(..., gt=0, description="Quantity (> 0)")


class QuantityIn(BaseModel):
    """Schema for changing a line quantity. 0 removes the line."""

    quantity: int = Field(..., ge=0)


class CouponCodeIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)


class CreateCartIn(BaseModel):
    user_id: int = Field(..., gt=0, description="User id (> 0)")


class CartLineOut(BaseModel):
    id: int
    product_id: int
    variant_id: int | None = None
    quantity: int
    original_price: Decimal
    price: Decimal
    line_total: Decimal
    label: str | None = None
    free: bool = False
    coupon_code: str | None = None
    rule_id: int | None = None
    discount_percentage: Decimal | None = None


class CartOut(BaseModel):
    cart_id: int
    user_id: int | None
    status: str
    items: List[CartLineOut]
    coupons: List[str]
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    notices: List[Notice] = []

    model_config = ConfigDict(from_attributes=True)


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    discount_type: Literal["bogo_coupon", "percent", "fixed"] = "bogo_coupon"
    active: bool = True
    expires_at: datetime | None = None
    usage_limit: int | None = Field(None, ge=0)
    auto_apply: bool | None = None


class CouponOut(BaseModel):
    id: int
    code: str
    discount_type: str
    active: bool
    expires_at: datetime | None = None
    usage_limit: int | None = None
    usage_count: int
    auto_apply: bool | None = None

    model_config = ConfigDict(from_attributes=True)


class RulesIn(BaseModel):
    """Full rule set of a coupon, replaces whatever was stored."""

    rules: List[RuleInput]


class RulesOut(BaseModel):
    coupon_id: int
    rules: List[Rule]


class OrderCreate(BaseModel):
    cart_id: int = Field(..., gt=0)
    user_id: int = Field(..., gt=0)


class OrderOut(BaseModel):
    id: int
    cart_id: int
    user_id: int | None
    status: str
    total: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
