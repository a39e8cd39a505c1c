# bogo/domain/bogo.py
"""Value objects shared by the BOGO engine and its adapters."""
from decimal import Decimal
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from bogo.utils import settings

BOGO_DISCOUNT_TYPE = "bogo_coupon"

NoticeLevel = Literal["success", "notice", "warning", "error"]


class RuleInput(BaseModel):
    """One row of a coupon's rule set, as submitted by the rule author."""

    buy_product_ref: int = Field(..., gt=0)
    buy_quantity: int = Field(1, ge=1)
    get_product_ref: int = Field(..., gt=0)
    get_quantity: int = Field(1, ge=1)
    discount_percentage: Decimal = Field(Decimal("100"), ge=0, le=100)
    max_free_quantity: int | None = Field(None, ge=0)


class Rule(RuleInput):
    """Stored rule. Immutable once fetched for a reconciliation pass."""

    id: int
    coupon_id: int

    model_config = ConfigDict(from_attributes=True, frozen=True)


class FreeTag(BaseModel):
    """Provenance of a free line. A line carries all of it or none."""

    coupon_code: str
    rule_id: int
    discount_percentage: Decimal
    unique_key: str

    model_config = ConfigDict(frozen=True)


class CartLine(BaseModel):
    id: int
    product_ref: int
    variant_ref: int | None = None
    quantity: int
    unit_price: Decimal = Decimal("0.00")
    free: FreeTag | None = None

    @property
    def is_free(self) -> bool:
        return self.free is not None

    @property
    def ref(self) -> int:
        # the most specific reference the line was added with
        return self.variant_ref or self.product_ref


class ProductInfo(BaseModel):
    ref: int
    exists: bool = True
    is_variant: bool = False
    parent_ref: int | None = None
    in_stock: bool = True
    price: Decimal = Decimal("0.00")
    display_name: str = ""


class CouponInfo(BaseModel):
    id: int
    code: str
    discount_type: str
    valid: bool = True
    auto_apply: bool | None = None

    @property
    def is_bogo(self) -> bool:
        return self.discount_type == BOGO_DISCOUNT_TYPE


class Notice(BaseModel):
    level: NoticeLevel
    message: str


class EngineSettings(BaseModel):
    auto_add_enabled: bool = True
    auto_apply_enabled: bool = True
    show_free_price: bool = True
    free_item_label: str = "FREE - BOGO Offer"

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_settings(cls) -> "EngineSettings":
        return cls(
            auto_add_enabled=settings.BOGO_AUTO_ADD_ENABLED,
            auto_apply_enabled=settings.BOGO_AUTO_APPLY_ENABLED,
            show_free_price=settings.BOGO_SHOW_FREE_PRICE,
            free_item_label=settings.BOGO_FREE_ITEM_LABEL,
        )


class LineTotal(BaseModel):
    line_id: int
    original_unit_price: Decimal
    unit_price: Decimal
    line_total: Decimal
    label: str | None = None


class CartTotals(BaseModel):
    lines: List[LineTotal]
    subtotal_before: Decimal
    free_discount_total: Decimal
    total: Decimal
