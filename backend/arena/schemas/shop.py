"""Shop schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from arena.models.shop import DiscountType, OrderStatus
from arena.schemas.common import BaseSchema, Money
from arena.schemas.tournament import _as_utc


class ShopItemCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=150)
    description: str | None = None
    price: Money = Field(..., ge=0)
    image_url: str | None = None
    category: str | None = Field(default=None, max_length=50)
    stock: int = Field(default=0, ge=0)
    is_active: bool = True


class ShopItemUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    description: str | None = None
    price: Money | None = Field(default=None, ge=0)
    image_url: str | None = None
    category: str | None = None
    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ShopItemResponse(BaseSchema):
    id: str
    name: str
    description: str | None = None
    price: Money
    image_url: str | None = None
    category: str | None = None
    stock: int
    is_active: bool


class CouponCreate(BaseSchema):
    code: str = Field(..., min_length=3, max_length=32)
    discount_type: DiscountType = DiscountType.FIXED
    discount_value: Money = Field(..., gt=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    is_active: bool = True
    applicable_item_ids: list[str] = Field(default_factory=list)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @field_validator("discount_value")
    @classmethod
    def percentage_range(cls, v: Decimal, info) -> Decimal:
        if info.data.get("discount_type") == DiscountType.PERCENTAGE and v > 100:
            raise ValueError("A percentage discount cannot exceed 100")
        return v


class CouponUpdate(BaseSchema):
    code: str | None = Field(default=None, min_length=3, max_length=32)
    discount_type: DiscountType | None = None
    discount_value: Money | None = Field(default=None, gt=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    is_active: bool | None = None
    applicable_item_ids: list[str] | None = None

    @field_validator("valid_from", "valid_until")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class CouponResponse(BaseSchema):
    id: str
    code: str
    discount_type: DiscountType
    discount_value: Money
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = None
    used_count: int
    is_active: bool
    applicable_item_ids: list[str]


class ShippingDetails(BaseSchema):
    full_name: str | None = None
    address: str | None = None
    city: str | None = None
    phone: str | None = None


class PurchaseRequest(BaseSchema):
    item_id: str
    shipping: ShippingDetails
    coupon_code: str | None = None


class QuoteResponse(BaseSchema):
    item_id: str
    original_price: Money
    final_price: Money
    discount_amount: Money
    coupon_code: str | None = None


class OrderResponse(BaseSchema):
    id: str
    user_id: str
    username: str
    item_id: str
    item_name: str
    original_price: Money
    final_price: Money
    coupon_code: str | None = None
    discount_amount: Money
    shipping_full_name: str
    shipping_address: str
    shipping_city: str
    shipping_phone: str
    status: OrderStatus
    tracking_number: str | None = None
    created_at: datetime


class OrderStatusUpdate(BaseSchema):
    status: OrderStatus
    tracking_number: str | None = Field(default=None, max_length=64)
