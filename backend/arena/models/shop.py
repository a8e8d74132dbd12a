"""Shop catalogue, coupons and orders."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from arena.models.base import MONEY, Base, TimestampMixin, UTCDateTime, UUIDMixin, utcnow


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class OrderStatus(str, Enum):
    PENDING_FULFILLMENT = "pending_fulfillment"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ShopItem(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "shop_items"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)


class Coupon(Base, UUIDMixin, TimestampMixin):
    """Discount code. An empty ``applicable_item_ids`` list applies to every item."""

    __tablename__ = "coupons"

    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    discount_type: Mapped[str] = mapped_column(String(20), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    valid_from: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    valid_until: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    used_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    applicable_item_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)


class CouponClaim(Base, UUIDMixin):
    """One row per order that used a coupon."""

    __tablename__ = "coupon_claims"

    coupon_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("coupons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    order_id: Mapped[str] = mapped_column(String(36), nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("coupon_id", "order_id", name="uq_coupon_claim_order"),
    )


class ShopOrder(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "shop_orders"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    item_id: Mapped[str] = mapped_column(String(36), nullable=False)
    item_name: Mapped[str] = mapped_column(String(150), nullable=False)

    original_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    final_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    coupon_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    shipping_full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    shipping_address: Mapped[str] = mapped_column(String(300), nullable=False)
    shipping_city: Mapped[str] = mapped_column(String(100), nullable=False)
    shipping_phone: Mapped[str] = mapped_column(String(30), nullable=False)

    status: Mapped[str] = mapped_column(
        String(30),
        default=OrderStatus.PENDING_FULFILLMENT.value,
        nullable=False,
        index=True,
    )
    tracking_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hold_transaction_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
