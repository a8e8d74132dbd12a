"""Shop: catalogue, coupons and physical-item orders.

Purchases debit the wallet immediately with an ``on_hold`` transaction.
Shipping an order completes the hold; cancelling refunds it.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from arena.models.base import to_money
from arena.models.shop import Coupon, CouponClaim, DiscountType, OrderStatus, ShopItem, ShopOrder
from arena.models.user import User
from arena.models.wallet import TransactionStatus, TransactionType
from arena.services.notification import NotificationService
from arena.services.settings import SettingsService
from arena.services.wallet import WalletService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)

SHIPPING_FIELDS = ("full_name", "address", "city", "phone")


class ShopError(ArenaError):
    """Shop operation error."""


def final_price(price: Decimal, coupon: Coupon | None) -> Decimal:
    """Price after a coupon, never below zero."""
    price = to_money(price)
    if coupon is None:
        return price
    value = to_money(coupon.discount_value)
    if coupon.discount_type == DiscountType.PERCENTAGE.value:
        return max(Decimal("0"), to_money(price * (1 - value / 100)))
    return max(Decimal("0"), price - value)


class ShopService:
    def __init__(self, session: AsyncSession, redis: Redis | None = None) -> None:
        self.session = session
        self._redis = redis
        self._wallet: WalletService | None = None
        self.settings = SettingsService(session)
        self.notifications = NotificationService(session)

    @property
    def wallet(self) -> WalletService:
        if self._wallet is None:
            self._wallet = WalletService(self.session, self._redis)
        return self._wallet

    # =========================================================================
    # Items
    # =========================================================================

    async def list_items(self, *, include_inactive: bool = False) -> list[ShopItem]:
        query = select(ShopItem)
        if not include_inactive:
            query = query.where(ShopItem.is_active.is_(True))
        result = await self.session.execute(query.order_by(ShopItem.created_at.desc()))
        return list(result.scalars().all())

    async def get_item(self, item_id: str) -> ShopItem:
        item = await self.session.get(ShopItem, item_id)
        if item is None:
            raise ShopError(ErrorCode.SHOP_ITEM_NOT_FOUND, "Item not found", {"itemId": item_id})
        return item

    async def create_item(self, data: dict[str, Any]) -> ShopItem:
        item = ShopItem(**data)
        self.session.add(item)
        await self.session.flush()
        logger.info(f"Shop item created: id={item.id[:8]}... name={item.name}")
        return item

    async def update_item(self, item_id: str, data: dict[str, Any]) -> ShopItem:
        item = await self.get_item(item_id)
        for key, value in data.items():
            setattr(item, key, value)
        await self.session.flush()
        return item

    async def delete_item(self, item_id: str) -> None:
        item = await self.get_item(item_id)
        await self.session.delete(item)
        await self.session.flush()

    # =========================================================================
    # Coupons
    # =========================================================================

    async def list_coupons(self) -> list[Coupon]:
        result = await self.session.execute(select(Coupon).order_by(Coupon.created_at.desc()))
        return list(result.scalars().all())

    async def create_coupon(self, data: dict[str, Any]) -> Coupon:
        code = (data.get("code") or "").strip().upper()
        existing = await self.session.execute(select(Coupon.id).where(Coupon.code == code))
        if existing.scalar_one_or_none() is not None:
            raise ShopError(ErrorCode.COUPON_EXISTS, f"Coupon {code} already exists")

        discount_type = DiscountType(data.get("discount_type", DiscountType.FIXED))
        coupon = Coupon(**{**data, "code": code, "discount_type": discount_type.value})
        self.session.add(coupon)
        await self.session.flush()
        return coupon

    async def update_coupon(self, coupon_id: str, data: dict[str, Any]) -> Coupon:
        coupon = await self.session.get(Coupon, coupon_id)
        if coupon is None:
            raise ShopError(ErrorCode.COUPON_NOT_FOUND, "Coupon not found")
        for key, value in data.items():
            if key == "code" and value:
                value = value.strip().upper()
            setattr(coupon, key, getattr(value, "value", value))
        await self.session.flush()
        return coupon

    async def delete_coupon(self, coupon_id: str) -> None:
        coupon = await self.session.get(Coupon, coupon_id)
        if coupon is None:
            raise ShopError(ErrorCode.COUPON_NOT_FOUND, "Coupon not found")
        await self.session.delete(coupon)
        await self.session.flush()

    async def validate_coupon(
        self,
        code: str,
        item: ShopItem,
        now: datetime | None = None,
    ) -> Coupon:
        """Look up a coupon and check it can be used on ``item``.

        Raises:
            ShopError: Unknown code, or the coupon is inactive, outside its
                date window, used up or not valid for this item
        """
        now = now or datetime.now(timezone.utc)
        result = await self.session.execute(
            select(Coupon).where(Coupon.code == (code or "").strip().upper())
        )
        coupon = result.scalar_one_or_none()
        if coupon is None:
            raise ShopError(ErrorCode.COUPON_NOT_FOUND, "Invalid coupon code")

        reason = None
        if not coupon.is_active:
            reason = "This coupon is no longer active"
        elif coupon.valid_from and now < coupon.valid_from:
            reason = "This coupon is not valid yet"
        elif coupon.valid_until and now > coupon.valid_until:
            reason = "This coupon has expired"
        elif coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
            reason = "This coupon has reached its usage limit"
        elif coupon.applicable_item_ids and item.id not in coupon.applicable_item_ids:
            reason = "This coupon does not apply to this item"

        if reason:
            raise ShopError(ErrorCode.COUPON_INVALID, reason, {"code": coupon.code})
        return coupon

    async def quote(self, item_id: str, coupon_code: str | None = None) -> dict[str, Any]:
        item = await self.get_item(item_id)
        coupon = await self.validate_coupon(coupon_code, item) if coupon_code else None
        price = final_price(item.price, coupon)
        return {
            "item_id": item.id,
            "original_price": to_money(item.price),
            "final_price": price,
            "discount_amount": to_money(item.price) - price,
            "coupon_code": coupon.code if coupon else None,
        }

    # =========================================================================
    # Orders
    # =========================================================================

    async def purchase(
        self,
        user: User,
        item_id: str,
        shipping: dict[str, str | None],
        coupon_code: str | None = None,
    ) -> ShopOrder:
        """Place an order and hold its price.

        Raises:
            ShopError: Shop disabled, missing shipping details, item
                unavailable or bad coupon
            InsufficientBalanceError: Price exceeds the wallet balance
        """
        general = await self.settings.general()
        if not general.shop_enabled:
            raise ShopError(ErrorCode.FORBIDDEN, "The shop is currently disabled")

        missing = [f for f in SHIPPING_FIELDS if not (shipping.get(f) or "").strip()]
        if missing:
            raise ShopError(
                ErrorCode.MISSING_FIELD,
                "Please fill in all shipping details",
                {"fields": missing},
            )

        item = await self.get_item(item_id)
        if not item.is_active:
            raise ShopError(ErrorCode.SHOP_ITEM_INACTIVE, "This item is not available")
        if item.stock <= 0:
            raise ShopError(ErrorCode.SHOP_OUT_OF_STOCK, "This item is out of stock")

        coupon = await self.validate_coupon(coupon_code, item) if coupon_code else None
        original = to_money(item.price)
        price = final_price(original, coupon)

        order = ShopOrder(
            user_id=user.id,
            username=user.username,
            item_id=item.id,
            item_name=item.name,
            original_price=original,
            final_price=price,
            coupon_code=coupon.code if coupon else None,
            discount_amount=original - price,
            shipping_full_name=shipping["full_name"].strip(),
            shipping_address=shipping["address"].strip(),
            shipping_city=shipping["city"].strip(),
            shipping_phone=shipping["phone"].strip(),
            status=OrderStatus.PENDING_FULFILLMENT.value,
        )
        self.session.add(order)
        await self.session.flush()

        if price > 0:
            hold = await self.wallet.hold(
                user.id,
                price,
                TransactionType.SHOP_PURCHASE_HOLD,
                description=f"Purchase of {item.name}",
                related_product_id=item.id,
                related_request_id=order.id,
            )
            order.hold_transaction_id = hold.id

        result = await self.session.execute(
            update(ShopItem)
            .where(ShopItem.id == item.id, ShopItem.stock > 0)
            .values(stock=ShopItem.stock - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ShopError(ErrorCode.SHOP_OUT_OF_STOCK, "This item is out of stock")
        await self.session.refresh(item, attribute_names=["stock"])

        if coupon is not None:
            await self._use_coupon(coupon)
            self.session.add(CouponClaim(coupon_id=coupon.id, user_id=user.id, order_id=order.id))

        await self.session.flush()
        logger.info(
            f"Shop order placed: order={order.id[:8]}... user={user.id[:8]}... "
            f"item={item.name} price={price} coupon={order.coupon_code}"
        )
        return order

    async def _use_coupon(self, coupon: Coupon) -> None:
        """Count one use, refusing once the usage limit is reached."""
        query = update(Coupon).where(Coupon.id == coupon.id)
        if coupon.usage_limit is not None:
            query = query.where(Coupon.used_count < Coupon.usage_limit)
        result = await self.session.execute(
            query.values(used_count=Coupon.used_count + 1).execution_options(
                synchronize_session=False
            )
        )
        if result.rowcount == 0:
            raise ShopError(
                ErrorCode.COUPON_INVALID,
                "This coupon has reached its usage limit",
                {"code": coupon.code},
            )
        await self.session.refresh(coupon, attribute_names=["used_count"])

    async def get_order(self, order_id: str) -> ShopOrder:
        order = await self.session.get(ShopOrder, order_id)
        if order is None:
            raise ShopError(ErrorCode.ORDER_NOT_FOUND, "Order not found", {"orderId": order_id})
        return order

    async def list_orders(
        self,
        *,
        user_id: str | None = None,
        status: OrderStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ShopOrder]:
        query = select(ShopOrder)
        if user_id:
            query = query.where(ShopOrder.user_id == user_id)
        if status:
            query = query.where(ShopOrder.status == status.value)
        query = query.order_by(ShopOrder.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update_order_status(
        self,
        order_id: str,
        status: OrderStatus,
        tracking_number: str | None = None,
    ) -> ShopOrder:
        """Move an order forward, settling its hold where needed."""
        order = await self.get_order(order_id)
        current = OrderStatus(order.status)
        if current in (OrderStatus.CANCELLED, OrderStatus.DELIVERED) or current == status:
            raise ShopError(
                ErrorCode.ORDER_STATUS_INVALID,
                f"Cannot change an order from {current.value} to {status.value}",
            )
        if status == OrderStatus.PENDING_FULFILLMENT:
            raise ShopError(ErrorCode.ORDER_STATUS_INVALID, "Orders cannot go back to pending")

        # Flip only from the status this request saw; a concurrent change matches no row
        values: dict[str, Any] = {"status": status.value}
        if tracking_number:
            values["tracking_number"] = tracking_number
        result = await self.session.execute(
            update(ShopOrder)
            .where(ShopOrder.id == order.id, ShopOrder.status == current.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(order)
        if result.rowcount == 0:
            raise ShopError(
                ErrorCode.ORDER_STATUS_INVALID,
                f"Order is already {order.status}",
                {"status": order.status},
            )

        if status == OrderStatus.SHIPPED or (
            status == OrderStatus.DELIVERED and current == OrderStatus.PENDING_FULFILLMENT
        ):
            await self.wallet.settle_hold(
                order.hold_transaction_id,
                TransactionStatus.COMPLETED,
                f"Purchase of {order.item_name} completed.",
            )
            message = f"Your order for {order.item_name} has been shipped!"
            if order.tracking_number:
                message += f" Tracking number: {order.tracking_number}"
            await self.notifications.notify(order.user_id, message, title="Order shipped")

        elif status == OrderStatus.CANCELLED:
            await self.wallet.settle_hold(
                order.hold_transaction_id,
                TransactionStatus.REFUNDED,
                f"Purchase of {order.item_name} cancelled.",
            )
            if to_money(order.final_price) > 0:
                await self.wallet.credit(
                    order.user_id,
                    order.final_price,
                    TransactionType.REFUND,
                    description=f"Refund for cancelled order: {order.item_name}",
                    related_request_id=order.id,
                    related_product_id=order.item_id,
                )
            await self.session.execute(
                update(ShopItem)
                .where(ShopItem.id == order.item_id)
                .values(stock=ShopItem.stock + 1)
                .execution_options(synchronize_session=False)
            )
            item = await self.session.get(ShopItem, order.item_id)
            if item is not None:
                await self.session.refresh(item, attribute_names=["stock"])
            await self.notifications.notify(
                order.user_id,
                f"Your order for {order.item_name} was cancelled and refunded.",
                title="Order cancelled",
            )

        await self.session.flush()
        logger.info(f"Shop order status: order={order.id[:8]}... {current.value} -> {status.value}")
        return order
