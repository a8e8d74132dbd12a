"""Shop endpoints for players and staff."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from arena.api.deps import AdminUser, CurrentUser, DbSession, TraceId, require_screen
from arena.logging_config import get_logger
from arena.models.shop import OrderStatus
from arena.models.user import DelegateScreen, User
from arena.schemas import ErrorResponse, SuccessResponse
from arena.schemas.shop import (
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    OrderResponse,
    OrderStatusUpdate,
    PurchaseRequest,
    QuoteResponse,
    ShopItemCreate,
    ShopItemResponse,
    ShopItemUpdate,
)
from arena.services.shop import ShopService

router = APIRouter(prefix="/shop", tags=["Shop"])
admin_router = APIRouter(prefix="/admin/shop", tags=["Admin - Shop"])
logger = get_logger(__name__)

OrderStaff = Annotated[User, Depends(require_screen(DelegateScreen.SHOP_ORDERS))]


@router.get("/items", response_model=list[ShopItemResponse])
async def list_items(db: DbSession):
    return await ShopService(db).list_items()


@router.get("/items/{item_id}/quote", response_model=QuoteResponse)
async def quote(
    item_id: str,
    db: DbSession,
    current_user: CurrentUser,
    coupon_code: str | None = Query(default=None, alias="couponCode"),
):
    """Price of an item after an optional coupon."""
    return await ShopService(db).quote(item_id, coupon_code)


@router.post(
    "/purchase",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing shipping details, stock or balance"},
        403: {"model": ErrorResponse, "description": "Shop disabled or item unavailable"},
    },
)
async def purchase(
    request_body: PurchaseRequest,
    current_user: CurrentUser,
    db: DbSession,
    trace_id: TraceId,
):
    order = await ShopService(db).purchase(
        current_user,
        request_body.item_id,
        request_body.shipping.model_dump(),
        request_body.coupon_code,
    )
    logger.info(
        "shop_order_placed",
        user_id=current_user.id,
        order_id=order.id,
        price=str(order.final_price),
        trace_id=trace_id,
    )
    return order


@router.get("/orders", response_model=list[OrderResponse])
async def my_orders(current_user: CurrentUser, db: DbSession):
    return await ShopService(db).list_orders(user_id=current_user.id)


# =============================================================================
# Staff
# =============================================================================


@admin_router.get("/items", response_model=list[ShopItemResponse])
async def admin_list_items(admin: AdminUser, db: DbSession):
    return await ShopService(db).list_items(include_inactive=True)


@admin_router.post("/items", response_model=ShopItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(request_body: ShopItemCreate, admin: AdminUser, db: DbSession):
    return await ShopService(db).create_item(request_body.model_dump())


@admin_router.patch("/items/{item_id}", response_model=ShopItemResponse)
async def update_item(
    item_id: str,
    request_body: ShopItemUpdate,
    admin: AdminUser,
    db: DbSession,
):
    return await ShopService(db).update_item(item_id, request_body.model_dump(exclude_unset=True))


@admin_router.delete("/items/{item_id}", response_model=SuccessResponse)
async def delete_item(item_id: str, admin: AdminUser, db: DbSession):
    await ShopService(db).delete_item(item_id)
    return SuccessResponse(message="Item deleted")


@admin_router.get("/coupons", response_model=list[CouponResponse])
async def list_coupons(admin: AdminUser, db: DbSession):
    return await ShopService(db).list_coupons()


@admin_router.post("/coupons", response_model=CouponResponse, status_code=status.HTTP_201_CREATED)
async def create_coupon(request_body: CouponCreate, admin: AdminUser, db: DbSession):
    return await ShopService(db).create_coupon(request_body.model_dump())


@admin_router.patch("/coupons/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: str,
    request_body: CouponUpdate,
    admin: AdminUser,
    db: DbSession,
):
    return await ShopService(db).update_coupon(
        coupon_id, request_body.model_dump(exclude_unset=True)
    )


@admin_router.delete("/coupons/{coupon_id}", response_model=SuccessResponse)
async def delete_coupon(coupon_id: str, admin: AdminUser, db: DbSession):
    await ShopService(db).delete_coupon(coupon_id)
    return SuccessResponse(message="Coupon deleted")


@admin_router.get("/orders", response_model=list[OrderResponse])
async def list_orders(
    staff: OrderStaff,
    db: DbSession,
    order_status: OrderStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return await ShopService(db).list_orders(status=order_status, limit=limit, offset=offset)


@admin_router.patch("/orders/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    request_body: OrderStatusUpdate,
    staff: OrderStaff,
    db: DbSession,
):
    """Ship, deliver or cancel an order. Cancelling refunds the buyer."""
    return await ShopService(db).update_order_status(
        order_id, request_body.status, request_body.tracking_number
    )
