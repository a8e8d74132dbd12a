"""Shop endpoint tests."""

from decimal import Decimal

import pytest

SHIPPING = {
    "fullName": "Ali Khan",
    "address": "House 12, Street 4",
    "city": "Lahore",
    "phone": "03001234567",
}


async def create_item(client, headers, **overrides):
    payload = {"name": "Gaming Headset", "price": 400, "stock": 2, "category": "Gear"}
    payload.update(overrides)
    response = await client.post("/api/v1/admin/shop/items", headers=headers, json=payload)
    assert response.status_code == 201
    return response.json()


class TestCatalogue:
    @pytest.mark.asyncio
    async def test_inactive_items_hidden_from_players(self, test_client, admin_headers):
        await create_item(test_client, admin_headers)
        await create_item(test_client, admin_headers, name="Old Mouse", isActive=False)

        public = await test_client.get("/api/v1/shop/items")
        staff = await test_client.get("/api/v1/admin/shop/items", headers=admin_headers)

        assert [i["name"] for i in public.json()] == ["Gaming Headset"]
        assert len(staff.json()) == 2

    @pytest.mark.asyncio
    async def test_quote_with_coupon(self, test_client, admin_headers, auth_headers):
        item = await create_item(test_client, admin_headers)
        coupon = await test_client.post(
            "/api/v1/admin/shop/coupons",
            headers=admin_headers,
            json={"code": "eid25", "discountType": "percentage", "discountValue": 25},
        )

        response = await test_client.get(
            f"/api/v1/shop/items/{item['id']}/quote",
            headers=auth_headers,
            params={"couponCode": "EID25"},
        )

        assert coupon.json()["code"] == "EID25"
        assert response.json() == {
            "itemId": item["id"],
            "originalPrice": 400.0,
            "finalPrice": 300.0,
            "discountAmount": 100.0,
            "couponCode": "EID25",
        }


class TestOrders:
    @pytest.mark.asyncio
    async def test_purchase_and_ship(self, test_client, admin_headers, auth_headers, test_user):
        item = await create_item(test_client, admin_headers)

        order = await test_client.post(
            "/api/v1/shop/purchase",
            headers=auth_headers,
            json={"itemId": item["id"], "shipping": SHIPPING},
        )
        assert order.status_code == 201
        assert order.json()["status"] == "pending_fulfillment"
        assert test_user.wallet == Decimal("600.00")

        shipped = await test_client.patch(
            f"/api/v1/admin/shop/orders/{order.json()['id']}",
            headers=admin_headers,
            json={"status": "shipped", "trackingNumber": "TCS-123"},
        )
        mine = await test_client.get("/api/v1/shop/orders", headers=auth_headers)
        notes = await test_client.get("/api/v1/users/me/notifications", headers=auth_headers)

        assert shipped.json()["trackingNumber"] == "TCS-123"
        assert mine.json()[0]["status"] == "shipped"
        assert notes.json()["unreadCount"] == 1
        assert "TCS-123" in notes.json()["items"][0]["message"]

    @pytest.mark.asyncio
    async def test_cancel_refunds(self, test_client, admin_headers, auth_headers, test_user):
        item = await create_item(test_client, admin_headers)
        order = await test_client.post(
            "/api/v1/shop/purchase",
            headers=auth_headers,
            json={"itemId": item["id"], "shipping": SHIPPING},
        )

        response = await test_client.patch(
            f"/api/v1/admin/shop/orders/{order.json()['id']}",
            headers=admin_headers,
            json={"status": "cancelled"},
        )

        assert response.status_code == 200
        assert test_user.wallet == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_missing_shipping(self, test_client, admin_headers, auth_headers):
        item = await create_item(test_client, admin_headers)

        response = await test_client.post(
            "/api/v1/shop/purchase",
            headers=auth_headers,
            json={"itemId": item["id"], "shipping": {"fullName": "Ali Khan"}},
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["fields"] == ["address", "city", "phone"]
