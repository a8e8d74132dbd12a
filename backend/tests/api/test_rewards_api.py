"""Daily reward, redeem code, referral and offer postback endpoint tests."""

from decimal import Decimal

import pytest


class TestDailyRewards:
    @pytest.mark.asyncio
    async def test_status_then_claim(self, test_client, auth_headers, test_user):
        status = await test_client.get("/api/v1/rewards/daily", headers=auth_headers)
        claim = await test_client.post("/api/v1/rewards/daily/claim", headers=auth_headers)
        again = await test_client.post("/api/v1/rewards/daily/claim", headers=auth_headers)

        assert status.json()["canClaim"] is True
        assert status.json()["dayToClaim"] == 1
        assert status.json()["rewards"] == [10.0, 15.0, 20.0, 25.0, 30.0, 35.0, 100.0]
        assert claim.status_code == 200
        assert claim.json()["amount"] == 10.0
        assert claim.json()["heading"] == "Day 1 Reward Claimed!"
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "DAILY_REWARD_ALREADY_CLAIMED"


class TestRedeemCodes:
    @pytest.mark.asyncio
    async def test_admin_creates_player_redeems(
        self, test_client, admin_headers, auth_headers, test_user, db_session
    ):
        created = await test_client.post(
            "/api/v1/admin/redeem-codes",
            headers=admin_headers,
            json={"code": "welcome100", "amount": 100, "maxUses": 5},
        )

        redeemed = await test_client.post(
            "/api/v1/rewards/redeem", headers=auth_headers, json={"code": " Welcome100 "}
        )
        twice = await test_client.post(
            "/api/v1/rewards/redeem", headers=auth_headers, json={"code": "WELCOME100"}
        )
        listing = await test_client.get("/api/v1/admin/redeem-codes", headers=admin_headers)

        assert created.status_code == 201
        assert redeemed.json() == {"code": "WELCOME100", "amount": 100.0}
        assert twice.status_code == 409
        assert listing.json()[0]["timesUsed"] == 1
        await db_session.refresh(test_user)
        assert test_user.wallet == Decimal("1100.00")

    @pytest.mark.asyncio
    async def test_unknown_code(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/rewards/redeem", headers=auth_headers, json={"code": "NOPE"}
        )

        assert response.status_code == 404


class TestReferrals:
    @pytest.mark.asyncio
    async def test_apply_code_after_signup(self, test_client, make_user, headers_for):
        referrer = await make_user("mentor")
        newbie = await make_user("newbie")

        applied = await test_client.post(
            "/api/v1/referral/signup",
            headers=headers_for(newbie),
            json={"referralCode": referrer.referral_code},
        )
        stats = await test_client.get("/api/v1/referral/stats", headers=headers_for(referrer))

        assert applied.status_code == 200
        assert applied.json()["referrerUsername"] == "mentor"
        assert stats.json()["totalReferrals"] == 1
        assert stats.json()["recentReferrals"][0]["username"] == "newbie"

    @pytest.mark.asyncio
    async def test_own_code(self, test_client, auth_headers, test_user):
        response = await test_client.post(
            "/api/v1/referral/signup",
            headers=auth_headers,
            json={"referralCode": test_user.referral_code},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "REFERRAL_SELF"


class TestOfferPostback:
    @pytest.mark.asyncio
    async def test_postback_pays_at_milestone(self, test_client, admin_headers, test_user):
        await test_client.put(
            "/api/v1/admin/settings/cpa_grip",
            headers=admin_headers,
            json={"points": 30, "postbackKey": "KEY", "requiredCompletions": 1},
        )

        response = await test_client.get(
            "/api/v1/offers/cpa-postback",
            params={"sub1": test_user.id, "sub2": "KEY", "offer_url_id": "offer-1"},
        )

        assert response.status_code == 200
        assert response.text == "1"
        assert test_user.wallet == Decimal("1030.00")

    @pytest.mark.asyncio
    async def test_wrong_key(self, test_client, admin_headers, test_user):
        await test_client.put(
            "/api/v1/admin/settings/cpa_grip",
            headers=admin_headers,
            json={"postbackKey": "KEY"},
        )

        response = await test_client.get(
            "/api/v1/offers/cpa-postback",
            params={"sub1": test_user.id, "sub2": "WRONG", "offer_url_id": "offer-1"},
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "OFFER_KEY_FORBIDDEN"
