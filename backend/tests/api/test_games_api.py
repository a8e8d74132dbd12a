"""Mini-game endpoint tests.

Outcomes are pinned through the admin settings so results are deterministic.
"""

from decimal import Decimal

import pytest


async def configure(client, headers, section, data):
    response = await client.put(f"/api/v1/admin/settings/{section}", headers=headers, json=data)
    assert response.status_code == 200
    return response.json()


class TestSpinWheel:
    @pytest.mark.asyncio
    async def test_losing_spin(self, test_client, admin_headers, auth_headers, test_user):
        await configure(test_client, admin_headers, "spin_wheel", {"winRate": 0})

        response = await test_client.post(
            "/api/v1/games/spin-wheel", headers=auth_headers, json={"betAmount": 100}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["prizeAmount"] == 0.0
        assert body["multiplier"] == 0
        assert body["currency"] == "pkr"
        assert len(body["segments"]) == 8
        assert test_user.wallet == Decimal("900.00")

    @pytest.mark.asyncio
    async def test_below_minimum(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/games/spin-wheel", headers=auth_headers, json={"betAmount": 5}
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"] == {"minimum": 10.0}

    @pytest.mark.asyncio
    async def test_disabled(self, test_client, admin_headers, auth_headers):
        await configure(test_client, admin_headers, "spin_wheel", {"enabled": False})

        response = await test_client.post(
            "/api/v1/games/spin-wheel", headers=auth_headers, json={"betAmount": 100}
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "GAME_DISABLED"


class TestDragonTiger:
    @pytest.mark.asyncio
    async def test_forced_tie(self, test_client, admin_headers, auth_headers, test_user):
        await configure(test_client, admin_headers, "dragon_tiger", {"tieFrequency": 100})

        response = await test_client.post(
            "/api/v1/games/dragon-tiger",
            headers=auth_headers,
            json={"bets": {"tie": 10}},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["winner"] == "Tie"
        assert body["dragonCard"]["value"] == body["tigerCard"]["value"]
        assert body["payout"] == 90.0
        assert body["winnings"] == 80.0
        assert test_user.wallet == Decimal("1080.00")

    @pytest.mark.asyncio
    async def test_empty_bet(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/v1/games/dragon-tiger", headers=auth_headers, json={"bets": {}}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "GAME_INVALID_BET"


class TestDuels:
    @pytest.mark.asyncio
    async def test_lost_duel(
        self, test_client, admin_headers, auth_headers, test_user, db_session
    ):
        await configure(test_client, admin_headers, "duels", {"botWinChance": 1})
        started = await test_client.post(
            "/api/v1/games/duels", headers=auth_headers, json={"betAmount": 100}
        )
        match_id = started.json()["id"]
        url = f"/api/v1/games/duels/{match_id}/round"

        rounds = [
            await test_client.post(url, headers=auth_headers, json={"move": "Rock"})
            for _ in range(3)
        ]
        finished = await test_client.post(url, headers=auth_headers, json={"move": "Rock"})

        assert started.status_code == 201
        assert started.json()["playerHealth"] == 3
        last = rounds[-1].json()
        assert last["botMove"] == "Paper"
        assert last["roundWinner"] == "Bot"
        assert last["match"]["status"] == "lost"
        assert len(last["match"]["roundsLog"]) == 3
        assert finished.status_code == 409
        # The rejected request rolled the session back
        await db_session.refresh(test_user)
        assert test_user.wallet == Decimal("900.00")

    @pytest.mark.asyncio
    async def test_invalid_move(self, test_client, auth_headers):
        started = await test_client.post(
            "/api/v1/games/duels", headers=auth_headers, json={"betAmount": 50}
        )

        response = await test_client.post(
            f"/api/v1/games/duels/{started.json()['id']}/round",
            headers=auth_headers,
            json={"move": "Lizard"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_duels(self, test_client, auth_headers):
        await test_client.post("/api/v1/games/duels", headers=auth_headers, json={"betAmount": 50})

        response = await test_client.get("/api/v1/games/duels", headers=auth_headers)

        assert response.status_code == 200
        assert [d["bet"] for d in response.json()] == [50.0]
