"""Offer wall postback.

Called server to server by the offer network, so it answers in plain text
and carries no bearer token. ``sub1`` is the user id, ``sub2`` the shared key.
"""

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse

from arena.api.deps import DbSession
from arena.services.offers import OfferService

router = APIRouter(prefix="/offers", tags=["Offers"])


@router.get("/cpa-postback", response_class=PlainTextResponse)
async def cpa_postback(
    db: DbSession,
    sub1: str | None = Query(default=None),
    sub2: str | None = Query(default=None),
    offer_url_id: str | None = Query(default=None),
    offer_name: str | None = Query(default=None),
):
    await OfferService(db).handle_postback(sub1, sub2, offer_url_id, offer_name)
    return PlainTextResponse("1")
