"""FastAPI application: store hand histories and settle them."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ohh import hand_store
from ohh.models import (
    HandRecord,
    PositionResponse,
    SettlementResponse,
    StoreHandResponse,
)
from ohh.positions import resolve_position
from ohh.serialization import hand_from_dict, hand_to_dict
from ohh.settlement import summarize

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await hand_store.close()


app = FastAPI(title="Open Hand History API", lifespan=lifespan)

# ---------- Rate Limiting ----------

_rate_limit_enabled = os.getenv("RATE_LIMIT_ENABLED", "1") != "0"

limiter = Limiter(
    key_func=get_remote_address,
    enabled=_rate_limit_enabled,
)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please slow down."},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # tighten in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Helpers ----------


def _parse_hand(body: dict[str, Any]) -> HandRecord:
    try:
        return hand_from_dict(body)
    except ValidationError as e:
        logger.debug("Rejected hand document: %s", e)
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _load_or_404(game_number: str) -> HandRecord:
    hand = await hand_store.load_hand(game_number)
    if hand is None:
        raise HTTPException(status_code=404, detail="Hand not found")
    return hand


def _summarize(hand: HandRecord, implicit_blinds: bool) -> SettlementResponse:
    try:
        return summarize(hand, implicit_blinds=implicit_blinds)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---------- REST endpoints ----------


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.post("/api/hands/settle", response_model=SettlementResponse)
@limiter.limit("60/minute")
async def settle_hand(
    request: Request,
    body: dict[str, Any] = Body(...),
    implicit_blinds: bool = False,
):
    """Settle a hand without storing it."""
    hand = _parse_hand(body)
    return _summarize(hand, implicit_blinds)


@app.post("/api/hands", response_model=StoreHandResponse)
@limiter.limit("30/minute")
async def store_hand(request: Request, body: dict[str, Any] = Body(...)):
    hand = _parse_hand(body)
    await hand_store.store_hand(hand)
    return StoreHandResponse(game_number=hand.game_number)


@app.get("/api/hands")
@limiter.limit("30/minute")
async def list_hands(request: Request):
    return {"game_numbers": await hand_store.list_game_numbers()}


@app.get("/api/hands/{game_number}")
@limiter.limit("30/minute")
async def get_hand(request: Request, game_number: str):
    hand = await _load_or_404(game_number)
    return hand_to_dict(hand)


@app.get("/api/hands/{game_number}/settlement", response_model=SettlementResponse)
@limiter.limit("30/minute")
async def get_settlement(
    request: Request, game_number: str, implicit_blinds: bool = False
):
    hand = await _load_or_404(game_number)
    return _summarize(hand, implicit_blinds)


@app.get(
    "/api/hands/{game_number}/players/{player_id}/position",
    response_model=PositionResponse,
)
@limiter.limit("30/minute")
async def get_position(request: Request, game_number: str, player_id: int):
    hand = await _load_or_404(game_number)
    try:
        position = resolve_position(hand, player_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PositionResponse(player_id=player_id, position=position)


@app.delete("/api/hands/{game_number}")
@limiter.limit("10/minute")
async def delete_hand(request: Request, game_number: str):
    if not await hand_store.delete_hand(game_number):
        raise HTTPException(status_code=404, detail="Hand not found")
    return {"ok": True}
