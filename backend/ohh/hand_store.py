"""Redis-backed storage for serialized hand histories."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional

import redis.asyncio as redis

from ohh.models import HandRecord
from ohh.serialization import hand_from_dict, hand_to_dict

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
HAND_TTL_SECONDS = int(os.getenv("HAND_TTL_SECONDS", "0"))  # 0 = keep forever

_pool: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    global _pool
    if _pool is None:
        _pool = redis.from_url(REDIS_URL, decode_responses=True)
    return _pool


def _hand_key(game_number: str) -> str:
    return f"hand:{game_number}"


def _index_key() -> str:
    return "hands"


async def store_hand(hand: HandRecord) -> None:
    r = await get_redis()
    payload = json.dumps(hand_to_dict(hand))
    if HAND_TTL_SECONDS > 0:
        await r.set(_hand_key(hand.game_number), payload, ex=HAND_TTL_SECONDS)
    else:
        await r.set(_hand_key(hand.game_number), payload)
    await r.sadd(_index_key(), hand.game_number)
    logger.info("Stored hand %s", hand.game_number)


async def load_hand_data(game_number: str) -> Optional[dict[str, Any]]:
    r = await get_redis()
    raw = await r.get(_hand_key(game_number))
    if raw is None:
        return None
    return json.loads(raw)


async def load_hand(game_number: str) -> Optional[HandRecord]:
    data = await load_hand_data(game_number)
    if data is None:
        return None
    return hand_from_dict(data)


async def list_game_numbers() -> list[str]:
    """Game numbers of every stored hand, sorted."""
    r = await get_redis()
    numbers = await r.smembers(_index_key())
    return sorted(numbers)


async def delete_hand(game_number: str) -> bool:
    """Remove a stored hand. Returns False if it was not stored."""
    r = await get_redis()
    removed = await r.delete(_hand_key(game_number))
    await r.srem(_index_key(), game_number)
    if removed:
        logger.info("Deleted hand %s", game_number)
    return bool(removed)


async def close() -> None:
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None
