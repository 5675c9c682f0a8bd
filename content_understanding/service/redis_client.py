from __future__ import annotations

import redis
from redis import Redis

from ..config import Settings


def create_redis_client(cfg: Settings) -> Redis:
    return redis.Redis(
        host=cfg.REDIS_HOST,
        port=cfg.REDIS_PORT,
        db=cfg.REDIS_DB,
        password=cfg.REDIS_PASSWORD,
        decode_responses=True,   # 统一用 str
        socket_connect_timeout=2,
        socket_timeout=5,
    )
