from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request):
    r = getattr(request.app.state, "redis", None)
    redis_ok = None
    if r is not None:
        try:
            r.ping()
            redis_ok = True
        except Exception:
            redis_ok = False

    return {"status": "ok", "service": "content-understanding", "redis": redis_ok}
