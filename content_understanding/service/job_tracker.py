from __future__ import annotations

import json
import time
import uuid
from typing import Any

from ..config import settings


class JobTracker:
    """Manage per-request job keys, idempotency locks, and status storage in Redis."""

    def __init__(self, redis_client, key_prefix: str | None = None):
        self.r = redis_client
        prefix = key_prefix or settings.REDIS_KEY_PREFIX
        # Avoid double colon when caller already provides trailing ':'
        self.key_prefix = prefix.rstrip(":")

    def _key(self, kind: str, request_id: str) -> str:
        return f"{self.key_prefix}:{kind}:{request_id}"

    def ensure_request_id(self, request_id: str | None) -> str:
        return request_id or str(uuid.uuid4())

    def get_job(self, request_id: str) -> tuple[str, dict[str, Any] | None]:
        job_key = self._key("job", request_id)
        raw = self.r.get(job_key)
        return job_key, json.loads(raw) if raw else None

    def acquire_lock(self, request_id: str, ttl: int) -> tuple[str | None, str]:
        lock_key = self._key("lock", request_id)
        token = str(uuid.uuid4())
        got_lock = self.r.set(lock_key, token, nx=True, ex=ttl)
        return (token if got_lock else None), lock_key

    def release_lock(self, request_id: str, token: str) -> None:
        lock_key = self._key("lock", request_id)
        cur = self.r.get(lock_key)
        if cur == token:
            self.r.delete(lock_key)

    def set_status(self, request_id: str, status: str, *, result: Any = None, error: str | None = None, ttl: int = 0) -> tuple[str, dict[str, Any]]:
        job_key = self._key("job", request_id)
        payload = {"status": status, "result": result, "error": error}
        self.r.set(job_key, json.dumps(payload), ex=ttl or None)
        return job_key, payload


class InMemoryJobTracker:
    """Same interface as ``JobTracker`` for single-process runs without Redis."""

    def __init__(self, key_prefix: str | None = None):
        self.key_prefix = (key_prefix or settings.REDIS_KEY_PREFIX).rstrip(":")
        self._jobs: dict[str, tuple[dict[str, Any], float | None]] = {}
        self._locks: dict[str, tuple[str, float]] = {}

    def _key(self, kind: str, request_id: str) -> str:
        return f"{self.key_prefix}:{kind}:{request_id}"

    def ensure_request_id(self, request_id: str | None) -> str:
        return request_id or str(uuid.uuid4())

    def get_job(self, request_id: str) -> tuple[str, dict[str, Any] | None]:
        job_key = self._key("job", request_id)
        entry = self._jobs.get(job_key)
        if entry is None:
            return job_key, None
        payload, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._jobs[job_key]
            return job_key, None
        return job_key, dict(payload)

    def acquire_lock(self, request_id: str, ttl: int) -> tuple[str | None, str]:
        lock_key = self._key("lock", request_id)
        now = time.monotonic()
        held = self._locks.get(lock_key)
        if held and held[1] > now:
            return None, lock_key
        token = str(uuid.uuid4())
        self._locks[lock_key] = (token, now + ttl)
        return token, lock_key

    def release_lock(self, request_id: str, token: str) -> None:
        lock_key = self._key("lock", request_id)
        held = self._locks.get(lock_key)
        if held and held[0] == token:
            del self._locks[lock_key]

    def set_status(self, request_id: str, status: str, *, result: Any = None, error: str | None = None, ttl: int = 0) -> tuple[str, dict[str, Any]]:
        job_key = self._key("job", request_id)
        payload = {"status": status, "result": result, "error": error}
        self._jobs[job_key] = (payload, time.monotonic() + ttl if ttl else None)
        return job_key, payload
