import hashlib
import json
from typing import Any

from fastapi import HTTPException

from ..services.exceptions import ServiceError

__all__ = ["bearer_token", "http_error", "weak_etag"]


def weak_etag(payload: Any) -> str:
    """Return a deterministic weak ETag for a JSON-serializable payload or string.
    dict/list payloads are normalized to compact JSON with sorted keys.
    """
    if isinstance(payload, (dict, list)):
        raw = json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str)
    elif isinstance(payload, (bytes, bytearray)):
        raw = bytes(payload).decode("utf-8", errors="ignore")
    else:
        raw = str(payload)
    return 'W/"' + hashlib.md5(raw.encode("utf-8")).hexdigest() + '"'


def bearer_token(authorization: str) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        return ""
    return authorization[len("Bearer ") :].strip()


def http_error(exc: ServiceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)
