from __future__ import annotations
import base64
from typing import Any, Dict, Iterable

from .model import Report


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def report_asdict(res: Report, *, fields: Iterable[str] | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable dict (skip None) optionally filtered."""
    if not res.success or res.data is None:
        payload = {"success": False, "error": res.error}
        if res.data:
            # keep the partial counts so a failing source still shows progress
            payload.update({k: v for k, v in res.data.items() if v is not None})
        payload.update({"bytes_fetched": res.bytes_fetched, "requests_made": res.requests_made})
        return payload
    payload = {k: v for k, v in res.data.items() if v is not None}
    if fields:
        wanted = set(fields)
        payload = {k: v for k, v in payload.items() if k in wanted}
    payload.update({"success": True, "bytes_fetched": res.bytes_fetched, "requests_made": res.requests_made})
    return payload
