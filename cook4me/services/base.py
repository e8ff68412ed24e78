# cook4me/services/base.py
"""
Shared plumbing for services backed by Supabase.

- Standardized return shape for every public store method:
    {"ok": bool, "data": ..., "error": "...", "diagnostics": {...}}
- Blocking supabase-py calls run via asyncio.to_thread so the event loop
  is never blocked.
- SDK responses (object with .data or plain dict) are normalized.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from cook4me.config.supabase import supabase_client
from cook4me.services.errors import PersistenceError

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_supabase_response(resp: Any) -> Dict[str, Any]:
    """
    Turn Supabase SDK responses (object with .data or dict) into a predictable dict.
    Returns {ok, data, status_code, raw}
    """
    if resp is None:
        # maybe_single() returns None when no row matches
        return {"ok": True, "data": None, "status_code": None, "raw": None}

    if hasattr(resp, "data"):
        status_code = getattr(resp, "status_code", None)
        ok = not (isinstance(status_code, int) and status_code >= 400)
        return {"ok": ok, "data": resp.data, "status_code": status_code, "raw": resp}

    if isinstance(resp, dict):
        status_code = resp.get("status_code", resp.get("status"))
        ok = not (isinstance(status_code, int) and status_code >= 400)
        return {"ok": ok, "data": resp.get("data"), "status_code": status_code, "raw": resp}

    return {"ok": False, "data": None, "status_code": None, "raw": str(resp)}


async def run_blocking(fn: Callable, *args, **kwargs) -> Any:
    return await asyncio.to_thread(lambda: fn(*args, **kwargs))


def make_result(
    ok: bool,
    data: Any = None,
    error: Optional[str] = None,
    diagnostics: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    res: Dict[str, Any] = {"ok": ok}
    if ok:
        res["data"] = data
    else:
        res["error"] = error or "unknown_error"
    res["diagnostics"] = diagnostics or {}
    return res


def unwrap(res: Dict[str, Any]) -> Any:
    """Return `data` of a successful result or raise PersistenceError."""
    if not res.get("ok"):
        raise PersistenceError(
            res.get("error") or "persistence_failed", res.get("diagnostics")
        )
    return res.get("data")


def first_row(data: Any) -> Optional[Dict[str, Any]]:
    if isinstance(data, list):
        return data[0] if data else None
    return data if isinstance(data, dict) else None


class SupabaseService:
    """Base for services that talk to Supabase tables or storage."""

    def __init__(self, client: Optional[Any] = None):
        self.client = client if client is not None else getattr(supabase_client, "client", None)
        if self.client is None:
            logger.warning(
                "%s: Supabase client not available. Operations will fail.",
                type(self).__name__,
            )

    async def _call_db(self, fn: Callable, *args, **kwargs) -> Dict[str, Any]:
        """
        Run a blocking SDK callable in a thread and normalize its response.
        `fn` invokes supabase-py and returns the raw response.
        """
        if self.client is None:
            return make_result(False, error="no_supabase_client")
        name = getattr(fn, "__name__", str(fn))
        try:
            logger.debug("DB call: %s args=%s", name, args)
            raw = await run_blocking(fn, *args, **kwargs)
        except Exception as exc:
            logger.exception("DB call %s raised: %s", name, exc)
            return make_result(False, error=str(exc), diagnostics={"fn": name})

        parsed = parse_supabase_response(raw)
        diagnostics = {
            "called": name,
            "status_code": parsed.get("status_code"),
        }
        if not parsed["ok"]:
            diagnostics["raw_preview"] = str(parsed.get("raw"))[:1000]
            return make_result(False, error="db_error", diagnostics=diagnostics)
        return make_result(True, data=parsed.get("data"), diagnostics=diagnostics)
