# main.py
"""
FastAPI entry point for cook4me, the AI recipe generator.

Startup/readiness checks against Supabase, request-id middleware with
structured request logging, and JSON error responses.
"""
import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cook4me.api.errors import register_error_handlers
from cook4me.api.recipes import router as recipes_router
from cook4me.api.users import router as users_router
from cook4me.config.settings import settings
from cook4me.config.supabase import supabase_client

logger = logging.getLogger("uvicorn.error")


async def _run_sync_in_executor(fn, *args, timeout: float = settings.health_check_timeout):
    """Run a blocking function in the default threadpool, bounded by `timeout`."""
    loop = asyncio.get_running_loop()
    return await asyncio.wait_for(loop.run_in_executor(None, fn, *args), timeout=timeout)


async def _supabase_healthy(timeout: float = settings.health_check_timeout) -> bool:
    try:
        return bool(await _run_sync_in_executor(supabase_client.health_check, timeout=timeout))
    except asyncio.TimeoutError:
        logger.warning("Supabase health_check timed out after %.1fs", timeout)
    except Exception as exc:
        logger.exception("Unexpected error calling supabase_client.health_check: %s", exc)
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting cook4me...")

    app.state.supabase_healthy = await _supabase_healthy()
    logger.info("Supabase health: %s", app.state.supabase_healthy)

    if not app.state.supabase_healthy and settings.fail_on_db_startup:
        logger.error("FAIL_ON_DB_STARTUP enabled and Supabase unhealthy. Aborting startup.")
        raise RuntimeError("Supabase unhealthy on startup")

    try:
        yield
    finally:
        logger.info("Shutting down cook4me...")


app = FastAPI(
    title="cook4me",
    description="Personalized AI recipe generation with saved recipes and taste profiles",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id_and_log(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.request_id = request_id
    logger.info("→ Incoming request %s %s id=%s", request.method, request.url.path, request_id)
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        logger.exception("Handler error for request id=%s: %s", request_id, exc)
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
            headers={"X-Request-Id": request_id},
        )
    logger.info("← Completed request id=%s status=%s", request_id, response.status_code)
    response.headers["X-Request-Id"] = request_id
    return response


register_error_handlers(app)
app.include_router(recipes_router, prefix="/api", tags=["recipes"])
app.include_router(users_router, prefix="/api", tags=["users"])


@app.get("/")
async def root() -> Dict[str, str]:
    return {"message": "cook4me is running!", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Liveness plus a bounded database probe; degraded rather than failing when the DB is down."""
    db_ok = await _supabase_healthy()
    body = {
        "status": "healthy" if db_ok else "degraded",
        "service": "cook4me",
        "database": "connected" if db_ok else "disconnected",
    }
    if not db_ok:
        body["diagnostics"] = supabase_client.diagnostics()
    return JSONResponse(body, status_code=200 if db_ok else 503)


@app.get("/ready")
async def readiness_check():
    """Readiness from the cached startup state, with a short one-shot check when unset."""
    supabase_state: Optional[bool] = getattr(app.state, "supabase_healthy", None)
    if supabase_state is None:
        supabase_state = await _supabase_healthy(timeout=2.0)

    if supabase_state:
        return JSONResponse({"ready": True, "database": "connected"}, status_code=200)
    return JSONResponse(
        {"ready": False, "database": "disconnected", "diagnostics": supabase_client.diagnostics()},
        status_code=503,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", 5000)), reload=True)
