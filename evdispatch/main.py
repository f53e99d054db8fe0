"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from evdispatch.api.router import api_router
from evdispatch.config import get_settings
from evdispatch.dependencies import get_dispatch
from evdispatch.errors import DispatchError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx = app.dependency_overrides.get(get_dispatch, get_dispatch)()
    await ctx.init()
    yield
    await ctx.close()


app = FastAPI(
    title="EV Dispatch",
    description="Roadside assistance and charging dispatch with GPS-verified job acceptance logs.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.exception_handler(DispatchError)
async def dispatch_error_handler(request: Request, exc: DispatchError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected (%s): %s", request.method, request.url.path, exc.reason, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "reason": exc.reason})


@app.get("/health")
async def health():
    return {"status": "ok"}
