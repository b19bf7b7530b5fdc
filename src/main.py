"""FastAPI application entry point.

Run with: uvicorn src.main:app --loop uvloop --port 8000
     or:  python -m src.main
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.acc_common.database import engine
from src.acc_common.errors import AppError, ResourceDirNotFoundError
from src.acc_common.request_log import RequestLogMiddleware
from src.acc_common.resources import find_resource_dir
from src.acc_common.response import error_response
from src.acc_ledger.api.router import router as ledger_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: locate resources, verify DB connection. Shutdown: dispose."""
    try:
        app.state.resource_dir = find_resource_dir(
            settings.RESOURCE_NAME,
            settings.RESOURCE_VERSION,
            extra=settings.RESOURCE_SEARCH_PATHS,
        )
    except ResourceDirNotFoundError as exc:
        logger.warning("%s; continuing without resources", exc.message)
        app.state.resource_dir = None

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if not exc.recoverable:
        logger.error("Contract violation on %s: %s", request.url.path, exc.message)
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(ledger_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.DEBUG else logging.INFO)
    uvicorn.run("src.main:app", host="0.0.0.0", port=8000, loop="uvloop")
