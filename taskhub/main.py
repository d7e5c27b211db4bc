"""TaskHub FastAPI backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskhub import config
from taskhub.db import connection, migrations
from taskhub.errors import DashboardError, InvalidOptions
from taskhub.observability import initialize as initialize_observability, shutdown as shutdown_observability
from taskhub.routers.dashboard import dashboard_router
from taskhub.services.dashboard import invalid_options

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("taskhub")

GENERIC_ERROR_MESSAGE = "Something went wrong"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("TaskHub backend starting up")
    initialize_observability(app)

    # 1. Open the store and keep it for the process lifetime
    db = await connection.open_connection()
    app.state.db = db

    # 2. Run migrations
    await migrations.run_migrations(db)

    yield

    logger.info("TaskHub backend shutting down")
    shutdown_observability(app)
    app.state.db = None
    await connection.close_connection(db)


app = FastAPI(
    title="TaskHub API",
    description="Backend API for the TaskHub team task dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard_router)


def _error_body(message: str, errors: list[dict] | None = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


@app.exception_handler(DashboardError)
async def handle_dashboard_error(request: Request, exc: DashboardError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    message = exc.message if exc.operational or config.EXPOSE_ERROR_DETAILS else GENERIC_ERROR_MESSAGE
    errors = exc.errors if isinstance(exc, InvalidOptions) else None
    return JSONResponse(status_code=exc.status_code, content=_error_body(message, errors))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return await handle_dashboard_error(request, invalid_options(exc.errors()))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if config.EXPOSE_ERROR_DETAILS else GENERIC_ERROR_MESSAGE
    return JSONResponse(status_code=500, content=_error_body(message))


@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "db": "connected" if getattr(app.state, "db", None) is not None else "disconnected",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("taskhub.main:app", host=config.HOST, port=config.PORT)
