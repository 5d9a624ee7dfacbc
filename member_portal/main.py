"""FastAPI application entry point."""
from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import public_router, router
from .db import Store
from .errors import PortalError
from .services import init_db, seed_defaults
from .settings import settings

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    log_file_path = settings.log_file
    log_file_parent = log_file_path.parent
    if not log_file_parent.exists():
        log_file_parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file_path),
        ],
        force=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing application lifespan")
    store: Store = app.state.store
    try:
        logger.info("Initializing database")
        init_db(store)
        if settings.seed_defaults:
            try:
                seed_defaults(store, include_demo=settings.seed_demo_data)
            except Exception:
                logger.exception("Failed to seed default data; continuing without it")
        logger.info("Lifespan startup complete")
        yield
        logger.info("Lifespan shutdown initiated")
    except Exception:
        logger.exception("Lifespan encountered an error")
        raise
    finally:
        store.dispose()
        logger.info("Lifespan cleanup completed")


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    logger.info("Rejected request to %s: %s", request.url.path, message)
    return JSONResponse(status_code=400, content={"message": message})


def create_app(store: Store | None = None) -> FastAPI:
    """Build the application around an explicitly constructed store."""

    app = FastAPI(title="Member Portal", lifespan=lifespan)
    app.state.store = store or Store(settings.database_url)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(PortalError, _portal_error_handler)
    app.include_router(public_router)
    app.include_router(router)
    return app


app = create_app()


def main() -> None:
    """Run the ASGI server."""
    configure_logging()
    logger.info(
        "Logger configured: path=%s level=%s",
        settings.log_file.resolve(),
        logging.getLevelName(logger.getEffectiveLevel()),
    )
    logger.info(
        "Server configuration: host=%s port=%s seed_defaults=%s seed_demo_data=%s",
        settings.host,
        settings.port,
        settings.seed_defaults,
        settings.seed_demo_data,
    )
    uvicorn.run(
        "member_portal.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    main()
