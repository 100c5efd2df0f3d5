from __future__ import annotations

import logging
from logging.config import dictConfig
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1.router import api_router
from core.config import settings
from core.errors import SalonFlowError, ValidationError
from db.database import close_database
from schemas.validation import field_errors


def configure_logging() -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                    "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "level": settings.log_level,
                }
            },
            "root": {"handlers": ["console"], "level": settings.log_level},
            "loggers": {
                "pymongo": {"level": "WARNING"},
            },
        }
    )


configure_logging()
logger = logging.getLogger(__name__)


async def salonflow_error_handler(request: Request, exc: SalonFlowError) -> JSONResponse:
    logger.info(
        "request.rejected",
        extra={"path": str(request.url.path), "error": exc.kind, "detail": exc.message},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(field_errors(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


def create_app() -> FastAPI:
    app = FastAPI(title="SalonFlow Backend", version="0.1.0")

    origins = settings.cors_origins
    # Browsers refuse credentials with a wildcard origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SalonFlowError, salonflow_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(api_router, prefix="/api/v1")

    @app.on_event("shutdown")
    async def _close_db() -> None:
        await close_database()

    @app.get("/")
    async def root_health() -> dict[str, str]:
        return {"status": "ok"}

    logger.info("Application initialized")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
