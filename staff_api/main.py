from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from staff_api.api.router import api_router
from staff_api.core.config import Settings, settings
from staff_api.services.employee_service import employee_service

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(config: Settings) -> None:
    level = logging.DEBUG if config.DEBUG else config.LOG_LEVEL.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings)
    # An unreachable store aborts startup.
    await employee_service.initialize(settings)
    logger.info("Staff API started (version=%s)", settings.APP_VERSION)
    yield
    await employee_service.close()


app = FastAPI(
    title="Staff API",
    description="Employees with their department and role language",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CORS_ALLOWED_ORIGIN],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    logger.debug("Rejected request body on %s: %s", request.url.path, exc.errors())
    return PlainTextResponse("invalid request body", status_code=status.HTTP_400_BAD_REQUEST)


app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Staff API"}


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
