"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

# Import models for Base.metadata.create_all
from utilbill import models  # noqa: F401
from utilbill.api.routes import api_router
from utilbill.core.config import settings
from utilbill.core.database import create_tables
from utilbill.core.errors import BillingError, ErrorKind
from utilbill.core.logging import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INSUFFICIENT_DATA: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    configure_logging(settings.LOG_LEVEL)
    # Startup: Create database tables
    await create_tables()
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Utility billing and rate-of-change analytics",
    lifespan=lifespan,
)


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    """Map engine failures onto HTTP responses."""
    logger.info("%s %s failed: %s", request.method, request.url.path, exc.message)
    content = {"detail": exc.message, "kind": exc.kind.value}
    if exc.entity is not None:
        content["entity"] = exc.entity.value
    return JSONResponse(status_code=ERROR_STATUS[exc.kind], content=content)


app.include_router(api_router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "utilbill.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
