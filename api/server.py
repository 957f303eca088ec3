"""FastAPI server for the farm activity ingestion service.

Main entry point for the API server.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Type

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import activities, approvals, health
from core import __version__
from core.errors import (
    ApprovalStateError,
    AuthorizationError,
    IngestionError,
    NotFoundError,
    UpstreamTimeoutError,
)
from core.observability.logging import get_logger


logger = get_logger(__name__)

# Errors that escape the ingestion response envelope (approval review)
ERROR_STATUS: Dict[Type[IngestionError], int] = {
    AuthorizationError: 403,
    NotFoundError: 404,
    ApprovalStateError: 409,
    UpstreamTimeoutError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("Farm activity API starting up...")
    yield
    logger.info("Farm activity API shutting down...")


async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    return JSONResponse(status_code=status, content=exc.to_dict())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Farm Activity API",
        description="Voice-driven farm activity logging with manager approval",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(IngestionError, ingestion_error_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(activities.router, prefix="/activities", tags=["Activities"])
    app.include_router(approvals.router, prefix="/approvals", tags=["Approvals"])

    return app


# Default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=True)
