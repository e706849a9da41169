from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import ConflictError, TodoError
from .repositories import ListStore, get_store
from .routers import lists as lists_router
from .services import TaskOrderingService
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "lists",
        "description": "Named todo lists and the ordered tasks inside them.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and release the store on shutdown."""
    logger.info("Starting Todo Lists backend with %s store", app.state.service.store.backend_name)
    yield
    app.state.service.store.close()
    logger.info("Todo Lists backend stopped")


def _error_response(status_code: int, error: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message, **extra})


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, store: Optional[ListStore] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        store: ListStore to use; built from settings when omitted.

    Returns:
        The application, with its TaskOrderingService on app.state.service.

    Raises:
        RuntimeError: the mongo backend is configured without MONGO_URI.
    """
    settings = settings or get_settings()
    store = store if store is not None else get_store(settings)

    app = FastAPI(
        title="Todo Lists Backend",
        description="Backend API for named todo lists with ordered tasks.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.service = TaskOrderingService(store)

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Malformed request bodies are reported like any other validation failure.

        Response format:
            {
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        return _error_response(
            400,
            "ValidationError",
            "Request validation failed",
            detail=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(TodoError)
    async def todo_error_handler(request: Request, exc: TodoError) -> JSONResponse:
        if isinstance(exc, ConflictError):
            logger.warning("Conflicting update on %s %s", request.method, request.url.path)
        elif exc.status_code >= 500:
            logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc.message)
        return _error_response(exc.status_code, type(exc).__name__, exc.message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Starlette re-raises after this handler, so the server logs the traceback
        return _error_response(500, "ServerError", "Internal server error")

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the active store backend.
        """
        return {"message": "Healthy", "backend": app.state.service.store.backend_name}

    app.include_router(lists_router.router)
    return app


app = create_app()
