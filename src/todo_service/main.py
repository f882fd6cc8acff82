from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import InvalidArgumentError, ServiceError
from .routers import todos as todos_router
from .service import API_VERSION, ToDoService
from .settings import Settings, get_settings
from .store import SQLiteStore

logger = logging.getLogger(__name__)

_REMINDER_LOC = ("body", "todo", "reminder")


def _only_reminder_errors(errors: Sequence[Mapping[str, Any]]) -> bool:
    return bool(errors) and all(tuple(e.get("loc", ()))[:3] == _REMINDER_LOC for e in errors)


def _service_error_response(exc: ServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todo",
        "description": "Create, read, update and delete ToDo tasks with an API version check.",
    },
]


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The store is created once when the application starts and closed once when
    it shuts down. Without explicit ``settings`` they are read from the
    environment at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        cfg = settings or get_settings()
        store = SQLiteStore(
            cfg.db_path,
            pool_size=cfg.pool_size,
            acquire_timeout=cfg.acquire_timeout,
            statement_timeout=cfg.statement_timeout,
        )
        await store.open()
        app.state.store = store
        app.state.service = ToDoService(store)
        logger.info("ToDo service ready api=%s db=%s", API_VERSION, cfg.db_path)
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(
        title="ToDo Service",
        description="ToDo task service backed by a relational table, with API version checking.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    origins = (settings or get_settings()).cors_allow_origins
    allow_all = (origins == ["*"]) or (len(origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else origins,
        # Browsers reject credentialed responses with a wildcard origin.
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """
        Return classified service failures as JSON.

        Response format:
            {"error": "<classification>", "message": "<text with underlying cause>"}
        """
        return _service_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        A reminder that cannot be decoded as a timestamp is an invalid argument,
        reported the same way the service reports out-of-range reminders.
        """
        errors = exc.errors()
        if _only_reminder_errors(errors):
            first = errors[0]
            return _service_error_response(
                InvalidArgumentError(f"reminder field has invalid format-> {first.get('msg', '')}")
            )
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(errors),
            },
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "database": request.app.state.store.path}

    app.include_router(todos_router.router)
    return app


app = create_app()
