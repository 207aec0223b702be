from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .controller import TaskListController
from .errors import DuplicateId, NotFound
from .logging import configure_logging, get_logger
from .repositories import get_task_store, seed_defaults
from .routers import tasks as tasks_router
from .settings import Settings, get_settings

logger = get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "tasks",
        "description": "To-do list screen state and the intents that change it: add, rename, "
        "complete, delete and search.",
    },
]


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The lifespan opens the configured task store, seeds it on first run and
    binds a TaskListController to the running event loop so that completion
    timers fire on the same thread that serves requests.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings)
        store = get_task_store(settings)
        seed_defaults(store)
        controller = TaskListController(
            store,
            asyncio.get_running_loop(),
            completion_delay=settings.completion_delete_delay,
        )
        app.state.store = store
        app.state.controller = controller
        logger.info(
            "app_started",
            backend=settings.persistence_backend,
            completion_delay=settings.completion_delete_delay,
        )
        try:
            yield
        finally:
            controller.shutdown()
            store.close()

    app = FastAPI(
        title="To-do List",
        description="Single-screen to-do list: searchable, persisted, with delayed removal of completed tasks.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

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
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "error": "ValidationError",
                "detail": [... pydantic/fastapi error details ...],
                "message": "Request validation failed"
            }
        """
        return JSONResponse(
            status_code=422,
            content={
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
            },
        )

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        logger.info("not_found", path=request.url.path, task_id=exc.task_id)
        return JSONResponse(
            status_code=404,
            content={"error": "NotFound", "message": str(exc), "task_id": exc.task_id},
        )

    @app.exception_handler(DuplicateId)
    async def duplicate_id_handler(request: Request, exc: DuplicateId) -> JSONResponse:
        logger.error("duplicate_task_id", path=request.url.path, task_id=exc.task_id)
        return JSONResponse(
            status_code=500,
            content={"error": "DuplicateId", "message": str(exc)},
        )

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(tasks_router.router)
    return app


app = create_app()
