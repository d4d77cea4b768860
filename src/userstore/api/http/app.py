"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from src.userstore import __version__
from src.userstore.api.http.app_data import ApplicationDependencies
from src.userstore.api.http.routers.health import router as health_router
from src.userstore.api.http.routers.users import router as users_router
from src.userstore.api.http.schemas import envelope
from src.userstore.api.utils.app_startup import configure_logging
from src.userstore.core.errors import StorageError, UserStoreError, ValidationError
from src.userstore.core.services import DbSessionService
from src.userstore.runtime.context import get_config

AVAILABLE_ROUTES = [
    "GET /",
    "GET /health",
    "POST /users",
    "GET /users",
    "GET /users/search?q=",
    "GET /users/stats",
    "GET /users/city/:city",
    "GET /users/gender/:gender",
    "GET /users/:id",
    "POST /users/:id",
    "DELETE /users/:id",
]


# Initialize logging
configure_logging()


# --- FastAPI app setup ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


app = FastAPI(
    title="Users CRUD API",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if get_config().app.environment == "production" else "/docs",
    redoc_url=None if get_config().app.environment == "production" else "/redoc",
)

# expose startup for tests
__all__ = ["app", "startup", "shutdown"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().app.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Correlation / tracing
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content=envelope(success=False, message="Internal server error"),
                headers={"X-Request-ID": request_id},
            )


# --- Exception handlers ---
def _error_body(exc: UserStoreError) -> dict[str, Any]:
    fields: dict[str, Any] = {"success": False, "message": exc.message}
    if isinstance(exc, ValidationError) and exc.errors:
        fields["errors"] = exc.errors
    if isinstance(exc, StorageError) and get_config().app.environment == "development":
        fields["error"] = exc.detail
    return envelope(**fields)


@app.exception_handler(UserStoreError)
async def user_store_error_handler(request: Request, exc: UserStoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.opt(exception=exc).error("{}: {}", type(exc).__name__, exc.message)
    else:
        logger.bind(status_code=exc.status_code).warning(
            "{}: {}", type(exc).__name__, exc.message
        )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.opt(exception=exc).error("Unhandled storage failure")
    error = StorageError(str(exc))
    return JSONResponse(status_code=error.status_code, content=_error_body(error))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=envelope(success=False, message="Validation failed", errors=errors),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code == 404:
        content = envelope(success=False, message="Route not found")
        content["available_routes"] = AVAILABLE_ROUTES
    else:
        content = envelope(success=False, message=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=exc.headers
    )


# --- Router registration ---
app.include_router(health_router)
app.include_router(users_router)


# --- Lifecycle hooks ---
async def startup() -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)
    # Validate configuration so we fail fast on misconfiguration
    config.validate_runtime()

    # Dependencies injected before startup (tests) belong to their creator
    if getattr(app.state, "app_dependencies", None) is None:
        app.state.app_dependencies = ApplicationDependencies(
            database_service=DbSessionService()
        )
        app.state.owns_dependencies = True
    else:
        app.state.owns_dependencies = False

    if config.database.create_tables:
        app.state.app_dependencies.database_service.create_all()


async def shutdown() -> None:
    logger.info("Shutting down application")
    if getattr(app.state, "owns_dependencies", False):
        app_dependencies: ApplicationDependencies = app.state.app_dependencies
        app_dependencies.database_service.dispose()
        app.state.app_dependencies = None
        app.state.owns_dependencies = False


# --- Route handlers ---
@app.get("/")
def root() -> dict[str, Any]:
    """Service information and field documentation."""
    return {
        "message": "Users CRUD API",
        "version": __version__,
        "endpoints": {
            "POST /users": "Create a new user",
            "GET /users": "Get all users (limit, offset, city, gender, search)",
            "GET /users/search?q=": "Search users by name or email",
            "GET /users/stats": "Get user statistics",
            "GET /users/city/:city": "Get users in a city",
            "GET /users/gender/:gender": "Get users by gender",
            "GET /users/:id": "Get user by ID",
            "POST /users/:id": "Update user by ID",
            "DELETE /users/:id": "Delete user by ID",
            "GET /health": "Service and database status",
        },
        "documentation": {
            "userSchema": {
                "id": "UUID (auto-generated)",
                "name": "string (required)",
                "email": "string (required, valid email format)",
                "phone": "string (required)",
                "city": "string (required)",
                "gender": "string (required: male, female, or other)",
                "age": "number (required, 0-150)",
            }
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=get_config().app.host,
        port=get_config().app.port,
        access_log=False,  # We handle access logging in middleware
    )
