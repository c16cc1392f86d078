from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .log import configure_logging, get_logger
from .routers import days as days_router
from .routers import diary as diary_router
from .routers import todos as todos_router
from .settings import get_settings
from .state import get_app_state

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "day", "description": "The selected day shared by the diary and the todo list."},
    {"name": "todos", "description": "Todo items of the selected day."},
    {"name": "diary", "description": "Diary entry of the selected day, with debounced autosave."},
]

_settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(_settings.log_level, _settings.log_json)
    logger.info("app_started", backend=_settings.persistence_backend)
    yield
    if get_app_state.cache_info().currsize:
        get_app_state().shutdown()
        get_app_state.cache_clear()
    logger.info("app_stopped")


app = FastAPI(
    title="MyDiary Backend",
    description="Per-day diary and todo list backed by a local record store.",
    version="0.1.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handlers for consistent JSON on validation errors
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
            "detail": jsonable_encoder(exc.errors()),
        },
    )


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy", "backend": _settings.persistence_backend}


# Include routers
app.include_router(days_router.router)
app.include_router(todos_router.router)
app.include_router(diary_router.router)
