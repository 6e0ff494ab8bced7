"""FastAPI application entry point."""

import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from chefgenius.api.routes import cooking, health, ingredients, library, meal_plan, profile, recipes
from chefgenius.config import settings
from chefgenius.core.request_id import get_request_id
from chefgenius.middleware.logging import RequestLoggingMiddleware
from chefgenius.middleware.performance import PerformanceMiddleware
from chefgenius.middleware.rate_limit import limiter
from chefgenius.middleware.security import SecurityHeadersMiddleware, setup_compression, setup_cors
from chefgenius.services.gemini_service import GeminiService
from chefgenius.services.kitchen import KitchenSession
from chefgenius.services.persistence import PersistenceStore
from chefgenius.utils.exceptions import (
    ChefGeniusException,
    ConflictError,
    GeminiError,
    ImageProcessingError,
    NotFoundError,
    StorageError,
    TransientServiceError,
    ValidationError,
)
from chefgenius.utils.logging_config import setup_logging

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ChefGenius API",
    description="Fridge-to-table cooking assistant powered by Gemini",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Checked in order; subclasses before their bases
_ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Validation error"),
    (ImageProcessingError, status.HTTP_400_BAD_REQUEST, "Image processing error"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "Not found"),
    (ConflictError, status.HTTP_409_CONFLICT, "Request already in progress"),
    (StorageError, status.HTTP_507_INSUFFICIENT_STORAGE, "Could not save your changes"),
    (GeminiError, status.HTTP_502_BAD_GATEWAY, "Gemini API error"),
    (TransientServiceError, status.HTTP_503_SERVICE_UNAVAILABLE, "Service temporarily unavailable"),
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors with detailed messages."""
    request_id = get_request_id()
    logger.warning(
        f"Validation error: {str(exc)}",
        extra={"request_id": request_id, "path": request.url.path, "errors": exc.errors()},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation error", "detail": exc.errors(), "request_id": request_id},
    )


@app.exception_handler(ChefGeniusException)
async def chefgenius_exception_handler(request: Request, exc: ChefGeniusException) -> JSONResponse:
    """Map application exceptions to status codes and a uniform error body."""
    request_id = get_request_id()

    status_code, error_message = status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
    for exc_type, code, message in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            status_code, error_message = code, message
            break

    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Exception: {error_message}",
        extra={"request_id": request_id, "path": request.url.path, "exception": str(exc)},
        exc_info=status_code >= 500,
    )

    return JSONResponse(
        status_code=status_code,
        content={"error": error_message, "detail": str(exc), "request_id": request_id},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = get_request_id()
    logger.error(f"Unexpected exception: {str(exc)}", extra={"request_id": request_id}, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred",
            "request_id": request_id,
        },
    )


# Add middleware (order matters: last added runs first)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(PerformanceMiddleware)
app.add_middleware(RequestLoggingMiddleware)
setup_compression(app)
setup_cors(app)

app.include_router(health.router)
app.include_router(profile.router)
app.include_router(ingredients.router)
app.include_router(recipes.router)
app.include_router(library.router)
app.include_router(meal_plan.router)
app.include_router(cooking.router)


@app.on_event("startup")
async def startup_event():
    """Open the user's stored state and start the kitchen session."""
    logger.info("ChefGenius API starting up...")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Rate limit: {settings.rate_limit_per_hour} requests/hour")
    if getattr(app.state, "kitchen", None) is None:
        store = PersistenceStore.open(settings.storage_path)
        app.state.kitchen = KitchenSession(GeminiService(), store)
        logger.info(f"Storage: {settings.storage_path}")
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; generation endpoints will fail")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop timers, voice listening and playback."""
    kitchen = getattr(app.state, "kitchen", None)
    if kitchen is not None:
        kitchen.close()
    logger.info("ChefGenius API shutting down...")


@app.get("/")
async def root():
    return {
        "name": "ChefGenius API",
        "version": "1.0.0",
        "docs": "/docs",
    }


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
