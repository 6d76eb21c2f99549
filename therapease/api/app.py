"""Therapease FastAPI Application - Main Entry Point

Peer-support community board, private journals, and a verified
therapist directory. Every response uses the success/data/message
envelope, including errors.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from therapease.api import admin, auth, dashboard, journals, posts, therapists
from therapease.api.envelope import error_body
from therapease.config import AUTO_CREATE_TABLES, CLIENT_URL, IS_PRODUCTION
from therapease.models.base import init_db
from therapease.services.errors import ServiceError

logger = structlog.get_logger(__name__)

VERSION = "0.1.0"

# Create FastAPI app with environment-aware configuration
app = FastAPI(
    title="Therapease - Mental Health Support Platform",
    version=VERSION,
    description="Anonymous peer support, private journaling, and verified therapists",
    docs_url=None if IS_PRODUCTION else "/docs",
    redoc_url=None if IS_PRODUCTION else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Checks
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint for the load balancer"""
    return {
        "status": "healthy",
        "service": "therapease",
        "version": VERSION,
    }


@app.get("/healthz")
async def healthz():
    """Kubernetes-style health check"""
    return {"status": "ok"}


# =============================================================================
# Error Handlers
# =============================================================================

def _first_error_message(errors) -> str:
    """Render the first pydantic error as ``field: message``."""
    if not errors:
        return "Invalid request"
    error = errors[0]
    message = str(error.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Map service errors to their status; server faults stay opaque."""
    status_code = exc.status_code or 500
    if status_code >= 500:
        logger.error("service_error", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=status_code, content=error_body("Server error"))
    return JSONResponse(status_code=status_code, content=error_body(exc.message))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return a short validation message without exposing internal details"""
    return JSONResponse(status_code=400, content=error_body(_first_error_message(exc.errors())))


@app.exception_handler(PydanticValidationError)
async def model_validation_handler(request: Request, exc: PydanticValidationError):
    """Bodies validated inside an endpoint, such as registration."""
    return JSONResponse(status_code=400, content=error_body(_first_error_message(exc.errors())))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Route not found"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_body(message))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, error=str(exc), exc_type=type(exc).__name__)
    return JSONResponse(status_code=500, content=error_body("Server error"))


# =============================================================================
# API Routers
# =============================================================================

app.include_router(auth.router)
app.include_router(posts.router)
app.include_router(journals.router)
app.include_router(therapists.router)
app.include_router(admin.router)
app.include_router(dashboard.router)


# =============================================================================
# Startup/Shutdown Events
# =============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize application resources"""
    if AUTO_CREATE_TABLES:
        init_db()
        logger.info("database_tables_ensured")
    logger.info("api_starting", production=IS_PRODUCTION)


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up application resources"""
    logger.info("api_shutting_down")


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "service": "therapease",
        "description": "Mental health support platform API",
        "version": VERSION,
        "docs": None if IS_PRODUCTION else "/docs",
    }


def main() -> None:
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
