"""
Main FastAPI application for the CertQuote pricing service.
"""
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from contextlib import asynccontextmanager
import logging
import logging.config
import time

# Import configuration
from certquote import __version__
from certquote.config import settings
from certquote.exceptions import PricingError, pricing_error_to_http_exception

# Import routers
from certquote.routers import pricing

# Import middleware
from certquote.middleware.logging import LoggingMiddleware
from certquote.services.pricing_service import get_pricing_service


# Application lifespan events
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logging.info(f"Starting {settings.app_name} v{settings.app_version}")

    # Load pricing configuration and reference data once; fail fast when invalid
    service = get_pricing_service()
    logging.info(
        f"Pricing data loaded: {len(service.context.reference.languages)} languages, "
        f"base rate ${service.context.config.base_rate}"
    )
    if not settings.recalculation_enabled:
        logging.warning("Recalculation endpoint not configured; quotes can be previewed but not finalized")

    settings.ensure_directories()

    yield

    logging.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Pricing engine for certified translation quotes",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan
)

# FastAPI processes middleware in REVERSE order of addition:
# LoggingMiddleware is outermost, CORSMiddleware closest to the endpoint.
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_credentials,
    allow_methods=settings.cors_methods,
    allow_headers=["*"] if settings.cors_headers == "*" else settings.cors_headers.split(','),
    expose_headers=["X-Request-ID", "X-Process-Time"]
)

# Include routers
app.include_router(pricing.router)


# Root endpoint
@app.get("/", tags=["API Info"])
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "endpoints": {
            "pricing": "/api/v1/pricing",
            "health": "/health"
        }
    }


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for monitoring and load balancers."""
    try:
        service = get_pricing_service()
    except (PricingError, FileNotFoundError) as e:
        logging.error(f"Health check failed: {e}")
        return JSONResponse(
            content={
                "status": "unhealthy",
                "pricing": "unavailable",
                "error": str(e),
                "timestamp": time.time()
            },
            status_code=503
        )

    return JSONResponse(
        content={
            "status": "healthy",
            "pricing": "loaded",
            "languages": len(service.context.reference.languages),
            "recalculation": "configured" if settings.recalculation_enabled else "not_configured",
            "timestamp": time.time()
        },
        status_code=200
    )


# Custom exception handlers
@app.exception_handler(PricingError)
async def pricing_exception_handler(request: Request, exc: PricingError):
    """Handle pricing errors raised outside endpoint bodies (e.g. dependencies)."""
    return await http_exception_handler(request, pricing_error_to_http_exception(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    safe_errors = []
    for error in exc.errors():
        safe_error = {}
        for key, value in error.items():
            if isinstance(value, (str, int, float, bool)) or value is None:
                safe_error[key] = value
            elif isinstance(value, (list, tuple)):
                safe_error[key] = [item if isinstance(item, (str, int)) else str(item) for item in value]
            else:
                safe_error[key] = str(value)
        safe_errors.append(safe_error)

    logging.warning(f"Request validation failed for {request.url.path}: {len(safe_errors)} error(s)")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": {
                "code": 422,
                "message": "Request validation failed",
                "type": "validation_error",
                "details": safe_errors
            },
            "timestamp": time.time(),
            "path": str(request.url)
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent error response format."""
    error = {
        "code": exc.status_code,
        "message": exc.detail,
        "type": "http_error"
    }
    if isinstance(exc.detail, dict):
        error.update(exc.detail)
        error["type"] = exc.detail.get("error", "http_error")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": error,
            "timestamp": time.time(),
            "path": str(request.url)
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions with error logging."""
    logging.error(f"Unhandled exception: {exc}", exc_info=True)

    if settings.debug:
        error_detail = str(exc)
    else:
        error_detail = "Internal server error"

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": 500,
                "message": error_detail,
                "type": "internal_error"
            },
            "timestamp": time.time(),
            "path": str(request.url)
        }
    )


# Development server runner
if __name__ == "__main__":
    # Configure logging
    settings.ensure_directories()
    logging.config.dictConfig(settings.log_config)

    # Run the server
    uvicorn.run(
        "certquote.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True
    )
