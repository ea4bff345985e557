from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .errors import error_response
from ..core.logging import setup_logging
from ..core.config import settings
from ..core.errors import ConfigurationError, InvoiceProcessingError
from ..services.pipeline import log_configuration
from .routers import health, invoice

logger = setup_logging()
log_configuration(settings)
app = FastAPI(title="Invoice Markup Service")


# Validation errors keep the {error, details} contract of every other failure
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc.errors()}")
    return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid request", str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(InvoiceProcessingError)
async def invoice_processing_exception_handler(request: Request, exc: InvoiceProcessingError):
    logger.error(f"Invoice processing error ({exc.status_code}): {exc.message}")
    debug = exc.debug if isinstance(exc, ConfigurationError) else None
    return error_response(exc.status_code, exc.message, exc.details, debug=debug)


# CORS_ORIGINS can be set in .env as comma-separated list
# Example: CORS_ORIGINS=http://localhost:3000,https://your-frontend.com
allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS", "GET"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(invoice.router)
