"""Portfolio Contact Service - FastAPI server for the website contact form."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.shared.contact.config import ContactSettings, load_settings, validate_settings
from src.shared.contact.database import DatabaseRateLimitStore, create_rate_limit_engine
from src.shared.contact.handler import ContactFormHandler
from src.shared.contact.maintenance import ContactMaintenance
from src.shared.contact.rate_limit import InMemoryRateLimitStore, JsonFileRateLimitStore, RateLimitStore
from src.shared.contact.routes import router as contact_router
from src.shared.contact.submission_log import TIMESTAMP_FORMAT, SubmissionLog


def build_rate_limit_store(settings: ContactSettings) -> RateLimitStore:
    """Create the rate limit store selected by settings.rate_limit_backend."""
    backend = settings.rate_limit_backend.lower()
    if backend == "memory":
        return InMemoryRateLimitStore()
    if backend == "database":
        if not settings.rate_limit_database_url:
            raise ValueError(
                "DATABASE_URL environment variable is required for the database rate limit backend."
            )
        return DatabaseRateLimitStore(create_rate_limit_engine(settings.rate_limit_database_url))
    if backend == "file":
        return JsonFileRateLimitStore(settings.rate_limit_file)
    raise ValueError(f"Invalid rate limit backend: {settings.rate_limit_backend}")


def _cors_headers(request: Request, allowed_origins: list) -> dict:
    """CORS headers for responses produced outside the CORS middleware."""
    headers = {}
    origin = request.headers.get("origin")
    if origin and ("*" in allowed_origins or origin in allowed_origins):
        headers["Access-Control-Allow-Origin"] = "*" if "*" in allowed_origins else origin
        headers["Access-Control-Allow-Methods"] = "POST"
        headers["Access-Control-Allow-Headers"] = "Content-Type"
    return headers


def create_app(settings: Optional[ContactSettings] = None,
               handler: Optional[ContactFormHandler] = None,
               maintenance: Optional[ContactMaintenance] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Contact settings (loaded from the environment if omitted)
        handler: Pre-built handler, e.g. with a fake mailer in tests
        maintenance: Pre-built maintenance runner

    Returns:
        Configured FastAPI app
    """
    if settings is None:
        settings = handler.settings if handler else load_settings()

    if handler is None:
        submission_log = SubmissionLog(settings)
        handler = ContactFormHandler(
            settings,
            build_rate_limit_store(settings),
            submission_log=submission_log,
        )
    if maintenance is None:
        maintenance = ContactMaintenance(settings, handler.rate_limit_store, handler.submission_log)

    app = FastAPI(
        title="Portfolio Contact Service",
        description="Contact form endpoint for the portfolio website",
        version="0.1.0"
    )
    app.state.settings = settings
    app.state.contact_handler = handler
    app.state.maintenance = maintenance

    @app.on_event("startup")
    async def startup_event():
        handler.submission_log.configure_error_log()
        validate_settings(settings)
        if settings.enable_scheduler:
            try:
                maintenance.start()
            except Exception as e:
                # Requests are still served; old entries are pruned on the next start
                logging.error(f"Maintenance scheduler failed to start: {str(e)}")

    @app.on_event("shutdown")
    async def shutdown_event():
        maintenance.shutdown()
        handler.submission_log.close()

    # Include contact routes
    app.include_router(contact_router)

    # CORS configuration - must be added before exception handlers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["POST"],
        allow_headers=["Content-Type"],
    )

    def error_response(request: Request, status_code: int, message: str) -> JSONResponse:
        timestamp = datetime.now(settings.local_timezone()).strftime(TIMESTAMP_FORMAT)
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "message": message, "data": None, "timestamp": timestamp},
            headers=_cors_headers(request, settings.cors_origins),
        )

    # Global exception handlers keep the {success, message, data, timestamp} shape
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Convert FastAPI HTTP exceptions to the contact response shape."""
        message = exc.detail if isinstance(exc.detail, str) else settings.error_message("general_error")
        return error_response(request, exc.status_code, message)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Convert Starlette HTTP exceptions (404, 405 on other routes) to the contact response shape."""
        if exc.status_code == 405:
            return error_response(request, 405, settings.error_message("invalid_method"))
        message = exc.detail if isinstance(exc.detail, str) else settings.error_message("general_error")
        return error_response(request, exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(request, 422, settings.error_message("general_error"))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Log unhandled exceptions and answer with the general error message."""
        logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return error_response(request, 500, settings.error_message("general_error"))

    @app.get("/")
    async def root():
        return {"message": "Portfolio Contact Service is running", "status": "ok"}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
