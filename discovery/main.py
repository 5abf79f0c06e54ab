"""
FastAPI application entry point.

Run with: uvicorn discovery.main:app --reload
"""

from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from discovery import __version__
from discovery.core.config import settings
from discovery.core.logging import configure_logging, get_logger, bind_context, clear_context
from discovery.persistence.database import init_database
from discovery.api.dependencies import get_answer_service, get_session_controller
from discovery.api.exception_handlers import setup_exception_handlers
from discovery.api.routes import health, questions, sessions

# Configure logging before anything else
configure_logging()
log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Adds a UUID4 request_id to each request.

    The id is bound to the structlog context for every log line in the
    request and returned in the X-Request-ID response header.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup initializes the database and loads the backlog into memory.
    Shutdown stops a session that is still listening so its record is closed.
    """
    log.info(
        "application_starting",
        debug=settings.debug,
        database_path=str(settings.database_path),
        ai_extraction_enabled=settings.ai_extraction_enabled,
    )

    await init_database()
    await get_answer_service().load()

    log.info("application_started")

    yield

    log.info("application_shutting_down")
    controller = get_session_controller()
    if controller.is_listening:
        await controller.stop_session()


# Create FastAPI application
app = FastAPI(
    title="Discovery Cockpit",
    description="Live discovery-call assistant: transcript analysis and backlog answering",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware for development
if settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(CorrelationIDMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["system"])
app.include_router(sessions.router)
app.include_router(questions.router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Discovery Cockpit",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "discovery.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
