"""
FastAPI application for the Stellar Skies Console.

Usage:
    # Development server with auto-reload
    uvicorn stellar_console.api.main:app --reload --host 0.0.0.0 --port 8000

    # Debug mode (verbose logging)
    LOG_LEVEL=DEBUG uvicorn stellar_console.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import config
from ..tools.registry import registry
from ..tracing import init_tracing_client, shutdown_tracing
from .routes import chat, health
from .sessions import sessions


def configure_logging():
    """Configure logging based on LOG_LEVEL environment variable."""
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("stellar_console").setLevel(log_level)


configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Stellar Skies Console API server")

    logger.info("=" * 60)
    logger.info("ORCHESTRATOR CONFIGURATION")
    logger.info(f"  Planner: {config.orchestrator.planner}")
    logger.info(f"  Max Steps: {config.orchestrator.max_steps}")
    logger.info(f"  Timeout: {config.orchestrator.timeout_seconds}s")
    if config.orchestrator.planner == "llm":
        logger.info(f"  Base URL: {config.llm.base_url}")
        logger.info(f"  Model: {config.llm.model}")
        logger.info(f"  Temperature: {config.llm.temperature}")

    logger.info("-" * 60)
    logger.info("REGISTERED TOOLS")
    for name, tool in registry.all_tools().items():
        logger.info(f"  - {name}: {tool.description[:60]}...")

    logger.info("-" * 60)
    logger.info("LANGFUSE OBSERVABILITY")
    tracing_client = init_tracing_client(
        public_key=config.langfuse.public_key,
        secret_key=config.langfuse.secret_key,
        host=config.langfuse.host,
        debug=config.langfuse.debug,
    )
    if tracing_client.enabled:
        logger.info("  Status: ENABLED")
        logger.info(f"  Host: {config.langfuse.host or 'https://cloud.langfuse.com'}")
    else:
        logger.info("  Status: DISABLED")
        if tracing_client.error:
            logger.info(f"  Reason: {tracing_client.error}")

    logger.info("=" * 60)

    yield

    logger.info("Shutting down Stellar Skies Console API server")
    cancelled = sessions.cancel_all()
    if cancelled:
        logger.info(f"Cancelled {cancelled} running response(s)")
    shutdown_tracing()
    logger.info("Tracing client shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Stellar Skies Console API",
        description=(
            "Conversation engine for the Vox Solaris navigator. Responses are "
            "streamed as transcript-update events over Server-Sent Events."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware - allow all origins for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(chat.router, tags=["Chat"])

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Log validation errors before returning 400 response."""
        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
        )
        body = await request.body()
        logger.debug(f"Request body: {body.decode('utf-8', errors='replace')[:1000]}")
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_errors(exc)},
        )

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors with only JSON-safe fields."""
    return [
        {
            "loc": list(err.get("loc", ())),
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


# Create the application instance
app = create_app()


def run_server():
    """
    Run the server using uvicorn.

    This is the entry point for running the server programmatically.
    """
    import uvicorn

    uvicorn.run(
        "stellar_console.api.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
    )


if __name__ == "__main__":
    run_server()
