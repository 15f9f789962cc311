"""FastAPI application factory and entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from soundshelf import __version__
from soundshelf.api import api_router
from soundshelf.api.exception_handlers import register_exception_handlers
from soundshelf.config import Settings, get_settings
from soundshelf.infrastructure.lifecycle import lifespan
from soundshelf.infrastructure.observability import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


def run() -> None:
    """Run the server with uvicorn (``soundshelf`` console script)."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "soundshelf.main:app",
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.observability.log_level.lower(),
    )
