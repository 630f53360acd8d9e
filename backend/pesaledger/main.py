"""
FastAPI application entry point.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pesaledger import __version__
from pesaledger.api.router import api_router
from pesaledger.config import settings as default_settings
from pesaledger.container import AppContainer
from pesaledger.logging_setup import configure_logging


def create_app(container: Optional[AppContainer] = None) -> FastAPI:
    """Build the API around a container; the default one reads the environment."""
    container = container or AppContainer(default_settings)
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        container.startup()
        await container.start_listener()
        stop = asyncio.Event()
        periodic = asyncio.create_task(container.sync.run_periodic(stop))
        yield
        stop.set()
        await periodic
        await container.stop_listener()
        container.shutdown()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="SMS-driven mobile-money ledger with cloud sync",
        lifespan=lifespan,
    )
    app.state.container = container

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API router
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/")
    def read_root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "status": "running"
        }

    @app.get("/api/v1/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "app_name": settings.app_name,
            "sync": container.tracker.display_state.value,
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(
        "pesaledger.main:app",
        host=default_settings.api_host,
        port=default_settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
