"""FastAPI application for the D-Installer service."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import uvicorn

from dinstaller.api.routes import router
from dinstaller.services.backends import load_backends
from dinstaller.services.installer import InstallerService
from dinstaller.settings import Settings, get_settings
from dinstaller.utils.logging import level_from_name, setup_logger


def build_installer(settings: Settings) -> InstallerService:
    """Create the installer object from the configured collaborators."""
    if not settings.backend:
        raise RuntimeError("No backend configured, set DINSTALLER_BACKEND=module:callable")

    backends = load_backends(settings.backend)
    return InstallerService(
        backends,
        install_root=settings.install_root,
        progress_queue_size=settings.progress_queue_size,
    )


async def _initial_probe(installer: InstallerService, logger: logging.Logger) -> None:
    try:
        await asyncio.to_thread(installer.probe)
    except Exception as e:
        # Service stays up; clients see an empty catalog and can retry later
        logger.error(f"Initial probe failed: {e}")
        return
    logger.info("Initial probe finished")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown hooks.

    Startup:
    - Initialize logger
    - Build the installer object (unless one was injected)
    - Probe software in the background

    Shutdown:
    - Wait for the initial probe
    - Log shutdown message
    """
    settings: Settings = app.state.settings
    logger = setup_logger(
        "dinstaller",
        settings.log_file,
        level=level_from_name(settings.log_level),
        share_with=("uvicorn.error",),
    )
    logger.info("D-Installer starting up...")

    if getattr(app.state, "installer", None) is None:
        app.state.installer = build_installer(settings)

    probe_task = None
    if settings.probe_on_startup:
        probe_task = asyncio.create_task(_initial_probe(app.state.installer, logger))

    logger.info(f"D-Installer ready on port {settings.port}")

    yield

    if probe_task is not None:
        await probe_task
    logger.info("D-Installer shutting down...")


def create_app(
    installer: Optional[InstallerService] = None, settings: Optional[Settings] = None
) -> FastAPI:
    """Create the application, optionally around an existing installer object."""
    app = FastAPI(
        title="D-Installer",
        description="Installer object service for interactive installation front ends",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()
    app.state.installer = installer
    app.include_router(router)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        installer_status = app.state.installer.status if app.state.installer else None
        return {
            "status": "ok",
            "service": "d-installer",
            "version": "0.1.0",
            "installer_status": None if installer_status is None else int(installer_status),
        }

    return app


def main():
    """Main entry point for running the server."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
