"""API route handlers for the installer object HTTP bridge."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from dinstaller.api.models import (
    BusCallRequest,
    BusCallResponse,
    BusReply,
    ProgressData,
    ProgressResponse,
)
from dinstaller.errors import (
    InstallationInProgress,
    InvalidOptionValue,
    InvalidSelection,
    NoProductAvailable,
    UnknownMethod,
    UnknownOption,
)
from dinstaller.services.installer import InstallerService
from dinstaller.services.signals import SignalBroadcaster

router = APIRouter(prefix="/api/v1.0")
logger = logging.getLogger("dinstaller.api")

# Application-level codes; HTTP status is always 200
ERROR_CODES = {
    UnknownMethod: 404,
    UnknownOption: 404,
    InstallationInProgress: 409,
    InvalidSelection: 400,
    InvalidOptionValue: 400,
    NoProductAvailable: 400,
}


def get_installer(request: Request) -> InstallerService:
    return request.app.state.installer


def get_signals(request: Request) -> SignalBroadcaster:
    return request.app.state.installer.signals


def error_code(error: Exception) -> int:
    for error_class, code in ERROR_CODES.items():
        if isinstance(error, error_class):
            return code
    return 500


@router.post("/bus/call", response_model=BusCallResponse)
async def post_bus_call(
    request: BusCallRequest, installer: InstallerService = Depends(get_installer)
):
    """POST /api/v1.0/bus/call - Invoke a method on the installer object.

    Response format (success):
        {"code": 200, "msg": "success", "data": {"reply": [0]}, "error": null}

    Response format (failure):
        {
            "code": 409,
            "msg": "Installer is busy (status installing)",
            "data": null,
            "error": "InstallationInProgress"
        }
    """
    try:
        # Methods may block on the package manager, keep them off the event loop
        reply = await asyncio.to_thread(
            installer.call, request.path, request.interface, request.method, request.args
        )
    except Exception as e:
        code = error_code(e)
        if code == 500:
            logger.error(f"{request.interface}.{request.method} failed: {e}", exc_info=True)
        else:
            logger.warning(f"{request.interface}.{request.method} rejected: {e}")
        return BusCallResponse(code=code, msg=str(e), error=type(e).__name__)

    return BusCallResponse(code=200, msg="success", data=BusReply(reply=reply))


@router.get("/bus/signals")
async def get_bus_signals(
    path: Optional[str] = None,
    interface: Optional[str] = None,
    signal: Optional[str] = None,
    signals: SignalBroadcaster = Depends(get_signals),
):
    """GET /api/v1.0/bus/signals - Stream signals as newline-delimited JSON.

    Each line:
        {"path": "/org/opensuse/DInstaller", "interface": "org.opensuse.DInstaller",
         "signal": "StatusChanged", "args": [2]}
    """
    subscriber = signals.subscribe(path=path, interface=interface, signal=signal)

    async def lines():
        try:
            while True:
                message = await subscriber.get()
                yield message.model_dump_json() + "\n"
        finally:
            subscriber.close()

    return StreamingResponse(lines(), media_type="application/x-ndjson")


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(installer: InstallerService = Depends(get_installer)):
    """GET /api/v1.0/progress - Query installation progress.

    Returns code 500 when the last installation attempt failed.
    """
    progress = installer.software.progress
    data = ProgressData(
        status=int(installer.status),
        state=installer.software.state,
        total_packages=progress.total_packages,
        completed=progress.completed,
        progress=progress.percent,
        error=installer.last_error,
    )

    if installer.last_error:
        return ProgressResponse(code=500, msg=f"Installation failed: {installer.last_error}", data=data)
    return ProgressResponse(code=200, msg="success", data=data)
