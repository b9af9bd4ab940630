"""Pydantic models for the HTTP bridge requests and responses."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from dinstaller.models.status import WorkflowState


class BusCallRequest(BaseModel):
    """POST /api/v1.0/bus/call payload.

    Example:
        {
            "path": "/org/opensuse/DInstaller",
            "interface": "org.freedesktop.DBus.Properties",
            "method": "Get",
            "args": ["org.opensuse.DInstaller", "Disk"]
        }
    """

    path: str = Field(..., pattern=r"^/.*$", description="Object path")
    interface: str = Field(..., min_length=1, description="Interface name")
    method: str = Field(..., min_length=1, description="Method name")
    args: list[Any] = Field(default_factory=list, description="Positional arguments")


class BusReply(BaseModel):
    """Reply values of a successful method call."""

    reply: list[Any] = Field(default_factory=list)


class BusCallResponse(BaseModel):
    """POST /api/v1.0/bus/call response.

    HTTP status code is always 200, real status in 'code' field
    (200/400/404/409/500).
    """

    code: int = Field(..., description="Application-level status code")
    msg: str = Field(..., description="Status message or error description")
    data: Optional[BusReply] = Field(None, description="Reply when code == 200")
    error: Optional[str] = Field(None, description="Error class name when code != 200")


class BusSignal(BaseModel):
    """Signal emitted by an object, one JSON line on /api/v1.0/bus/signals."""

    path: str
    interface: str
    signal: str
    args: list[Any] = Field(default_factory=list)


class ProgressData(BaseModel):
    """Installation progress snapshot."""

    status: int = Field(..., description="Installer status code (0 == idle)")
    state: WorkflowState = Field(..., description="Software workflow state")
    total_packages: Optional[int] = Field(None, ge=0, description="Packages to install")
    completed: int = Field(0, ge=0, description="Packages installed so far")
    progress: int = Field(0, ge=0, le=100, description="Percentage completion (0-100)")
    error: Optional[str] = Field(None, description="Last installation error")


class ProgressResponse(BaseModel):
    """GET /api/v1.0/progress response."""

    code: int = Field(..., description="Application-level status code (200/500)")
    msg: str = Field(..., description="Status message or error description")
    data: ProgressData = Field(..., description="Progress data")
