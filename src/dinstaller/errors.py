"""Error taxonomy shared by the installer client and service."""

from typing import Optional


class DInstallerError(Exception):
    """Base error for D-Installer."""


class AuthenticationError(DInstallerError):
    """Credentials rejected by the session gateway.

    ``reason`` is the gateway's own status description, unmodified.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class TransportError(DInstallerError):
    """Underlying bus or HTTP call failed (or the remote side replied with an error)."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class InvalidSelection(DInstallerError):
    """Selected product is not part of the current catalog."""


class NoProductAvailable(DInstallerError):
    """Proposal requested while the product catalog is empty."""


class CommitFailed(DInstallerError):
    """Package commit produced no result.

    Carries the backend's last recorded error for diagnostics.
    """

    def __init__(self, last_error: Optional[str]):
        super().__init__(f"Commit failed: {last_error or 'unknown error'}")
        self.last_error = last_error


class InstallationInProgress(DInstallerError):
    """An installation is already running on this orchestrator."""


class UnknownMethod(DInstallerError):
    """Method or interface not exposed by the installer object."""


class UnknownOption(DInstallerError):
    """Option (property) not exposed by the installer object."""


class InvalidOptionValue(DInstallerError):
    """Option value has the wrong type or is rejected by its collaborator."""
