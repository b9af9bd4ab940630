"""Status enums for the installer object and the software workflow."""

from enum import Enum, IntEnum


class InstallerStatus(IntEnum):
    """Integer status broadcast by the installer object.

    Clients only rely on ``0 == idle``; every non-zero code means the
    installer is busy. Sub-codes may grow over time.
    """

    IDLE = 0
    PROBING = 1
    INSTALLING = 2
    FINISHED = 3


def is_installing(status: int) -> bool:
    """Whether a (possibly unknown) status code means "installing"."""
    return status != InstallerStatus.IDLE


class WorkflowState(str, Enum):
    """Software workflow states.

    State transitions:
    uninitialized → probed → proposed → installing → completed
          ↑___________|  (probe() is valid again)      ↓
                                                    failed
    """

    UNINITIALIZED = "uninitialized"
    PROBED = "probed"
    PROPOSED = "proposed"
    INSTALLING = "installing"
    COMPLETED = "completed"
    FAILED = "failed"
