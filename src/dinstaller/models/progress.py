"""Progress model for the package commit."""

from typing import Optional

from pydantic import BaseModel, Field


class ProgressState(BaseModel):
    """Package installation progress.

    Both counters only move forward. Once ``total_packages`` is known,
    ``completed`` never exceeds it.
    """

    total_packages: Optional[int] = Field(None, ge=0, description="Packages to install")
    completed: int = Field(0, ge=0, description="Packages installed so far")

    def set_total(self, total: int) -> None:
        if total < self.completed:
            raise ValueError(
                f"Package total {total} is below already completed {self.completed}"
            )
        self.total_packages = total

    def advance(self) -> bool:
        """Count one installed package.

        Returns:
            False if the package was over the known total (the counter is
            clamped and stays unchanged), True otherwise
        """
        if self.total_packages is not None and self.completed >= self.total_packages:
            return False
        self.completed += 1
        return True

    @property
    def percent(self) -> int:
        if not self.total_packages:
            return 0
        return int((self.completed / self.total_packages) * 100)
