"""Domain values exchanged with the installer object."""

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Installable product (base system) offered by the software sources."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Product identifier (e.g. 'MicroOS')")
    display_name: str = Field(..., description="Human readable name")


class Language(BaseModel):
    """Client facing projection of a language entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Language code (e.g. 'cs_CZ')")
    name: str = Field(..., description="Native language name")


class Disk(BaseModel):
    """Storage device candidate for the installation."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Device name (e.g. '/dev/sda')")
    model: str = Field("", description="Device model")
    size: str = Field(..., description="Human readable size (e.g. '0.5TiB')")


class MountAssignment(BaseModel):
    """Single entry of the storage proposal (device to mount point plan)."""

    model_config = ConfigDict(frozen=True)

    mount: str = Field(..., description="Mount point")
    device: str = Field(..., description="Block device")
    type: str = Field(..., description="Filesystem type")
    size: str = Field(..., description="Size in bytes, as reported by storage")
