"""Environment driven configuration (Pydantic Settings).

Every value can be overridden with a ``DINSTALLER_`` prefixed variable, e.g.
``DINSTALLER_PORT=9000`` or ``DINSTALLER_BACKEND=mypkg.backends:create``.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DBUS_PATH = "/org/opensuse/DInstaller"
DBUS_IFACE = "org.opensuse.DInstaller"
PROPERTIES_IFACE = "org.freedesktop.DBus.Properties"


class Settings(BaseSettings):
    """Settings for both the installer service and the client."""

    model_config = SettingsConfigDict(env_prefix="DINSTALLER_", case_sensitive=False)

    # Service
    host: str = "0.0.0.0"
    port: int = 12316
    log_file: str = "./logs/dinstaller.log"
    log_level: str = "INFO"
    backend: Optional[str] = Field(
        None, description="Collaborator factory as 'module:callable'"
    )
    install_root: str = Field("/mnt", description="Target root for the commit")
    probe_on_startup: bool = True
    progress_queue_size: int = Field(256, gt=0)

    # Client
    gateway_url: str = "http://localhost:9090"
    login_path: str = "/cockpit/login"
    bus_url: str = "http://localhost:12316"
    object_path: str = DBUS_PATH
    interface: str = DBUS_IFACE
    request_timeout: float = Field(30.0, gt=0)


@lru_cache
def get_settings() -> Settings:
    return Settings()
