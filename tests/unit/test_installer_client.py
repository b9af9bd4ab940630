"""Unit tests for InstallerClient domain queries."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from dinstaller.client.bus import HttpBusConnection
from dinstaller.client.installer import InstallerClient
from dinstaller.models.domain import Disk, Language, MountAssignment, Product
from dinstaller.settings import Settings


PATH = "/org/opensuse/DInstaller"
IFACE = "org.opensuse.DInstaller"


@pytest.mark.unit
class TestInstallerClient:
    """Domain queries over the remote object."""

    @pytest.fixture
    def auth(self):
        auth = MagicMock()
        auth.authorize = AsyncMock()
        auth.is_logged_in = AsyncMock(return_value=True)
        auth.current_user = AsyncMock(return_value="linux")
        auth.close = AsyncMock()
        return auth

    @pytest.fixture
    def client(self, fake_bus, auth):
        fake_bus.replies = {
            "GetStatus": [0],
            "GetProducts": [[{"name": "MicroOS", "display_name": "openSUSE MicroOS"}]],
            "GetLanguages": [{"cs_CZ": ["Cestina", "Cestina", ".UTF-8", "", "Checo"]}],
            "GetDisks": [[{"name": "/dev/sda", "model": "Some Brand", "size": "0.5TiB"}]],
            "GetStorage": [[
                {"mount": "/", "device": "/dev/sdb2", "type": "btrfs", "size": "117354528768"},
                {"mount": "/home", "device": "/dev/sdb3", "type": "xfs", "size": "42"},
                {"mount": "swap", "device": "/dev/sdb1", "type": "swap", "size": "2147483648"},
            ]],
        }
        return InstallerClient(fake_bus, auth)

    @pytest.mark.asyncio
    async def test_get_products(self, client):
        products = await client.get_products()

        assert products == [Product(name="MicroOS", display_name="openSUSE MicroOS")]

    @pytest.mark.asyncio
    async def test_get_languages_projects_id_and_name(self, client):
        languages = await client.get_languages()

        assert languages == [Language(id="cs_CZ", name="Cestina")]
        assert languages[0].model_dump() == {"id": "cs_CZ", "name": "Cestina"}

    @pytest.mark.asyncio
    async def test_get_languages_keeps_mapping_order(self, client, fake_bus):
        fake_bus.replies["GetLanguages"] = [{
            "es_ES": ["Español", "Espanol", ".UTF-8", "", "Spanish"],
            "cs_CZ": ["Čeština", "Cestina", ".UTF-8", "", "Czech"],
            "de_DE": ["Deutsch", "Deutsch", ".UTF-8", "", "German"],
        }]

        languages = await client.get_languages()

        assert [lang.id for lang in languages] == ["es_ES", "cs_CZ", "de_DE"]
        assert languages[1].name == "Čeština"

    @pytest.mark.asyncio
    async def test_get_disks(self, client):
        assert await client.get_disks() == [
            Disk(name="/dev/sda", model="Some Brand", size="0.5TiB")
        ]

    @pytest.mark.asyncio
    async def test_get_storage_preserves_plan_order(self, client):
        proposal = await client.get_storage()

        assert all(isinstance(entry, MountAssignment) for entry in proposal)
        assert [entry.mount for entry in proposal] == ["/", "/home", "swap"]

    @pytest.mark.asyncio
    async def test_start_installation_calls_start_without_arguments(self, client, fake_bus):
        result = await client.start_installation()

        assert result is None
        assert fake_bus.calls == [(PATH, IFACE, "Start", [])]

    @pytest.mark.asyncio
    async def test_session_calls_are_delegated(self, client, auth):
        await client.authorize("linux", "password")

        auth.authorize.assert_awaited_once_with("linux", "password")
        assert await client.is_logged_in() is True
        assert await client.current_user() == "linux"

    @pytest.mark.asyncio
    async def test_status_and_options(self, client, fake_bus):
        fake_bus.replies["Get"] = [{"t": "s", "v": "/dev/sda"}]

        assert await client.get_status() == 0
        assert await client.get_option("Disk") == "/dev/sda"

        received = []
        client.on_status_changed(received.append)
        fake_bus.emit(PATH, IFACE, "StatusChanged", [2])
        assert received == [2]

    @pytest.mark.asyncio
    async def test_close_releases_auth(self, client, auth):
        await client.close()

        auth.close.assert_awaited_once()

    def test_from_settings(self):
        settings = Settings(bus_url="http://installer:1234", interface="org.example.Installer")

        client = InstallerClient.from_settings(settings)

        assert isinstance(client.bus, HttpBusConnection)
        assert client.bus.base_url == "http://installer:1234"
        assert client.remote.interface == "org.example.Installer"
        assert client.auth.login_path == "/cockpit/login"
