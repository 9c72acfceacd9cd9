"""Tests for pct-backed providers."""

import pytest
from unittest.mock import AsyncMock, patch

from pvelxc.models.config import ToolConfig
from pvelxc.providers.pct import PctConfigStore, PctLifecycle
from pvelxc.utils.systemd import CommandResult


IP_ADDR_OUTPUT = """2: eth0@if12: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc noqueue state UP
    inet 192.168.1.20/24 brd 192.168.1.255 scope global dynamic eth0
       valid_lft 86011sec preferred_lft 86011sec
"""


@pytest.fixture
def config_store(tmp_path):
    store = PctConfigStore()
    store.config_dir = tmp_path
    return store


@pytest.mark.asyncio
class TestPctLifecycle:
    """Test lifecycle commands."""

    async def test_start(self):
        with patch("pvelxc.providers.pct.run_command", new_callable=AsyncMock) as mock_run:
            await PctLifecycle().start(105)

        mock_run.assert_awaited_once_with(["pct", "start", "105"], timeout=120)

    async def test_execute(self):
        with patch("pvelxc.providers.pct.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(returncode=0, stdout="ok\n")

            output = await PctLifecycle().execute(105, ["ash", "-c", "apk add bash >/dev/null"])

        assert output == "ok\n"
        assert mock_run.call_args[0][0] == [
            "pct", "exec", "105", "--", "ash", "-c", "apk add bash >/dev/null",
        ]

    async def test_set_description(self):
        with patch("pvelxc.providers.pct.run_command", new_callable=AsyncMock) as mock_run:
            await PctLifecycle().set_description(105, "# Plex LXC\n")

        mock_run.assert_awaited_once_with(["pct", "set", "105", "-description", "# Plex LXC\n"])

    async def test_primary_address(self):
        with patch("pvelxc.providers.pct.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(returncode=0, stdout=IP_ADDR_OUTPUT)

            assert await PctLifecycle().primary_address(105) == "192.168.1.20"

    async def test_primary_address_missing(self):
        with patch("pvelxc.providers.pct.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.return_value = CommandResult(returncode=1, stderr="Device not found")

            assert await PctLifecycle().primary_address(105) is None


@pytest.mark.asyncio
class TestPctConfigStore:
    """Test the persisted container config."""

    async def test_initialize(self):
        store = PctConfigStore()

        await store.initialize(ToolConfig(), None)

        assert str(store.path_for(105)) == "/etc/pve/lxc/105.conf"

    async def test_read_lines(self, config_store, tmp_path):
        (tmp_path / "105.conf").write_text("arch: amd64\ncores: 2\n")

        assert await config_store.read_lines(105) == ["arch: amd64", "cores: 2"]

    async def test_read_missing_config(self, config_store):
        with pytest.raises(FileNotFoundError):
            await config_store.read_lines(999)

    async def test_append_lines(self, config_store, tmp_path):
        path = tmp_path / "105.conf"
        path.write_text("arch: amd64\ncores: 2")

        await config_store.append_lines(105, ["lxc.cgroup2.devices.allow: a", "lxc.cap.drop:"])

        assert path.read_text() == (
            "arch: amd64\ncores: 2\nlxc.cgroup2.devices.allow: a\nlxc.cap.drop:\n"
        )
