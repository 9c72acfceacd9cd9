"""Tests for the provisioning orchestrator."""

import subprocess

import pytest
from unittest.mock import AsyncMock

from pvelxc.engine import policy as device_policy
from pvelxc.engine.config import ConfigManager
from pvelxc.engine.errors import ErrorCategory
from pvelxc.engine.orchestrator import CollectMode, ProvisionStep, ProvisioningOrchestrator
from pvelxc.models.application import AppCategory
from pvelxc.models.container import PrivilegeMode
from pvelxc.providers import ProviderRegistry


ALL_STEPS = [step.value for step in ProvisionStep]


@pytest.fixture
def config_manager(tmp_path, monkeypatch):
    monkeypatch.delenv("PVELXC_CONFIG", raising=False)
    manager = ConfigManager()
    manager.config.host.monitor_unit_file = str(tmp_path / "ping-instances.service")
    return manager


@pytest.fixture
def providers():
    host = AsyncMock()
    host.platform_version.return_value = "pve-manager/7.2-3/c743d6c1"
    host.architecture.return_value = "amd64"
    host.is_remote_session.return_value = False
    host.next_container_id.return_value = 105
    host.timezone.return_value = "Europe/Lisbon"

    config_store = AsyncMock()
    config_store.read_lines.return_value = ["arch: amd64", "hostname: plex"]

    lifecycle = AsyncMock()
    lifecycle.primary_address.return_value = "192.168.1.20"

    services = AsyncMock()
    services.is_active.return_value = False

    return {
        "host": host,
        "services": services,
        "creator": AsyncMock(),
        "config_store": config_store,
        "lifecycle": lifecycle,
        "installer": AsyncMock(),
    }


@pytest.fixture
def registry(providers):
    registry = ProviderRegistry()
    for name, provider in providers.items():
        registry.register(name, provider)
    return registry


@pytest.fixture
def make_orchestrator(config_manager, registry, scripted_prompter):
    def factory(answers=None):
        prompter = scripted_prompter(answers)
        return ProvisioningOrchestrator(config_manager, registry, prompter, bootstrap_delay=0)
    return factory


@pytest.mark.asyncio
class TestProvision:
    """Test the provisioning sequence."""

    async def test_default_media_provision(self, make_orchestrator, providers):
        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert result.success
        assert result.category is None
        assert result.completed_steps == ALL_STEPS
        assert result.annotated

        config, request = providers["creator"].create.call_args[0]
        assert config.ctid == 105
        assert config.category == AppCategory.MEDIA
        assert request.features == ["nesting=1"]
        assert request.interfaces == ["name=eth0,bridge=vmbr0,ip=dhcp"]
        assert request.tags == ["proxmox-helper-scripts"]

        ctid, lines = providers["config_store"].append_lines.call_args[0]
        assert ctid == 105
        assert lines == device_policy.resolve(PrivilegeMode.PRIVILEGED, AppCategory.MEDIA).config_lines()

        providers["lifecycle"].start.assert_awaited_once_with(105)
        providers["lifecycle"].execute.assert_not_called()
        providers["installer"].install.assert_awaited_once_with(config, "Europe/Lisbon")

        ctid, description = providers["lifecycle"].set_description.call_args[0]
        assert ctid == 105
        assert "# Plex LXC" in description
        assert "IP: 192.168.1.20" in description

    async def test_asks_for_collection_mode(self, make_orchestrator, providers):
        orchestrator = make_orchestrator({"SETTINGS": True})

        result = await orchestrator.provision("Debian")

        assert result.success
        assert orchestrator.prompter.asked == ["SETTINGS"]

    async def test_advanced_mode_runs_wizard(self, make_orchestrator, providers):
        orchestrator = make_orchestrator({"SETTINGS": False, "HOSTNAME": "media-box"})

        result = await orchestrator.provision("Jellyfin")

        assert result.success
        assert result.configuration.hostname == "media-box"
        assert len(orchestrator.prompter.summaries) == 1

    async def test_unprivileged_skips_device_augmentation(self, make_orchestrator, providers):
        orchestrator = make_orchestrator({"CONTAINER TYPE": "unprivileged"})

        result = await orchestrator.provision("Plex", CollectMode.ADVANCED)

        assert result.success
        assert result.skipped_steps == ["augment_devices"]
        assert "augment_devices" not in result.completed_steps
        providers["config_store"].append_lines.assert_not_called()
        _, request = providers["creator"].create.call_args[0]
        assert request.features == ["keyctl=1", "nesting=1"]

    async def test_container_host_overlay_features(self, make_orchestrator, providers):
        orchestrator = make_orchestrator({"FUSE OVERLAYFS": True})

        result = await orchestrator.provision("Docker", CollectMode.ADVANCED)

        assert result.success
        _, request = providers["creator"].create.call_args[0]
        assert request.features == ["fuse=1", "keyctl=1", "nesting=1"]

    async def test_alpine_gets_bash(self, make_orchestrator, providers):
        result = await make_orchestrator().provision("Alpine", CollectMode.DEFAULT)

        assert result.success
        providers["lifecycle"].execute.assert_awaited_once_with(105, ["ash", "-c", "apk add bash >/dev/null"])

    async def test_unsupported_version_stops_before_create(self, make_orchestrator, providers):
        providers["host"].platform_version.return_value = "pve-manager/6.4-13/9f411e79"

        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert not result.success
        assert result.category == ErrorCategory.PREFLIGHT
        assert result.failed_step == "preflight"
        assert result.completed_steps == []
        providers["host"].next_container_id.assert_not_called()
        providers["creator"].create.assert_not_called()

    async def test_remote_session_declined(self, make_orchestrator, providers):
        providers["host"].is_remote_session.return_value = True

        result = await make_orchestrator({"SSH DETECTED": False}).provision("Plex", CollectMode.DEFAULT)

        assert result.cancelled
        assert result.category == ErrorCategory.INPUT_CANCEL
        providers["creator"].create.assert_not_called()

    async def test_remote_session_accepted_is_a_warning(self, make_orchestrator, providers):
        providers["host"].is_remote_session.return_value = True

        result = await make_orchestrator({"SSH DETECTED": True}).provision("Plex", CollectMode.DEFAULT)

        assert result.success
        assert result.warnings == ["Provisioning over a remote session"]

    async def test_create_failure_stops_sequence(self, make_orchestrator, providers):
        providers["creator"].create.side_effect = subprocess.CalledProcessError(
            1, ["bash", "-c", "..."], stderr="storage full\n"
        )

        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert not result.success
        assert result.category == ErrorCategory.EXTERNAL
        assert result.failed_step == "create"
        assert "storage full" in result.message
        assert result.completed_steps == ["preflight", "allocate_id", "resolve_configuration"]
        providers["config_store"].append_lines.assert_not_called()
        providers["lifecycle"].start.assert_not_called()
        providers["installer"].install.assert_not_called()

    async def test_install_failure(self, make_orchestrator, providers):
        providers["installer"].install.side_effect = subprocess.TimeoutExpired(["lxc-attach"], 600)

        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert result.category == ErrorCategory.EXTERNAL
        assert result.failed_step == "install"
        providers["lifecycle"].set_description.assert_not_called()

    async def test_allocation_failure(self, make_orchestrator, providers):
        providers["host"].next_container_id.side_effect = subprocess.CalledProcessError(255, ["pvesh"])

        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert result.failed_step == "allocate_id"
        assert result.category == ErrorCategory.EXTERNAL

    async def test_unparseable_container_id(self, make_orchestrator, providers):
        providers["host"].next_container_id.side_effect = ValueError("pvesh returned no container id: ''")

        result = await make_orchestrator().provision("Ubuntu", CollectMode.DEFAULT)

        assert not result.success
        assert result.category == ErrorCategory.EXTERNAL
        assert result.failed_step == "allocate_id"
        assert "no container id" in result.message
        providers["creator"].create.assert_not_called()

    async def test_annotation_failure_only_warns(self, make_orchestrator, providers):
        providers["lifecycle"].set_description.side_effect = subprocess.CalledProcessError(2, ["pct"])

        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert result.success
        assert not result.annotated
        assert "annotate" not in result.completed_steps
        assert len(result.warnings) == 1

    async def test_unknown_application(self, make_orchestrator):
        with pytest.raises(ValueError):
            await make_orchestrator().provision("Nope", CollectMode.DEFAULT)


@pytest.mark.asyncio
class TestMonitorService:
    """Test pausing the host monitor unit."""

    async def test_active_monitor_restarted(self, make_orchestrator, providers):
        providers["services"].is_active.return_value = True

        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert result.success
        providers["services"].stop.assert_awaited_once_with("ping-instances.service")
        providers["services"].start.assert_awaited_once_with("ping-instances.service")

    async def test_monitor_restarted_after_failure(self, make_orchestrator, providers):
        providers["services"].is_active.return_value = True
        providers["creator"].create.side_effect = subprocess.CalledProcessError(1, ["bash"])

        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert not result.success
        providers["services"].start.assert_awaited_once_with("ping-instances.service")

    async def test_inactive_monitor_left_alone(self, make_orchestrator, providers):
        result = await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        assert result.success
        providers["services"].stop.assert_not_called()
        providers["services"].start.assert_not_called()

    async def test_installed_monitor_started_after_success(self, make_orchestrator, providers, config_manager):
        unit_file = config_manager.config.host.monitor_unit_file
        with open(unit_file, "w") as handle:
            handle.write("[Unit]\n")

        await make_orchestrator().provision("Plex", CollectMode.DEFAULT)

        providers["services"].start.assert_awaited_once_with("ping-instances.service")


@pytest.mark.asyncio
class TestAugmentDevices:
    """Test idempotent device augmentation."""

    async def test_only_missing_lines_appended(self, make_orchestrator, providers):
        policy = device_policy.resolve(PrivilegeMode.PRIVILEGED, AppCategory.MEDIA)
        lines = policy.config_lines()
        providers["config_store"].read_lines.return_value = ["arch: amd64"] + lines[:3]

        added = await make_orchestrator().augment_devices(105, policy)

        assert added == lines[3:]
        providers["config_store"].append_lines.assert_awaited_once_with(105, lines[3:])

    async def test_already_augmented(self, make_orchestrator, providers):
        policy = device_policy.resolve(PrivilegeMode.PRIVILEGED, AppCategory.GENERIC)
        providers["config_store"].read_lines.return_value = policy.config_lines()

        added = await make_orchestrator().augment_devices(105, policy)

        assert added == []
        providers["config_store"].append_lines.assert_not_called()

    async def test_unprivileged_policy_touches_nothing(self, make_orchestrator, providers):
        policy = device_policy.resolve(PrivilegeMode.UNPRIVILEGED, AppCategory.MEDIA)

        assert await make_orchestrator().augment_devices(105, policy) == []
        providers["config_store"].read_lines.assert_not_called()

    async def test_augment_application(self, make_orchestrator, providers):
        added = await make_orchestrator().augment_application(110, "Home Assistant", PrivilegeMode.PRIVILEGED)

        assert "lxc.cgroup2.devices.allow: c 188:* rwm" in added
        providers["config_store"].append_lines.assert_awaited_once()
