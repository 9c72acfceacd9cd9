"""Tests for container models."""

import pytest
from pydantic import ValidationError

from pvelxc.models.application import AppCategory
from pvelxc.models.container import Configuration, CreateRequest, NetworkSpec, PrivilegeMode


def make_config(**overrides):
    values = dict(
        app="Plex",
        short_name="plex",
        category=AppCategory.MEDIA,
        os_type="ubuntu",
        os_version="22.04",
        ctid=105,
        hostname="plex",
        disk_size=8,
        cores=2,
        memory=2048,
    )
    values.update(overrides)
    return Configuration(**values)


class TestNetworkSpec:
    """Test NetworkSpec model."""

    def test_dhcp_defaults(self):
        network = NetworkSpec()

        assert network.is_dhcp
        assert network.interface_string() == "name=eth0,bridge=vmbr0,ip=dhcp"

    def test_static_address(self):
        network = NetworkSpec(
            address="192.168.1.50/24",
            gateway="192.168.1.1",
            mac="02:42:ac:11:00:02",
            vlan=20,
            mtu=1450,
        )

        assert network.interface_string() == (
            "name=eth0,bridge=vmbr0,hwaddr=02:42:ac:11:00:02,"
            "ip=192.168.1.50/24,gw=192.168.1.1,tag=20,mtu=1450"
        )

    def test_static_address_requires_gateway(self):
        with pytest.raises(ValidationError):
            NetworkSpec(address="192.168.1.50/24")

        with pytest.raises(ValidationError):
            NetworkSpec(address="192.168.1.50/24", gateway="router")

    def test_dhcp_forbids_gateway(self):
        with pytest.raises(ValidationError):
            NetworkSpec(address="dhcp", gateway="192.168.1.1")

    def test_invalid_address(self):
        with pytest.raises(ValidationError) as exc_info:
            NetworkSpec(address="192.168.1.50")

        assert "address" in str(exc_info.value)


class TestConfiguration:
    """Test Configuration model."""

    def test_defaults(self):
        config = make_config()

        assert config.privilege == PrivilegeMode.PRIVILEGED
        assert config.automatic_login
        assert config.disable_ipv6
        assert not config.ssh_root
        assert config.disk_size_label == "8"

    def test_fractional_disk_label(self):
        assert make_config(disk_size=0.5).disk_size_label == "0.5"

    def test_immutable(self):
        config = make_config()

        with pytest.raises(ValidationError):
            config.hostname = "other"

    def test_ssh_root_requires_password(self):
        with pytest.raises(ValidationError):
            make_config(ssh_root=True)

        assert make_config(ssh_root=True, password="s3cret").ssh_root

    def test_overlay_only_for_container_hosts(self):
        with pytest.raises(ValidationError):
            make_config(overlay=False)

        with pytest.raises(ValidationError):
            make_config(category=AppCategory.CONTAINER_HOST)

        assert make_config(category=AppCategory.CONTAINER_HOST, overlay=True).overlay

    def test_version_must_match_distribution(self):
        with pytest.raises(ValidationError):
            make_config(os_type="debian", os_version="22.04")

    @pytest.mark.parametrize("field,value", [("ctid", 99), ("cores", 0), ("memory", 0), ("disk_size", 0)])
    def test_positive_values(self, field, value):
        with pytest.raises(ValidationError):
            make_config(**{field: value})


class TestCreateRequest:
    """Test CreateRequest."""

    def test_pct_options(self):
        config = make_config(
            password="s3cret",
            network=NetworkSpec(search_domain="lan", nameserver="1.1.1.1"),
        )
        request = CreateRequest.from_configuration(config, ["nesting=1"], ["proxmox-helper-scripts", "media"])

        assert request.disk_size == "8"
        assert request.pct_options() == [
            "-features", "nesting=1",
            "-hostname", "plex",
            "-tags", "proxmox-helper-scripts;media",
            "-searchdomain=lan",
            "-nameserver=1.1.1.1",
            "-net0", "name=eth0,bridge=vmbr0,ip=dhcp",
            "-onboot", "1",
            "-cores", "2",
            "-memory", "2048",
            "-unprivileged", "0",
            "-password", "s3cret",
        ]

    def test_unprivileged_without_password(self):
        config = make_config(privilege=PrivilegeMode.UNPRIVILEGED)
        options = CreateRequest.from_configuration(config, ["keyctl=1", "nesting=1"], []).pct_options()

        assert options[options.index("-unprivileged") + 1] == "1"
        assert options[options.index("-features") + 1] == "keyctl=1,nesting=1"
        assert "-password" not in options
        assert "-tags" not in options
