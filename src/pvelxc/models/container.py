"""Container configuration models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pvelxc.models.application import AppCategory, DISTRIBUTIONS
from pvelxc.utils.validators import is_dhcp_or_cidr, is_ipv4


class PrivilegeMode(str, Enum):
    """Whether container root maps to host root."""
    PRIVILEGED = "privileged"
    UNPRIVILEGED = "unprivileged"

    @property
    def unprivileged_flag(self) -> str:
        """Value of pct's ``-unprivileged`` option."""
        return "1" if self is PrivilegeMode.UNPRIVILEGED else "0"


class NetworkSpec(BaseModel):
    """Network settings for the container's eth0."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    bridge: str = Field(default="vmbr0")
    address: str = Field(default="dhcp", description="'dhcp' or IPv4 CIDR")
    gateway: Optional[str] = None
    mtu: Optional[int] = Field(None, gt=0)
    search_domain: Optional[str] = None
    nameserver: Optional[str] = None
    mac: Optional[str] = None
    vlan: Optional[int] = Field(None, gt=0)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        if not is_dhcp_or_cidr(v):
            raise ValueError(f"{v} is not 'dhcp' or an IPv4 CIDR address")
        return v

    @model_validator(mode="after")
    def check_gateway(self):
        """Gateway is required for static addresses and forbidden for dhcp."""
        if self.address == "dhcp":
            if self.gateway is not None:
                raise ValueError("gateway must not be set when address is dhcp")
        elif self.gateway is None or not is_ipv4(self.gateway):
            raise ValueError("a valid gateway is required for a static address")
        return self

    @property
    def is_dhcp(self) -> bool:
        return self.address == "dhcp"

    def interface_string(self, name: str = "eth0") -> str:
        """Compose pct's ``-net0`` value."""
        value = f"name={name},bridge={self.bridge}"
        if self.mac:
            value += f",hwaddr={self.mac}"
        value += f",ip={self.address}"
        if self.gateway:
            value += f",gw={self.gateway}"
        if self.vlan:
            value += f",tag={self.vlan}"
        if self.mtu:
            value += f",mtu={self.mtu}"
        return value


class Configuration(BaseModel):
    """Fully resolved, immutable container configuration."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    app: str = Field(..., description="Application name")
    short_name: str = Field(..., description="Lowercase, whitespace-free name")
    category: AppCategory = Field(default=AppCategory.GENERIC)

    os_type: str
    os_version: str
    privilege: PrivilegeMode = Field(default=PrivilegeMode.PRIVILEGED)
    password: Optional[str] = Field(None, description="None means automatic login")

    ctid: int = Field(..., ge=100)
    hostname: str
    disk_size: float = Field(..., gt=0)
    cores: int = Field(..., gt=0)
    memory: int = Field(..., gt=0)

    network: NetworkSpec = Field(default_factory=NetworkSpec)

    disable_ipv6: bool = True
    ssh_root: bool = False
    overlay: Optional[bool] = None
    verbose: bool = False

    @model_validator(mode="after")
    def check_invariants(self):
        """Cross-field rules between OS, password, SSH and overlay."""
        if self.os_version not in DISTRIBUTIONS.get(self.os_type, []):
            raise ValueError(f"Version {self.os_version} not available for {self.os_type}")
        if self.ssh_root and not self.password:
            raise ValueError("ssh_root requires a root password")
        if self.category == AppCategory.CONTAINER_HOST:
            if self.overlay is None:
                raise ValueError("overlay must be decided for container-host applications")
        elif self.overlay is not None:
            raise ValueError(f"overlay is not applicable to {self.category.value} applications")
        return self

    @property
    def automatic_login(self) -> bool:
        return not self.password

    @property
    def disk_size_label(self) -> str:
        """Disk size without a trailing '.0' for whole numbers."""
        if float(self.disk_size).is_integer():
            return str(int(self.disk_size))
        return str(self.disk_size)


class CreateRequest(BaseModel):
    """Parameter block handed to the container creation mechanism."""
    model_config = ConfigDict(frozen=True)

    ctid: int
    os_type: str
    os_version: str
    disk_size: str
    features: List[str] = Field(default_factory=list)
    hostname: str
    tags: List[str] = Field(default_factory=list)
    search_domain: Optional[str] = None
    nameserver: Optional[str] = None
    interfaces: List[str] = Field(default_factory=list)
    onboot: bool = True
    cores: int
    memory: int
    privilege: PrivilegeMode
    password: Optional[str] = None

    @classmethod
    def from_configuration(
        cls, config: Configuration, features: List[str], tags: List[str]
    ) -> "CreateRequest":
        return cls(
            ctid=config.ctid,
            os_type=config.os_type,
            os_version=config.os_version,
            disk_size=config.disk_size_label,
            features=features,
            hostname=config.hostname,
            tags=tags,
            search_domain=config.network.search_domain,
            nameserver=config.network.nameserver,
            interfaces=[config.network.interface_string()],
            cores=config.cores,
            memory=config.memory,
            privilege=config.privilege,
            password=config.password,
        )

    def pct_options(self) -> List[str]:
        """Render the block as pct command-line options."""
        options = [
            "-features", ",".join(self.features),
            "-hostname", self.hostname,
        ]
        if self.tags:
            options += ["-tags", ";".join(self.tags)]
        if self.search_domain:
            options.append(f"-searchdomain={self.search_domain}")
        if self.nameserver:
            options.append(f"-nameserver={self.nameserver}")
        for index, interface in enumerate(self.interfaces):
            options += [f"-net{index}", interface]
        options += [
            "-onboot", "1" if self.onboot else "0",
            "-cores", str(self.cores),
            "-memory", str(self.memory),
            "-unprivileged", self.privilege.unprivileged_flag,
        ]
        if self.password:
            options += ["-password", self.password]
        return options
