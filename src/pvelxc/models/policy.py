"""Device policy models."""

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class DeviceRule(BaseModel):
    """A cgroup2 device allow rule."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["c", "b"] = "c"
    major: int
    minor: str = Field(default="*", description="Minor number or '*'")
    access: str = "rwm"

    def config_line(self) -> str:
        return f"lxc.cgroup2.devices.allow: {self.kind} {self.major}:{self.minor} {self.access}"


class BindMount(BaseModel):
    """A host device bind-mounted into the container."""
    model_config = ConfigDict(frozen=True)

    host_path: str
    container_path: str
    create: Literal["dir", "file"] = "file"
    optional: bool = True

    def config_line(self) -> str:
        options = "bind"
        if self.optional:
            options += ",optional"
        options += f",create={self.create}"
        return f"lxc.mount.entry: {self.host_path} {self.container_path} none {options}"


class DevicePolicy(BaseModel):
    """Capabilities and device passthrough resolved for a container."""
    model_config = ConfigDict(frozen=True)

    features: List[str] = Field(default_factory=list)
    allow_all_devices: bool = False
    drop_capabilities: bool = False
    device_rules: List[DeviceRule] = Field(default_factory=list)
    mounts: List[BindMount] = Field(default_factory=list)

    @property
    def has_device_config(self) -> bool:
        return bool(self.allow_all_devices or self.device_rules or self.mounts)

    def config_lines(self) -> List[str]:
        """Lines appended to the container's persisted configuration."""
        lines = []
        if self.allow_all_devices:
            lines.append("lxc.cgroup2.devices.allow: a")
        if self.drop_capabilities:
            lines.append("lxc.cap.drop:")
        lines.extend(rule.config_line() for rule in self.device_rules)
        lines.extend(mount.config_line() for mount in self.mounts)
        return lines
