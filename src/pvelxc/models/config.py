"""Configuration models."""

from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, Field, field_validator


class HostConfig(BaseModel):
    """Hypervisor host settings."""
    lxc_config_dir: str = Field(default="/etc/pve/lxc")
    supported_major_versions: List[int] = Field(default_factory=lambda: [7])
    supported_architectures: List[str] = Field(default_factory=lambda: ["amd64"])
    timezone_file: str = Field(default="/etc/timezone")
    monitor_unit: str = Field(default="ping-instances.service")
    monitor_unit_file: str = Field(default="/etc/systemd/system/ping-instances.service")


class ScriptsConfig(BaseModel):
    """Locations of the remote provisioning scripts."""
    base_url: str = Field(default="https://raw.githubusercontent.com/tteck/Proxmox/main")
    create_script: str = Field(default="ct/create_lxc.sh")
    install_script: str = Field(default="install/{name}-install.sh")
    functions_file: str = Field(default="misc/install.func")
    alpine_functions_file: str = Field(default="misc/alpine-install.func")
    timeout: float = Field(default=30.0, gt=0)

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class DefaultsConfig(BaseModel):
    """Defaults applied to every new container."""
    bridge: str = Field(default="vmbr0")
    tags: List[str] = Field(default_factory=lambda: ["proxmox-helper-scripts"])
    description_link: str = Field(default="https://github.com/tteck/Proxmox")
    description_template: str = Field(
        default=(
            "# {{ app }} LXC\n"
            "### {{ link }}\n"
            "{% if address %}IP: {{ address }}\n{% endif %}"
        )
    )


class UpdateConfig(BaseModel):
    """Settings for the in-container update flow."""
    install_marker: str = Field(default="/var")


class ToolConfig(BaseModel):
    """Main configuration model."""
    model_config = ConfigDict(extra="ignore")

    log_level: str = Field(default="INFO")
    host: HostConfig = Field(default_factory=HostConfig)
    scripts: ScriptsConfig = Field(default_factory=ScriptsConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    update: UpdateConfig = Field(default_factory=UpdateConfig)
    applications: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()
