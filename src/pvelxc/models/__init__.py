"""Pydantic models for configuration and validation."""

from pvelxc.models.application import AppCategory, ApplicationSpec
from pvelxc.models.config import ToolConfig, HostConfig, ScriptsConfig, DefaultsConfig, UpdateConfig
from pvelxc.models.container import Configuration, CreateRequest, NetworkSpec, PrivilegeMode
from pvelxc.models.host import EnvironmentCheck
from pvelxc.models.policy import BindMount, DevicePolicy, DeviceRule

__all__ = [
    "AppCategory",
    "ApplicationSpec",
    "ToolConfig",
    "HostConfig",
    "ScriptsConfig",
    "DefaultsConfig",
    "UpdateConfig",
    "Configuration",
    "CreateRequest",
    "NetworkSpec",
    "PrivilegeMode",
    "EnvironmentCheck",
    "BindMount",
    "DevicePolicy",
    "DeviceRule",
]
