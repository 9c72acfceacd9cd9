"""
pvelxc - Application LXC provisioning for Proxmox VE.

Creates containers for catalogued applications, hands them the device
access they need and runs the application installer inside them.
"""

__version__ = "1.0.0"

# Re-export key components for easier access
from pvelxc.models.application import ApplicationSpec
from pvelxc.models.config import ToolConfig
from pvelxc.models.container import Configuration
from pvelxc.models.policy import DevicePolicy

__all__ = [
    "ApplicationSpec",
    "Configuration",
    "DevicePolicy",
    "ToolConfig",
]
