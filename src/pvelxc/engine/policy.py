"""Device policy table.

Maps privilege mode and application category to the capability flags
passed at creation time and the device rules appended afterwards.
"""

from typing import List

from pvelxc.models.application import AppCategory
from pvelxc.models.container import PrivilegeMode
from pvelxc.models.policy import BindMount, DevicePolicy, DeviceRule


MEDIA_DEVICE_RULES = (
    DeviceRule(major=226, minor="0"),
    DeviceRule(major=226, minor="128"),
    DeviceRule(major=29, minor="0"),
)

MEDIA_MOUNTS = (
    BindMount(host_path="/dev/fb0", container_path="dev/fb0", create="file"),
    BindMount(host_path="/dev/dri", container_path="dev/dri", create="dir"),
    BindMount(host_path="/dev/dri/renderD128", container_path="dev/dri/renderD128", create="file"),
)

SERIAL_DEVICE_RULES = (
    DeviceRule(major=188),
    DeviceRule(major=189),
)

SERIAL_MOUNTS = (
    BindMount(host_path="/dev/serial/by-id", container_path="dev/serial/by-id", create="dir"),
    BindMount(host_path="/dev/ttyUSB0", container_path="dev/ttyUSB0", create="file"),
    BindMount(host_path="/dev/ttyUSB1", container_path="dev/ttyUSB1", create="file"),
    BindMount(host_path="/dev/ttyACM0", container_path="dev/ttyACM0", create="file"),
    BindMount(host_path="/dev/ttyACM1", container_path="dev/ttyACM1", create="file"),
)


def resolve_features(privilege: PrivilegeMode, category: AppCategory, overlay: bool = False) -> List[str]:
    """Capability flags for the creation call."""
    if category == AppCategory.CONTAINER_HOST:
        features = ["keyctl=1", "nesting=1"]
        if overlay:
            features.insert(0, "fuse=1")
        return features
    if privilege == PrivilegeMode.UNPRIVILEGED:
        return ["keyctl=1", "nesting=1"]
    return ["nesting=1"]


def resolve(privilege: PrivilegeMode, category: AppCategory, overlay: bool = False) -> DevicePolicy:
    """Resolve the device policy for a container."""
    features = resolve_features(privilege, category, overlay)

    # The platform already confines device access for unprivileged containers
    if privilege == PrivilegeMode.UNPRIVILEGED:
        return DevicePolicy(features=features)

    if category == AppCategory.MEDIA:
        rules, mounts = MEDIA_DEVICE_RULES, MEDIA_MOUNTS
    else:
        rules, mounts = SERIAL_DEVICE_RULES, SERIAL_MOUNTS

    return DevicePolicy(
        features=features,
        allow_all_devices=True,
        drop_capabilities=True,
        device_rules=list(rules),
        mounts=list(mounts),
    )
