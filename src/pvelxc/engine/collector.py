"""Configuration collection: fixed defaults or the interactive wizard."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from pvelxc.engine.errors import InputCancelled, ValidationFailed
from pvelxc.engine.prompts import PromptCancelled, Prompter
from pvelxc.models.application import ApplicationSpec, DISTRIBUTIONS, short_name
from pvelxc.models.config import DefaultsConfig
from pvelxc.models.container import Configuration, NetworkSpec, PrivilegeMode
from pvelxc.utils.validators import (
    is_dhcp_or_cidr,
    is_ipv4,
    is_mac_address,
    is_positive_integer,
    is_positive_number,
    is_vlan_tag,
)


logger = logging.getLogger(__name__)


class WizardStep(Enum):
    """Wizard steps in prompting order."""
    DISTRIBUTION = "distribution"
    VERSION = "version"
    PRIVILEGE = "privilege"
    PASSWORD = "password"
    CONTAINER_ID = "container_id"
    HOSTNAME = "hostname"
    DISK_SIZE = "disk_size"
    CORE_COUNT = "core_count"
    MEMORY = "memory"
    BRIDGE = "bridge"
    ADDRESS = "address"
    GATEWAY = "gateway"
    DISABLE_IPV6 = "disable_ipv6"
    MTU = "mtu"
    SEARCH_DOMAIN = "search_domain"
    NAMESERVER = "nameserver"
    MAC = "mac"
    VLAN = "vlan"
    SSH_ROOT = "ssh_root"
    OVERLAY = "overlay"
    VERBOSE = "verbose"
    CONFIRM = "confirm"


@dataclass(frozen=True)
class Next:
    """Advance to the following step."""


@dataclass(frozen=True)
class Retry:
    """Re-enter a step after rejected input."""
    step: WizardStep
    reason: str = ""


@dataclass(frozen=True)
class Restart:
    """Go back to the first step, keeping answers as defaults."""


Transition = Union[Next, Retry, Restart]


def _number(value: str) -> float:
    return float(value)


def _trim(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# Answer that clears an optional value kept from an earlier pass
CLEAR_ANSWER = "-"


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    if value == CLEAR_ANSWER:
        return None
    return value or None


def _label(value) -> str:
    return "yes" if value else "no"


def describe_configuration(config: Configuration) -> Dict[str, str]:
    """Human readable rows for a configuration summary."""
    network = config.network
    rows = {
        "Distribution": config.os_type,
        f"{config.os_type} Version": config.os_version,
        "Container Type": config.privilege.value.capitalize(),
        "Root Password": "Automatic Login" if config.automatic_login else "********",
        "Container ID": str(config.ctid),
        "Hostname": config.hostname,
        "Disk Size": f"{config.disk_size_label}GB",
        "Allocated Cores": str(config.cores),
        "Allocated RAM": f"{config.memory}MiB",
        "Bridge": network.bridge,
        "IP Address": network.address,
        "Gateway": network.gateway or "Default",
        "Disable IPv6": _label(config.disable_ipv6),
        "Interface MTU Size": str(network.mtu) if network.mtu else "Default",
        "DNS Search Domain": network.search_domain or "Host",
        "DNS Server": network.nameserver or "Host",
        "MAC Address": network.mac or "Default",
        "VLAN Tag": str(network.vlan) if network.vlan else "Default",
        "Root SSH Access": _label(config.ssh_root),
    }
    if config.overlay is not None:
        rows["Fuse Overlayfs (ZFS)"] = _label(config.overlay)
    rows["Verbose Mode"] = _label(config.verbose)
    return rows


class DefaultCollector:
    """Builds the fixed baseline configuration for an application.

    The baseline is made of known-good constants, so no input format
    check runs on this path.
    """

    def __init__(self, defaults: Optional[DefaultsConfig] = None):
        self.defaults = defaults or DefaultsConfig()

    def collect(self, app: ApplicationSpec, next_id: int) -> Configuration:
        logger.info(f"Using default settings for {app.name}")
        return Configuration(
            app=app.name,
            short_name=app.short_name,
            category=app.category,
            os_type=app.os_type,
            os_version=app.os_version,
            privilege=PrivilegeMode.PRIVILEGED,
            password=None,
            ctid=next_id,
            hostname=app.short_name,
            disk_size=app.disk_size,
            cores=app.cores,
            memory=app.memory,
            network=NetworkSpec.model_construct(bridge=self.defaults.bridge, address="dhcp"),
            disable_ipv6=True,
            ssh_root=False,
            overlay=False if app.overlay_eligible else None,
            verbose=False,
        )


@dataclass
class WizardDraft:
    """Answers collected so far; each one is the default on re-entry."""
    app: ApplicationSpec
    os_type: str
    os_version: Optional[str]
    ctid: int
    hostname: str
    disk_size: str
    cores: str
    memory: str
    bridge: str
    privilege: PrivilegeMode = PrivilegeMode.PRIVILEGED
    password: Optional[str] = None
    address: str = "dhcp"
    gateway: Optional[str] = None
    disable_ipv6: bool = False
    mtu: Optional[str] = None
    search_domain: Optional[str] = None
    nameserver: Optional[str] = None
    mac: Optional[str] = None
    vlan: Optional[str] = None
    ssh_root: bool = False
    overlay: Optional[bool] = None
    verbose: bool = False

    @classmethod
    def for_application(cls, app: ApplicationSpec, next_id: int, bridge: str) -> "WizardDraft":
        return cls(
            app=app,
            os_type=app.os_type,
            os_version=app.os_version,
            ctid=next_id,
            hostname=app.short_name,
            disk_size=_trim(app.disk_size),
            cores=str(app.cores),
            memory=str(app.memory),
            bridge=bridge,
        )

    def build(self) -> Configuration:
        return Configuration(
            app=self.app.name,
            short_name=self.app.short_name,
            category=self.app.category,
            os_type=self.os_type,
            os_version=self.os_version,
            privilege=self.privilege,
            password=self.password,
            ctid=self.ctid,
            hostname=self.hostname,
            disk_size=_number(self.disk_size),
            cores=int(self.cores),
            memory=int(self.memory),
            network=NetworkSpec(
                bridge=self.bridge,
                address=self.address,
                gateway=self.gateway,
                mtu=int(self.mtu) if self.mtu else None,
                search_domain=self.search_domain,
                nameserver=self.nameserver,
                mac=self.mac,
                vlan=int(self.vlan) if self.vlan else None,
            ),
            disable_ipv6=self.disable_ipv6,
            ssh_root=self.ssh_root,
            overlay=self.overlay,
            verbose=self.verbose,
        )


class InteractiveCollector:
    """Wizard collecting a configuration step by step.

    Rejected input re-enters only the failing step. Declining the final
    confirmation restarts from the first step. Cancelling any prompt raises
    InputCancelled.
    """

    def __init__(self, prompter: Prompter, defaults: Optional[DefaultsConfig] = None):
        self.prompter = prompter
        self.defaults = defaults or DefaultsConfig()
        self.history: List[Tuple[WizardStep, Transition]] = []
        self._result: Optional[Configuration] = None
        self._handlers: Dict[WizardStep, Callable[[WizardDraft], Transition]] = {
            WizardStep.DISTRIBUTION: self._distribution,
            WizardStep.VERSION: self._version,
            WizardStep.PRIVILEGE: self._privilege,
            WizardStep.PASSWORD: self._password,
            WizardStep.CONTAINER_ID: self._container_id,
            WizardStep.HOSTNAME: self._hostname,
            WizardStep.DISK_SIZE: self._disk_size,
            WizardStep.CORE_COUNT: self._core_count,
            WizardStep.MEMORY: self._memory,
            WizardStep.BRIDGE: self._bridge,
            WizardStep.ADDRESS: self._address,
            WizardStep.GATEWAY: self._gateway,
            WizardStep.DISABLE_IPV6: self._disable_ipv6,
            WizardStep.MTU: self._mtu,
            WizardStep.SEARCH_DOMAIN: self._search_domain,
            WizardStep.NAMESERVER: self._nameserver,
            WizardStep.MAC: self._mac,
            WizardStep.VLAN: self._vlan,
            WizardStep.SSH_ROOT: self._ssh_root,
            WizardStep.OVERLAY: self._overlay,
            WizardStep.VERBOSE: self._verbose,
            WizardStep.CONFIRM: self._confirm,
        }

    def collect(self, app: ApplicationSpec, next_id: int) -> Configuration:
        """Run the wizard until the operator confirms the settings."""
        draft = WizardDraft.for_application(app, next_id, self.defaults.bridge)
        steps = list(WizardStep)
        self.history = []
        self._result = None

        index = 0
        while index < len(steps):
            step = steps[index]
            try:
                transition = self._handlers[step](draft)
            except ValidationFailed as e:
                logger.debug(f"Rejected input at {step.value}: {e}")
                self._notify("INVALID INPUT", str(e))
                transition = Retry(step, str(e))
            self.history.append((step, transition))

            if isinstance(transition, Retry):
                index = steps.index(transition.step)
            elif isinstance(transition, Restart):
                logger.info("Settings not confirmed, starting over")
                index = 0
            else:
                index += 1

        return self._result

    def _notify(self, title: str, message: str) -> None:
        try:
            self.prompter.notify(title, message)
        except PromptCancelled as e:
            raise InputCancelled("User exited script") from e

    def _ask(self, step: WizardStep, title: str, message: str, default: Optional[str] = None, secret: bool = False) -> str:
        try:
            return self.prompter.ask(title, message, default=default, secret=secret).strip()
        except PromptCancelled as e:
            raise InputCancelled(f"User exited script at {step.value}") from e

    def _choose(self, step: WizardStep, title: str, message: str, choices: List[str], default: Optional[str]) -> str:
        try:
            return self.prompter.choose(title, message, choices, default=default)
        except PromptCancelled as e:
            raise InputCancelled(f"User exited script at {step.value}") from e

    def _confirm_prompt(self, step: WizardStep, title: str, message: str, default: bool = False) -> bool:
        try:
            return self.prompter.confirm(title, message, default=default)
        except PromptCancelled as e:
            raise InputCancelled(f"User exited script at {step.value}") from e

    def _distribution(self, draft: WizardDraft) -> Transition:
        choices = draft.app.distribution_choices()
        if len(choices) == 1:
            chosen = choices[0]
        else:
            default = draft.os_type if draft.os_type in choices else None
            chosen = self._choose(
                WizardStep.DISTRIBUTION, "DISTRIBUTION", "Choose Distribution:", choices, default
            )
            if chosen not in choices:
                raise ValidationFailed(f"{chosen} is not an available distribution", WizardStep.DISTRIBUTION.value)
        if chosen != draft.os_type:
            draft.os_version = None
        draft.os_type = chosen
        return Next()

    def _version(self, draft: WizardDraft) -> Transition:
        versions = DISTRIBUTIONS[draft.os_type]
        if len(versions) == 1:
            draft.os_version = versions[0]
            return Next()
        default = draft.os_version if draft.os_version in versions else None
        chosen = self._choose(
            WizardStep.VERSION, f"{draft.os_type.upper()} VERSION", "Choose Version", versions, default
        )
        if chosen not in versions:
            raise ValidationFailed(f"{chosen} is not an available version", WizardStep.VERSION.value)
        draft.os_version = chosen
        return Next()

    def _privilege(self, draft: WizardDraft) -> Transition:
        choices = [mode.value for mode in PrivilegeMode]
        chosen = self._choose(
            WizardStep.PRIVILEGE, "CONTAINER TYPE", "Choose Type", choices, draft.privilege.value
        )
        if chosen not in choices:
            raise ValidationFailed(f"{chosen} is not a container type", WizardStep.PRIVILEGE.value)
        draft.privilege = PrivilegeMode(chosen)
        return Next()

    def _password(self, draft: WizardDraft) -> Transition:
        value = self._ask(
            WizardStep.PASSWORD,
            "PASSWORD (leave blank for automatic login)",
            "Set Root Password (needed for root ssh access, - for automatic login)",
            default=draft.password,
            secret=True,
        )
        draft.password = _optional(value)
        return Next()

    def _container_id(self, draft: WizardDraft) -> Transition:
        value = self._ask(WizardStep.CONTAINER_ID, "CONTAINER ID", "Set Container ID", default=str(draft.ctid))
        value = value or str(draft.ctid)
        if not is_positive_integer(value) or int(value) < 100:
            raise ValidationFailed("CONTAINER ID MUST BE AN INTEGER OF 100 OR MORE", WizardStep.CONTAINER_ID.value)
        draft.ctid = int(value)
        return Next()

    def _hostname(self, draft: WizardDraft) -> Transition:
        value = self._ask(WizardStep.HOSTNAME, "HOSTNAME", "Set Hostname", default=draft.hostname)
        draft.hostname = short_name(value) or draft.app.short_name
        return Next()

    def _disk_size(self, draft: WizardDraft) -> Transition:
        value = self._ask(WizardStep.DISK_SIZE, "DISK SIZE", "Set Disk Size in GB", default=draft.disk_size)
        value = value or draft.disk_size
        if not is_positive_number(value) or _number(value) == 0:
            raise ValidationFailed("DISK SIZE MUST BE AN INTEGER NUMBER!", WizardStep.DISK_SIZE.value)
        draft.disk_size = value
        return Next()

    def _core_count(self, draft: WizardDraft) -> Transition:
        value = self._ask(WizardStep.CORE_COUNT, "CORE COUNT", "Allocate CPU Cores", default=draft.cores)
        value = value or draft.cores
        if not is_positive_number(value) or not is_positive_integer(value):
            raise ValidationFailed("CORE COUNT MUST BE AN INTEGER NUMBER!", WizardStep.CORE_COUNT.value)
        draft.cores = value
        return Next()

    def _memory(self, draft: WizardDraft) -> Transition:
        value = self._ask(WizardStep.MEMORY, "RAM", "Allocate RAM in MiB", default=draft.memory)
        value = value or draft.memory
        if not is_positive_number(value) or not is_positive_integer(value):
            raise ValidationFailed("RAM SIZE MUST BE AN INTEGER NUMBER!", WizardStep.MEMORY.value)
        draft.memory = value
        return Next()

    def _bridge(self, draft: WizardDraft) -> Transition:
        value = self._ask(WizardStep.BRIDGE, "BRIDGE", "Set a Bridge", default=draft.bridge)
        draft.bridge = value or draft.bridge
        return Next()

    def _address(self, draft: WizardDraft) -> Transition:
        value = self._ask(
            WizardStep.ADDRESS, "IP ADDRESS", "Set a Static IPv4 CIDR Address (/24)", default=draft.address
        )
        value = value or draft.address
        if not is_dhcp_or_cidr(value):
            raise ValidationFailed(
                f"{value} is an invalid IPv4 CIDR address. "
                "Please enter a valid IPv4 CIDR address or 'dhcp'",
                WizardStep.ADDRESS.value,
            )
        draft.address = value
        return Next()

    def _gateway(self, draft: WizardDraft) -> Transition:
        if draft.address == "dhcp":
            draft.gateway = None
            return Next()
        value = self._ask(WizardStep.GATEWAY, "Gateway IP", "Enter gateway IP address", default=draft.gateway)
        if not value:
            raise ValidationFailed("Gateway IP address cannot be empty", WizardStep.GATEWAY.value)
        if not is_ipv4(value):
            raise ValidationFailed("Invalid IP address format", WizardStep.GATEWAY.value)
        draft.gateway = value
        return Next()

    def _disable_ipv6(self, draft: WizardDraft) -> Transition:
        draft.disable_ipv6 = self._confirm_prompt(
            WizardStep.DISABLE_IPV6, "IPv6", "Disable IPv6?", default=draft.disable_ipv6
        )
        return Next()

    def _mtu(self, draft: WizardDraft) -> Transition:
        value = _optional(self._ask(
            WizardStep.MTU,
            "MTU SIZE",
            "Set Interface MTU Size (blank keeps the default, - clears it)",
            default=draft.mtu,
        ))
        if value is not None and not is_positive_integer(value):
            raise ValidationFailed("MTU SIZE MUST BE AN INTEGER NUMBER!", WizardStep.MTU.value)
        draft.mtu = value
        return Next()

    def _search_domain(self, draft: WizardDraft) -> Transition:
        draft.search_domain = _optional(self._ask(
            WizardStep.SEARCH_DOMAIN,
            "DNS Search Domain",
            "Set a DNS Search Domain (blank keeps the default, - uses HOST)",
            default=draft.search_domain,
        ))
        return Next()

    def _nameserver(self, draft: WizardDraft) -> Transition:
        draft.nameserver = _optional(self._ask(
            WizardStep.NAMESERVER,
            "DNS SERVER IP",
            "Set a DNS Server IP (blank keeps the default, - uses HOST)",
            default=draft.nameserver,
        ))
        return Next()

    def _mac(self, draft: WizardDraft) -> Transition:
        value = _optional(self._ask(
            WizardStep.MAC,
            "MAC ADDRESS",
            "Set a MAC Address (blank keeps the default, - clears it)",
            default=draft.mac,
        ))
        if value is not None and not is_mac_address(value):
            raise ValidationFailed(f"{value} is not a valid MAC address", WizardStep.MAC.value)
        draft.mac = value
        return Next()

    def _vlan(self, draft: WizardDraft) -> Transition:
        value = _optional(self._ask(
            WizardStep.VLAN, "VLAN", "Set a Vlan (blank keeps the default, - clears it)", default=draft.vlan
        ))
        if value is not None and not is_vlan_tag(value):
            raise ValidationFailed("VLAN TAG MUST BE AN INTEGER BETWEEN 1 AND 4094", WizardStep.VLAN.value)
        draft.vlan = value
        return Next()

    def _ssh_root(self, draft: WizardDraft) -> Transition:
        if not draft.password:
            draft.ssh_root = False
            return Next()
        draft.ssh_root = self._confirm_prompt(
            WizardStep.SSH_ROOT, "SSH ACCESS", "Enable Root SSH Access?", default=draft.ssh_root
        )
        return Next()

    def _overlay(self, draft: WizardDraft) -> Transition:
        if not draft.app.overlay_eligible:
            draft.overlay = None
            return Next()
        draft.overlay = self._confirm_prompt(
            WizardStep.OVERLAY, "FUSE OVERLAYFS", "(ZFS) Enable Fuse Overlayfs?", default=bool(draft.overlay)
        )
        return Next()

    def _verbose(self, draft: WizardDraft) -> Transition:
        draft.verbose = self._confirm_prompt(
            WizardStep.VERBOSE, "VERBOSE MODE", "Enable Verbose Mode?", default=draft.verbose
        )
        return Next()

    def _confirm(self, draft: WizardDraft) -> Transition:
        config = draft.build()
        try:
            self.prompter.summary(f"{draft.app.name} LXC settings", describe_configuration(config))
        except PromptCancelled as e:
            raise InputCancelled("User exited script at confirm") from e
        if not self._confirm_prompt(
            WizardStep.CONFIRM, "ADVANCED SETTINGS COMPLETE", f"Ready to create {draft.app.name} LXC?", default=True
        ):
            return Restart()
        self._result = config
        return Next()
