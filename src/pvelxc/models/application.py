"""Application catalog models."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AppCategory(str, Enum):
    """Coarse application classification driving policy and optional flags."""
    MEDIA = "media"
    CONTAINER_HOST = "container-host"
    GENERIC = "generic"


# Versions offered per distribution, in display order
DISTRIBUTIONS: Dict[str, List[str]] = {
    "debian": ["11"],
    "ubuntu": ["20.04", "22.04", "22.10"],
    "alpine": ["3.17"],
}

# Distributions whose base image ships without bash
MINIMAL_BASE_DISTRIBUTIONS = frozenset({"alpine"})


def short_name(name: str) -> str:
    """Lowercase a name and strip all whitespace from it."""
    return "".join(name.lower().split())


class ApplicationSpec(BaseModel):
    """Application specification and its resource presets."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., description="Display name, e.g. 'Home Assistant'")
    category: AppCategory = Field(default=AppCategory.GENERIC)
    os_type: str = Field(default="debian")
    os_version: str = Field(default="11")
    distributions: Optional[List[str]] = Field(
        None, description="Selectable distributions, None for all known"
    )
    disk_size: float = Field(default=2, gt=0)
    cores: int = Field(default=1, gt=0)
    memory: int = Field(default=512, gt=0)

    @model_validator(mode="after")
    def check_os(self):
        """Validate the default distribution and version."""
        if self.os_type not in DISTRIBUTIONS:
            raise ValueError(f"Unknown distribution: {self.os_type}")
        if self.os_version not in DISTRIBUTIONS[self.os_type]:
            raise ValueError(
                f"Version {self.os_version} not available for {self.os_type}"
            )
        for distribution in self.distributions or []:
            if distribution not in DISTRIBUTIONS:
                raise ValueError(f"Unknown distribution: {distribution}")
        return self

    @property
    def short_name(self) -> str:
        return short_name(self.name)

    @property
    def overlay_eligible(self) -> bool:
        return self.category == AppCategory.CONTAINER_HOST

    def distribution_choices(self) -> List[str]:
        """Distributions the operator may pick for this application."""
        if self.distributions:
            return list(self.distributions)
        if self.os_type in MINIMAL_BASE_DISTRIBUTIONS:
            return [self.os_type]
        return [name for name in DISTRIBUTIONS if name not in MINIMAL_BASE_DISTRIBUTIONS]


def _app(name, category=AppCategory.GENERIC, **kwargs) -> ApplicationSpec:
    return ApplicationSpec(name=name, category=category, **kwargs)


BUILTIN_APPLICATIONS: Dict[str, ApplicationSpec] = {
    spec.short_name: spec
    for spec in [
        _app("Ubuntu", os_type="ubuntu", os_version="22.04", disk_size=2, cores=2, memory=4096),
        _app("Debian", disk_size=2, cores=1, memory=512),
        _app("Alpine", os_type="alpine", os_version="3.17", disk_size=0.1, cores=1, memory=512),
        _app("Docker", AppCategory.CONTAINER_HOST, disk_size=4, cores=2, memory=2048),
        _app("Umbrel", AppCategory.CONTAINER_HOST, disk_size=8, cores=2, memory=2048),
        _app("CasaOS", AppCategory.CONTAINER_HOST, disk_size=8, cores=2, memory=2048),
        _app("Home Assistant", AppCategory.CONTAINER_HOST, disk_size=16, cores=2, memory=2048),
        _app("Plex", AppCategory.MEDIA, os_type="ubuntu", os_version="22.04", disk_size=8, cores=2, memory=2048),
        _app("Jellyfin", AppCategory.MEDIA, os_type="ubuntu", os_version="22.04", disk_size=8, cores=2, memory=2048),
        _app("Emby", AppCategory.MEDIA, os_type="ubuntu", os_version="22.04", disk_size=8, cores=2, memory=2048),
        _app("Tdarr", AppCategory.MEDIA, os_type="ubuntu", os_version="22.04", disk_size=4, cores=2, memory=2048),
    ]
}
