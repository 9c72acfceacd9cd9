"""Tool configuration and application catalog loading."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from pydantic import ValidationError

from pvelxc.models.application import ApplicationSpec, BUILTIN_APPLICATIONS, short_name
from pvelxc.models.config import ToolConfig
from pvelxc.utils.templates import merge_dicts


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("/etc/pvelxc/config.yaml")
CONFIG_ENV_VAR = "PVELXC_CONFIG"


class ConfigManager:
    """Loads the tool configuration and resolves applications."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        An explicit path (argument or environment) must exist; the default
        path may be missing, in which case built-in defaults apply.
        """
        env_path = os.environ.get(CONFIG_ENV_VAR)
        self.explicit = config_path is not None or bool(env_path)
        self.config_path = Path(config_path or env_path or DEFAULT_CONFIG_PATH)
        self.yaml = YAML(typ="safe")
        self.config: ToolConfig = ToolConfig()
        self.applications: Dict[str, ApplicationSpec] = dict(BUILTIN_APPLICATIONS)

    async def load(self) -> ToolConfig:
        """Load the configuration file and the application catalog."""
        if not self.config_path.exists():
            if self.explicit:
                raise FileNotFoundError(f"Config not found: {self.config_path}")
            logger.debug(f"No config at {self.config_path}, using defaults")
            data: Dict[str, Any] = {}
        else:
            logger.info(f"Loading configuration from {self.config_path}")
            data = await self._read_yaml(self.config_path) or {}

        try:
            self.config = ToolConfig(**data)
        except ValidationError as e:
            logger.error(f"Invalid config: {e}")
            raise

        self._load_applications()
        return self.config

    def _load_applications(self):
        """Merge configured applications over the built-in catalog."""
        self.applications = dict(BUILTIN_APPLICATIONS)
        for name, overrides in self.config.applications.items():
            key = short_name(name)
            base = self.applications.get(key)
            merged = merge_dicts(base.model_dump(mode="json") if base else {"name": name}, overrides or {})
            try:
                self.applications[key] = ApplicationSpec(**merged)
                logger.debug(f"Loaded application {merged['name']}")
            except ValidationError as e:
                logger.error(f"Invalid application {name}: {e}")
                raise

    async def _read_yaml(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse YAML file."""
        content = await asyncio.to_thread(file_path.read_text)
        return self.yaml.load(content)

    def get_application(self, name: str) -> ApplicationSpec:
        """Get an application by display or short name."""
        spec = self.applications.get(short_name(name))
        if spec is None:
            raise ValueError(f"Unknown application: {name}")
        return spec
