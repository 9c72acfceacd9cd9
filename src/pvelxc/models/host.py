"""Host environment models."""

from typing import Optional

from pydantic import BaseModel


class EnvironmentCheck(BaseModel):
    """Outcome of the host preflight checks."""
    version: Optional[str] = None
    architecture: Optional[str] = None
    version_supported: bool
    arch_supported: bool
    remote_session: bool = False

    @property
    def supported(self) -> bool:
        return self.version_supported and self.arch_supported
