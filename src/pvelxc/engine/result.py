"""Tagged outcome of a provisioning or update run."""

from dataclasses import dataclass, field
from typing import List, Optional

from pvelxc.engine.errors import ErrorCategory, ProvisionError
from pvelxc.models.container import Configuration
from pvelxc.models.host import EnvironmentCheck


@dataclass
class ProvisionResult:
    """What a run did and, on failure, how it failed."""
    success: bool = False
    category: Optional[ErrorCategory] = None
    message: str = ""
    failed_step: Optional[str] = None
    completed_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    configuration: Optional[Configuration] = None
    environment: Optional[EnvironmentCheck] = None
    annotated: bool = False

    @property
    def cancelled(self) -> bool:
        return self.category == ErrorCategory.INPUT_CANCEL

    def fail(self, error: ProvisionError, step: Optional[str]) -> "ProvisionResult":
        self.success = False
        self.category = error.category
        self.message = str(error)
        self.failed_step = getattr(error, "step", None) or step
        return self
