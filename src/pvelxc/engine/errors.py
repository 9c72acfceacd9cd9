"""Error taxonomy for provisioning runs."""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """How a failure should be treated by the caller."""
    PREFLIGHT = "fatal-preflight"
    INPUT_CANCEL = "fatal-input-cancel"
    EXTERNAL = "fatal-external"
    VALIDATION = "recoverable-validation"
    WARNING = "soft-warning"


class ProvisionError(Exception):
    """Base error carrying its category."""
    category = ErrorCategory.EXTERNAL


class PreflightError(ProvisionError):
    """Host platform or architecture is not supported."""
    category = ErrorCategory.PREFLIGHT


class InputCancelled(ProvisionError):
    """Operator cancelled a prompt or declined to continue."""
    category = ErrorCategory.INPUT_CANCEL


class ExternalError(ProvisionError):
    """An external provisioning call failed."""
    category = ErrorCategory.EXTERNAL

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step


class ValidationFailed(ProvisionError):
    """Operator input did not pass validation."""
    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step
