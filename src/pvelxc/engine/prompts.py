"""Interface to whatever renders prompts for the operator."""

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional


class PromptCancelled(Exception):
    """The operator cancelled a prompt."""


class Prompter(ABC):
    """Prompt operations used by the wizard and the orchestrators.

    Every method raises PromptCancelled when the operator cancels.
    """

    @abstractmethod
    def ask(self, title: str, message: str, default: Optional[str] = None, secret: bool = False) -> str:
        """Free-text input; an empty answer returns the default or ''."""

    @abstractmethod
    def choose(self, title: str, message: str, choices: List[str], default: Optional[str] = None) -> str:
        """Pick one of ``choices``."""

    @abstractmethod
    def confirm(self, title: str, message: str, default: bool = False) -> bool:
        """Yes/no question."""

    @abstractmethod
    def notify(self, title: str, message: str) -> None:
        """Show a message, e.g. why an answer was rejected."""

    @abstractmethod
    def summary(self, title: str, rows: Mapping[str, str]) -> None:
        """Show the collected settings."""
