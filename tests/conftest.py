"""Shared fixtures."""

import pytest

from pvelxc.engine.prompts import PromptCancelled, Prompter


class ScriptedPrompter(Prompter):
    """Answers prompts from a script keyed by prompt title.

    Each title maps to a list of answers consumed in order; once a list is
    exhausted (or a title is missing) the prompt's default is returned. An
    answer of ``PromptCancelled`` cancels that prompt.
    """

    def __init__(self, answers=None):
        self.answers = {
            title: list(value) if isinstance(value, list) else [value]
            for title, value in (answers or {}).items()
        }
        self.asked = []
        self.notices = []
        self.summaries = []

    def _answer(self, title, default):
        self.asked.append(title)
        queue = self.answers.get(title)
        if queue:
            value = queue.pop(0)
            if value is PromptCancelled:
                raise PromptCancelled(title)
            return value
        return default

    def ask(self, title, message, default=None, secret=False):
        value = self._answer(title, default)
        return "" if value is None else value

    def choose(self, title, message, choices, default=None):
        return self._answer(title, default)

    def confirm(self, title, message, default=False):
        return self._answer(title, default)

    def notify(self, title, message):
        self.notices.append((title, message))

    def summary(self, title, rows):
        self.summaries.append((title, dict(rows)))


@pytest.fixture
def scripted_prompter():
    """Factory for prompters answering from a script."""
    return ScriptedPrompter
