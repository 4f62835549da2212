"""
Confirmation Gate

Every destructive decision goes through a ConfirmationGate passed in by
the caller, so reconcilers never prompt on their own:

- ConsoleConfirmationGate: asks the operator on the terminal
- StaticConfirmationGate: answers every question the same way (--yes)
- ScriptedConfirmationGate: replays a list of answers and records prompts
"""

import logging
import os
import sys
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from rich.console import Console
from rich.prompt import Confirm

from .errors import DistributorError

logger = logging.getLogger(__name__)

# Environment variables that mean nobody is at the keyboard
CI_ENV_VARS = ("CI", "GITHUB_ACTIONS", "GITLAB_CI", "BUILDKITE", "JENKINS_URL")


class NonInteractiveError(DistributorError):
    """A prompt was needed but the session cannot answer it"""
    pass


def get_console() -> Console:
    """Console used for operator-facing output."""
    return Console(highlight=False)


def is_interactive() -> bool:
    """
    Check whether prompts can be answered.

    Returns:
        True if stdin and stdout are TTYs and no CI variable is set
    """
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        return False
    return not any(os.environ.get(var) for var in CI_ENV_VARS)


class ConfirmationGate(ABC):
    """Capability used by reconcilers and the command runner to ask yes/no."""

    @abstractmethod
    def ask(self, prompt: str, default: bool = False) -> bool:
        """
        Ask a yes/no question.

        Args:
            prompt: Question shown to the operator
            default: Answer used when the operator just presses enter

        Returns:
            The operator's answer
        """


class ConsoleConfirmationGate(ConfirmationGate):
    """Asks on the terminal with a [y/n] prompt."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def ask(self, prompt: str, default: bool = False) -> bool:
        if not is_interactive():
            raise NonInteractiveError(
                f"Cannot prompt in a non-interactive session: {prompt!r}. "
                "Re-run with --yes to accept every prompt."
            )
        answer = Confirm.ask(prompt, default=default, console=self.console)
        logger.debug(f"Prompt {prompt!r} answered {answer}")
        return answer


class StaticConfirmationGate(ConfirmationGate):
    """Answers every prompt with the same value."""

    def __init__(self, answer: bool = True):
        self.answer = answer

    def ask(self, prompt: str, default: bool = False) -> bool:
        logger.info(f"Auto-answering {prompt!r} with {self.answer}")
        return self.answer


class ScriptedConfirmationGate(ConfirmationGate):
    """
    Replays pre-recorded answers in order.

    When the script runs out, the prompt's default is used. Every prompt is
    recorded in `prompts` so callers can assert on what was asked.
    """

    def __init__(self, answers: Iterable[bool] = ()):
        self._answers = list(answers)
        self.prompts: list[str] = []

    def ask(self, prompt: str, default: bool = False) -> bool:
        self.prompts.append(prompt)
        if self._answers:
            return self._answers.pop(0)
        return default

    @property
    def ask_count(self) -> int:
        return len(self.prompts)
