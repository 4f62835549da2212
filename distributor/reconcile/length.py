"""
Length Guard

Opt-in check for script files: when the incoming code is shorter than the
file on disk, the operator confirms before it is overwritten.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

from ..models import FileArtifact
from ..prompt import ConfirmationGate, get_console
from .models import ReconciliationOutcome

logger = logging.getLogger(__name__)


def count_lines(text: str) -> int:
    return len(text.splitlines())


class LengthGuardReconciler:
    """Asks before replacing a file with fewer lines than it has now."""

    def __init__(self, gate: ConfirmationGate, console: Optional[Console] = None):
        self.gate = gate
        self.console = console or get_console()

    def reconcile(self, artifact: FileArtifact, existing: Optional[str]) -> ReconciliationOutcome:
        if existing is None:
            return ReconciliationOutcome.overwrite(artifact.code, reason="new file")

        existing_lines = count_lines(existing)
        incoming_lines = count_lines(artifact.code)
        if existing_lines <= incoming_lines:
            return ReconciliationOutcome.overwrite(artifact.code, reason="not shorter")

        logger.warning(
            f"{artifact.path}: incoming code is shorter ({incoming_lines} < {existing_lines} lines)"
        )
        self.console.print(f"[red]File: {escape(artifact.path)}[/red]")
        self.console.print(
            f"[red]Warning: The new code has fewer lines ({incoming_lines}) "
            f"than the existing code ({existing_lines}).[/red]"
        )
        if self.gate.ask("Do you want to overwrite the existing code?", default=False):
            return ReconciliationOutcome.overwrite(artifact.code, reason="confirmed shorter code")

        self.console.print(f"[dim]-> Skipped {escape(artifact.path)}.[/dim]")
        return ReconciliationOutcome.skip(reason=f"declined shorter code ({incoming_lines} < {existing_lines} lines)")
