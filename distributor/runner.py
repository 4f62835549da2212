"""
Command Runner

Runs the surviving command artifacts in document order. Each command is
confirmed individually; a declined command is skipped, a failing command
halts everything after it.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape

from .models import CommandArtifact
from .prompt import ConfirmationGate, get_console

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Output of one executed command."""
    stdout: str
    stderr: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class CommandExecutor:
    """Executes commands through the shell in the working directory."""

    def __init__(self, working_dir: Optional[Path] = None, timeout: Optional[int] = None):
        self.working_dir = Path(working_dir) if working_dir else None
        self.timeout = timeout

    def run(self, command: str) -> CommandResult:
        logger.debug(f"Running command: {command}")
        result = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            text=True,
            cwd=self.working_dir,
            timeout=self.timeout,
        )
        return CommandResult(stdout=result.stdout, stderr=result.stderr, exit_code=result.returncode)


@dataclass
class RunSummary:
    """What happened to each command."""
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed_command: Optional[str] = None
    failed_result: Optional[CommandResult] = None

    @property
    def halted(self) -> bool:
        return self.failed_command is not None


class CommandRunner:
    """
    Confirms and executes commands one at a time.

    Usage:
        runner = CommandRunner(gate, CommandExecutor(working_dir))
        summary = runner.run_all(plan.commands)
    """

    def __init__(
        self,
        gate: ConfirmationGate,
        executor: Optional[CommandExecutor] = None,
        console: Optional[Console] = None,
    ):
        self.gate = gate
        self.executor = executor or CommandExecutor()
        self.console = console or get_console()

    def run_all(self, commands: Iterable[CommandArtifact]) -> RunSummary:
        commands = list(commands)
        summary = RunSummary()

        if not commands:
            self.console.print("No commands to run.")
            return summary

        self.console.print("\n[bold]Found Commands:[/bold]")
        for command in commands:
            self.console.print(f"[cyan]{escape(command.text)}[/cyan]")
            if not self.gate.ask("Do you want to run this command?", default=False):
                logger.info(f"Skipped command: {command.text}")
                self.console.print("[dim]-> Skipped.[/dim]")
                summary.skipped.append(command.text)
                continue

            result = self.executor.run(command.text)
            if result.stdout:
                self.console.print(f"[dim]{escape(result.stdout.rstrip())}[/dim]")
            if result.stderr:
                self.console.print(f"[yellow]{escape(result.stderr.rstrip())}[/yellow]")

            if not result.succeeded:
                logger.error(f"Command failed with exit code {result.exit_code}: {command.text}")
                self.console.print(
                    f"[red]-> Command failed (exit code {result.exit_code}). "
                    "Skipping subsequent commands.[/red]"
                )
                summary.failed_command = command.text
                summary.failed_result = result
                break

            summary.executed.append(command.text)

        return summary
