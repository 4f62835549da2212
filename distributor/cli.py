#!/usr/bin/env python3
"""
Distributor CLI

Commands:
  run      Distribute the document's code blocks (default)
  plan     Show what a run would do, without prompting or writing
  unmark   Remove the completion marker from the document
  config   Show the effective configuration
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml
from rich.markup import escape
from rich.table import Table

from . import VERSION
from .classifier import ArtifactClassifier
from .config import DistributorConfig
from .errors import DistributorError, DocumentError
from .extractor import BlockExtractor
from .history import EventType, HistoryLog
from .marker import is_marked, mark, unmark
from .prompt import (
    ConfirmationGate,
    ConsoleConfirmationGate,
    StaticConfirmationGate,
    get_console,
)
from .reconcile.coordinator import ResolutionCoordinator
from .runner import CommandExecutor, CommandRunner
from .writer import FileWriter

logger = logging.getLogger(__name__)

console = get_console()

SUBCOMMANDS = ("run", "plan", "unmark", "config")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def load_config(args) -> DistributorConfig:
    return DistributorConfig.load(Path(args.dir))


def resolve_document(args, config: DistributorConfig) -> Path:
    """Document path from --document, else from the config."""
    document = getattr(args, "document", None)
    path = Path(args.dir) / document if document else config.document_path
    if not path.is_file():
        raise DocumentError(f"Document not found: {path}")
    return path


def read_document(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Cannot read document {path}: {e}") from e


def make_gate(args) -> ConfirmationGate:
    if getattr(args, "yes", False):
        return StaticConfirmationGate(True)
    return ConsoleConfirmationGate(console)


# ============================================================================
# Commands
# ============================================================================

def cmd_run(args):
    """Extract, reconcile, write, run commands, mark complete."""
    config = load_config(args)
    document_path = resolve_document(args, config)
    gate = make_gate(args)
    history = HistoryLog(config.working_dir, enabled=config.history_enabled)

    if is_marked(document_path, config.marker):
        console.print(f"[yellow]{escape(document_path.name)} has already been distributed.[/yellow]")
        if not gate.ask("Do you want to process it again?", default=False):
            history.log_event(EventType.RUN_ABORTED, "Already distributed, not re-processed",
                              {"document": str(document_path)})
            console.print("Aborted. No changes made.")
            sys.exit(0)

    extraction = BlockExtractor(config).extract(read_document(document_path))
    if extraction.is_empty:
        console.print("No code blocks found.")
        sys.exit(0)

    coordinator = ResolutionCoordinator(config, gate, console=console)
    plan = coordinator.resolve(extraction)

    for resolved in plan.resolved:
        history.log_event(
            EventType.ARTIFACT_RESOLVED,
            f"{resolved.artifact.path}: {resolved.action.value}",
            {"path": resolved.artifact.path, "strategy": resolved.strategy, "action": resolved.action.value},
        )
    for drop in plan.dropped:
        history.log_event(
            EventType.ARTIFACT_DROPPED,
            f"Dropped {drop.kind} {drop.target}",
            {"kind": drop.kind, "target": drop.target, "reason": drop.reason},
        )

    report = FileWriter(config.working_dir, config.header_extensions, console).write_all(plan.files)
    for path in report.written:
        history.log_event(EventType.FILE_WRITTEN, f"Wrote {path}", {"path": str(path)})
    for error in report.failed:
        history.log_event(EventType.FILE_FAILED, str(error), {"path": error.path, "reason": error.reason})

    command_failed = False
    if args.no_commands:
        if plan.commands:
            console.print(f"[dim]Not running {len(plan.commands)} command(s) (--no-commands).[/dim]")
    else:
        runner = CommandRunner(gate, CommandExecutor(config.working_dir), console)
        summary = runner.run_all(plan.commands)
        for command in summary.executed:
            history.log_event(EventType.COMMAND_EXECUTED, command, {"command": command})
        if summary.halted:
            command_failed = True
            history.log_event(
                EventType.COMMAND_FAILED,
                summary.failed_command,
                {"command": summary.failed_command, "exit_code": summary.failed_result.exit_code},
            )

    if not report.success or command_failed:
        history.log_event(EventType.RUN_ABORTED, "Run finished with failures", {
            "failed_files": [e.path for e in report.failed],
            "command_failed": command_failed,
        })
        console.print("\n[red]Distribution finished with errors. Document not marked.[/red]")
        sys.exit(1)

    mark(document_path, config.marker)
    history.log_event(EventType.RUN_COMPLETED, "Distribution complete", {
        "files": len(report.written),
        "commands": len(plan.commands),
        "dropped": len(plan.dropped),
    })
    console.print("\n[green]Distribution complete.[/green]")
    sys.exit(0)


def cmd_plan(args):
    """Show files with their strategies and the commands, without changes."""
    config = load_config(args)
    document_path = resolve_document(args, config)
    extraction = BlockExtractor(config).extract(read_document(document_path))
    classifier = ArtifactClassifier(config)

    if extraction.is_empty:
        console.print("No code blocks found.")
        sys.exit(0)

    table = Table(title=f"Files in {document_path.name}")
    table.add_column("Path")
    table.add_column("Language")
    table.add_column("Strategy")
    table.add_column("Exists")

    for artifact in extraction.files:
        strategy = classifier.classify(artifact)
        exists = (config.working_dir / artifact.path).is_file()
        table.add_row(
            escape(artifact.path),
            artifact.language,
            strategy.value if strategy else "[red]denylisted[/red]",
            "yes" if exists else "no",
        )
    console.print(table)

    if extraction.commands:
        console.print("\n[bold]Commands:[/bold]")
        for number, command in enumerate(extraction.commands, start=1):
            console.print(f"  {number}. {escape(command.text)}")
    else:
        console.print("\nNo commands to run.")
    sys.exit(0)


def cmd_unmark(args):
    """Remove the completion marker."""
    config = load_config(args)
    document_path = resolve_document(args, config)
    if unmark(document_path, config.marker):
        console.print(f"[green]Removed completion marker from {escape(document_path.name)}[/green]")
    else:
        console.print(f"{escape(document_path.name)} is not marked.")
    sys.exit(0)


def cmd_config(args):
    """Print the effective configuration or a single key."""
    config = load_config(args)

    if args.action == "list":
        print(yaml.safe_dump(config.as_dict(), sort_keys=False), end="")
        sys.exit(0)

    value = config.get(args.key)
    if value is None:
        console.print(f"[red]Unknown config key: {escape(args.key)}[/red]")
        sys.exit(1)
    if isinstance(value, (dict, list)):
        print(yaml.safe_dump(value, sort_keys=False), end="")
    else:
        print(value)
    sys.exit(0)


# ============================================================================
# Entry Point
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="distribute",
        description="Distribute the code blocks of a Markdown document into a project tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  distribute                      # same as: distribute run
  distribute run -f notes.md --yes
  distribute plan
  distribute unmark
  distribute config get schema.command_prefix
        """,
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {VERSION}')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--dir', '-d', default='.', help='Working directory (default: current)')
    common.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    document = argparse.ArgumentParser(add_help=False)
    document.add_argument('--document', '-f', help='Markdown document (default: from config)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', parents=[common, document], help='Distribute the document')
    run_parser.add_argument('--yes', '-y', action='store_true', help='Answer yes to every prompt')
    run_parser.add_argument('--no-commands', action='store_true', help='Write files only, skip commands')
    run_parser.set_defaults(func=cmd_run)

    plan_parser = subparsers.add_parser('plan', parents=[common, document],
                                        help='Show what would be distributed')
    plan_parser.set_defaults(func=cmd_plan)

    unmark_parser = subparsers.add_parser('unmark', parents=[common, document],
                                          help='Remove the completion marker')
    unmark_parser.set_defaults(func=cmd_unmark)

    config_parser = subparsers.add_parser('config', parents=[common], help='Show configuration')
    config_sub = config_parser.add_subparsers(dest='action', required=True)
    config_sub.add_parser('list', help='Print the effective configuration')
    get_parser = config_sub.add_parser('get', help='Print one value (dot notation)')
    get_parser.add_argument('key', help='Config key, e.g. schema.filename')
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None):
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or (argv[0] not in SUBCOMMANDS and argv[0] not in ('-h', '--help', '--version')):
        argv.insert(0, 'run')

    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        args.func(args)
    except DistributorError as e:
        logger.debug("Distribution failed", exc_info=True)
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted. Document not marked.[/yellow]")
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected failure")
        console.print(f"[red]Unexpected error: {escape(str(e))}[/red]")
        sys.exit(1)


if __name__ == '__main__':
    main()
