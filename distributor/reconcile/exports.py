"""
Export-Set Reconciler

Reconciles script modules that follow the styled-components convention
(one exported component per top-level declaration).

Resolution:
1. No existing file        -> overwrite
2. Incoming adds exports   -> merge: existing content + the source span of
                              every added export (removals are ignored here)
3. Incoming only removes   -> list removed names, ask to overwrite
4. Same export set         -> overwrite (in-place edit of existing components)
"""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

from ..models import FileArtifact
from ..prompt import ConfirmationGate, get_console
from .jsscan import (
    ExportStatement,
    find_local_declaration,
    line_start,
    mask_source,
    top_level_exports,
)
from .models import ExportDiff, ReconciliationOutcome

logger = logging.getLogger(__name__)


# ============================================================================
# Export Sets
# ============================================================================

def extract_exports(code: str) -> frozenset[str]:
    """
    Named exports of a module.

    Declaration exports (const/let/var, function, class, TS types) and
    specifier exports (`export { a as b }`, `export * as ns from ...`)
    both count; `export default` does not.

    Args:
        code: Script source

    Returns:
        Set of exported names
    """
    names: set[str] = set()
    for statement in top_level_exports(code):
        names.update(statement.names)
    return frozenset(names)


def diff_exports(existing: str, incoming: str) -> ExportDiff:
    """Compare the export sets of two versions of a module."""
    existing_names = extract_exports(existing)
    incoming_names = extract_exports(incoming)
    return ExportDiff(
        added=incoming_names - existing_names,
        removed=existing_names - incoming_names,
    )


# ============================================================================
# Span Extraction
# ============================================================================

def _fallback_end(code: str, start: int) -> int:
    """
    End of a statement whose brackets never balance.

    First the line heuristic (first later line that opens with the closing
    template delimiter), then an index scan to the next top-level export.
    """
    position = code.find("\n", start)
    while position != -1:
        next_break = code.find("\n", position + 1)
        line = code[position + 1:next_break if next_break != -1 else len(code)]
        if line.lstrip().startswith("`"):
            return next_break if next_break != -1 else len(code)
        position = next_break

    next_export = code.find("\nexport ", start)
    return next_export if next_export != -1 else len(code)


def _span(code: str, start: int, end: Optional[int]) -> str:
    if end is None:
        logger.debug(f"No statement close found at offset {start}, using fallback scan")
        end = _fallback_end(code, start)
    return code[line_start(code, start):end].rstrip()


def _specifier_span(code: str, masked: str, statement: ExportStatement, names: list[str]) -> str:
    """Rebuild a specifier export carrying only the given names."""
    specifiers = ", ".join(statement.specifiers[name] for name in names)

    if statement.source:
        return f"export {{ {specifiers} }} from {statement.source};"

    parts = []
    for name in names:
        local = statement.local_names.get(name, name)
        declaration = find_local_declaration(masked, local)
        if declaration:
            parts.append(_span(code, *declaration))
    parts.append(f"export {{ {specifiers} }};")
    return "\n".join(parts)


def extract_export_spans(code: str, names: frozenset[str]) -> list[str]:
    """
    Source spans for the given exported names, in source order.

    A declaration exporting several of the names yields one span.

    Args:
        code: Incoming script source
        names: Exported names to extract

    Returns:
        List of source snippets
    """
    masked = mask_source(code)
    spans: list[str] = []
    found: set[str] = set()

    for statement in top_level_exports(code, masked):
        wanted = [name for name in statement.names if name in names and name not in found]
        if not wanted:
            continue
        found.update(wanted)

        if statement.kind in ("specifier", "reexport"):
            spans.append(_specifier_span(code, masked, statement, wanted))
        else:
            spans.append(_span(code, statement.start, statement.end))

    missing = names - found
    if missing:
        logger.warning(f"Could not locate source for export(s): {', '.join(sorted(missing))}")
    return spans


def merge_exports(existing: str, incoming: str, added: frozenset[str]) -> str:
    """
    Append the spans of added exports to the existing module.

    Args:
        existing: Current file content (kept in full)
        incoming: Incoming module source
        added: Names to carry over

    Returns:
        Merged content
    """
    spans = extract_export_spans(incoming, added)
    if not spans:
        return existing
    return existing.rstrip("\n") + "\n\n" + "\n\n".join(spans) + "\n"


# ============================================================================
# Export-Set Reconciler
# ============================================================================

class ExportSetReconciler:
    """
    Reconciles component modules by their export sets.

    Usage:
        reconciler = ExportSetReconciler(gate)
        outcome = reconciler.reconcile(artifact, existing_text)
    """

    def __init__(self, gate: ConfirmationGate, console: Optional[Console] = None):
        self.gate = gate
        self.console = console or get_console()

    def reconcile(self, artifact: FileArtifact, existing: Optional[str]) -> ReconciliationOutcome:
        """
        Reconcile an incoming module against the existing file content.

        Args:
            artifact: Incoming script artifact
            existing: Current file content, or None if the file doesn't exist

        Returns:
            ReconciliationOutcome (overwrite, merge or skip)
        """
        if existing is None:
            return ReconciliationOutcome.overwrite(artifact.code, reason="new file")

        diff = diff_exports(existing, artifact.code)

        if diff.added:
            added = ", ".join(sorted(diff.added))
            logger.info(f"{artifact.path}: merging new export(s) {added}")
            self.console.print(
                f"[cyan]{escape(artifact.path)}: adding {escape(added)} to the existing module[/cyan]"
            )
            merged = merge_exports(existing, artifact.code, diff.added)
            return ReconciliationOutcome.merge(merged, reason=f"added {added}")

        if diff.removed:
            removed = ", ".join(sorted(diff.removed))
            logger.warning(f"{artifact.path}: incoming code drops export(s) {removed}")
            self.console.print(f"[red]File: {escape(artifact.path)}[/red]")
            self.console.print(
                f"[red]The incoming code no longer exports: {escape(removed)}[/red]"
            )
            if self.gate.ask("Do you want to overwrite the existing code?", default=False):
                return ReconciliationOutcome.overwrite(artifact.code, reason=f"confirmed removal of {removed}")
            self.console.print(f"[dim]-> Skipped {escape(artifact.path)}.[/dim]")
            return ReconciliationOutcome.skip(reason=f"declined removal of {removed}")

        return ReconciliationOutcome.overwrite(artifact.code, reason="export set unchanged")
