"""
Resolution Coordinator

Routes every file artifact through the classifier, runs the matching
reconciler and assembles the DistributionPlan:

    ExtractionResult -> classify -> reconcile -> DistributionPlan

Nothing is mutated in place. Each stage builds new tuples, and every
artifact removed along the way is recorded in plan.dropped with its reason.
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Protocol

from ..classifier import ArtifactClassifier, Strategy
from ..config import DistributorConfig
from ..models import CommandArtifact, ExtractionResult, FileArtifact
from ..prompt import ConfirmationGate
from .exports import ExportSetReconciler
from .length import LengthGuardReconciler
from .models import (
    DistributionPlan,
    DroppedArtifact,
    ReconciliationOutcome,
    ResolvedFile,
)
from .schema import SchemaReconciler

logger = logging.getLogger(__name__)


class Reconciler(Protocol):
    def reconcile(self, artifact: FileArtifact, existing: Optional[str]) -> ReconciliationOutcome:
        ...


ExistingReader = Callable[[str], Optional[str]]


def make_file_reader(working_dir: Path) -> ExistingReader:
    """
    Build a reader returning the current content of a target path.

    Args:
        working_dir: Root of the target tree

    Returns:
        Callable mapping a relative path to its text, or None if absent
    """
    def read(path: str) -> Optional[str]:
        target = working_dir / path
        if not target.is_file():
            return None
        return target.read_text(encoding="utf-8")

    return read


def prune_commands(
    commands: tuple[CommandArtifact, ...], prefix: str, reason: str
) -> tuple[tuple[CommandArtifact, ...], tuple[DroppedArtifact, ...]]:
    """
    Split commands into survivors and drops by prefix.

    Returns:
        (kept commands in original order, drop records)
    """
    kept = tuple(c for c in commands if not c.startswith(prefix))
    dropped = tuple(
        DroppedArtifact(kind="command", target=c.text, reason=reason)
        for c in commands if c.startswith(prefix)
    )
    return kept, dropped


class ResolutionCoordinator:
    """
    Applies routing and reconciliation to a whole extraction.

    Usage:
        coordinator = ResolutionCoordinator(config, gate)
        plan = coordinator.resolve(extraction)
        print(plan.summary())
    """

    def __init__(
        self,
        config: DistributorConfig,
        gate: ConfirmationGate,
        classifier: Optional[ArtifactClassifier] = None,
        schema_reconciler: Optional[Reconciler] = None,
        export_reconciler: Optional[Reconciler] = None,
        length_guard: Optional[Reconciler] = None,
        existing_reader: Optional[ExistingReader] = None,
        console=None,
    ):
        self.config = config
        self.classifier = classifier or ArtifactClassifier(config)
        self.reconcilers: dict[Strategy, Reconciler] = {
            Strategy.SCHEMA_STRUCTURAL: schema_reconciler or SchemaReconciler(
                gate, command_prefix=config.schema_command_prefix, console=console
            ),
            Strategy.EXPORT_AWARE_MERGE: export_reconciler or ExportSetReconciler(gate, console=console),
            Strategy.LENGTH_GUARD: length_guard or LengthGuardReconciler(gate, console=console),
        }
        self.read_existing = existing_reader or make_file_reader(config.working_dir)

    def resolve(self, extraction: ExtractionResult) -> DistributionPlan:
        """
        Resolve all artifacts of an extraction.

        Args:
            extraction: Output of the block extractor

        Returns:
            DistributionPlan with surviving files, surviving commands and
            a record of every drop
        """
        files: tuple[FileArtifact, ...] = ()
        resolved: tuple[ResolvedFile, ...] = ()
        dropped: tuple[DroppedArtifact, ...] = ()
        commands = extraction.commands

        for artifact in extraction.files:
            strategy = self.classifier.classify(artifact)

            if strategy is None:
                logger.info(f"{artifact.path}: denylisted, dropping")
                dropped += (DroppedArtifact(kind="file", target=artifact.path, reason="denylisted"),)
                continue

            outcome = self._reconcile(strategy, artifact)
            logger.info(
                f"{artifact.path}: {strategy.value} -> {outcome.action.value}"
                + (f" ({outcome.reason})" if outcome.reason else "")
            )

            if not outcome.keeps_artifact:
                dropped += (DroppedArtifact(
                    kind="file", target=artifact.path, reason=outcome.reason or "skipped",
                ),)
                if outcome.prune_command_prefix:
                    commands, pruned = prune_commands(
                        commands,
                        outcome.prune_command_prefix,
                        reason=f"depends on skipped {artifact.path}",
                    )
                    for drop in pruned:
                        logger.warning(f"Pruned command {drop.target!r}: {drop.reason}")
                    dropped += pruned
                continue

            final = artifact.with_code(outcome.final_content)
            files += (final,)
            resolved += (ResolvedFile(artifact=final, strategy=strategy.value, action=outcome.action),)

        return DistributionPlan(files=files, commands=commands, dropped=dropped, resolved=resolved)

    def _reconcile(self, strategy: Strategy, artifact: FileArtifact) -> ReconciliationOutcome:
        if strategy == Strategy.PASS_THROUGH:
            return ReconciliationOutcome.overwrite(artifact.code, reason="")

        existing = self.read_existing(artifact.path)
        return self.reconcilers[strategy].reconcile(artifact, existing)


def resolve_artifacts(
    extraction: ExtractionResult,
    config: DistributorConfig,
    gate: ConfirmationGate,
) -> DistributionPlan:
    """Convenience wrapper: resolve with default reconcilers."""
    return ResolutionCoordinator(config, gate).resolve(extraction)
