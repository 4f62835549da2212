"""
Reconciliation Definitions

Data models shared by the reconcilers and the coordinator:
- Action / ReconciliationOutcome: the decision for one artifact
- MissingItem: one structural element lost by a schema overwrite
- ExportDiff: added / removed export names
- DroppedArtifact / DistributionPlan: coordinator output with drop trace
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from ..models import CommandArtifact, FileArtifact


class Action(Enum):
    """What to do with an incoming file artifact."""
    OVERWRITE = "overwrite"
    MERGE = "merge"
    SKIP = "skip"


@dataclass(frozen=True)
class ReconciliationOutcome:
    """Decision returned by a reconciler for one artifact."""
    action: Action
    final_content: Optional[str] = None
    # Commands starting with this prefix depend on the artifact and are
    # pruned along with it
    prune_command_prefix: Optional[str] = None
    reason: str = ""

    @classmethod
    def overwrite(cls, content: str, reason: str = "") -> "ReconciliationOutcome":
        return cls(action=Action.OVERWRITE, final_content=content, reason=reason)

    @classmethod
    def merge(cls, content: str, reason: str = "") -> "ReconciliationOutcome":
        return cls(action=Action.MERGE, final_content=content, reason=reason)

    @classmethod
    def skip(cls, reason: str = "", prune_command_prefix: Optional[str] = None) -> "ReconciliationOutcome":
        return cls(action=Action.SKIP, prune_command_prefix=prune_command_prefix, reason=reason)

    @property
    def keeps_artifact(self) -> bool:
        return self.action != Action.SKIP


# ============================================================================
# Schema Diff
# ============================================================================

@dataclass(frozen=True)
class MissingItem:
    """A schema element present in the existing schema but not the incoming one."""
    category: Literal["enum", "model"]
    entity_name: str
    item_name: Optional[str]  # None when the whole enum/model is missing
    message: str


# ============================================================================
# Export Diff
# ============================================================================

@dataclass(frozen=True)
class ExportDiff:
    """Exported names added and removed by the incoming source."""
    added: frozenset[str] = frozenset()
    removed: frozenset[str] = frozenset()

    @property
    def is_unchanged(self) -> bool:
        return not self.added and not self.removed


# ============================================================================
# Coordinator Output
# ============================================================================

@dataclass(frozen=True)
class DroppedArtifact:
    """Provenance record for an artifact removed during resolution."""
    kind: Literal["file", "command"]
    target: str  # file path or command text
    reason: str


@dataclass(frozen=True)
class ResolvedFile:
    """A surviving file artifact together with the decision that kept it."""
    artifact: FileArtifact
    strategy: str
    action: Action


@dataclass(frozen=True)
class DistributionPlan:
    """Final artifact lists handed to the writer and the command runner."""
    files: tuple[FileArtifact, ...] = field(default_factory=tuple)
    commands: tuple[CommandArtifact, ...] = field(default_factory=tuple)
    dropped: tuple[DroppedArtifact, ...] = field(default_factory=tuple)
    resolved: tuple[ResolvedFile, ...] = field(default_factory=tuple)

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            f"Files to write: {len(self.files)}",
            f"Commands to run: {len(self.commands)}",
        ]
        if self.dropped:
            lines.append(f"Dropped: {len(self.dropped)}")
            for drop in self.dropped:
                lines.append(f"  - {drop.kind} {drop.target!r}: {drop.reason}")
        return "\n".join(lines)
