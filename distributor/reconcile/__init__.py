"""
Reconciliation Module

Decides what happens to each extracted file artifact before it is written:

- SchemaReconciler: structural containment check for Prisma schemas
- ExportSetReconciler: export-aware merge for styled-component modules
- LengthGuardReconciler: confirm before shrinking a script (opt-in)
- ResolutionCoordinator: routes artifacts and assembles the final plan
"""

from .models import (
    Action,
    ReconciliationOutcome,
    MissingItem,
    ExportDiff,
    DroppedArtifact,
    ResolvedFile,
    DistributionPlan,
)

from .prisma import (
    SchemaModel,
    SchemaIntrospector,
    PrismaSchemaParser,
)

from .schema import (
    structural_diff,
    SchemaReconciler,
)

from .exports import (
    extract_exports,
    diff_exports,
    extract_export_spans,
    merge_exports,
    ExportSetReconciler,
)

from .length import LengthGuardReconciler

from .coordinator import (
    ResolutionCoordinator,
    make_file_reader,
    prune_commands,
    resolve_artifacts,
)

__all__ = [
    # Models
    "Action",
    "ReconciliationOutcome",
    "MissingItem",
    "ExportDiff",
    "DroppedArtifact",
    "ResolvedFile",
    "DistributionPlan",
    # Schema
    "SchemaModel",
    "SchemaIntrospector",
    "PrismaSchemaParser",
    "structural_diff",
    "SchemaReconciler",
    # Exports
    "extract_exports",
    "diff_exports",
    "extract_export_spans",
    "merge_exports",
    "ExportSetReconciler",
    # Length guard
    "LengthGuardReconciler",
    # Coordinator
    "ResolutionCoordinator",
    "make_file_reader",
    "prune_commands",
    "resolve_artifacts",
]
