"""
Schema Reconciler

Decides whether an incoming Prisma schema may replace the one on disk.

Resolution (in order):
1. No existing file            -> overwrite
2. Either side fails to parse  -> ask to continue without the check
3. Structural containment diff -> overwrite if nothing is lost
4. Something would be lost     -> show report, ask to overwrite anyway

Declining in steps 2 or 4 skips the schema and prunes every command that
applies it (the schema tool's command prefix).
"""

import logging
from typing import Optional

from rich.console import Console
from rich.markup import escape

from ..errors import SchemaParseError
from ..models import FileArtifact
from ..prompt import ConfirmationGate, get_console
from .models import MissingItem, ReconciliationOutcome
from .prisma import PrismaSchemaParser, SchemaIntrospector, SchemaModel

logger = logging.getLogger(__name__)


# ============================================================================
# Structural Diff
# ============================================================================

def structural_diff(existing: SchemaModel, incoming: SchemaModel) -> list[MissingItem]:
    """
    Find every enum value and model field the incoming schema would drop.

    Args:
        existing: Schema currently on disk
        incoming: Schema about to replace it

    Returns:
        One MissingItem per lost element; empty if incoming is a superset
    """
    missing: list[MissingItem] = []

    for enum_name, values in existing.enums.items():
        incoming_values = incoming.enum_values(enum_name)
        if incoming_values is None:
            missing.append(MissingItem(
                category="enum",
                entity_name=enum_name,
                item_name=None,
                message=f"Enum {enum_name} is missing",
            ))
            continue
        for value in values:
            if value not in incoming_values:
                missing.append(MissingItem(
                    category="enum",
                    entity_name=enum_name,
                    item_name=value,
                    message=f"Enum {enum_name} is missing value {value}",
                ))

    for model_name, fields in existing.models.items():
        incoming_fields = incoming.model_fields(model_name)
        if incoming_fields is None:
            missing.append(MissingItem(
                category="model",
                entity_name=model_name,
                item_name=None,
                message=f"Model {model_name} is missing",
            ))
            continue
        for field_name in fields:
            if field_name not in incoming_fields:
                missing.append(MissingItem(
                    category="model",
                    entity_name=model_name,
                    item_name=field_name,
                    message=f"Model {model_name} is missing field {field_name}",
                ))

    return missing


def format_missing_item(item: MissingItem) -> str:
    """Format a report entry with console markup."""
    label = "Enum" if item.category == "enum" else "Model"
    entity = escape(item.entity_name)
    if item.item_name:
        return f"[red]{label}[/red] [yellow]{entity}[/yellow] is missing [red]{escape(item.item_name)}[/red]."
    return f"[red]{label}[/red] [yellow]{entity}[/yellow] is missing."


# ============================================================================
# Schema Reconciler
# ============================================================================

class SchemaReconciler:
    """
    Reconciles schema-bearing file artifacts.

    Usage:
        reconciler = SchemaReconciler(gate)
        outcome = reconciler.reconcile(artifact, existing_text)
        if outcome.action == Action.SKIP:
            # drop artifact and prune outcome.prune_command_prefix commands
    """

    def __init__(
        self,
        gate: ConfirmationGate,
        introspector: Optional[SchemaIntrospector] = None,
        command_prefix: str = "npx prisma",
        console: Optional[Console] = None,
    ):
        self.gate = gate
        self.introspector = introspector or PrismaSchemaParser()
        self.command_prefix = command_prefix
        self.console = console or get_console()

    def reconcile(self, artifact: FileArtifact, existing: Optional[str]) -> ReconciliationOutcome:
        """
        Reconcile an incoming schema against the existing file content.

        Args:
            artifact: Incoming schema artifact
            existing: Current file content, or None if the file doesn't exist

        Returns:
            ReconciliationOutcome (overwrite or skip)
        """
        if existing is None:
            return ReconciliationOutcome.overwrite(artifact.code, reason="new schema file")

        try:
            incoming_schema = self.introspector.parse(artifact.code)
            existing_schema = self.introspector.parse(existing)
        except SchemaParseError as e:
            return self._handle_parse_error(artifact, e)

        missing = structural_diff(existing_schema, incoming_schema)
        if not missing:
            logger.info(f"{artifact.path}: incoming schema contains the existing one")
            return ReconciliationOutcome.overwrite(artifact.code, reason="structural superset")

        logger.warning(f"{artifact.path}: {len(missing)} schema element(s) would be lost")
        self.display_report(missing)
        self.console.print(
            f"\n[yellow]Warning: The new schema for {escape(artifact.path)} has a discrepancy.[/yellow]"
        )

        if self.gate.ask("Are you sure you want to overwrite the existing schema?", default=False):
            return ReconciliationOutcome.overwrite(
                artifact.code, reason=f"confirmed despite {len(missing)} missing item(s)"
            )

        self.console.print("[dim]-> Skipped schema update.[/dim]")
        return ReconciliationOutcome.skip(
            reason=f"declined: {len(missing)} missing item(s)",
            prune_command_prefix=self.command_prefix,
        )

    def display_report(self, missing: list[MissingItem]) -> None:
        """Print one line per missing element."""
        for item in missing:
            self.console.print(format_missing_item(item))

    def _handle_parse_error(self, artifact: FileArtifact, error: SchemaParseError) -> ReconciliationOutcome:
        logger.error(f"{artifact.path}: schema parse failed: {error}")
        self.console.print("\n[red]Error: The schema could not be parsed.[/red]")
        self.console.print(f"[red]{escape(str(error))}[/red]")

        if self.gate.ask(
            "Do you want to continue without the schema check and overwrite the existing schema?",
            default=False,
        ):
            return ReconciliationOutcome.overwrite(artifact.code, reason="schema check bypassed")

        self.console.print("[dim]-> Skipped schema update due to invalid schema.[/dim]")
        return ReconciliationOutcome.skip(
            reason=f"invalid schema: {error}",
            prune_command_prefix=self.command_prefix,
        )
