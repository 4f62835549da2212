"""
Tests for the Resolution Coordinator

Routing, reconciliation dispatch, command pruning and drop provenance.
"""

from unittest.mock import Mock

import pytest

from distributor.classifier import Strategy
from distributor.config import DistributorConfig
from distributor.models import CommandArtifact, ExtractionResult, FileArtifact
from distributor.reconcile.coordinator import (
    ResolutionCoordinator,
    make_file_reader,
    prune_commands,
)
from distributor.reconcile.models import Action, ReconciliationOutcome


EXISTING_SCHEMA = "enum Role {\n  USER\n  ADMIN\n}\n"
LOSSY_SCHEMA = "enum Role {\n  USER\n}\n"

COMMANDS = (
    CommandArtifact("npm install"),
    CommandArtifact("npx prisma migrate dev"),
    CommandArtifact("npm run build"),
    CommandArtifact("  npx prisma generate"),
)


def reader(files):
    """Existing-content reader backed by a dict."""
    return lambda path: files.get(path)


# ============================================================================
# Helpers
# ============================================================================

class TestPruneCommands:
    """Tests for prune_commands()."""

    def test_prunes_by_prefix_preserving_order(self):
        """Should remove exactly the prefixed commands and keep the rest in order."""
        kept, dropped = prune_commands(COMMANDS, "npx prisma", reason="schema skipped")

        assert [c.text for c in kept] == ["npm install", "npm run build"]
        assert [d.target for d in dropped] == ["npx prisma migrate dev", "  npx prisma generate"]
        assert all(d.kind == "command" and d.reason == "schema skipped" for d in dropped)

    def test_no_match(self):
        """Should keep everything when nothing matches."""
        kept, dropped = prune_commands(COMMANDS, "yarn", reason="x")
        assert kept == COMMANDS
        assert dropped == ()


class TestFileReader:
    """Tests for make_file_reader()."""

    def test_reads_existing_and_missing(self, tmp_path):
        """Should return file text, or None for missing paths and directories."""
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.js").write_text("content")
        read = make_file_reader(tmp_path)

        assert read("src/a.js") == "content"
        assert read("src/missing.js") is None
        assert read("src") is None


# ============================================================================
# Resolution
# ============================================================================

class TestResolve:
    """Tests for ResolutionCoordinator.resolve()."""

    def test_empty_extraction(self, config, gate):
        """Should return an empty plan."""
        plan = ResolutionCoordinator(config, gate).resolve(ExtractionResult())

        assert plan.files == ()
        assert plan.commands == ()
        assert plan.dropped == ()

    def test_pass_through_keeps_artifacts(self, config, gate):
        """Should keep pass-through files unchanged without reading the tree."""
        existing_reader = Mock(return_value="old")
        artifact = FileArtifact("src/util.js", "export const x = 1;", "js")

        plan = ResolutionCoordinator(config, gate, existing_reader=existing_reader).resolve(
            ExtractionResult(files=(artifact,), commands=COMMANDS)
        )

        assert plan.files == (artifact,)
        assert plan.commands == COMMANDS
        assert plan.resolved[0].strategy == Strategy.PASS_THROUGH.value
        assert plan.resolved[0].action == Action.OVERWRITE
        existing_reader.assert_not_called()

    def test_denylisted_file_dropped(self, config, gate):
        """Should drop denylisted files with a provenance record."""
        plan = ResolutionCoordinator(config, gate, existing_reader=reader({})).resolve(
            ExtractionResult(files=(FileArtifact(".env", "A=1", "sh"),))
        )

        assert plan.files == ()
        assert len(plan.dropped) == 1
        assert plan.dropped[0].kind == "file"
        assert plan.dropped[0].reason == "denylisted"

    def test_declined_schema_prunes_schema_commands(self, config, gate, console):
        """Should drop the schema and exactly the schema-tool commands."""
        schema = FileArtifact("prisma/schema.prisma", LOSSY_SCHEMA, "prisma")
        other = FileArtifact("src/util.js", "x", "js")
        coordinator = ResolutionCoordinator(
            config, gate, console=console,
            existing_reader=reader({"prisma/schema.prisma": EXISTING_SCHEMA}),
        )

        plan = coordinator.resolve(ExtractionResult(files=(schema, other), commands=COMMANDS))

        assert plan.files == (other,)
        assert [c.text for c in plan.commands] == ["npm install", "npm run build"]
        assert [d.kind for d in plan.dropped] == ["file", "command", "command"]
        assert plan.dropped[0].target == "prisma/schema.prisma"
        assert gate.ask_count == 1

    def test_accepted_schema_keeps_commands(self, config, make_gate, console):
        """Should keep schema commands when the overwrite is confirmed."""
        schema = FileArtifact("prisma/schema.prisma", LOSSY_SCHEMA, "prisma")
        coordinator = ResolutionCoordinator(
            config, make_gate(True), console=console,
            existing_reader=reader({"prisma/schema.prisma": EXISTING_SCHEMA}),
        )

        plan = coordinator.resolve(ExtractionResult(files=(schema,), commands=COMMANDS))

        assert plan.files == (schema,)
        assert plan.commands == COMMANDS
        assert plan.dropped == ()

    def test_merge_replaces_content(self, config, gate, console):
        """Should carry the merged content in the surviving artifact."""
        existing = "import styled from 'styled-components';\n\nexport const A = styled.div``;\n"
        incoming = existing + "export const B = styled.span``;\n"
        artifact = FileArtifact("src/styles.js", incoming, "javascript")

        plan = ResolutionCoordinator(
            config, gate, console=console, existing_reader=reader({"src/styles.js": existing}),
        ).resolve(ExtractionResult(files=(artifact,)))

        assert plan.files[0].path == "src/styles.js"
        assert plan.files[0].code == existing.rstrip("\n") + "\n\nexport const B = styled.span``;\n"
        assert plan.resolved[0].action == Action.MERGE

    def test_skip_without_prune_keeps_commands(self, config, make_gate, console):
        """Should drop only the file when a skip signals no prefix."""
        existing = "import styled from 'styled-components';\nexport const A = 1;\nexport const B = 2;\n"
        incoming = "import styled from 'styled-components';\nexport const A = 1;\n"
        artifact = FileArtifact("src/styles.js", incoming, "js")

        plan = ResolutionCoordinator(
            config, make_gate(False), console=console,
            existing_reader=reader({"src/styles.js": existing}),
        ).resolve(ExtractionResult(files=(artifact,), commands=COMMANDS))

        assert plan.files == ()
        assert plan.commands == COMMANDS
        assert [d.kind for d in plan.dropped] == ["file"]

    def test_dispatch_to_injected_reconcilers(self, config, gate):
        """Should dispatch each strategy to its reconciler with the existing content."""
        schema_reconciler = Mock()
        schema_reconciler.reconcile.return_value = ReconciliationOutcome.overwrite("new schema")
        artifact = FileArtifact("prisma/schema.prisma", "incoming", "prisma")

        plan = ResolutionCoordinator(
            config, gate,
            schema_reconciler=schema_reconciler,
            existing_reader=reader({"prisma/schema.prisma": "old"}),
        ).resolve(ExtractionResult(files=(artifact,)))

        schema_reconciler.reconcile.assert_called_once_with(artifact, "old")
        assert plan.files[0].code == "new schema"

    def test_reads_target_tree_by_default(self, config, gate, console):
        """Should read existing files from the config's working directory."""
        target = config.working_dir / "prisma"
        target.mkdir()
        (target / "schema.prisma").write_text(EXISTING_SCHEMA)
        schema = FileArtifact("prisma/schema.prisma", LOSSY_SCHEMA, "prisma")

        plan = ResolutionCoordinator(config, gate, console=console).resolve(
            ExtractionResult(files=(schema,))
        )

        assert plan.files == ()
        assert gate.ask_count == 1

    @pytest.mark.parametrize("answer, expected_files", [(True, 1), (False, 0)])
    def test_length_guard(self, tmp_path, make_gate, console, answer, expected_files):
        """Should ask before shrinking a script when the guard is on."""
        data = DistributorConfig.get_default()
        data["length_guard"] = True
        config = DistributorConfig(data, tmp_path)
        gate = make_gate(answer)
        artifact = FileArtifact("src/a.js", "one\n", "js")

        plan = ResolutionCoordinator(
            config, gate, console=console, existing_reader=reader({"src/a.js": "one\ntwo\nthree\n"}),
        ).resolve(ExtractionResult(files=(artifact,)))

        assert len(plan.files) == expected_files
        assert gate.prompts == ["Do you want to overwrite the existing code?"]
