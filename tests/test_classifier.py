"""
Tests for the Artifact Classifier
"""

import pytest

from distributor.classifier import ArtifactClassifier, Strategy, imports_module
from distributor.config import DistributorConfig
from distributor.models import FileArtifact


STYLED = "import styled from 'styled-components';\n\nexport const A = styled.div``;\n"


@pytest.fixture
def classifier(config):
    return ArtifactClassifier(config)


# ============================================================================
# Import Detection
# ============================================================================

class TestImportsModule:
    """Tests for detecting an import of a module."""

    @pytest.mark.parametrize("code", [
        "import styled from 'styled-components';",
        'import styled, { css } from "styled-components"',
        "import {\n  keyframes,\n} from 'styled-components';",
        "import 'styled-components';",
        "const styled = require('styled-components');",
    ])
    def test_detects_import_forms(self, code):
        """Should detect ES imports, side-effect imports and require()."""
        assert imports_module(code, "styled-components")

    def test_other_module_not_matched(self):
        """Should not match a module with a similar name."""
        assert not imports_module("import x from 'styled-components-extra';", "styled-components")

    def test_mention_without_import(self):
        """Should not match a bare mention of the module name."""
        assert not imports_module("// uses styled-components elsewhere", "styled-components")


# ============================================================================
# Classification
# ============================================================================

class TestClassify:
    """Tests for strategy routing."""

    def test_denylisted_path_dropped(self, classifier):
        """Should return None for a denylisted path."""
        assert classifier.classify(FileArtifact(".env", "SECRET=1", "sh")) is None

    def test_denylist_checked_before_schema(self, tmp_path):
        """Should drop a denylisted schema before routing it."""
        data = DistributorConfig.get_default()
        data["denylist"] = ["prisma/*"]
        classifier = ArtifactClassifier(DistributorConfig(data, tmp_path))

        assert classifier.classify(FileArtifact("prisma/schema.prisma", "", "prisma")) is None

    def test_denylist_matches_basename(self, classifier):
        """Should match denylist entries against the basename."""
        assert classifier.classify(FileArtifact("web/package-lock.json", "{}", "json")) is None

    def test_schema_file(self, classifier):
        """Should route the canonical schema file to the schema reconciler."""
        artifact = FileArtifact("prisma/schema.prisma", "model A {\n}", "prisma")
        assert classifier.classify(artifact) is Strategy.SCHEMA_STRUCTURAL

    def test_styled_component_module(self, classifier):
        """Should route a script importing the styling module to export-aware merge."""
        artifact = FileArtifact("src/styles.js", STYLED, "javascript")
        assert classifier.classify(artifact) is Strategy.EXPORT_AWARE_MERGE

    def test_styling_import_in_non_script(self, classifier):
        """Should not route non-script content by its imports."""
        artifact = FileArtifact("notes/example.json", STYLED, "json")
        assert classifier.classify(artifact) is Strategy.PASS_THROUGH

    def test_plain_script_pass_through(self, classifier):
        """Should pass through a script without the styling import."""
        artifact = FileArtifact("src/util.js", "export const x = 1;", "js")
        assert classifier.classify(artifact) is Strategy.PASS_THROUGH

    def test_length_guard_when_enabled(self, tmp_path):
        """Should route plain scripts to the length guard when enabled."""
        data = DistributorConfig.get_default()
        data["length_guard"] = True
        classifier = ArtifactClassifier(DistributorConfig(data, tmp_path))

        assert classifier.classify(FileArtifact("src/util.js", "x", "js")) is Strategy.LENGTH_GUARD
        assert classifier.classify(FileArtifact("src/s.js", STYLED, "js")) is Strategy.EXPORT_AWARE_MERGE
        assert classifier.classify(FileArtifact("data.json", "{}", "json")) is Strategy.PASS_THROUGH

    def test_custom_schema_filename(self, tmp_path):
        """Should use the configured schema filename."""
        data = DistributorConfig.get_default()
        data["schema"]["filename"] = "db.prisma"
        classifier = ArtifactClassifier(DistributorConfig(data, tmp_path))

        assert classifier.classify(FileArtifact("db.prisma", "", "prisma")) is Strategy.SCHEMA_STRUCTURAL
        assert classifier.classify(FileArtifact("schema.prisma", "", "prisma")) is Strategy.PASS_THROUGH
