"""
Artifact Classifier

Selects the reconciliation strategy for each FileArtifact with a pure
predicate chain, first match wins:

1. Denylisted path        -> None (artifact dropped)
2. Canonical schema file  -> SCHEMA_STRUCTURAL
3. Script importing the styling module -> EXPORT_AWARE_MERGE
4. Script with length_guard enabled    -> LENGTH_GUARD
5. Anything else          -> PASS_THROUGH
"""

import re
from enum import Enum
from typing import Optional

from .config import DistributorConfig
from .models import FileArtifact


class Strategy(Enum):
    """Reconciliation strategy for a file artifact."""
    SCHEMA_STRUCTURAL = "schema-structural"
    EXPORT_AWARE_MERGE = "export-aware-merge"
    LENGTH_GUARD = "length-guard"
    PASS_THROUGH = "pass-through"


def imports_module(code: str, module: str) -> bool:
    """
    Check whether source imports `module` (ES import or CommonJS require).

    Args:
        code: Script source
        module: Module specifier, e.g. "styled-components"

    Returns:
        True if an import/require of exactly that module is present
    """
    quoted = r"""['"]""" + re.escape(module) + r"""['"]"""
    patterns = [
        r"\bimport\s[^;]*?\bfrom\s*" + quoted,   # import x from 'm'
        r"\bimport\s*" + quoted,                  # import 'm'
        r"\brequire\(\s*" + quoted + r"\s*\)",    # require('m')
    ]
    return any(re.search(p, code) for p in patterns)


class ArtifactClassifier:
    """
    Maps file artifacts to strategies.

    Usage:
        classifier = ArtifactClassifier(config)
        strategy = classifier.classify(artifact)
        if strategy is None:
            # denylisted
    """

    def __init__(self, config: Optional[DistributorConfig] = None):
        self.config = config or DistributorConfig(DistributorConfig.get_default())

    def is_script(self, artifact: FileArtifact) -> bool:
        return artifact.language.lower() in self.config.script_languages

    def classify(self, artifact: FileArtifact) -> Optional[Strategy]:
        """
        Classify an artifact.

        Args:
            artifact: Extracted file artifact

        Returns:
            Strategy to apply, or None if the path is denylisted
        """
        if self.config.is_denied(artifact.path):
            return None

        if artifact.path.endswith(self.config.schema_filename):
            return Strategy.SCHEMA_STRUCTURAL

        if self.is_script(artifact) and imports_module(artifact.code, self.config.styling_module):
            return Strategy.EXPORT_AWARE_MERGE

        if self.is_script(artifact) and self.config.length_guard:
            return Strategy.LENGTH_GUARD

        return Strategy.PASS_THROUGH
