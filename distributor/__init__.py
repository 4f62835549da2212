"""
Markdown Distributor

Turns the fenced code blocks of a Markdown document into files and shell
commands in a project tree, with reconciliation against what is already
on disk.
"""

VERSION = "1.0.0"

from .models import (  # noqa: E402
    Block,
    FileArtifact,
    CommandArtifact,
    ExtractionResult,
)

from .config import DistributorConfig  # noqa: E402
from .extractor import BlockExtractor, extract_artifacts  # noqa: E402
from .classifier import Strategy, ArtifactClassifier  # noqa: E402

from .errors import (  # noqa: E402
    DistributorError,
    DocumentError,
    ConfigurationError,
    SchemaParseError,
    WriteError,
)

from .prompt import (  # noqa: E402
    ConfirmationGate,
    ConsoleConfirmationGate,
    StaticConfirmationGate,
    ScriptedConfirmationGate,
)

from .reconcile import (  # noqa: E402
    Action,
    DistributionPlan,
    ResolutionCoordinator,
)

__all__ = [
    "VERSION",
    "Block",
    "FileArtifact",
    "CommandArtifact",
    "ExtractionResult",
    "DistributorConfig",
    "BlockExtractor",
    "extract_artifacts",
    "Strategy",
    "ArtifactClassifier",
    "DistributorError",
    "DocumentError",
    "ConfigurationError",
    "SchemaParseError",
    "WriteError",
    "ConfirmationGate",
    "ConsoleConfirmationGate",
    "StaticConfirmationGate",
    "ScriptedConfirmationGate",
    "Action",
    "DistributionPlan",
    "ResolutionCoordinator",
]
