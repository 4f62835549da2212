"""
Artifact Definitions

Data models produced by the extraction pass:
- Block: one lexed document element
- FileArtifact: content to write at a path
- CommandArtifact: a shell directive to run
- ExtractionResult: both lists in document order
"""

from dataclasses import dataclass, field, replace
from typing import Literal, Optional


@dataclass(frozen=True)
class Block:
    """A lexed document element (fenced code or a run of text)."""
    kind: Literal["code", "text"]
    text: str
    language: Optional[str] = None  # Only set for code blocks
    line: int = 0                   # 1-based line of the first text line or opening fence


@dataclass(frozen=True)
class FileArtifact:
    """Content destined for a path in the target tree."""
    path: str
    code: str
    language: str = ""

    def with_code(self, code: str) -> "FileArtifact":
        """Return a copy carrying new content; the path never changes."""
        return replace(self, code=code)


@dataclass(frozen=True)
class CommandArtifact:
    """An executable directive, kept verbatim."""
    text: str

    def startswith(self, prefix: str) -> bool:
        """True if the command (ignoring leading whitespace) starts with prefix."""
        return self.text.strip().startswith(prefix)


@dataclass(frozen=True)
class ExtractionResult:
    """Artifacts found in a document, in document order."""
    files: tuple[FileArtifact, ...] = field(default_factory=tuple)
    commands: tuple[CommandArtifact, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.files and not self.commands
