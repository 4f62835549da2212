"""
Block Extractor

Turns a Markdown document into typed artifacts:

1. Lex the document into a flat sequence of code / text blocks
2. Content-language blocks become FileArtifacts; the path hint is the
   block's own first line with its comment leader stripped
3. Command-language blocks become one CommandArtifact each (verbatim,
   multi-line blocks stay one entry)

Anything else (unknown languages, content blocks without a usable hint)
is dropped without error.
"""

import logging
import re
from typing import Iterable, Optional

from .config import DistributorConfig
from .models import Block, CommandArtifact, ExtractionResult, FileArtifact

logger = logging.getLogger(__name__)


_FENCE_OPEN = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_FENCE_CLOSE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*$")

# Leading/trailing comment syntax around a path hint
_COMMENT_LEADER = re.compile(r"^(?://+|#+|--+|/\*+)\s*")
_COMMENT_TRAILER = re.compile(r"\s*\*+/$")


# ============================================================================
# Lexing
# ============================================================================

def lex_blocks(document: str) -> list[Block]:
    """
    Lex a document into code and text blocks.

    Fences follow the CommonMark rules that matter here: backtick or tilde
    runs of three or more, up to three spaces of indentation, closed by a
    run of the same character at least as long. An unclosed fence runs to
    the end of the document.

    Args:
        document: Raw Markdown text

    Returns:
        Blocks in document order
    """
    lines = document.splitlines()
    blocks: list[Block] = []
    text_lines: list[str] = []
    text_start = 0

    def flush_text() -> None:
        if text_lines:
            blocks.append(Block(kind="text", text="\n".join(text_lines), line=text_start))
            text_lines.clear()

    i = 0
    while i < len(lines):
        line = lines[i]
        opening = _FENCE_OPEN.match(line)

        if opening and not (opening.group("fence")[0] == "`" and "`" in opening.group("info")):
            flush_text()
            fence = opening.group("fence")
            indent = len(opening.group("indent"))
            info = opening.group("info").strip()
            language = info.split()[0].lower() if info else None

            body: list[str] = []
            start = i + 1
            i += 1
            while i < len(lines):
                closing = _FENCE_CLOSE.match(lines[i])
                if (
                    closing
                    and closing.group("fence")[0] == fence[0]
                    and len(closing.group("fence")) >= len(fence)
                ):
                    break
                body.append(_dedent(lines[i], indent))
                i += 1

            blocks.append(Block(kind="code", text="\n".join(body), language=language, line=start))
            i += 1  # skip the closing fence (or step past the end)
            continue

        if line.strip():
            if not text_lines:
                text_start = i + 1
            text_lines.append(line)
        else:
            flush_text()
        i += 1

    flush_text()
    return blocks


def _dedent(line: str, width: int) -> str:
    """Strip up to `width` leading spaces (the fence's own indentation)."""
    stripped = 0
    while stripped < width and stripped < len(line) and line[stripped] == " ":
        stripped += 1
    return line[stripped:]


# ============================================================================
# Path Hints
# ============================================================================

def parse_path_hint(text: str) -> Optional[str]:
    """
    Read the path hint from the first line of a content block.

    The comment leader (``//``, ``#``, ``--`` or ``/* ... */``) is
    stripped. The hint is accepted only if it has no whitespace and
    contains ``/`` or ``.``.

    Args:
        text: Full text of the content block

    Returns:
        The path, or None if the first line is not a usable hint
    """
    stripped = text.strip()
    if not stripped:
        return None

    candidate = stripped.split("\n")[0].strip()
    candidate = _COMMENT_LEADER.sub("", candidate)
    candidate = _COMMENT_TRAILER.sub("", candidate).strip()

    if not is_valid_path_hint(candidate):
        return None
    return candidate


def is_valid_path_hint(candidate: str) -> bool:
    """Single token containing '/' or '.'."""
    if not candidate:
        return False
    if any(ch.isspace() for ch in candidate):
        return False
    return "/" in candidate or "." in candidate


# ============================================================================
# Extraction
# ============================================================================

class BlockExtractor:
    """
    Extracts file and command artifacts from a document.

    Usage:
        extractor = BlockExtractor(config)
        result = extractor.extract(document_text)
        for artifact in result.files:
            print(artifact.path)
    """

    def __init__(
        self,
        config: Optional[DistributorConfig] = None,
        content_languages: Optional[Iterable[str]] = None,
        command_languages: Optional[Iterable[str]] = None,
    ):
        config = config or DistributorConfig(DistributorConfig.get_default())
        self.content_languages = (
            frozenset(lang.lower() for lang in content_languages)
            if content_languages is not None else config.content_languages
        )
        self.command_languages = (
            frozenset(lang.lower() for lang in command_languages)
            if command_languages is not None else config.command_languages
        )

    def extract(self, document: str) -> ExtractionResult:
        """
        Extract artifacts from document text.

        Args:
            document: Raw Markdown text

        Returns:
            ExtractionResult with files and commands in document order
        """
        files: list[FileArtifact] = []
        commands: list[CommandArtifact] = []

        for block in lex_blocks(document):
            if block.kind != "code" or not block.language:
                continue

            if block.language in self.content_languages:
                path = parse_path_hint(block.text)
                if path is None:
                    logger.debug(
                        f"Dropping {block.language} block at line {block.line}: no path hint"
                    )
                    continue
                files.append(FileArtifact(path=path, code=block.text, language=block.language))
                continue

            if block.language in self.command_languages:
                commands.append(CommandArtifact(text=block.text))
                continue

            logger.debug(f"Ignoring block at line {block.line} with language '{block.language}'")

        logger.info(f"Extracted {len(files)} file(s) and {len(commands)} command(s)")
        return ExtractionResult(files=tuple(files), commands=tuple(commands))


def extract_artifacts(document: str, config: Optional[DistributorConfig] = None) -> ExtractionResult:
    """
    Extract artifacts with the given (or default) configuration.

    Args:
        document: Raw Markdown text
        config: Distributor configuration

    Returns:
        ExtractionResult
    """
    return BlockExtractor(config).extract(document)
