"""Completion marker on the first line of a processed document."""

import logging
from pathlib import Path

from .errors import DocumentError

logger = logging.getLogger(__name__)


def _read(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise DocumentError(f"Cannot read document {path}: {e}") from e


def is_marked(path: Path, marker: str) -> bool:
    """True if the document's first line is the marker."""
    return _read(path).split("\n", 1)[0].strip() == marker


def mark(path: Path, marker: str) -> bool:
    """
    Prepend the marker line.

    Returns:
        False if the document was already marked (nothing written)
    """
    content = _read(path)
    if content.split("\n", 1)[0].strip() == marker:
        return False
    Path(path).write_text(f"{marker}\n{content}", encoding="utf-8")
    logger.info(f"Marked {path} as distributed")
    return True


def unmark(path: Path, marker: str) -> bool:
    """
    Remove the marker line.

    Returns:
        False if the document was not marked
    """
    content = _read(path)
    first, _, rest = content.partition("\n")
    if first.strip() != marker:
        return False
    Path(path).write_text(rest, encoding="utf-8")
    logger.info(f"Removed completion marker from {path}")
    return True
