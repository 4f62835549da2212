"""
File Writer

Commits resolved file artifacts to the target tree. Intermediate
directories are created as needed; a failure on one file is reported and
the batch continues.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape

from .errors import WriteError
from .extractor import parse_path_hint
from .models import FileArtifact
from .prompt import get_console

logger = logging.getLogger(__name__)


def with_path_header(path: str, content: str, extensions: Iterable[str]) -> str:
    """
    Prefix content with a `// <path>` comment line.

    Only applies to files whose extension is listed, and only once: content
    whose first line already names the path in any comment style the
    extractor accepts (`//src/a.js`, `/* src/a.js */`, `# src/a.js`) is
    returned unchanged.
    """
    if Path(path).suffix not in set(extensions):
        return content
    if parse_path_hint(content.split("\n", 1)[0]) == path:
        return content
    return f"// {path}\n\n{content}"


@dataclass
class WriteReport:
    """Outcome of writing a batch of files."""
    written: list[Path] = field(default_factory=list)
    failed: list[WriteError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


class FileWriter:
    """
    Writes artifacts under a working directory.

    Usage:
        writer = FileWriter(Path.cwd(), config.header_extensions)
        report = writer.write_all(plan.files)
    """

    def __init__(
        self,
        working_dir: Path,
        header_extensions: Iterable[str] = (),
        console: Optional[Console] = None,
    ):
        self.working_dir = Path(working_dir)
        self.header_extensions = list(header_extensions)
        self.console = console or get_console()

    def write(self, path: str, content: str) -> Path:
        """
        Write one file.

        Args:
            path: Target path relative to the working directory
            content: File content

        Returns:
            The committed path

        Raises:
            WriteError: If the file or its directories cannot be created
        """
        target = self.working_dir / path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(with_path_header(path, content, self.header_extensions), encoding="utf-8")
        except OSError as e:
            raise WriteError(path, str(e)) from e
        logger.debug(f"Wrote {target}")
        return target

    def write_all(self, files: Iterable[FileArtifact]) -> WriteReport:
        """Write every artifact, reporting each one."""
        report = WriteReport()
        for artifact in files:
            try:
                report.written.append(self.write(artifact.path, artifact.code))
                self.console.print(f"[green]File written: {escape(artifact.path)}[/green]")
            except WriteError as e:
                logger.error(str(e))
                self.console.print(f"[red]{escape(str(e))}[/red]")
                report.failed.append(e)
        return report
