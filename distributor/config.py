"""
Distributor Config

Project configuration from .distribute.yaml in the working directory:

- Document location and completion marker
- Denylist of paths never distributed
- Content / command / script language sets
- Schema and styled-component conventions
- Writer header extensions, length guard, history toggle
"""

import fnmatch
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".distribute.yaml"


class DistributorConfig:
    """
    Configuration for a distribution run.

    Values from .distribute.yaml are deep-merged over the defaults, so a
    project only needs to list the keys it changes.
    """

    def __init__(self, data: dict, working_dir: Optional[Path] = None):
        """Initialize with configuration data."""
        self._data = data
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()

    @classmethod
    def get_default(cls) -> dict:
        """Get default configuration."""
        return {
            "document": "distribute.md",
            "marker": "[Distribute-Complete]",
            "denylist": [
                ".env",
                ".env.local",
                "package-lock.json",
                "yarn.lock",
                "pnpm-lock.yaml",
            ],
            "languages": {
                "content": [
                    "javascript", "js", "jsx",
                    "typescript", "ts", "tsx",
                    "prisma", "json", "sql", "css",
                ],
                "command": ["shell", "bash", "sh", "zsh"],
                "script": ["javascript", "js", "jsx", "typescript", "ts", "tsx"],
            },
            "schema": {
                "filename": "schema.prisma",
                "command_prefix": "npx prisma",
            },
            "exports": {
                "styling_module": "styled-components",
            },
            "length_guard": False,
            "writer": {
                "header_extensions": [".js", ".mjs", ".prisma"],
            },
            "history": True,
        }

    @classmethod
    def load(cls, working_dir: Optional[Path] = None) -> "DistributorConfig":
        """
        Load configuration from .distribute.yaml in working_dir.

        Returns defaults if the file doesn't exist.

        Raises:
            ConfigurationError: If the file is not valid YAML or not a mapping.
        """
        working_dir = Path(working_dir) if working_dir else Path.cwd()
        defaults = cls.get_default()
        config_path = working_dir / CONFIG_FILENAME

        if not config_path.exists():
            return cls(defaults, working_dir)

        try:
            with open(config_path) as f:
                user_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_data, dict):
            raise ConfigurationError(
                f"{config_path} must contain a mapping, got {type(user_data).__name__}"
            )

        logger.debug(f"Loaded config overrides from {config_path}")
        merged = cls._deep_merge(defaults, user_data)
        return cls(merged, working_dir)

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = DistributorConfig._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def as_dict(self) -> dict:
        """Effective configuration as a plain dict."""
        return dict(self._data)

    # ========================================================================
    # Property Accessors
    # ========================================================================

    @property
    def document_path(self) -> Path:
        """Document location, resolved against the working directory."""
        return self.working_dir / self._data.get("document", "distribute.md")

    @property
    def marker(self) -> str:
        return self._data.get("marker", "[Distribute-Complete]")

    @property
    def denylist(self) -> list[str]:
        return self._data.get("denylist", [])

    @property
    def content_languages(self) -> frozenset[str]:
        return frozenset(lang.lower() for lang in self.get("languages.content", []))

    @property
    def command_languages(self) -> frozenset[str]:
        return frozenset(lang.lower() for lang in self.get("languages.command", []))

    @property
    def script_languages(self) -> frozenset[str]:
        return frozenset(lang.lower() for lang in self.get("languages.script", []))

    @property
    def schema_filename(self) -> str:
        return self.get("schema.filename", "schema.prisma")

    @property
    def schema_command_prefix(self) -> str:
        return self.get("schema.command_prefix", "npx prisma")

    @property
    def styling_module(self) -> str:
        return self.get("exports.styling_module", "styled-components")

    @property
    def length_guard(self) -> bool:
        return bool(self._data.get("length_guard", False))

    @property
    def header_extensions(self) -> list[str]:
        return self.get("writer.header_extensions", [])

    @property
    def history_enabled(self) -> bool:
        return bool(self._data.get("history", True))

    # ========================================================================
    # Denylist
    # ========================================================================

    def is_denied(self, path: str) -> bool:
        """
        Check if a path matches the denylist.

        Entries match the exact path, or act as globs against the path
        and its basename.

        Args:
            path: Artifact target path

        Returns:
            True if the path must never be distributed
        """
        normalized = path[2:] if path.startswith("./") else path
        for pattern in self.denylist:
            if normalized == pattern:
                return True
            if fnmatch.fnmatch(normalized, pattern):
                return True
            if fnmatch.fnmatch(Path(normalized).name, pattern):
                return True
        return False

    # ========================================================================
    # Generic Get
    # ========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value using dot notation.

        Examples:
            config.get("schema.command_prefix")
            config.get("languages.command")

        Args:
            key: Dot-separated key path
            default: Default value if not found

        Returns:
            Config value or default
        """
        parts = key.split(".")
        value = self._data

        for part in parts:
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value
