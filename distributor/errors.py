"""
Error Types

Exception hierarchy shared by the extractor, reconcilers and CLI.
"""

from typing import Optional


# ============================================================================
# EXCEPTIONS
# ============================================================================

class DistributorError(Exception):
    """Base exception for distributor errors"""
    pass


class DocumentError(DistributorError):
    """Document is missing or unreadable"""
    pass


class ConfigurationError(DistributorError):
    """Configuration is invalid"""
    pass


class SchemaParseError(DistributorError):
    """Schema text could not be parsed"""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class WriteError(DistributorError):
    """A file could not be written"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Error writing file {path}: {reason}")
