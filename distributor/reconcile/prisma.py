"""
Prisma Schema Introspection

Parses Prisma schema text into a SchemaModel (enum -> values,
model -> fields) for the schema reconciler. The parser validates the
block structure the reconciler depends on and reports the first problem
as a SchemaParseError with its line number.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from ..errors import SchemaParseError

logger = logging.getLogger(__name__)


BLOCK_KEYWORDS = ("model", "enum", "type", "view", "generator", "datasource")

_BLOCK_HEADER = re.compile(
    r"^(?P<keyword>" + "|".join(BLOCK_KEYWORDS) + r")\s+(?P<name>[A-Za-z][A-Za-z0-9_]*)\s*\{$"
)
_ENUM_VALUE = re.compile(r"^(?P<name>[A-Za-z][A-Za-z0-9_]*)(?:\s+@.*)?$")
_FIELD = re.compile(
    r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)\s+"
    r'(?P<type>[A-Za-z][A-Za-z0-9_.]*(?:\((?:"(?:[^"\\]|\\.)*"|[^)"])*\))?(?:\[\])?\??)'
    r"(?:\s+@.*)?$"
)


@dataclass(frozen=True)
class SchemaModel:
    """
    Structural view of one schema.

    Names keep declaration order for reporting; enum_values() and
    model_fields() give the set view used for comparisons.
    """
    enums: dict[str, tuple[str, ...]] = field(default_factory=dict)
    models: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def enum_values(self, name: str) -> Optional[frozenset[str]]:
        values = self.enums.get(name)
        return frozenset(values) if values is not None else None

    def model_fields(self, name: str) -> Optional[frozenset[str]]:
        fields = self.models.get(name)
        return frozenset(fields) if fields is not None else None


class SchemaIntrospector(ABC):
    """Turns schema text into a SchemaModel or raises SchemaParseError."""

    @abstractmethod
    def parse(self, text: str) -> SchemaModel:
        """Parse schema text."""


def strip_comment(line: str) -> str:
    """Remove a trailing // comment, ignoring // inside double-quoted strings."""
    in_string = False
    escaped = False
    for i, ch in enumerate(line):
        if escaped:
            escaped = False
            continue
        if ch == "\\" and in_string:
            escaped = True
        elif ch == '"':
            in_string = not in_string
        elif ch == "/" and not in_string and line[i:i + 2] == "//":
            return line[:i]
    return line


class PrismaSchemaParser(SchemaIntrospector):
    """
    Parser for the subset of the Prisma schema language that carries
    structure: model/enum/type/view/generator/datasource blocks.

    Usage:
        schema = PrismaSchemaParser().parse(text)
        schema.models["User"]  # ("id", "email", ...)
    """

    def parse(self, text: str) -> SchemaModel:
        enums: dict[str, tuple[str, ...]] = {}
        models: dict[str, tuple[str, ...]] = {}
        declared: dict[str, int] = {}

        current: Optional[tuple[str, str, int]] = None  # (keyword, name, line)
        members: list[str] = []

        for number, raw in enumerate(text.splitlines(), start=1):
            line = strip_comment(raw).strip()
            if not line:
                continue

            if current is None:
                if line == "}":
                    raise SchemaParseError("Unexpected '}' outside of a block", number)
                header = _BLOCK_HEADER.match(line)
                if not header:
                    raise SchemaParseError(f"Invalid block declaration: {line!r}", number)
                name = header.group("name")
                if name in declared:
                    raise SchemaParseError(
                        f"Duplicate name {name!r} (first declared on line {declared[name]})",
                        number,
                    )
                if header.group("keyword") not in ("generator", "datasource"):
                    declared[name] = number
                current = (header.group("keyword"), name, number)
                members = []
                continue

            keyword, name, _ = current

            if line == "}":
                if keyword == "enum":
                    enums[name] = tuple(members)
                elif keyword == "model":
                    models[name] = tuple(members)
                current = None
                continue

            member = self._parse_member(keyword, name, line, number, members)
            if member:
                members.append(member)

        if current is not None:
            keyword, name, opened = current
            raise SchemaParseError(f"{keyword} {name!r} is never closed", opened)

        logger.debug(f"Parsed schema: {len(models)} model(s), {len(enums)} enum(s)")
        return SchemaModel(enums=enums, models=models)

    def _parse_member(
        self, keyword: str, block: str, line: str, number: int, seen: list[str]
    ) -> str:
        """Validate one body line and return the member name it declares."""
        if keyword in ("generator", "datasource"):
            # settings may span lines (arrays), only the block structure is checked
            return ""

        if line.startswith("@@"):
            return ""  # block attribute, not a member

        if keyword == "enum":
            match = _ENUM_VALUE.match(line)
            if not match:
                raise SchemaParseError(f"Invalid value in enum {block!r}: {line!r}", number)
        else:
            match = _FIELD.match(line)
            if not match:
                raise SchemaParseError(f"Invalid field in {keyword} {block!r}: {line!r}", number)

        member = match.group("name")
        if member in seen:
            raise SchemaParseError(f"Duplicate {member!r} in {keyword} {block!r}", number)
        return member
