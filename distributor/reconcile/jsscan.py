"""
Script Scanner

Lightweight lexical analysis of JavaScript / TypeScript modules, enough to
find top-level export statements and their exact source spans:

- mask_source(): blank out comments, string/template/regex bodies
  (offsets and newlines are preserved, delimiters kept)
- top_level_exports(): every `export` statement at bracket depth 0 with
  the names it exports
- statement_end(): where a top-level statement ends
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


IDENT = r"[A-Za-z_$][\w$]*"

# Keywords after which a '/' starts a regex literal rather than a division
_REGEX_KEYWORDS = frozenset({
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
    "throw", "case", "do", "else", "yield", "await",
})
_REGEX_PRECEDERS = set("(,=:[!&|?{};+-*%<>~^")

# A line ending in one of these continues on the next line. A lone '>'
# closes JSX tags and TS generics; only '=>' continues.
_CONTINUES_AFTER = set("=,.([{+-*/%&|^!?:<~")
# Stands in for `last` after a regex literal, which ends an operand
_REGEX_END = "regex"
# A line starting with one of these continues the previous line
_CONTINUES_BEFORE = set(".?:+-*/%&|^=,)]}>")

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = set(_OPENERS.values())


def _blank(chars: list[str], start: int, end: int) -> None:
    for k in range(max(start, 0), min(end, len(chars))):
        if chars[k] != "\n":
            chars[k] = " "


def _previous_word(code: str, index: int) -> str:
    j = index - 1
    while j >= 0 and code[j] in " \t":
        j -= 1
    end = j + 1
    while j >= 0 and (code[j].isalnum() or code[j] in "_$"):
        j -= 1
    return code[j + 1:end]


def _scan_string(code: str, start: int) -> int:
    """Return the index just past a quoted string (or the end of its line)."""
    quote = code[start]
    i = start + 1
    while i < len(code):
        ch = code[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n":
            return i
        i += 1
    return len(code)


def _scan_regex(code: str, start: int) -> Optional[int]:
    """Return the index of a regex literal's closing '/', or None if it isn't one."""
    i = start + 1
    in_class = False
    while i < len(code):
        ch = code[i]
        if ch == "\n":
            return None
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            in_class = True
        elif ch == "]":
            in_class = False
        elif ch == "/" and not in_class:
            return i
        i += 1
    return None


def _skip_flags(code: str, i: int) -> int:
    while i < len(code) and code[i].isalpha():
        i += 1
    return i


def _starts_regex(code: str, i: int, last: str) -> bool:
    return last == "" or last in _REGEX_PRECEDERS or _previous_word(code, i) in _REGEX_KEYWORDS


def mask_source(code: str) -> str:
    """
    Blank out everything that is not code.

    Comments, the bodies of strings, template literals (including their
    ${...} expressions) and regex literals are replaced with spaces. The
    result has the same length and line structure as the input, so
    offsets found in the masked text index the original.

    Args:
        code: Script source

    Returns:
        Masked source
    """
    out = list(code)
    n = len(code)
    exprs: list[int] = []  # brace depth inside each open ${ ... }
    outer_start = -1       # opening backtick of the outermost template
    in_template = False
    last = ""              # last significant code character
    i = 0

    while i < n:
        if in_template:
            ch = code[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "`":
                in_template = False
                i += 1
                if not exprs:
                    _blank(out, outer_start + 1, i - 1)
                    last = "`"
                continue
            if code.startswith("${", i):
                exprs.append(0)
                in_template = False
                i += 2
                last = "{"
                continue
            i += 1
            continue

        ch = code[i]

        if code.startswith("//", i):
            end = code.find("\n", i)
            end = n if end == -1 else end
            _blank(out, i, end)
            i = end
            continue

        if code.startswith("/*", i):
            end = code.find("*/", i + 2)
            end = n if end == -1 else end + 2
            _blank(out, i, end)
            i = end
            continue

        if ch in ("'", '"'):
            end = _scan_string(code, i)
            _blank(out, i + 1, end - 1 if end <= n and code[end - 1:end] == ch else end)
            i = end
            last = ch
            continue

        if ch == "/" and _starts_regex(code, i, last):
            close = _scan_regex(code, i)
            if close is not None:
                # body only, the closing delimiter and flags stay
                _blank(out, i + 1, close)
                i = _skip_flags(code, close + 1)
                last = code[i - 1]
                continue

        if ch == "`":
            if not exprs:
                outer_start = i
            in_template = True
            i += 1
            continue

        if exprs:
            if ch == "{":
                exprs[-1] += 1
            elif ch == "}":
                if exprs[-1] == 0:
                    exprs.pop()
                    in_template = True
                    i += 1
                    continue
                exprs[-1] -= 1

        if not ch.isspace():
            last = ch
        i += 1

    if in_template or exprs:
        # unterminated template runs to the end of the text
        _blank(out, outer_start + 1, n)

    return "".join(out)


# ============================================================================
# Statement Boundaries
# ============================================================================

def statement_end(masked: str, start: int) -> Optional[int]:
    """
    Find the end of the top-level statement starting at `start`.

    The statement ends at a ';' at bracket depth 0, or at a line break at
    depth 0 once the statement is complete: the line does not end with a
    continuation character and the next line does not start with one.

    Args:
        masked: Masked source (see mask_source)
        start: Offset of the statement's first character

    Returns:
        Offset just past the statement, or None if brackets never balance
    """
    depth = 0
    in_template = False
    last = ""
    arrow = False  # `last` is the ">" of "=>"
    n = len(masked)
    i = start

    while i < n:
        ch = masked[i]

        if ch == "`":
            in_template = not in_template
            last = ch
            arrow = False
            i += 1
            continue

        if in_template:
            i += 1
            continue

        if ch == "/" and _starts_regex(masked, i, last):
            # regex bodies are blank in the mask, the next '/' on the line closes it
            close = _scan_regex(masked, i)
            if close is not None:
                i = _skip_flags(masked, close + 1)
                last = _REGEX_END
                arrow = False
                continue

        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth < 0:
                return None
        elif ch == ";" and depth == 0:
            return i + 1
        elif ch == "\n" and depth == 0 and last and _is_complete(masked, i, last, arrow):
            return i

        if not ch.isspace():
            arrow = ch == ">" and masked[i - 1:i] == "="
            last = ch
        i += 1

    if depth == 0 and not in_template:
        return n
    return None


def _is_complete(masked: str, newline: int, last: str, arrow: bool = False) -> bool:
    if arrow or last in _CONTINUES_AFTER:
        return False
    rest = masked[newline + 1:].lstrip()
    if not rest:
        return True
    nxt = rest[0]
    if nxt in _CONTINUES_BEFORE:
        return False
    # `function f()` / `class A extends B` with the body on the next line
    if nxt == "{" and last in (")", ">") or nxt == "{" and last.isalnum():
        return False
    if re.match(r"(?:extends|implements)\b", rest):
        return False
    return True


def line_start(code: str, index: int) -> int:
    """Offset of the first character on the line containing index."""
    return code.rfind("\n", 0, index) + 1


# ============================================================================
# Export Statements
# ============================================================================

@dataclass
class ExportStatement:
    """One top-level export statement."""
    start: int
    end: Optional[int]  # None if the scanner found no close
    kind: str           # "declaration", "specifier", "reexport", "namespace", "default"
    names: list[str] = field(default_factory=list)
    # For specifier/reexport statements: exported name -> specifier text
    specifiers: dict[str, str] = field(default_factory=dict)
    local_names: dict[str, str] = field(default_factory=dict)  # exported -> local
    source: Optional[str] = None  # module specifier text, quotes included


_DECL_FUNCTION = re.compile(r"export\s+(?:declare\s+)?(?:async\s+)?function\s*\*?\s*(" + IDENT + ")")
_DECL_CLASS = re.compile(r"export\s+(?:declare\s+)?(?:abstract\s+)?class\s+(" + IDENT + ")")
_DECL_TYPE = re.compile(
    r"export\s+(?:declare\s+)?(?:const\s+enum|enum|interface|type|namespace)\s+(" + IDENT + ")"
)
_DECL_VARIABLE = re.compile(r"export\s+(?:declare\s+)?(?:const|let|var)\s+")
_SPECIFIERS = re.compile(r"export\s+(?:type\s+)?\{(?P<body>[^}]*)\}")
_NAMESPACE = re.compile(r"export\s+\*\s*(?:as\s+(?P<name>" + IDENT + r"))?\s*from\b")
_FROM = re.compile(r"\}\s*from\s*(?P<source>['\"][^'\"\n]*['\"])")
_NAMESPACE_FROM = re.compile(r"from\s*(?P<source>['\"][^'\"\n]*['\"])")
_DEFAULT = re.compile(r"export\s+default\b")


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on separator at bracket depth 0."""
    parts = []
    depth = 0
    current = []
    for ch in text:
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return [p for p in parts if p.strip()]


def pattern_names(pattern: str) -> list[str]:
    """
    Names bound by a declarator target.

    Handles plain identifiers plus object and array destructuring
    (`{ a, b: c, ...rest }`, `[x, , y]`), recursively.
    """
    pattern = pattern.strip()
    if not pattern:
        return []

    if pattern[0] in "{[" and pattern[-1] in "}]":
        names = []
        is_object = pattern[0] == "{"
        for element in split_top_level(pattern[1:-1]):
            element = element.strip()
            if element.startswith("..."):
                names.extend(pattern_names(element[3:]))
                continue
            target = split_top_level(element, "=")[0].strip() if "=" in element else element
            if is_object and ":" in target:
                target = target.split(":", 1)[1]
            names.extend(pattern_names(target))
        return names

    match = re.match(IDENT, pattern)
    return [match.group(0)] if match else []


def _declarator_names(masked_body: str) -> list[str]:
    names = []
    for declarator in split_top_level(masked_body):
        target = declarator.strip()
        if target[:1] in "{[":
            closer = _OPENERS[target[0]]
            depth = 0
            for k, ch in enumerate(target):
                if ch in _OPENERS:
                    depth += 1
                elif ch in _CLOSERS:
                    depth -= 1
                    if depth == 0 and ch == closer:
                        names.extend(pattern_names(target[:k + 1]))
                        break
        else:
            names.extend(pattern_names(target))
    return names


def _parse_specifiers(body: str) -> tuple[dict[str, str], dict[str, str]]:
    """Map exported name -> specifier text and exported name -> local name."""
    specifiers: dict[str, str] = {}
    local_names: dict[str, str] = {}
    for raw in body.split(","):
        spec = " ".join(raw.split())
        if not spec:
            continue
        words = spec.split(" ")
        if words[0] == "type" and len(words) > 1:
            words = words[1:]
        local = words[0]
        exported = words[2] if len(words) >= 3 and words[1] == "as" else local
        specifiers[exported] = spec
        local_names[exported] = local
    return specifiers, local_names


def top_level_exports(code: str, masked: Optional[str] = None) -> list[ExportStatement]:
    """
    Find every top-level export statement.

    Args:
        code: Script source
        masked: Pre-computed mask_source(code), if available

    Returns:
        ExportStatements in source order
    """
    masked = mask_source(code) if masked is None else masked
    statements: list[ExportStatement] = []
    depth = 0
    i = 0
    n = len(masked)

    while i < n:
        ch = masked[i]
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif (
            depth == 0
            and masked.startswith("export", i)
            and (i == 0 or not (masked[i - 1].isalnum() or masked[i - 1] in "_$."))
            and (i + 6 >= n or not (masked[i + 6].isalnum() or masked[i + 6] in "_$"))
        ):
            statement = _parse_export(code, masked, i)
            statements.append(statement)
            if statement.end is not None and statement.end > i:
                i = statement.end
                continue
        i += 1

    return statements


def _parse_export(code: str, masked: str, start: int) -> ExportStatement:
    end = statement_end(masked, start)
    text = masked[start:end if end is not None else len(masked)]

    if _DEFAULT.match(text):
        return ExportStatement(start=start, end=end, kind="default")

    namespace = _NAMESPACE.match(text)
    if namespace:
        source = _NAMESPACE_FROM.search(code[start:end if end is not None else len(code)])
        name = namespace.group("name")
        return ExportStatement(
            start=start, end=end, kind="namespace",
            names=[name] if name else [],
            source=source.group("source") if source else None,
        )

    specifier = _SPECIFIERS.match(text)
    if specifier:
        specifiers, local_names = _parse_specifiers(specifier.group("body"))
        source = _FROM.search(code[start:end if end is not None else len(code)])
        return ExportStatement(
            start=start, end=end,
            kind="reexport" if source else "specifier",
            names=list(specifiers),
            specifiers=specifiers,
            local_names=local_names,
            source=source.group("source") if source else None,
        )

    for pattern in (_DECL_FUNCTION, _DECL_CLASS, _DECL_TYPE):
        match = pattern.match(text)
        if match:
            return ExportStatement(start=start, end=end, kind="declaration", names=[match.group(1)])

    variable = _DECL_VARIABLE.match(text)
    if variable:
        body = text[variable.end():].rstrip().rstrip(";")
        return ExportStatement(
            start=start, end=end, kind="declaration", names=_declarator_names(body)
        )

    logger.debug(f"Unrecognized export statement at offset {start}: {text[:40]!r}")
    return ExportStatement(start=start, end=end, kind="declaration")


def find_local_declaration(masked: str, name: str) -> Optional[tuple[int, Optional[int]]]:
    """
    Locate the top-level (non-exported) declaration of a local binding.

    Only declarations that begin a line at bracket depth 0 are considered.

    Returns:
        (start, end) offsets, end None if unbalanced; None if not declared
    """
    pattern = re.compile(
        r"(?:(?:const|let|var)\s+(?:[{\[][^=]*?\b)?"
        r"|(?:async\s+)?function\s*\*?\s*|class\s+)" + re.escape(name) + r"(?![\w$])"
    )
    depth = 0
    at_line_start = True
    for i, ch in enumerate(masked):
        if depth == 0 and at_line_start and not ch.isspace():
            if pattern.match(masked, i):
                return i, statement_end(masked, i)

        if ch == "\n":
            at_line_start = True
        elif not ch.isspace():
            at_line_start = False

        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
    return None
