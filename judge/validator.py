"""Entry point validation for submitted source.

The checks here are line based rather than AST based: a submission with a
syntax error elsewhere should still be told whether its entry point exists,
and an empty body is repaired instead of rejected.
"""

import keyword
import re
from dataclasses import dataclass

from judge.errors import HarnessConstructionError, MissingEntryPoint

PLACEHOLDER = "pass  # Added automatically"
REPAIR_MESSAGE = "Your function appears to be empty. A pass statement has been added to make it valid."

_CLASS_HEADER = re.compile(r"^class\s+([A-Za-z_]\w*)\s*[(:]")


@dataclass
class EntryPointDefinition:
    line: int
    indent: int
    owner: str | None


@dataclass
class ValidationResult:
    source: str
    message: str | None = None

    @property
    def repaired(self) -> bool:
        return self.message is not None


def _indent_width(line: str) -> int:
    expanded = line.expandtabs(4)
    return len(expanded) - len(expanded.lstrip())


def _header_pattern(name: str) -> re.Pattern:
    return re.compile(rf"^(?:async\s+)?def\s+{re.escape(name)}\s*\(")


def check_entry_point_name(name: str) -> None:
    if not name.isidentifier() or keyword.iskeyword(name):
        raise HarnessConstructionError(f"Invalid entry point name: {name!r}")


def _advance(line: str, quote: str | None, depth: int) -> tuple[str | None, int]:
    """Carry the open string delimiter and bracket depth across ``line``."""
    pos = 0
    while pos < len(line):
        if quote:
            if line[pos] == "\\":
                pos += 2
            elif line.startswith(quote, pos):
                pos += len(quote)
                quote = None
            else:
                pos += 1
            continue
        ch = line[pos]
        if ch == "#":
            break
        if ch in "'\"":
            quote = ch * 3 if line.startswith(ch * 3, pos) else ch
            pos += len(quote)
            continue
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth = max(depth - 1, 0)
        pos += 1
    if quote is not None and len(quote) == 1:
        quote = None
    return quote, depth


def locate_definitions(source: str, name: str) -> list[EntryPointDefinition]:
    """Find every ``def name(`` header and the top-level class it sits in.

    Lines that continue a string or bracketed expression are not statements
    and neither define anything nor end a class body.
    """
    header = _header_pattern(name)
    found = []
    owner = None
    quote, depth, continued = None, 0, False
    for idx, line in enumerate(source.split("\n")):
        inside = quote is not None or depth > 0 or continued
        quote, depth = _advance(line, quote, depth)
        continued = quote is None and depth == 0 and line.rstrip().endswith("\\")
        stripped = line.strip()
        if inside or not stripped or stripped.startswith("#"):
            continue
        indent = _indent_width(line)
        if indent == 0:
            match = _CLASS_HEADER.match(stripped)
            if match:
                owner = match.group(1)
                continue
            if not stripped.startswith("@"):
                owner = None
        if header.match(stripped):
            found.append(EntryPointDefinition(line=idx, indent=indent, owner=owner if indent else None))
    return found


def _header_end(lines: list[str], start: int) -> tuple[int, str]:
    """Return the line closing the parameter list and the text after ``)``."""
    depth = 0
    opened = False
    for idx in range(start, len(lines)):
        for pos, ch in enumerate(lines[idx]):
            if ch == "(":
                depth += 1
                opened = True
            elif ch == ")" and opened:
                depth -= 1
                if depth == 0:
                    return idx, lines[idx][pos + 1:]
    return start, ""


def _has_inline_body(tail: str) -> bool:
    if ":" not in tail:
        return False
    body = tail.split(":", 1)[1].strip()
    return bool(body) and not body.startswith("#")


def _leading(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def _body_indent(lines: list[str], definition: EntryPointDefinition, body: list[str]) -> str:
    """Indentation for a statement in the body, in the header's own style."""
    outer = _leading(lines[definition.line])
    for line in body:
        if not line.strip():
            continue
        inner = _leading(line)
        if inner.startswith(outer) and len(inner) > len(outer):
            return inner
        break
    return outer + ("\t" if "\t" in outer else "    ")


def validate_submission(source: str, entry_point: str) -> ValidationResult:
    """Check that ``entry_point`` is defined and give an empty body a placeholder.

    Raises:
        MissingEntryPoint: no ``def entry_point(`` header exists.
        HarnessConstructionError: ``entry_point`` is not a usable identifier.
    """
    check_entry_point_name(entry_point)
    definitions = locate_definitions(source, entry_point)
    if not definitions:
        raise MissingEntryPoint(
            f'The function "{entry_point}" is not defined. '
            f"Please define it as: def {entry_point}(...)",
            entry_point=entry_point,
        )

    lines = source.split("\n")
    definition = definitions[0]
    end, tail = _header_end(lines, definition.line)
    if _has_inline_body(tail):
        return ValidationResult(source=source)

    body = lines[end + 1:]
    for line in body:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if _indent_width(line) <= definition.indent:
            break
        return ValidationResult(source=source)

    placeholder = _body_indent(lines, definition, body) + PLACEHOLDER
    lines.insert(end + 1, placeholder)
    return ValidationResult(source="\n".join(lines), message=REPAIR_MESSAGE)
