"""Locate comments in javascript source.

The scanner walks the source once, skipping string, template and regular
expression literals so that comment-like text inside them is left alone.
Regular expression literals are told apart from division by the token that
precedes the slash.
"""

from collections.abc import Iterator

from multibundle.banner import Comment, CommentPolicy
from multibundle.exceptions import PostprocessError

__all__ = [
    "scan",
    "filter_comments",
]

_REGEX_PRECEDERS = frozenset("(,=:[!&|?{};+-*%<>~^")
_REGEX_KEYWORDS = frozenset(
    {
        "return",
        "typeof",
        "instanceof",
        "in",
        "of",
        "new",
        "delete",
        "void",
        "throw",
        "case",
        "do",
        "else",
        "yield",
        "await",
    }
)
# Stand-in for the last token after a literal, a slash following it divides
_OPERAND = "0"


def _is_ident(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def _starts_regex(last: str) -> bool:
    return not last or last in _REGEX_PRECEDERS or last in _REGEX_KEYWORDS


def _ends_operand(last: str) -> bool:
    return bool(last) and not _starts_regex(last)


def _skip_string(source: str, i: int, line: int) -> tuple[int, int]:
    quote = source[i]
    j = i + 1
    while j < len(source):
        c = source[j]
        if c == "\\":
            if source[j + 1 : j + 2] == "\n":
                line += 1
            j += 2
            continue
        if c == quote:
            return j + 1, line
        if c == "\n":
            break
        j += 1
    raise PostprocessError(f"Unterminated string literal on line {line}")


def _skip_template(source: str, j: int, line: int) -> tuple[int, int, bool]:
    """Skip template text from `j`, stopping after the closing quote or a `${`."""
    start_line = line
    while j < len(source):
        c = source[j]
        if c == "\\":
            if source[j + 1 : j + 2] == "\n":
                line += 1
            j += 2
            continue
        if c == "`":
            return j + 1, line, True
        if c == "$" and source[j + 1 : j + 2] == "{":
            return j + 2, line, False
        if c == "\n":
            line += 1
        j += 1
    raise PostprocessError(f"Unterminated template literal on line {start_line}")


def _skip_regex(source: str, i: int, line: int) -> int:
    j = i + 1
    in_class = False
    while j < len(source):
        c = source[j]
        if c == "\\":
            j += 2
            continue
        if c == "\n":
            break
        if in_class:
            if c == "]":
                in_class = False
        elif c == "[":
            in_class = True
        elif c == "/":
            j += 1
            while j < len(source) and _is_ident(source[j]):
                j += 1
            return j
        j += 1
    raise PostprocessError(f"Unterminated regular expression on line {line}")


def scan(source: str) -> Iterator[str | Comment]:
    """Split the source into code chunks and the comments between them."""
    n = len(source)
    i = 0
    chunk = 0
    line = 1
    last = ""
    # Open brace depth of each enclosing template substitution
    templates: list[int] = []
    while i < n:
        ch = source[i]
        nxt = source[i + 1 : i + 2]
        if ch == "\n":
            line += 1
            i += 1
        elif ch.isspace():
            i += 1
        elif ch == "/" and nxt == "/":
            end = source.find("\n", i)
            if end == -1:
                end = n
            if chunk < i:
                yield source[chunk:i]
            text = source[i:end]
            yield Comment(line=line, value=text[2:], text=text)
            i = chunk = end
        elif ch == "/" and nxt == "*":
            end = source.find("*/", i + 2)
            if end == -1:
                raise PostprocessError(f"Unterminated comment on line {line}")
            end += 2
            if chunk < i:
                yield source[chunk:i]
            text = source[i:end]
            yield Comment(line=line, value=text[2:-2], text=text)
            line += text.count("\n")
            i = chunk = end
        elif ch in "'\"":
            i, line = _skip_string(source, i, line)
            last = _OPERAND
        elif ch == "`":
            i, line, closed = _skip_template(source, i + 1, line)
            if not closed:
                templates.append(0)
            last = _OPERAND
        elif ch == "/" and _starts_regex(last):
            i = _skip_regex(source, i, line)
            last = _OPERAND
        elif _is_ident(ch):
            j = i + 1
            while j < n and _is_ident(source[j]):
                j += 1
            last = source[i:j]
            i = j
        elif ch in "+-" and nxt == ch:
            # A postfix increment completes an operand, a prefix one starts it
            last = _OPERAND if _ends_operand(last) else ch
            i += 2
        elif ch == "}" and templates and templates[-1] == 0:
            templates.pop()
            i, line, closed = _skip_template(source, i + 1, line)
            if not closed:
                templates.append(0)
            last = _OPERAND
        else:
            if templates:
                if ch == "{":
                    templates[-1] += 1
                elif ch == "}":
                    templates[-1] -= 1
            last = ch
            i += 1
    if chunk < n:
        yield source[chunk:]


def filter_comments(source: str, policy: CommentPolicy) -> Iterator[str | Comment]:
    """Scan the source, replacing comments the policy drops with whitespace.

    A dropped comment that spanned lines becomes a newline so statements
    separated by it stay separated.
    """
    for part in scan(source):
        if not isinstance(part, Comment):
            yield part
        elif policy.preserve(part):
            yield part
        elif "\n" in part.text:
            yield "\n"
        elif part.text.startswith("//"):
            # The newline ending a line comment is part of the next chunk
            yield ""
        else:
            yield " "
