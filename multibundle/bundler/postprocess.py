"""Minifier and pretty-printer implementations.

`RjsminMinifier` applies a `CommentPolicy` with the comment scanner and then
compresses the code between the surviving comments with rjsmin, so preserved
comments (such as the license banner) are emitted verbatim. `JsBeautifier`
reformats non-minified output with jsbeautifier.
"""

from dataclasses import asdict, dataclass
import logging

import jsbeautifier
import rjsmin

from multibundle.banner import Comment, CommentPolicy
from multibundle.exceptions import PostprocessError

from .comments import filter_comments
from .interface import Minifier, MinifierOptions, PrettyPrinter

__all__ = [
    "BeautifyOptions",
    "JsBeautifier",
    "RjsminMinifier",
]

_LOGGER = logging.getLogger(__name__)


class RjsminMinifier(Minifier):
    """Minifier backed by rjsmin."""

    def minify(
        self, source: str, policy: CommentPolicy, options: MinifierOptions
    ) -> str:
        parts = list(filter_comments(source, policy))
        if not options.compress:
            return "".join(
                part.text if isinstance(part, Comment) else part for part in parts
            )

        output: list[str] = []
        code: list[str] = []

        def flush() -> None:
            text = "".join(code).strip()
            code.clear()
            if not text:
                return
            try:
                output.append(rjsmin.jsmin(text, keep_bang_comments=False))
            except Exception as err:
                raise PostprocessError(f"rjsmin failed: {err}") from err

        for part in parts:
            if isinstance(part, Comment):
                flush()
                output.append(part.text + "\n")
            else:
                code.append(part)
        flush()
        result = "".join(output)
        _LOGGER.debug("Minified %d bytes to %d bytes", len(source), len(result))
        return result


@dataclass(frozen=True)
class BeautifyOptions:
    """Options passed through to jsbeautifier."""

    indent_size: int = 2
    indent_char: str = " "
    preserve_newlines: bool = True
    max_preserve_newlines: int = 2
    end_with_newline: bool = True


class JsBeautifier(PrettyPrinter):
    """Pretty-printer backed by jsbeautifier."""

    def __init__(self, options: BeautifyOptions | None = None) -> None:
        """Initialize JsBeautifier."""
        self._options = options or BeautifyOptions()

    def format(self, source: str) -> str:
        opts = jsbeautifier.default_options()
        for key, value in asdict(self._options).items():
            setattr(opts, key, value)
        try:
            return jsbeautifier.beautify(source, opts)
        except Exception as err:
            raise PostprocessError(f"jsbeautifier failed: {err}") from err
