"""Banner injection and comment preservation policy.

Minified artifacts are prefixed with the full LICENSE text and non-minified
artifacts with the short BANNER. The banner is always the comment starting on
line 1 of the bundle, which is the only comment a minified artifact keeps. A
non-minified artifact additionally keeps ordinary comments but drops any other
file header comment so the injected banner is the only one.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from pathlib import Path
import re
from collections.abc import Mapping

from .exceptions import ConfigError

__all__ = [
    "Comment",
    "CommentPolicy",
    "MinifiedCommentPolicy",
    "NonMinifiedCommentPolicy",
    "comment_policy",
    "load_banner",
    "render_template",
]

_LOGGER = logging.getLogger(__name__)

BANNER_LINE = 1
HEADER_PATTERN = re.compile(r"(@namespace|@module|copyright)", re.IGNORECASE)


@dataclass(frozen=True)
class Comment:
    """A comment found in javascript source."""

    line: int
    """The 1-based line number the comment starts on."""

    value: str
    """The comment text without its delimiters."""

    text: str
    """The comment as it appears in the source, including delimiters."""


class CommentPolicy(ABC):
    """Decides which comments survive minification."""

    @abstractmethod
    def preserve(self, comment: Comment) -> bool:
        """Return True if the comment should be kept."""


class MinifiedCommentPolicy(CommentPolicy):
    """Keep only the injected banner."""

    def preserve(self, comment: Comment) -> bool:
        return comment.line == BANNER_LINE


class NonMinifiedCommentPolicy(CommentPolicy):
    """Keep the injected banner and every comment that is not a file header."""

    def preserve(self, comment: Comment) -> bool:
        if comment.line == BANNER_LINE:
            return True
        return not HEADER_PATTERN.search(comment.value)


def comment_policy(minified: bool) -> CommentPolicy:
    """Return the comment policy for a minified or non-minified artifact."""
    if minified:
        return MinifiedCommentPolicy()
    return NonMinifiedCommentPolicy()


def render_template(content: str, values: Mapping[str, str]) -> str:
    """Substitute each `<%= key %>` placeholder with its value."""
    for key, value in values.items():
        content = content.replace(f"<%= {key} %>", value)
    return content


def load_banner(license_path: Path, banner_path: Path, name: str, minified: bool) -> str:
    """Return the header text for an artifact of the named package."""
    path = license_path if minified else banner_path
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as err:
        raise ConfigError(f"Banner template not found: {path}") from err
    except OSError as err:
        raise ConfigError(f"Unable to read banner template {path}: {err}") from err
    _LOGGER.debug("Loaded banner template %s", path)
    return render_template(content, {"name": name}).rstrip("\n")
