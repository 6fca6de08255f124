"""Contracts for the external bundler, minifier and pretty-printer."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from multibundle.banner import CommentPolicy
from multibundle.naming import ModuleFormat

__all__ = [
    "BundleRequest",
    "BundleResult",
    "BundleState",
    "ModuleBundler",
    "Minifier",
    "MinifierOptions",
    "PrettyPrinter",
    "never_external",
]


def never_external(module_id: str) -> bool:
    """Internalize every module, including the library's own namespace."""
    return False


@dataclass(frozen=True, kw_only=True)
class BundleRequest:
    """Input to a single bundler invocation."""

    entries: Sequence[Path]
    """Entry modules, bundled in order."""

    module_format: ModuleFormat

    external: Callable[[str], bool] = never_external
    """Predicate deciding whether an imported module id is left unresolved."""

    global_name: str | None = None
    """Name of the global variable for iife output."""


@dataclass(frozen=True, kw_only=True)
class BundleState:
    """Opaque compilation state returned by a bundler for warm rebuilds."""

    fingerprint: str
    """Digest of everything the previous output depended on."""

    code: str
    inputs: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, kw_only=True)
class BundleResult:
    """Output of a bundler invocation."""

    code: str
    state: BundleState
    warm: bool = False
    """True when the output was reused from the previous state."""


class ModuleBundler(ABC):
    """Resolves and concatenates the entry modules into one bundle."""

    @abstractmethod
    async def bundle(
        self, request: BundleRequest, state: BundleState | None = None
    ) -> BundleResult:
        """Bundle the request, optionally reusing a previously returned state.

        Raises `BundlerError` on resolution or syntax failures.
        """


@dataclass(frozen=True)
class MinifierOptions:
    """Options for a minifier pass."""

    compress: bool = True
    """Whether whitespace is removed, or only comments are filtered."""


class Minifier(ABC):
    """Removes comments and whitespace from javascript source."""

    @abstractmethod
    def minify(
        self, source: str, policy: CommentPolicy, options: MinifierOptions
    ) -> str:
        """Return the minified source keeping comments the policy preserves.

        Raises `PostprocessError` on failure.
        """


class PrettyPrinter(ABC):
    """Reformats javascript source for readability."""

    @abstractmethod
    def format(self, source: str) -> str:
        """Return the reformatted source.

        Raises `PostprocessError` on failure.
        """
