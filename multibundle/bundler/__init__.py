"""Pluggable bundler, minifier and pretty-printer used by the build pipeline."""

from .interface import (
    BundleRequest,
    BundleResult,
    BundleState,
    ModuleBundler,
    Minifier,
    MinifierOptions,
    PrettyPrinter,
    never_external,
)
from .esbuild import EsbuildBundler
from .postprocess import BeautifyOptions, JsBeautifier, RjsminMinifier

__all__ = [
    "BundleRequest",
    "BundleResult",
    "BundleState",
    "ModuleBundler",
    "Minifier",
    "MinifierOptions",
    "PrettyPrinter",
    "never_external",
    "EsbuildBundler",
    "BeautifyOptions",
    "JsBeautifier",
    "RjsminMinifier",
]
