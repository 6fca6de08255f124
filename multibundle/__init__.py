"""
multibundle builds a multi-package javascript library into its distributable
artifacts and drives the local dev and test loops.

The main entry points are `orchestrator.Orchestrator` for building the target
matrix and `pipeline.build_target` for building a single artifact.
"""

__all__ = [
    "naming",
    "banner",
    "cache",
    "entries",
    "pipeline",
    "orchestrator",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
