"""Resolve the entry points bundled into an artifact.

In combined mode the entry of every member package is bundled, in the
configured order, which is also the order symbols are registered in the
combined namespace.
"""

import logging
from pathlib import Path

from .exceptions import ConfigError
from .naming import PackageContext

__all__ = [
    "resolve_entries",
]

_LOGGER = logging.getLogger(__name__)


def resolve_entries(context: PackageContext) -> list[Path]:
    """Return the ordered entry paths for the package context."""
    if not context.is_combined_mode:
        return [context.root / context.entry]
    if not context.member_package_paths:
        raise ConfigError(
            f"Combined build of '{context.active_package_name}' has no member packages"
        )
    entries = [member / context.entry for member in context.member_package_paths]
    _LOGGER.debug("Resolved %d combined entries: %s", len(entries), entries)
    return entries
