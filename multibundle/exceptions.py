"""Exceptions related to multibundle."""

__all__ = [
    "BundleException",
    "ConfigError",
    "CommandException",
    "BundlerError",
    "PostprocessError",
    "FilesystemError",
    "TargetFailedError",
    "BuildFailedError",
]


class BundleException(Exception):
    """Generic base exception used for this library."""


class ConfigError(BundleException):
    """Raised when a template or configuration file is missing or malformed."""


class CommandException(BundleException):
    """Raised when there is a failure running a subcommand."""


class BundlerError(CommandException):
    """Raised when the module bundler fails to resolve or compile the entries."""


class PostprocessError(BundleException):
    """Raised when the minifier or pretty-printer fails."""


class FilesystemError(BundleException):
    """Raised when cleaning or writing the output directory fails."""


class TargetFailedError(BundleException):
    """Raised when the pipeline for a single artifact has failed."""

    def __init__(self, target_name: str, message: str | None) -> None:
        super().__init__(f"Target {target_name} failed: {message or 'Unknown error'}")
        self.target_name = target_name
        self.message = message


class BuildFailedError(BundleException):
    """Raised when one or more targets of a build run have failed."""

    def __init__(self, failures: list[TargetFailedError]) -> None:
        names = ", ".join(failure.target_name for failure in failures)
        super().__init__(f"{len(failures)} target(s) failed: {names}")
        self.failures = failures
