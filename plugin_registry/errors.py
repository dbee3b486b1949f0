"""Exceptions that abort a registry build.

Per-repository problems (missing manifest, transport failure, rejected
manifest) are not exceptions: they are returned as tagged outcomes and the
build skips the repository. Only failures that leave the whole output
meaningless are raised.
"""

from __future__ import annotations

from pathlib import Path


class RegistryBuildError(Exception):
    """Base class for fatal build errors."""

    exit_code = 1


class DiscoveryFailure(RegistryBuildError):
    """The repository listing could not be retrieved."""

    exit_code = 1

    def __init__(self, status_code: int | None, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        if status_code is not None:
            message = f"Discovery failed with HTTP {status_code}"
        else:
            message = "Discovery failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ArtifactWriteFailure(RegistryBuildError):
    """The registry document could not be written to disk."""

    exit_code = 2

    def __init__(self, path: str | Path, reason: str = ""):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not write registry to {self.path}: {reason}")


class ConfigError(RegistryBuildError):
    """The builder configuration file is invalid."""
