"""Exception hierarchy shared by every depresolve layer."""

from __future__ import annotations


class DepResolveError(Exception):
    """Base exception for all depresolve errors."""


class ValidationError(DepResolveError):
    """Foreign configuration or input is structurally invalid (empty name, path, revision)."""


class ConfigLoadError(DepResolveError):
    """A foreign configuration file could not be read or parsed."""


class DeductionError(DepResolveError):
    """The project root for an import path could not be deduced."""

    def __init__(self, import_path: str, reason: str = ""):
        self.import_path = import_path
        msg = f"could not deduce project root for {import_path}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class CycleError(DepResolveError):
    """Raised when the import graph loops back onto a package still being explored."""

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"import cycle detected on {package}")


class SourceError(DepResolveError):
    """Listing or synchronising an upstream source failed."""


class VersionLookupError(SourceError):
    """A revision could not be matched against the versions of its project.

    ``fallback`` holds the bare revision the caller should lock to instead.
    """

    def __init__(self, message: str, fallback=None):
        self.fallback = fallback
        super().__init__(message)


class SolveError(DepResolveError):
    """The external solver could not produce a solution."""
