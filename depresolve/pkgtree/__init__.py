"""Package reachability: list source packages and compute what they import."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from depresolve.pkgtree.parser import GoPackageLister, parse_go_source
from depresolve.pkgtree.tree import Package, PackageError, PackageTree, ReachEntry, ReachMap


@runtime_checkable
class PackageLister(Protocol):
    def list_packages(self, directory: str | Path, import_prefix: str) -> PackageTree: ...


__all__ = [
    "GoPackageLister",
    "Package",
    "PackageError",
    "PackageLister",
    "PackageTree",
    "ReachEntry",
    "ReachMap",
    "parse_go_source",
]
