"""Package trees and import reachability maps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from depresolve.core.errors import DepResolveError


class PackageError(DepResolveError):
    """A package directory could not be parsed into a usable package."""


@dataclass
class Package:
    import_path: str
    name: str
    imports: list[str] = field(default_factory=list)
    test_imports: list[str] = field(default_factory=list)


@dataclass
class ReachEntry:
    internal: list[str] = field(default_factory=list)
    external: list[str] = field(default_factory=list)


class ReachMap(dict):
    """Package path -> the internal and external imports it transitively reaches."""

    def flatten(self, exclude: Callable[[str], bool] | None = None) -> list[str]:
        """Sorted, de-duplicated external imports of every package.

        Imports for which *exclude* returns True are dropped.
        """
        seen: set[str] = set()
        for entry in self.values():
            for imp in entry.external:
                if exclude is not None and exclude(imp):
                    continue
                seen.add(imp)
        return sorted(seen)


def _is_ignored(path: str, ignored: Iterable[str]) -> bool:
    for pattern in ignored:
        if pattern.endswith("*"):
            if path.startswith(pattern[:-1]):
                return True
        elif path == pattern:
            return True
    return False


@dataclass
class PackageTree:
    """All packages found under one import root, or the error for each."""

    import_root: str
    packages: dict[str, Package | PackageError] = field(default_factory=dict)

    def is_internal(self, path: str) -> bool:
        return path == self.import_root or path.startswith(self.import_root + "/")

    def to_reach_map(
        self,
        include_main: bool,
        include_tests: bool,
        backprop_errors: bool,
        ignored: Iterable[str] | None = None,
    ) -> tuple[ReachMap, dict[str, Exception]]:
        """Compute, per package, every import reachable through internal packages.

        ``main`` packages are left out unless *include_main*. Test imports
        count only for the package they belong to. With *backprop_errors* a
        package that reaches an errored internal package is reported as
        errored itself instead of appearing in the map.
        """
        ignored = list(ignored or ())
        errors: dict[str, Exception] = {}
        usable: dict[str, Package] = {}
        for path, pkg in self.packages.items():
            if _is_ignored(path, ignored):
                continue
            if isinstance(pkg, Exception):
                errors[path] = pkg
                continue
            usable[path] = pkg

        # Closure over internal imports; test imports are added per package below.
        closure: dict[str, tuple[set[str], set[str], set[str]]] = {}
        in_progress: set[str] = set()

        def follow(imp: str, internal: set[str], external: set[str], errored: set[str]) -> None:
            if _is_ignored(imp, ignored):
                return
            if not self.is_internal(imp):
                external.add(imp)
                return
            if imp in errors or imp not in usable:
                errored.add(imp)
                return
            internal.add(imp)
            if imp in in_progress:
                return
            sub_internal, sub_external, sub_errored = walk(imp)
            internal.update(sub_internal)
            external.update(sub_external)
            errored.update(sub_errored)

        def walk(path: str) -> tuple[set[str], set[str], set[str]]:
            if path in closure:
                return closure[path]
            internal: set[str] = set()
            external: set[str] = set()
            errored: set[str] = set()
            in_progress.add(path)
            for imp in usable[path].imports:
                follow(imp, internal, external, errored)
            in_progress.discard(path)
            closure[path] = (internal, external, errored)
            return closure[path]

        rm = ReachMap()
        for path in sorted(usable):
            pkg = usable[path]
            if pkg.name == "main" and not include_main:
                continue
            internal, external, errored = (set(s) for s in walk(path))
            if include_tests:
                for imp in pkg.test_imports:
                    follow(imp, internal, external, errored)
            internal.discard(path)
            if backprop_errors and errored:
                first = sorted(errored)[0]
                cause = errors.get(first) or "no such package"
                errors[path] = PackageError(f"{path} depends on {first}, which has errors: {cause}")
                continue
            rm[path] = ReachEntry(internal=sorted(internal), external=sorted(external))
        return rm, errors
