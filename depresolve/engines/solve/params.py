"""Solver boundary: the parameters handed to the external solver and what it returns."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from depresolve.models.project import Lock, Manifest, ProjectRoot, Solution
from depresolve.pkgtree import PackageTree
from depresolve.sources.manager import SourceManager


class ProjectAnalyzer(Protocol):
    """Derives manifests and locks for projects the solver visits."""

    def derive_manifest_and_lock(
        self, directory: str | Path, root: ProjectRoot
    ) -> tuple[Manifest, Lock | None]: ...

    def info(self) -> tuple[str, int]: ...


@dataclass
class SolveParameters:
    root_dir: Path
    root_package_tree: PackageTree
    manifest: Manifest
    lock: Lock | None
    project_analyzer: ProjectAnalyzer


class Solver(Protocol):
    def solve(self) -> Solution: ...

    def hash_inputs(self) -> str: ...


# prepare(params, sm) -> Solver
PrepareSolver = Callable[[SolveParameters, SourceManager], Solver]
