"""Project identity, manifest and lock models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, NewType, Protocol

from depresolve.core.errors import ValidationError
from depresolve.models.constraint import Constraint, constraint_string
from depresolve.models.version import Version, version_components

ProjectRoot = NewType("ProjectRoot", str)


@dataclass(frozen=True)
class ProjectIdentifier:
    """A project root plus an optional alternate source (fork or mirror)."""

    root: ProjectRoot
    source: str = ""

    def __str__(self) -> str:
        if self.source:
            return f"{self.root}({self.source})"
        return str(self.root)


@dataclass
class ProjectProperties:
    source: str = ""
    constraint: Constraint | None = None


@dataclass(frozen=True)
class LockedProject:
    """A project pinned to a concrete version, with the packages actually used."""

    ident: ProjectIdentifier
    version: Version
    packages: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        revision, tag, branch = version_components(self.version)
        out: dict[str, Any] = {"name": self.ident.root}
        if self.ident.source:
            out["source"] = self.ident.source
        if branch:
            out["branch"] = branch
        if tag:
            out["version"] = tag
        if revision:
            out["revision"] = revision
        out["packages"] = list(self.packages)
        return out


@dataclass
class Manifest:
    """Declared dependency state for the root project."""

    constraints: dict[ProjectRoot, ProjectProperties] = field(default_factory=dict)
    overrides: dict[ProjectRoot, ProjectProperties] = field(default_factory=dict)
    ignored: list[str] = field(default_factory=list)
    required: list[str] = field(default_factory=list)

    @classmethod
    def new(cls) -> Manifest:
        return cls()

    def dependency_constraints(self) -> dict[ProjectRoot, ProjectProperties]:
        """Constraints with overrides applied on top."""
        merged = dict(self.constraints)
        merged.update(self.overrides)
        return merged

    def add_ignored(self, packages: Iterable[str]) -> None:
        """Append ignored packages, skipping ones already listed."""
        for pkg in packages:
            if pkg not in self.ignored:
                self.ignored.append(pkg)

    def add_required(self, packages: Iterable[str]) -> None:
        for pkg in packages:
            if pkg not in self.required:
                self.required.append(pkg)

    def to_dict(self) -> dict[str, Any]:
        def _props(props: dict[ProjectRoot, ProjectProperties]) -> list[dict[str, str]]:
            rows = []
            for root in sorted(props):
                pp = props[root]
                row = {"name": root}
                if pp.source:
                    row["source"] = pp.source
                if pp.constraint is not None:
                    row["constraint"] = constraint_string(pp.constraint)
                rows.append(row)
            return rows

        return {
            "constraints": _props(self.constraints),
            "overrides": _props(self.overrides),
            "ignored": list(self.ignored),
            "required": list(self.required),
        }


class Solution(Protocol):
    """What the external solver hands back."""

    projects: list[LockedProject]
    input_hash: str


@dataclass
class Lock:
    """Last resolved state: one locked project per root, plus the inputs memo."""

    projects: list[LockedProject] = field(default_factory=list)
    memo: str = ""

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for lp in self.projects:
            if lp.ident.root in seen:
                raise ValidationError(f"lock holds more than one entry for {lp.ident.root}")
            seen.add(lp.ident.root)

    @classmethod
    def from_solution(cls, solution: Solution) -> Lock:
        lock = cls(memo=getattr(solution, "input_hash", "") or "")
        for lp in solution.projects:
            lock.set_project(lp)
        return lock

    def has_project(self, root: str) -> bool:
        return any(lp.ident.root == root for lp in self.projects)

    def project(self, root: str) -> LockedProject | None:
        for lp in self.projects:
            if lp.ident.root == root:
                return lp
        return None

    def set_project(self, lp: LockedProject) -> None:
        """Add *lp*, replacing any existing entry for the same root in place."""
        for i, existing in enumerate(self.projects):
            if existing.ident.root == lp.ident.root:
                self.projects[i] = lp
                return
        self.projects.append(lp)

    def copy(self) -> Lock:
        return Lock(projects=list(self.projects), memo=self.memo)

    def to_dict(self) -> dict[str, Any]:
        return {
            "memo": self.memo,
            "projects": [lp.to_dict() for lp in sorted(self.projects, key=lambda p: p.ident.root)],
        }
