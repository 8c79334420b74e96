"""Data models for the dependency discovery engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from depresolve.models.constraint import constraint_string
from depresolve.models.project import ProjectProperties, ProjectRoot
from depresolve.models.version import Version, version_components


@dataclass
class ProjectData:
    """Working result of one discovery pass.

    Every root listed in ``dependencies`` is either on disk (with the version
    found) or not on disk, never both; constraints exist only for on-disk roots.
    """

    constraints: dict[ProjectRoot, ProjectProperties] = field(default_factory=dict)
    dependencies: dict[ProjectRoot, list[str]] = field(default_factory=dict)
    ondisk: dict[ProjectRoot, Version] = field(default_factory=dict)
    notondisk: set[ProjectRoot] = field(default_factory=set)

    def is_classified(self, root: ProjectRoot) -> bool:
        return root in self.ondisk or root in self.notondisk

    def add_dependency(self, root: ProjectRoot, package: str) -> None:
        pkgs = self.dependencies.setdefault(root, [])
        if package not in pkgs:
            pkgs.append(package)

    def mark_ondisk(self, root: ProjectRoot, version: Version, props: ProjectProperties) -> None:
        self.notondisk.discard(root)
        self.ondisk[root] = version
        if props.constraint is not None:
            self.constraints[root] = props
        self.dependencies.setdefault(root, [])

    def mark_notondisk(self, root: ProjectRoot) -> None:
        self.ondisk.pop(root, None)
        self.constraints.pop(root, None)
        self.notondisk.add(root)
        self.dependencies.setdefault(root, [])

    def check_invariants(self) -> None:
        """Raise AssertionError if the classification maps disagree."""
        overlap = set(self.ondisk) & self.notondisk
        assert not overlap, f"roots both on and not on disk: {sorted(overlap)}"
        classified = set(self.ondisk) | self.notondisk
        assert set(self.dependencies) == classified, "dependencies disagree with classification"
        assert set(self.constraints) <= set(self.ondisk), "constraint for a root not on disk"

    def to_dict(self) -> dict[str, Any]:
        ondisk = {}
        for root in sorted(self.ondisk):
            revision, tag, branch = version_components(self.ondisk[root])
            ondisk[root] = {"revision": revision, "version": tag, "branch": branch}
        return {
            "constraints": {
                root: constraint_string(self.constraints[root].constraint)
                for root in sorted(self.constraints)
            },
            "dependencies": {root: sorted(self.dependencies[root]) for root in sorted(self.dependencies)},
            "ondisk": ondisk,
            "notondisk": sorted(self.notondisk),
        }
