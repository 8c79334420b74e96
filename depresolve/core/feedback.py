"""User-facing feedback about how each dependency was classified and locked."""

from __future__ import annotations

import re
from dataclasses import dataclass

from depresolve.models.constraint import Constraint, constraint_string, is_version_constraint
from depresolve.models.project import LockedProject
from depresolve.models.version import PairedVersion, Revision, unpair

DEP_TYPE_DIRECT = "direct dep"
DEP_TYPE_TRANSITIVE = "transitive dep"
DEP_TYPE_IMPORTED = "imported dep"

CONS_TYPE_CONSTRAINT = "constraint"
CONS_TYPE_HINT = "hint"

_FULL_HASH_RE = re.compile(r"^[0-9a-f]{40}$")


def short_revision(rev: str) -> str:
    """Shorten a full 40-hex commit hash to 7 characters."""
    if _FULL_HASH_RE.match(rev):
        return rev[:7]
    return rev


@dataclass
class FeedbackEvent:
    """One classification event for a single project root."""

    project_root: str
    dependency_type: str
    locked_version: str = ""
    revision: str = ""
    constraint: str = ""
    constraint_type: str = ""

    @classmethod
    def for_constraint(
        cls, project_root: str, constraint: Constraint, dependency_type: str
    ) -> FeedbackEvent:
        # A concrete version used as a constraint is only a hint to the solver.
        cons_type = CONS_TYPE_HINT if is_version_constraint(constraint) else CONS_TYPE_CONSTRAINT
        return cls(
            project_root=project_root,
            dependency_type=dependency_type,
            constraint=constraint_string(constraint),
            constraint_type=cons_type,
        )

    @classmethod
    def for_locked_project(cls, lp: LockedProject, dependency_type: str) -> FeedbackEvent:
        event = cls(project_root=lp.ident.root, dependency_type=dependency_type)
        version = lp.version
        if isinstance(version, PairedVersion):
            event.locked_version = str(unpair(version))
            event.revision = str(version.revision)
        elif isinstance(version, Revision):
            event.revision = str(version)
        else:
            event.locked_version = str(version)
        return event

    def messages(self) -> list[str]:
        out: list[str] = []
        if self.constraint:
            out.append(self.using_message())
        if self.revision:
            out.append(self.locking_message())
        return out

    def using_message(self) -> str:
        if self.dependency_type == DEP_TYPE_IMPORTED:
            return (
                f"Using {self.constraint} as initial {self.constraint_type} "
                f"for {self.dependency_type} {self.project_root}"
            )
        return (
            f"Using {self.constraint} as {self.constraint_type} "
            f"for {self.dependency_type} {self.project_root}"
        )

    def locking_message(self) -> str:
        rev = short_revision(self.revision)
        if self.dependency_type == DEP_TYPE_IMPORTED:
            version = self.locked_version or "*"
            return (
                f"Trying {version} ({rev}) as initial lock "
                f"for {self.dependency_type} {self.project_root}"
            )
        return (
            f"Locking in {self.locked_version} ({rev}) "
            f"for {self.dependency_type} {self.project_root}"
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "project_root": self.project_root,
            "dependency_type": self.dependency_type,
            "locked_version": self.locked_version,
            "revision": self.revision,
            "constraint": self.constraint,
            "constraint_type": self.constraint_type,
        }
