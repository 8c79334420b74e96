"""Canonical dependency model: versions, constraints, manifests and locks."""

from depresolve.models.constraint import (
    ANY,
    AnyConstraint,
    Constraint,
    SemverConstraint,
    constraint_matches,
    is_any,
    is_pinned,
    new_semver_constraint,
    new_semver_constraint_ic,
)
from depresolve.models.project import (
    Lock,
    LockedProject,
    Manifest,
    ProjectIdentifier,
    ProjectProperties,
    ProjectRoot,
)
from depresolve.models.version import (
    Branch,
    PairedVersion,
    PlainVersion,
    Revision,
    SemverVersion,
    Version,
    VersionType,
    new_version,
    sort_for_upgrade,
)

__all__ = [
    "ANY",
    "AnyConstraint",
    "Branch",
    "Constraint",
    "Lock",
    "LockedProject",
    "Manifest",
    "PairedVersion",
    "PlainVersion",
    "ProjectIdentifier",
    "ProjectProperties",
    "ProjectRoot",
    "Revision",
    "SemverConstraint",
    "SemverVersion",
    "Version",
    "VersionType",
    "constraint_matches",
    "is_any",
    "is_pinned",
    "new_semver_constraint",
    "new_semver_constraint_ic",
    "new_version",
    "sort_for_upgrade",
]
