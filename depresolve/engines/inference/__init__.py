"""Version/constraint inference: hints in, typed constraints and versions out."""

from depresolve.engines.inference.constraints import (
    constraint_from_version,
    deduce_constraint,
    infer_constraint,
    lookup_version_for_locked_project,
    lookup_version_for_revision,
)

__all__ = [
    "constraint_from_version",
    "deduce_constraint",
    "infer_constraint",
    "lookup_version_for_locked_project",
    "lookup_version_for_revision",
]
