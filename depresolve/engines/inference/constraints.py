"""Translate between loose version hints and typed constraints/versions."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from depresolve.core.errors import SourceError, ValidationError, VersionLookupError
from depresolve.models.constraint import (
    ANY,
    Constraint,
    constraint_matches,
    new_semver_constraint,
    new_semver_constraint_ic,
)
from depresolve.models.project import ProjectIdentifier, ProjectProperties
from depresolve.models.version import (
    Branch,
    PairedVersion,
    PlainVersion,
    Revision,
    SemverVersion,
    Version,
    sort_for_upgrade,
    underlying_revision,
    unpair,
)

if TYPE_CHECKING:
    from depresolve.sources.manager import SourceManager

log = structlog.get_logger("depresolve.inference")

_FULL_HASH_RE = re.compile(r"^[0-9a-fA-F]{40}$")
_MIN_ABBREV = 4


def constraint_from_version(version: Version) -> ProjectProperties:
    """Derive the manifest properties a resolved version implies.

    A bare revision implies nothing. Branches and plain tags constrain to
    themselves; a semver tag becomes a caret range, never an exact pin.
    """
    base = unpair(version)
    if isinstance(base, Revision):
        return ProjectProperties()
    if isinstance(base, SemverVersion):
        return ProjectProperties(constraint=new_semver_constraint_ic(base.name))
    return ProjectProperties(constraint=base)


def lookup_version_for_revision(
    rev: Revision, ident: ProjectIdentifier, sm: SourceManager
) -> Version:
    """Return the newest known version whose revision is *rev*, else *rev* itself."""
    try:
        versions = sm.list_versions(ident)
    except SourceError as exc:
        raise VersionLookupError(
            f"unable to list versions for {ident}: {exc}", fallback=rev
        ) from exc

    for v in sort_for_upgrade(list(versions)):
        if isinstance(v, PairedVersion) and v.revision == rev:
            return v
    return rev


def lookup_version_for_locked_project(
    ident: ProjectIdentifier,
    constraint: Constraint | None,
    rev: Revision,
    sm: SourceManager,
) -> Version:
    """Resolve the version a locked revision should be recorded as.

    Candidates are the versions pointing at *rev*, newest first; the first one
    satisfying *constraint* wins, otherwise the first candidate. With no
    candidate a branch constraint is paired with the revision. Failing all
    that, the bare revision is returned.
    """
    try:
        versions = sm.list_versions(ident)
    except SourceError as exc:
        raise VersionLookupError(
            f"unable to look up the version represented by {rev} in {ident}: {exc}; "
            "falling back to locking the revision only",
            fallback=rev,
        ) from exc

    matches: list[Version] = []
    branch_match: Branch | None = None
    for v in sort_for_upgrade(list(versions)):
        if underlying_revision(v) == rev:
            matches.append(v)
        if (
            constraint is not None
            and isinstance(unpair(v), Branch)
            and str(v) == str(constraint)
        ):
            branch_match = unpair(v)

    if matches:
        if constraint is not None:
            for v in matches:
                if constraint_matches(constraint, v):
                    return v
        return matches[0]

    if branch_match is not None:
        return PairedVersion(branch_match, rev)
    return rev


def infer_constraint(hint: str, ident: ProjectIdentifier, versions: list[Version]) -> Constraint:
    """Turn a free-form version hint into a constraint for *ident*.

    Branch names win over semver ranges so a branch called ``v2`` stays a
    branch. Raises :class:`ValidationError` when the hint names nothing known.
    """
    if not hint:
        return ANY

    found: Version | None = None
    for v in sort_for_upgrade(list(versions)):
        if str(v) == hint:
            found = v
            break

    if found is not None and isinstance(unpair(found), Branch):
        return unpair(found)

    try:
        return new_semver_constraint_ic(hint)
    except ValidationError:
        pass

    if found is not None:
        return unpair(found)

    rev = _disambiguate_revision(hint, versions)
    if rev is not None:
        return rev
    raise ValidationError(f"{hint} is not a valid version for the package {ident}")


def _disambiguate_revision(hint: str, versions: list[Version]) -> Revision | None:
    if _FULL_HASH_RE.match(hint):
        return Revision(hint.lower())
    if len(hint) < _MIN_ABBREV:
        return None
    candidates = {
        str(underlying_revision(v))
        for v in versions
        if underlying_revision(v) is not None and str(underlying_revision(v)).startswith(hint)
    }
    if len(candidates) == 1:
        return Revision(candidates.pop())
    return None


def deduce_constraint(value: str) -> Constraint:
    """Guess a constraint from a string without consulting any source.

    Tries a semver constraint, then a git hash, then a bzr revision id, and
    falls back to a plain tag.
    """
    if not value:
        return ANY
    try:
        return new_semver_constraint(value)
    except ValidationError:
        pass

    if _FULL_HASH_RE.match(value):
        return Revision(value)

    # bzr revision ids look like <email>-<YYYYMMDDHHMMSS>-<random>
    if len(value) > 44 and "@" in value:
        tail = value.rsplit("-", 2)
        if len(tail) == 3 and len(tail[1]) == 14 and tail[1].isdigit():
            return Revision(value)

    log.debug("inference.plain_version", value=value)
    return PlainVersion(value)
