"""Concrete versions: revisions, branches, tags and their paired forms."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Union

from packaging.version import InvalidVersion
from packaging.version import Version as _PEP440Version

# Loose semver shape: optional "v", 1-3 numeric parts, optional pre/build suffix.
_SEMVER_SHAPE_RE = re.compile(r"^v?\d+(\.\d+){0,2}(-[0-9A-Za-z.-]+)?(\+[0-9A-Za-z.-]+)?$")


class VersionType(Enum):
    """Kinds of version a project can be resolved to."""

    REVISION = "rev"
    BRANCH = "branch"
    VERSION = "version"  # non-semver tag
    SEMVER = "semver"


def parse_semver(value: str) -> _PEP440Version | None:
    """Parse a semver-looking tag, returning None when it is not one."""
    if not _SEMVER_SHAPE_RE.match(value):
        return None
    try:
        return _PEP440Version(value)
    except InvalidVersion:
        return None


@dataclass(frozen=True)
class Revision:
    """An immutable source-control revision (commit hash, bzr revid...)."""

    value: str

    @property
    def type(self) -> VersionType:
        return VersionType.REVISION

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Branch:
    name: str
    is_default: bool = False

    @property
    def type(self) -> VersionType:
        return VersionType.BRANCH

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PlainVersion:
    """A tag that does not parse as semver."""

    name: str

    @property
    def type(self) -> VersionType:
        return VersionType.VERSION

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class SemverVersion:
    name: str
    parsed: _PEP440Version

    @property
    def type(self) -> VersionType:
        return VersionType.SEMVER

    @property
    def is_prerelease(self) -> bool:
        return self.parsed.is_prerelease

    def __str__(self) -> str:
        return self.name


UnpairedVersion = Union[Branch, PlainVersion, SemverVersion]


@dataclass(frozen=True)
class PairedVersion:
    """A branch or tag together with the revision it currently points at."""

    unpaired: UnpairedVersion
    revision: Revision

    @property
    def type(self) -> VersionType:
        return self.unpaired.type

    def __str__(self) -> str:
        return str(self.unpaired)


Version = Union[Revision, Branch, PlainVersion, SemverVersion, PairedVersion]


def new_version(name: str) -> PlainVersion | SemverVersion:
    """Build a tag version, semver when *name* parses as one."""
    parsed = parse_semver(name)
    if parsed is not None:
        return SemverVersion(name, parsed)
    return PlainVersion(name)


def pair(version: UnpairedVersion, revision: Revision | str) -> PairedVersion:
    if isinstance(revision, str):
        revision = Revision(revision)
    return PairedVersion(version, revision)


def unpair(version: Version) -> Version:
    """Strip the revision from a paired version; other versions pass through."""
    if isinstance(version, PairedVersion):
        return version.unpaired
    return version


def underlying_revision(version: Version) -> Revision | None:
    if isinstance(version, PairedVersion):
        return version.revision
    if isinstance(version, Revision):
        return version
    return None


def version_components(version: Version) -> tuple[str, str, str]:
    """Split *version* into (revision, tag, branch) strings; missing parts are empty."""
    rev = underlying_revision(version)
    base = unpair(version)
    tag = branch = ""
    if isinstance(base, Branch):
        branch = base.name
    elif isinstance(base, (PlainVersion, SemverVersion)):
        tag = base.name
    return (str(rev) if rev is not None else "", tag, branch)


def _upgrade_key(version: Version) -> tuple:
    base = unpair(version)
    if isinstance(base, SemverVersion):
        # Negated ordering is not available on Version objects, so rank the
        # release bucket first and sort descending within it in sort_for_upgrade.
        return (0 if not base.is_prerelease else 1,)
    if isinstance(base, Branch):
        return (2 if base.is_default else 3, base.name)
    if isinstance(base, PlainVersion):
        return (4, base.name)
    return (5, str(base))


def sort_for_upgrade(versions: list[Version]) -> list[Version]:
    """Order versions newest-first, the way the solver prefers them.

    Semver releases (highest first), then semver prereleases, then default
    branches, other branches and plain tags (each lexicographic), then bare
    revisions.
    """
    semver = [v for v in versions if isinstance(unpair(v), SemverVersion)]
    rest = [v for v in versions if not isinstance(unpair(v), SemverVersion)]

    releases = sorted(
        (v for v in semver if not unpair(v).is_prerelease),
        key=lambda v: unpair(v).parsed,
        reverse=True,
    )
    prereleases = sorted(
        (v for v in semver if unpair(v).is_prerelease),
        key=lambda v: unpair(v).parsed,
        reverse=True,
    )
    return releases + prereleases + sorted(rest, key=_upgrade_key)
