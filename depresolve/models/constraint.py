"""Constraints: acceptable-version expressions declared in a manifest.

A constraint is one of:

* :class:`AnyConstraint` (``*``), matching everything;
* a concrete version (branch, plain tag, revision, exact semver) used as an
  exact constraint;
* a :class:`SemverConstraint` range such as ``^1.2.0`` or ``>=1.0, <2``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from packaging.specifiers import InvalidSpecifier, SpecifierSet

from depresolve.core.errors import ValidationError
from depresolve.models.version import (
    Branch,
    PairedVersion,
    PlainVersion,
    Revision,
    SemverVersion,
    Version,
    new_version,
    parse_semver,
    underlying_revision,
    unpair,
)

# One comparison term: optional operator followed by a version (or wildcard).
_TERM_RE = re.compile(r"^(\^|~>|~|>=|<=|!=|==|=|>|<)?\s*v?([0-9][0-9A-Za-z.+*-]*)$")
_WILDCARD_RE = re.compile(r"^\d+(\.\d+)?(\.[xX*])+$")
_LEADING_V_RE = re.compile(r"(^|[\s,^~<>=!])v(?=\d)")


@dataclass(frozen=True)
class AnyConstraint:
    def __str__(self) -> str:
        return "*"


ANY = AnyConstraint()


@dataclass(frozen=True)
class SemverConstraint:
    """A semver range, evaluated through a PEP 440 specifier set."""

    expr: str
    specifier: SpecifierSet = field(compare=False)

    def __str__(self) -> str:
        return self.expr

    def matches(self, version: SemverVersion) -> bool:
        # Prereleases only match when one of the bounds is itself a prerelease.
        return self.specifier.contains(version.parsed)


Constraint = Union[AnyConstraint, SemverConstraint, Version]


def _release(version_str: str) -> tuple[int, int, int]:
    parsed = parse_semver(version_str)
    if parsed is None:
        raise ValidationError(f"invalid semver version {version_str!r}")
    parts = list(parsed.release) + [0, 0]
    return parts[0], parts[1], parts[2]


def _caret_bounds(version_str: str) -> list[str]:
    major, minor, patch = _release(version_str)
    base = str(parse_semver(version_str))
    if major > 0:
        upper = f"{major + 1}.0.0"
    elif minor > 0:
        upper = f"0.{minor + 1}.0"
    else:
        upper = f"0.0.{patch + 1}"
    return [f">={base}", f"<{upper}"]


def _tilde_bounds(version_str: str) -> list[str]:
    major, minor, _ = _release(version_str)
    base = str(parse_semver(version_str))
    return [f">={base}", f"<{major}.{minor + 1}.0"]


def _wildcard_bounds(version_str: str) -> list[str]:
    parts = [p for p in version_str.split(".") if p not in ("x", "X", "*")]
    if not parts or not all(p.isdigit() for p in parts):
        raise ValidationError(f"invalid wildcard version {version_str!r}")
    if len(parts) == 1:
        return [f">={parts[0]}.0.0", f"<{int(parts[0]) + 1}.0.0"]
    return [f">={parts[0]}.{parts[1]}.0", f"<{parts[0]}.{int(parts[1]) + 1}.0"]


def _term_specifiers(term: str) -> tuple[list[str], bool]:
    """Translate one term to PEP 440 specifiers; the flag marks an exact version."""
    m = _TERM_RE.match(term.strip())
    if not m:
        raise ValidationError(f"invalid semver constraint term {term!r}")
    op, ver = m.group(1) or "", m.group(2)

    if _WILDCARD_RE.match(ver):
        return _wildcard_bounds(ver), False
    if parse_semver(ver) is None:
        raise ValidationError(f"invalid semver version {ver!r}")

    if op == "^":
        return _caret_bounds(ver), False
    if op in ("~", "~>"):
        return _tilde_bounds(ver), False
    normalized = str(parse_semver(ver))
    if op in ("", "=", "=="):
        return [f"=={normalized}"], True
    return [f"{op}{normalized}"], False


def _display(expr: str) -> str:
    # ^v1.0.0 displays as ^1.0.0
    return _LEADING_V_RE.sub(r"\1", expr)


def new_semver_constraint(expr: str) -> Constraint:
    """Parse a semver constraint expression.

    Terms may be separated by commas or whitespace. A single exact version
    yields the :class:`SemverVersion` itself.
    """
    expr = expr.strip()
    if expr in ("", "*"):
        return ANY
    terms = [t for t in re.split(r"[,\s]+", _join_operators(expr)) if t]
    specifiers: list[str] = []
    exact = len(terms) == 1
    for term in terms:
        specs, is_exact = _term_specifiers(term)
        exact = exact and is_exact
        specifiers.extend(specs)

    if exact:
        return new_version(terms[0].lstrip("="))
    try:
        spec = SpecifierSet(",".join(specifiers))
    except InvalidSpecifier as exc:
        raise ValidationError(f"invalid semver constraint {expr!r}: {exc}") from exc
    return SemverConstraint(_display(", ".join(terms)), spec)


def new_semver_constraint_ic(expr: str) -> Constraint:
    """Like :func:`new_semver_constraint`, but a bare version implies a caret."""
    expr = expr.strip()
    if parse_semver(expr) is not None:
        expr = f"^{expr}"
    return new_semver_constraint(expr)


def _join_operators(expr: str) -> str:
    # ">= 1.2" -> ">=1.2" so whitespace splitting keeps terms intact
    return re.sub(r"(\^|~>|~|>=|<=|!=|==|=|>|<)\s+", r"\1", expr)


def is_any(constraint: Constraint | None) -> bool:
    return constraint is None or isinstance(constraint, AnyConstraint)


def is_version_constraint(constraint: Constraint | None) -> bool:
    return isinstance(
        constraint, (Revision, Branch, PlainVersion, SemverVersion, PairedVersion)
    )


def is_pinned(constraint: Constraint | None) -> bool:
    """True for constraints naming exactly one version: revisions, tags, exact semver."""
    if not is_version_constraint(constraint):
        return False
    return not isinstance(unpair(constraint), Branch)


def constraint_string(constraint: Constraint | None) -> str:
    if constraint is None:
        return ""
    return str(unpair(constraint)) if isinstance(constraint, PairedVersion) else str(constraint)


def constraint_matches(constraint: Constraint | None, version: Version | None) -> bool:
    """Report whether *version* satisfies *constraint*."""
    if is_any(constraint):
        return True
    if version is None:
        return False
    if isinstance(constraint, SemverConstraint):
        base = unpair(version)
        return isinstance(base, SemverVersion) and constraint.matches(base)

    if isinstance(constraint, PairedVersion):
        rev = underlying_revision(version)
        if rev is not None and rev == constraint.revision:
            return True
        return constraint_matches(constraint.unpaired, version)
    if isinstance(constraint, Revision):
        return underlying_revision(version) == constraint

    base = unpair(version)
    if isinstance(constraint, Branch):
        return isinstance(base, Branch) and base.name == constraint.name
    if isinstance(constraint, SemverVersion):
        return isinstance(base, SemverVersion) and base.parsed == constraint.parsed
    if isinstance(constraint, PlainVersion):
        return isinstance(base, PlainVersion) and base.name == constraint.name
    return False
