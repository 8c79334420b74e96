"""Project-root deduction from import paths, using well-known hosting rules."""

from __future__ import annotations

import re

from depresolve.core.errors import DeductionError, ValidationError
from depresolve.models.project import ProjectRoot

# host -> number of path elements forming the project root
_HOST_DEPTH = {
    "github.com": 3,
    "gitlab.com": 3,
    "bitbucket.org": 3,
    "golang.org": 3,  # golang.org/x/<repo>
    "git.apache.org": 2,
}

# gopkg.in/pkg.v3 or gopkg.in/user/pkg.v3
_GOPKGIN_SHORT_RE = re.compile(r"^gopkg\.in/([A-Za-z0-9][-A-Za-z0-9_]*)\.v\d+")
_GOPKGIN_LONG_RE = re.compile(r"^gopkg\.in/[A-Za-z0-9][-A-Za-z0-9_]*/[A-Za-z0-9][-.A-Za-z0-9_]*\.v\d+")

# example.com/some/repo.git/subpkg
_VCS_SUFFIX_RE = re.compile(r"^(.+?\.(git|hg|bzr|svn))(/|$)")


def is_standard_import_path(path: str) -> bool:
    """Standard-library imports have no dot in their first path element."""
    first = path.split("/", 1)[0]
    return "." not in first


def deduce_root(import_path: str) -> ProjectRoot:
    """Return the project root owning *import_path*.

    Raises :class:`DeductionError` when no rule applies.
    """
    if not import_path:
        raise ValidationError("import path must not be empty")
    path = import_path.strip("/")
    if is_standard_import_path(path):
        raise DeductionError(import_path, "standard library import")

    if path.startswith("gopkg.in/"):
        m = _GOPKGIN_SHORT_RE.match(path) or _GOPKGIN_LONG_RE.match(path)
        if not m:
            raise DeductionError(import_path, "invalid gopkg.in path")
        return ProjectRoot(m.group(0))

    host = path.split("/", 1)[0]
    depth = _HOST_DEPTH.get(host)
    if depth is not None:
        parts = path.split("/")
        if len(parts) < depth:
            raise DeductionError(import_path, f"{host} paths need {depth} elements")
        if host == "golang.org" and parts[1] != "x":
            raise DeductionError(import_path, "only golang.org/x/ is supported")
        return ProjectRoot("/".join(parts[:depth]))

    m = _VCS_SUFFIX_RE.match(path)
    if m:
        return ProjectRoot(m.group(1))

    raise DeductionError(import_path, "unknown hosting rule")


def default_source_url(root: str) -> str:
    """The URL a project is fetched from when no alternate source is given."""
    if root.startswith("golang.org/x/"):
        return "https://go.googlesource.com/" + root[len("golang.org/x/"):]
    return "https://" + root


def is_default_source(root: str, source: str) -> bool:
    # gopkg.in redirects to github, so any gopkg.in URL counts as default
    if source.startswith("https://gopkg.in/"):
        return True
    return source == default_source_url(root)
