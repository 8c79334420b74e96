"""Source manager interface and a git-backed implementation."""

from __future__ import annotations

import os
import re
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from depresolve.core.errors import SourceError
from depresolve.engines.inference.constraints import infer_constraint
from depresolve.models.constraint import Constraint
from depresolve.models.project import ProjectIdentifier, ProjectRoot
from depresolve.models.version import Branch, PairedVersion, Revision, Version, new_version
from depresolve.sources.deduce import deduce_root, default_source_url
from depresolve.sources.git import GitCommandError, git_sync

log = structlog.get_logger("depresolve.sources")

_UNSAFE_PATH_RE = re.compile(r"[^A-Za-z0-9._-]+")


@runtime_checkable
class SourceManager(Protocol):
    """Everything discovery and import need to know about upstream sources."""

    def deduce_project_root(self, import_path: str) -> ProjectRoot: ...

    def list_versions(self, ident: ProjectIdentifier) -> list[Version]: ...

    def sync_source_for(self, ident: ProjectIdentifier) -> None: ...

    def infer_constraint(self, hint: str, ident: ProjectIdentifier) -> Constraint: ...


def default_cache_dir() -> Path:
    return Path(os.environ.get("DEPRESOLVE_CACHE_DIR") or Path.home() / ".cache" / "depresolve")


def parse_ls_remote(output: str) -> list[Version]:
    """Turn ``git ls-remote --symref`` output into paired branch and tag versions."""
    default_branch = ""
    branches: dict[str, str] = {}
    tags: dict[str, str] = {}
    for line in output.splitlines():
        if line.startswith("ref: "):
            target, _, name = line[len("ref: "):].partition("\t")
            if name == "HEAD" and target.startswith("refs/heads/"):
                default_branch = target[len("refs/heads/"):]
            continue
        sha, _, ref = line.partition("\t")
        if ref.startswith("refs/heads/"):
            branches[ref[len("refs/heads/"):]] = sha
        elif ref.startswith("refs/tags/"):
            name = ref[len("refs/tags/"):]
            if name.endswith("^{}"):
                # peeled annotated tag; the commit it points to wins
                tags[name[:-3]] = sha
            else:
                tags.setdefault(name, sha)

    versions: list[Version] = []
    for name, sha in branches.items():
        versions.append(PairedVersion(Branch(name, is_default=name == default_branch), Revision(sha)))
    for name, sha in tags.items():
        versions.append(PairedVersion(new_version(name), Revision(sha)))
    return versions


class GitSourceManager:
    """Source manager backed by ``git`` and a local mirror cache."""

    def __init__(self, cache_dir: str | Path | None = None) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else default_cache_dir()
        self._versions: dict[ProjectIdentifier, list[Version]] = {}
        self._lock = threading.Lock()

    def deduce_project_root(self, import_path: str) -> ProjectRoot:
        return deduce_root(import_path)

    def source_url(self, ident: ProjectIdentifier) -> str:
        return ident.source or default_source_url(ident.root)

    def mirror_dir(self, ident: ProjectIdentifier) -> Path:
        return self.cache_dir / "sources" / _UNSAFE_PATH_RE.sub("-", self.source_url(ident))

    def list_versions(self, ident: ProjectIdentifier) -> list[Version]:
        with self._lock:
            cached = self._versions.get(ident)
        if cached is not None:
            return list(cached)

        url = self.source_url(ident)
        log.debug("sources.list_versions", project=str(ident), url=url)
        try:
            out = git_sync("ls-remote", "--symref", url)
        except GitCommandError as exc:
            raise SourceError(f"unable to list versions for {ident}: {exc}") from exc

        versions = parse_ls_remote(out)
        with self._lock:
            self._versions[ident] = versions
        return list(versions)

    def sync_source_for(self, ident: ProjectIdentifier) -> None:
        """Create or refresh the local mirror for *ident*."""
        target = self.mirror_dir(ident)
        url = self.source_url(ident)
        try:
            if (target / "HEAD").exists():
                git_sync("remote", "update", "--prune", cwd=target)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                git_sync("clone", "--mirror", "--", url, str(target))
        except GitCommandError as exc:
            raise SourceError(f"unable to sync {ident}: {exc}") from exc
        log.debug("sources.synced", project=str(ident), path=str(target))

    def infer_constraint(self, hint: str, ident: ProjectIdentifier) -> Constraint:
        if not hint:
            return infer_constraint(hint, ident, [])
        return infer_constraint(hint, ident, self.list_versions(ident))
