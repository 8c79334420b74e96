"""Ctx: explicit run context handed to every depresolve component."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import structlog

from depresolve.core.errors import ValidationError
from depresolve.core.feedback import FeedbackEvent
from depresolve.models.version import (
    Branch,
    PairedVersion,
    Revision,
    Version,
    new_version,
    sort_for_upgrade,
)
from depresolve.sources.git import GitCommandError, git

log = structlog.get_logger("depresolve.context")


@dataclass(frozen=True)
class WorkspaceVersion:
    """Outcome of inspecting a checkout: a version, or no version and why."""

    version: Version | None
    reason: str = ""

    @property
    def ondisk(self) -> bool:
        return self.version is not None


class Ctx:
    """Workspace location, verbosity and output sinks for one command run.

    Sources live under ``<gopath>/src/<import path>``.
    """

    def __init__(
        self,
        *,
        gopath: str | Path,
        working_dir: str | Path | None = None,
        verbose: bool = False,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self.gopath = Path(gopath)
        self.working_dir = Path(working_dir) if working_dir is not None else Path.cwd()
        self.verbose = verbose
        self.log = logger or log
        self.feedback_callbacks: list[Callable[[FeedbackEvent], None]] = []
        self.feedback: list[FeedbackEvent] = []

    @classmethod
    def from_env(cls, *, verbose: bool = False) -> Ctx:
        gopath = os.environ.get("GOPATH") or str(Path.home() / "go")
        # Only the first GOPATH entry is used as the workspace.
        gopath = gopath.split(os.pathsep)[0]
        return cls(gopath=gopath, working_dir=Path.cwd(), verbose=verbose)

    # ── Paths ────────────────────────────────────────────────────────────

    @property
    def src_dir(self) -> Path:
        return self.gopath / "src"

    def abs_for_import(self, import_path: str) -> Path:
        if not import_path:
            raise ValidationError("import path must not be empty")
        return self.src_dir / import_path

    def import_for_abs(self, path: str | Path) -> str:
        """Map a directory inside the workspace back to its import path."""
        try:
            rel = Path(path).resolve().relative_to(self.src_dir.resolve())
        except ValueError:
            raise ValidationError(f"{path} is not within {self.src_dir}") from None
        if str(rel) == ".":
            raise ValidationError(f"{path} is the workspace source root, not a project")
        return rel.as_posix()

    # ── Feedback ─────────────────────────────────────────────────────────

    def emit_feedback(self, event: FeedbackEvent) -> None:
        self.feedback.append(event)
        for message in event.messages():
            if self.verbose:
                self.log.info("feedback", message=message)
            else:
                self.log.debug("feedback", message=message)
        for cb in self.feedback_callbacks:
            try:
                cb(event)
            except Exception:
                self.log.debug(
                    "feedback.callback_error", project=event.project_root, exc_info=True
                )

    # ── Workspace inspection ─────────────────────────────────────────────

    async def version_in_workspace(self, root: str) -> WorkspaceVersion:
        """Work out which version of *root* is checked out in the workspace.

        Current branch wins, then an exact ``v``-prefixed tag on HEAD, then
        the bare HEAD revision.
        """
        directory = self.abs_for_import(root)
        if not directory.is_dir():
            return WorkspaceVersion(None, f"{directory} does not exist")

        try:
            head = (await git("rev-parse", "HEAD", cwd=directory)).strip()
        except GitCommandError as exc:
            return WorkspaceVersion(None, f"not a usable git checkout: {exc}")
        rev = Revision(head)

        try:
            branch = (await git("symbolic-ref", "--short", "HEAD", cwd=directory)).strip()
        except GitCommandError:
            branch = ""
        if branch:
            return WorkspaceVersion(PairedVersion(Branch(branch), rev))

        tag = await self._tag_for_revision(directory, head)
        if tag:
            return WorkspaceVersion(PairedVersion(new_version(tag), rev))
        return WorkspaceVersion(rev)

    @staticmethod
    async def _tag_for_revision(directory: Path, rev: str) -> str:
        try:
            out = await git("show-ref", "--tags", "-d", cwd=directory)
        except GitCommandError:
            # show-ref exits non-zero when the repo has no tags
            return ""
        tags: list[str] = []
        for line in out.splitlines():
            sha, _, ref = line.partition(" ")
            if sha != rev or not ref.startswith("refs/tags/"):
                continue
            name = ref[len("refs/tags/"):]
            if name.endswith("^{}"):
                name = name[:-3]
            if name.startswith("v") and name not in tags:
                tags.append(name)
        if not tags:
            return ""
        return str(sort_for_upgrade([new_version(t) for t in tags])[0])
