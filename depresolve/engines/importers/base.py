"""Conversion rules shared by every legacy-configuration importer."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from depresolve.core.context import Ctx
from depresolve.core.errors import (
    DeductionError,
    DepResolveError,
    SourceError,
    ValidationError,
    VersionLookupError,
)
from depresolve.core.feedback import DEP_TYPE_IMPORTED, FeedbackEvent
from depresolve.engines.inference.constraints import (
    constraint_from_version,
    lookup_version_for_locked_project,
)
from depresolve.models.constraint import (
    ANY,
    Constraint,
    constraint_matches,
    is_any,
    is_pinned,
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
    unpair,
)
from depresolve.sources.deduce import is_default_source
from depresolve.sources.manager import SourceManager

log = structlog.get_logger("depresolve.importers")


@dataclass
class ImportedPackage:
    """One dependency entry as a foreign tool describes it."""

    name: str
    source: str = ""
    constraint_hint: str = ""
    lock_hint: str = ""


class BaseImporter:
    """Turns :class:`ImportedPackage` entries into a manifest and lock.

    Subclasses parse their tool's files and call :meth:`import_packages`.
    """

    name = ""

    def __init__(self, ctx: Ctx, sm: SourceManager) -> None:
        self.ctx = ctx
        self.sm = sm

    def has_metadata(self, directory: str | Path) -> bool:
        raise NotImplementedError

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        raise NotImplementedError

    # ── Helpers for subclasses ───────────────────────────────────────────

    def invalid(self, what: str) -> ValidationError:
        return ValidationError(f"invalid {self.name} configuration: {what}")

    def warn(self, event: str, **kw) -> None:
        log.warning(event, importer=self.name, **kw)

    # ── Conversion ───────────────────────────────────────────────────────

    def load_packages(self, packages: list[ImportedPackage]) -> list[ImportedPackage]:
        """Consolidate entries under their project root.

        The first entry for a root wins, field by field, so a config file and
        a lock file can each contribute.
        """
        projects: dict[ProjectRoot, ImportedPackage] = {}
        for pkg in packages:
            if not pkg.name:
                raise self.invalid("package name is required")
            try:
                root = self.sm.deduce_project_root(pkg.name)
            except DeductionError as exc:
                self.warn(
                    "importer.skip_project",
                    project=pkg.name,
                    reason=f"Cannot determine the project root for {pkg.name}: {exc}",
                )
                continue

            prj = projects.get(root)
            if prj is None:
                projects[root] = ImportedPackage(
                    name=root,
                    source=pkg.source,
                    constraint_hint=pkg.constraint_hint,
                    lock_hint=pkg.lock_hint,
                )
                continue
            prj.source = prj.source or pkg.source
            prj.constraint_hint = prj.constraint_hint or pkg.constraint_hint
            prj.lock_hint = prj.lock_hint or pkg.lock_hint
        return list(projects.values())

    def import_packages(
        self, packages: list[ImportedPackage], default_constraint_from_lock: bool
    ) -> tuple[Manifest, Lock]:
        manifest = Manifest.new()
        lock = Lock()
        for prj in self.load_packages(packages):
            root = ProjectRoot(prj.name)
            ident = ProjectIdentifier(root, self._usable_source(root, prj.source))

            try:
                constraint: Constraint = self.sm.infer_constraint(prj.constraint_hint, ident)
            except DepResolveError as exc:
                log.debug(
                    "importer.constraint_ignored",
                    importer=self.name,
                    project=root,
                    hint=prj.constraint_hint,
                    error=str(exc),
                )
                constraint = ANY

            version: Version | None = None
            if prj.lock_hint:
                version = self._lock_version(ident, constraint, prj.lock_hint)

                if default_constraint_from_lock and is_any(constraint):
                    props = constraint_from_version(version)
                    if props.constraint is not None:
                        constraint = props.constraint

            if is_pinned(constraint):
                log.debug(
                    "importer.pinned_constraint_ignored",
                    importer=self.name,
                    project=root,
                    constraint=str(constraint),
                )
                constraint = ANY

            if not self._constraint_allows(constraint, version):
                log.debug(
                    "importer.conflicting_constraint_ignored",
                    importer=self.name,
                    project=root,
                    constraint=str(constraint),
                    version=str(version),
                )
                constraint = ANY

            manifest.constraints[root] = ProjectProperties(source=ident.source, constraint=constraint)
            if not is_any(constraint):
                self.ctx.emit_feedback(
                    FeedbackEvent.for_constraint(root, constraint, DEP_TYPE_IMPORTED)
                )

            if version is not None:
                lp = LockedProject(ident, version)
                lock.set_project(lp)
                self.ctx.emit_feedback(FeedbackEvent.for_locked_project(lp, DEP_TYPE_IMPORTED))

        return manifest, lock

    def _usable_source(self, root: ProjectRoot, source: str) -> str:
        if not source:
            return ""
        if is_default_source(root, source):
            return ""
        if "/vendor/" in source:
            self.warn(
                "importer.source_ignored",
                project=root,
                source=source,
                reason="vendored sources aren't supported",
            )
            return ""
        return source

    def _lock_version(
        self, ident: ProjectIdentifier, constraint: Constraint, hint: str
    ) -> Version:
        """A tag hint locks to that tag; anything else is treated as a revision.

        When the project's versions cannot be listed the hint is locked as a
        bare revision.
        """
        try:
            tag = self.find_tag(ident, hint)
        except SourceError as exc:
            self.warn(
                "importer.version_lookup_failed",
                project=ident.root,
                error=f"unable to look up {hint!r}, locking the revision only: {exc}",
            )
            return Revision(hint)
        if tag is not None:
            return tag
        rev = Revision(hint)
        try:
            return lookup_version_for_locked_project(ident, constraint, rev, self.sm)
        except VersionLookupError as exc:
            self.warn("importer.version_lookup_failed", project=ident.root, error=str(exc))
            return exc.fallback or rev

    def find_tag(self, ident: ProjectIdentifier, value: str) -> PairedVersion | None:
        """Return the paired tag named *value*, if the project has one.

        Raises :class:`SourceError` when versions cannot be listed.
        """
        if not value:
            return None
        for v in self.sm.list_versions(ident):
            if isinstance(unpair(v), (PlainVersion, SemverVersion)) and str(v) == value:
                return v if isinstance(v, PairedVersion) else None
        return None

    @staticmethod
    def _constraint_allows(constraint: Constraint, version: Version | None) -> bool:
        # Branch constraints are assumed to hold; nothing to check without a lock.
        if version is None or isinstance(constraint, Branch):
            return True
        return constraint_matches(constraint, version)
