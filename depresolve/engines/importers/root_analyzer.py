"""Project analyzer for the root project: legacy imports plus lock reconciliation."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import structlog

from depresolve.core.context import Ctx
from depresolve.core.feedback import DEP_TYPE_DIRECT, DEP_TYPE_TRANSITIVE, FeedbackEvent
from depresolve.engines.discovery.scanner import prune_unused_constraints
from depresolve.engines.importers.registry import Importer, new_importers
from depresolve.engines.inference.constraints import constraint_from_version
from depresolve.models.project import Lock, Manifest, ProjectRoot
from depresolve.sources.manager import SourceManager

log = structlog.get_logger("depresolve.importers")

ANALYZER_NAME = "dep"
ANALYZER_VERSION = 1


class RootAnalyzer:
    """Derives the root manifest and lock from whichever legacy tool the project uses.

    Only the first importer with metadata is used. With *skip_tools* the
    solver gets no imported configuration for dependencies.
    """

    def __init__(
        self,
        ctx: Ctx,
        sm: SourceManager,
        direct_deps: Iterable[ProjectRoot],
        *,
        skip_tools: bool = False,
        importers: list[Importer] | None = None,
    ) -> None:
        self.ctx = ctx
        self.sm = sm
        self.direct_deps = set(direct_deps)
        self.skip_tools = skip_tools
        self.importers = importers if importers is not None else new_importers(ctx, sm)

    def info(self) -> tuple[str, int]:
        name = ANALYZER_NAME if self.skip_tools else f"{ANALYZER_NAME}+import"
        return name, ANALYZER_VERSION

    def import_manifest_and_lock(
        self, directory: str | Path, root: ProjectRoot
    ) -> tuple[Manifest, Lock | None]:
        """Import the root project's legacy configuration.

        Constraints on projects the root does not import directly are dropped;
        the lock keeps them.
        """
        manifest, lock = self._import(directory, root)
        self.remove_transitive_dependencies(manifest)
        return manifest, lock

    def derive_manifest_and_lock(
        self, directory: str | Path, root: ProjectRoot
    ) -> tuple[Manifest, Lock | None]:
        """Answer the solver for a dependency checked out at *directory*."""
        if self.skip_tools:
            return Manifest.new(), None
        return self._import(directory, root)

    def _import(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock | None]:
        for importer in self.importers:
            if not importer.has_metadata(directory):
                continue
            log.info("root.importing", importer=importer.name, root=root)
            return importer.import_config(directory, root)
        return Manifest.new(), None

    def remove_transitive_dependencies(self, m: Manifest) -> None:
        """Drop constraints for roots the project does not import directly."""
        for root in list(m.constraints):
            if root not in self.direct_deps:
                log.debug("root.constraint_dropped", root=root, reason="not a direct dependency")
                del m.constraints[root]

    def finalize_root_manifest_and_lock(self, m: Manifest, lock: Lock, old_lock: Lock) -> None:
        """Add constraints for unconstrained direct deps and report what was locked."""
        for lp in lock.projects:
            root = lp.ident.root
            if root in self.direct_deps:
                if root in m.constraints:
                    continue
                props = constraint_from_version(lp.version)
                if props.constraint is not None:
                    m.constraints[root] = props
                    self.ctx.emit_feedback(
                        FeedbackEvent.for_constraint(root, props.constraint, DEP_TYPE_DIRECT)
                    )
                self.ctx.emit_feedback(FeedbackEvent.for_locked_project(lp, DEP_TYPE_DIRECT))
            elif not old_lock.has_project(root):
                self.ctx.emit_feedback(FeedbackEvent.for_locked_project(lp, DEP_TYPE_TRANSITIVE))
        prune_unused_constraints(m, lock)
