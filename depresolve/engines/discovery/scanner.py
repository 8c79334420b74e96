"""GopathScanner: discover transitive dependencies from the workspace on disk."""

from __future__ import annotations

import asyncio
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable

import structlog

from depresolve.core.context import Ctx
from depresolve.core.errors import CycleError, DepResolveError, SourceError
from depresolve.core.feedback import DEP_TYPE_DIRECT, DEP_TYPE_TRANSITIVE, FeedbackEvent
from depresolve.engines.discovery.models import ProjectData
from depresolve.engines.inference.constraints import constraint_from_version
from depresolve.models.project import (
    Lock,
    LockedProject,
    Manifest,
    ProjectIdentifier,
    ProjectProperties,
    ProjectRoot,
)
from depresolve.pkgtree import PackageLister, PackageTree, ReachMap
from depresolve.sources.deduce import is_standard_import_path
from depresolve.sources.manager import SourceManager

log = structlog.get_logger("depresolve.discovery")

_WHITE, _GREY, _BLACK = 0, 1, 2

_DEFAULT_SYNC_WORKERS = 8


def sync_workers() -> int:
    """Number of concurrent source syncs, from ``DEPRESOLVE_SYNC_WORKERS``."""
    raw = os.environ.get("DEPRESOLVE_SYNC_WORKERS", "")
    try:
        n = int(raw)
    except ValueError:
        return _DEFAULT_SYNC_WORKERS
    return n if n > 0 else _DEFAULT_SYNC_WORKERS


def get_direct_dependencies(
    sm: SourceManager, tree: PackageTree
) -> tuple[list[str], set[ProjectRoot]]:
    """Return the root tree's external imports and the project roots owning them.

    Main packages and tests are included; standard-library imports are not.
    A root that cannot be deduced aborts with :class:`DeductionError`.
    """
    rm, _ = tree.to_reach_map(True, True, False, None)
    packages = rm.flatten(is_standard_import_path)
    roots = {sm.deduce_project_root(ip) for ip in packages}
    return packages, roots


def _relative_packages(root: str, packages: Iterable[str]) -> tuple[str, ...]:
    out = []
    prefix = root + "/"
    for pkg in sorted(packages):
        if pkg == root:
            out.append(".")
        elif pkg.startswith(prefix):
            out.append(pkg[len(prefix):])
        else:
            out.append(pkg)
    return tuple(out)


class GopathScanner:
    """Walks the import graph of the root project through the workspace.

    Every project root met is classified as on disk (its checked-out version
    is known) or not on disk (the solver must pick a version). A source sync
    is started in the background for each new root; all syncs are joined
    before :meth:`scan` returns, whether or not the scan succeeded.
    """

    def __init__(
        self,
        ctx: Ctx,
        sm: SourceManager,
        lister: PackageLister,
        *,
        max_workers: int | None = None,
    ) -> None:
        self.ctx = ctx
        self.sm = sm
        self.lister = lister
        self.max_workers = max_workers or sync_workers()

        self.project_data: ProjectData | None = None
        self.direct_roots: set[ProjectRoot] = set()
        self.orig_lock: Lock | None = None

        # per-run state
        self._trees: dict[ProjectRoot, tuple[ReachMap, dict[str, Exception]]] = {}
        self._syncs: list[asyncio.Future] = []
        self._executor: ThreadPoolExecutor | None = None

    # ── Discovery ────────────────────────────────────────────────────────

    async def scan(self, direct_imports: Iterable[str]) -> ProjectData:
        """Classify every project reachable from *direct_imports*.

        Raises :class:`CycleError` on an import cycle and
        :class:`DeductionError` when a package's root cannot be deduced.
        """
        pd = ProjectData()
        self.project_data = pd
        self.direct_roots = set()
        self._trees = {}
        self._syncs = []
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="depresolve-sync"
        )
        imports = sorted(set(direct_imports))
        log.debug("discovery.start", direct_imports=len(imports))
        try:
            await self._scan_direct(pd, imports)
            colors: dict[str, int] = {}
            for pkg in imports:
                await self._traverse(pd, pkg, colors)
        finally:
            await self._join_syncs()

        log.info(
            "discovery.done",
            ondisk=len(pd.ondisk),
            notondisk=len(pd.notondisk),
            roots=len(pd.dependencies),
        )
        return pd

    async def _scan_direct(self, pd: ProjectData, imports: list[str]) -> None:
        for ip in imports:
            root = self.sm.deduce_project_root(ip)
            self.direct_roots.add(root)
            seen = root in pd.dependencies
            pd.add_dependency(root, ip)
            if seen:
                continue

            self._dispatch_sync(root)
            wv = await self.ctx.version_in_workspace(root)
            if not wv.ondisk:
                log.debug("discovery.not_on_disk", root=root, reason=wv.reason)
                pd.mark_notondisk(root)
                continue

            props = constraint_from_version(wv.version)
            pd.mark_ondisk(root, wv.version, props)
            if props.constraint is not None:
                self.ctx.emit_feedback(
                    FeedbackEvent.for_constraint(root, props.constraint, DEP_TYPE_DIRECT)
                )
            self.ctx.emit_feedback(
                FeedbackEvent.for_locked_project(
                    LockedProject(ProjectIdentifier(root), wv.version), DEP_TYPE_DIRECT
                )
            )

    async def _traverse(self, pd: ProjectData, start: str, colors: dict[str, int]) -> None:
        """Depth-first walk from *start*, with an explicit stack."""
        state = colors.get(start, _WHITE)
        if state == _BLACK:
            return
        if state == _GREY:
            raise CycleError(start)

        children = await self._visit(pd, start, colors)
        if children is None:
            return
        stack = [(start, iter(children))]
        while stack:
            pkg, pending = stack[-1]
            nxt = next(pending, None)
            if nxt is None:
                colors[pkg] = _BLACK
                stack.pop()
                continue
            state = colors.get(nxt, _WHITE)
            if state == _GREY:
                raise CycleError(nxt)
            if state == _BLACK:
                continue
            grandchildren = await self._visit(pd, nxt, colors)
            if grandchildren is not None:
                stack.append((nxt, iter(grandchildren)))

    async def _visit(
        self, pd: ProjectData, pkg: str, colors: dict[str, int]
    ) -> list[str] | None:
        """Enter *pkg*; return the external imports to descend into, or None to stop."""
        colors[pkg] = _GREY
        root = self.sm.deduce_project_root(pkg)

        # The decision that a root is not on disk is sticky.
        if root in pd.notondisk:
            pd.add_dependency(root, pkg)
            colors[pkg] = _BLACK
            return None

        cached = self._trees.get(root)
        if cached is None:
            cached = await self._load_tree(pd, root, pkg)
            if cached is None:
                colors[pkg] = _BLACK
                return None
        rm, errmap = cached

        reached = rm.get(pkg)
        if reached is None:
            log.debug("discovery.package_missing", package=pkg, root=root)
            colors[pkg] = _BLACK
            return None
        if pkg in errmap:
            log.debug("discovery.package_errored", package=pkg, error=str(errmap[pkg]))
            colors[pkg] = _BLACK
            return None

        pd.add_dependency(root, pkg)
        return [imp for imp in reached.external if not is_standard_import_path(imp)]

    async def _load_tree(
        self, pd: ProjectData, root: ProjectRoot, pkg: str
    ) -> tuple[ReachMap, dict[str, Exception]] | None:
        if not pd.is_classified(root):
            self._dispatch_sync(root)

        directory = self.ctx.abs_for_import(root)
        if not directory.is_dir():
            log.debug("discovery.not_on_disk", root=root, reason="directory missing")
            self._degrade(pd, root, pkg)
            return None

        if root not in pd.ondisk:
            wv = await self.ctx.version_in_workspace(root)
            if not wv.ondisk:
                log.debug("discovery.not_on_disk", root=root, reason=wv.reason)
                self._degrade(pd, root, pkg)
                return None
            # Transitive roots get no manifest constraint.
            pd.mark_ondisk(root, wv.version, ProjectProperties())

        try:
            tree = await asyncio.to_thread(self.lister.list_packages, directory, root)
        except (SourceError, OSError) as exc:
            log.warning("discovery.list_failed", root=root, error=str(exc))
            self._degrade(pd, root, pkg)
            return None

        # Main packages count and errors stay local: only existence matters here.
        cached = tree.to_reach_map(True, False, False, None)
        self._trees[root] = cached
        return cached

    @staticmethod
    def _degrade(pd: ProjectData, root: ProjectRoot, pkg: str) -> None:
        pd.mark_notondisk(root)
        pd.add_dependency(root, pkg)

    # ── Source sync ──────────────────────────────────────────────────────

    def _dispatch_sync(self, root: ProjectRoot) -> None:
        loop = asyncio.get_running_loop()
        self._syncs.append(
            loop.run_in_executor(self._executor, self._sync, ProjectIdentifier(root))
        )

    def _sync(self, ident: ProjectIdentifier) -> None:
        try:
            self.sm.sync_source_for(ident)
        except Exception as exc:
            # Best-effort cache warm; the solver fetches again if needed.
            log.warning("discovery.sync_failed", root=ident.root, error=str(exc))

    async def _join_syncs(self) -> None:
        try:
            if self._syncs:
                await asyncio.gather(*self._syncs)
        finally:
            self._syncs = []
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    # ── Manifest / lock derivation ───────────────────────────────────────

    def _require_data(self) -> ProjectData:
        if self.project_data is None:
            raise DepResolveError("scan() must run before deriving a manifest and lock")
        return self.project_data

    def _locked(self, pd: ProjectData, root: ProjectRoot) -> LockedProject:
        return LockedProject(
            ProjectIdentifier(root),
            pd.ondisk[root],
            _relative_packages(root, pd.dependencies.get(root, ())),
        )

    def initialize_root_manifest_and_lock(self, m: Manifest, lock: Lock) -> None:
        """Fill gaps in an imported manifest and lock with what is on disk.

        Existing constraints and locked projects are never overwritten.
        """
        pd = self._require_data()
        self.orig_lock = Lock(projects=[self._locked(pd, root) for root in sorted(pd.ondisk)])

        for root in sorted(self.direct_roots):
            if root in m.constraints or root not in pd.ondisk:
                continue
            if root in pd.constraints:
                m.constraints[root] = pd.constraints[root]
            if lock.has_project(root):
                continue
            lp = self._locked(pd, root)
            lock.set_project(lp)
            self.ctx.emit_feedback(FeedbackEvent.for_locked_project(lp, DEP_TYPE_DIRECT))

        for root in sorted(pd.ondisk):
            if root in self.direct_roots or lock.has_project(root):
                continue
            lp = self._locked(pd, root)
            lock.set_project(lp)
            self.ctx.emit_feedback(FeedbackEvent.for_locked_project(lp, DEP_TYPE_TRANSITIVE))

    def finalize_root_manifest_and_lock(self, m: Manifest, lock: Lock) -> None:
        """Reconcile a solved lock with what discovery found.

        New roots that were not on disk are direct dependencies and gain a
        manifest constraint; other new roots are reported as transitive.
        Manifest constraints for roots absent from the solution are dropped.
        """
        pd = self._require_data()
        before = self.orig_lock or Lock()
        for lp in lock.projects:
            root = lp.ident.root
            if before.has_project(root):
                continue
            if root in pd.notondisk:
                props = constraint_from_version(lp.version)
                if props.constraint is not None:
                    m.constraints[root] = props
                    self.ctx.emit_feedback(
                        FeedbackEvent.for_constraint(root, props.constraint, DEP_TYPE_DIRECT)
                    )
                self.ctx.emit_feedback(FeedbackEvent.for_locked_project(lp, DEP_TYPE_DIRECT))
            else:
                self.ctx.emit_feedback(FeedbackEvent.for_locked_project(lp, DEP_TYPE_TRANSITIVE))
        prune_unused_constraints(m, lock)


def prune_unused_constraints(m: Manifest, lock: Lock) -> list[ProjectRoot]:
    """Remove manifest constraints for roots the solution does not contain."""
    removed = [root for root in m.constraints if not lock.has_project(root)]
    for root in removed:
        del m.constraints[root]
        log.debug("discovery.constraint_pruned", root=root)
    return removed
