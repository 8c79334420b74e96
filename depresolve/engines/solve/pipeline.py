"""Initialize a project: discover, import, solve, reconcile.

Phase 1: list the root's packages and its direct dependencies
Phase 2: import legacy tool configuration (RootAnalyzer)
Phase 3: overlay what is checked out in the workspace (GopathScanner, optional)
Phase 4: solve
Phase 5: reconcile the solution with the manifest
Phase 6: re-prepare the solver to compute the inputs memo
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from depresolve.core.context import Ctx
from depresolve.core.errors import SolveError
from depresolve.engines.discovery.scanner import GopathScanner, get_direct_dependencies
from depresolve.engines.importers.root_analyzer import RootAnalyzer
from depresolve.engines.solve.params import PrepareSolver, SolveParameters
from depresolve.models.project import Lock, Manifest
from depresolve.pkgtree import PackageLister
from depresolve.sources.manager import SourceManager

log = structlog.get_logger("depresolve.solve")


class InitPipeline:
    """Produce a manifest and lock for a project that has neither."""

    def __init__(
        self,
        ctx: Ctx,
        sm: SourceManager,
        lister: PackageLister,
        prepare: PrepareSolver,
    ) -> None:
        self.ctx = ctx
        self.sm = sm
        self.lister = lister
        self.prepare = prepare

    async def run(
        self,
        root_dir: str | Path,
        import_root: str,
        *,
        skip_tools: bool = False,
        gopath: bool = False,
    ) -> tuple[Manifest, Lock]:
        root_dir = Path(root_dir)

        # Phase 1
        tree = await asyncio.to_thread(self.lister.list_packages, root_dir, import_root)
        packages, direct_deps = get_direct_dependencies(self.sm, tree)
        log.info("init.direct_deps", root=import_root, count=len(direct_deps))

        # Phase 2
        analyzer = RootAnalyzer(self.ctx, self.sm, direct_deps, skip_tools=skip_tools)
        manifest, lock = Manifest.new(), Lock()
        if not skip_tools:
            manifest, imported = analyzer.import_manifest_and_lock(root_dir, import_root)
            lock = imported if imported is not None else Lock()
        # Dependencies are not imported during the solve.
        analyzer.skip_tools = True

        # Phase 3
        scanner: GopathScanner | None = None
        if gopath:
            scanner = GopathScanner(self.ctx, self.sm, self.lister)
            await scanner.scan(packages)
            scanner.initialize_root_manifest_and_lock(manifest, lock)

        old_lock = lock.copy()

        # Phase 4
        params = SolveParameters(
            root_dir=root_dir,
            root_package_tree=tree,
            manifest=manifest,
            lock=lock,
            project_analyzer=analyzer,
        )
        try:
            solution = self.prepare(params, self.sm).solve()
        except SolveError:
            raise
        except Exception as exc:
            raise SolveError(f"solving failure: {exc}") from exc
        lock = Lock.from_solution(solution)
        log.info("init.solved", projects=len(lock.projects))

        # Phase 5
        if scanner is not None:
            scanner.finalize_root_manifest_and_lock(manifest, lock)
        else:
            analyzer.finalize_root_manifest_and_lock(manifest, lock, old_lock)

        # Phase 6: same parameters, used only for the memo.
        try:
            lock.memo = self.prepare(params, self.sm).hash_inputs()
        except Exception as exc:
            raise SolveError(f"prepare solver: {exc}") from exc

        return manifest, lock
