"""Merge several imported manifests and locks into one."""

from __future__ import annotations

from pathlib import Path

import structlog

from depresolve.engines.importers.registry import Importer
from depresolve.models.project import Lock, Manifest, ProjectRoot

log = structlog.get_logger("depresolve.importers")


class CompositeAnalyzer:
    """Run every importer with metadata in *directory* and merge the results.

    Later importers win on constraints and overrides; required and ignored
    packages accumulate; locked projects are replaced by root while keeping
    the order in which roots were first seen.
    """

    def __init__(self, importers: list[Importer]) -> None:
        self.importers = importers

    def derive_manifest_and_lock(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        manifest = Manifest.new()
        lock = Lock()
        for importer in self.importers:
            if not importer.has_metadata(directory):
                continue
            log.debug("composite.importing", importer=importer.name, root=root)
            m, l = importer.import_config(directory, root)
            merge_manifest(manifest, m)
            merge_lock(lock, l)
        return manifest, lock


def merge_manifest(into: Manifest, other: Manifest) -> None:
    into.constraints.update(other.constraints)
    into.overrides.update(other.overrides)
    into.add_required(other.required)
    into.add_ignored(other.ignored)


def merge_lock(into: Lock, other: Lock) -> None:
    for lp in other.projects:
        into.set_project(lp)
