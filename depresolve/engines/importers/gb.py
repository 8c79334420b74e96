"""Importer for gb's vendor/manifest."""

from __future__ import annotations

from pathlib import Path

import structlog

from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.config_io import load_json
from depresolve.engines.importers.registry import register_importer
from depresolve.models.project import Lock, Manifest, ProjectRoot

log = structlog.get_logger("depresolve.importers")

GB_MANIFEST = Path("vendor") / "manifest"

# gb records a detached checkout (a tag or revision fetch) as this branch.
DETACHED_BRANCH = "HEAD"


class GbImporter(BaseImporter):
    name = "gb"

    def has_metadata(self, directory: str | Path) -> bool:
        return (Path(directory) / GB_MANIFEST).is_file()

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        data = load_json(Path(directory) / GB_MANIFEST)
        log.info("gb.converting", root=root)

        packages: list[ImportedPackage] = []
        for dep in data.get("dependencies") or []:
            import_path = dep.get("importpath") or ""
            revision = dep.get("revision") or ""
            if not import_path:
                raise self.invalid("package import path is required")
            if not revision:
                raise self.invalid(f"package revision is required for {import_path}")
            branch = dep.get("branch") or ""
            packages.append(
                ImportedPackage(
                    name=import_path,
                    source=dep.get("repository") or "",
                    constraint_hint="" if branch == DETACHED_BRANCH else branch,
                    lock_hint=revision,
                )
            )
        return self.import_packages(packages, default_constraint_from_lock=True)


register_importer(GbImporter)
