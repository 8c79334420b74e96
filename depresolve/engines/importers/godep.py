"""Importer for Godeps/Godeps.json."""

from __future__ import annotations

from pathlib import Path

import structlog

from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.config_io import load_json
from depresolve.engines.importers.registry import register_importer
from depresolve.models.project import Lock, Manifest, ProjectRoot

log = structlog.get_logger("depresolve.importers")

GODEPS_JSON = Path("Godeps") / "Godeps.json"


class GodepImporter(BaseImporter):
    name = "godep"

    def has_metadata(self, directory: str | Path) -> bool:
        return (Path(directory) / GODEPS_JSON).is_file()

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        data = load_json(Path(directory) / GODEPS_JSON)
        log.info("godep.converting", root=root)

        packages: list[ImportedPackage] = []
        for dep in data.get("Deps") or []:
            import_path = dep.get("ImportPath") or ""
            rev = dep.get("Rev") or ""
            if not import_path:
                raise self.invalid("ImportPath is required")
            if not rev:
                raise self.invalid(f"Rev is required for {import_path}")
            packages.append(
                ImportedPackage(
                    name=import_path,
                    lock_hint=rev,
                    constraint_hint=dep.get("Comment") or "",
                )
            )
        return self.import_packages(packages, default_constraint_from_lock=True)


register_importer(GodepImporter)
