"""Importer for govend's vendor.yml (govend keeps no separate lock file)."""

from __future__ import annotations

from pathlib import Path

import structlog

from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.config_io import load_yaml
from depresolve.engines.importers.registry import register_importer
from depresolve.models.project import Lock, Manifest, ProjectRoot

log = structlog.get_logger("depresolve.importers")

GOVEND_YAML = "vendor.yml"


class GovendImporter(BaseImporter):
    name = "govend"

    def has_metadata(self, directory: str | Path) -> bool:
        return (Path(directory) / GOVEND_YAML).is_file()

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        data = load_yaml(Path(directory) / GOVEND_YAML)
        log.info("govend.converting", root=root)

        packages: list[ImportedPackage] = []
        for pkg in data.get("vendors") or []:
            path = (pkg or {}).get("path") or ""
            rev = (pkg or {}).get("rev") or ""
            if not path or not rev:
                raise self.invalid("path and rev are required")
            packages.append(ImportedPackage(name=path, lock_hint=str(rev)))
        return self.import_packages(packages, default_constraint_from_lock=True)


register_importer(GovendImporter)
