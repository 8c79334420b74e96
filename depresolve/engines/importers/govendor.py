"""Importer for govendor's vendor/vendor.json."""

from __future__ import annotations

from pathlib import Path

import structlog

from depresolve.core.errors import DeductionError, ValidationError
from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.config_io import load_json
from depresolve.engines.importers.registry import register_importer
from depresolve.models.project import Lock, Manifest, ProjectRoot

log = structlog.get_logger("depresolve.importers")

GOVENDOR_JSON = Path("vendor") / "vendor.json"


class GovendorImporter(BaseImporter):
    name = "govendor"

    def has_metadata(self, directory: str | Path) -> bool:
        return (Path(directory) / GOVENDOR_JSON).is_file()

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        data = load_json(Path(directory) / GOVENDOR_JSON)
        log.info("govendor.converting", root=root)

        packages: list[ImportedPackage] = []
        for pkg in data.get("package") or []:
            path = pkg.get("path") or ""
            revision = pkg.get("revision") or ""
            if not path:
                raise self.invalid("path is required")
            if not revision:
                raise self.invalid(f"revision is required for {path}")
            packages.append(
                ImportedPackage(
                    name=path,
                    source=pkg.get("origin") or "",
                    constraint_hint=pkg.get("version") or "",
                    lock_hint=revision,
                )
            )

        manifest, lock = self.import_packages(packages, default_constraint_from_lock=True)
        manifest.add_ignored(self._ignores(data.get("ignore") or ""))
        return manifest, lock

    def _ignores(self, raw: str) -> list[str]:
        """Keep govendor ignores that name a package; tags and bare prefixes are dropped.

        govendor mixes three things in one space-separated string: ``test``,
        build tags (no slash) and package paths or prefixes.
        """
        out: list[str] = []
        for item in raw.split(" "):
            if not item:
                continue
            if "/" not in item:
                self.warn(
                    "govendor.ignore_dropped",
                    item=item,
                    reason="build tag ignores aren't supported",
                )
                continue
            try:
                self.sm.deduce_project_root(item)
            except (DeductionError, ValidationError):
                self.warn(
                    "govendor.ignore_dropped",
                    item=item,
                    reason="package prefix ignores aren't supported",
                )
                continue
            out.append(item)
        return out


register_importer(GovendorImporter)
