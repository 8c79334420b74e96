"""Importer for glide.yaml / glide.lock."""

from __future__ import annotations

import posixpath
from pathlib import Path

import structlog

from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.registry import register_importer
from depresolve.engines.importers.config_io import load_yaml
from depresolve.models.project import Lock, Manifest, ProjectRoot

log = structlog.get_logger("depresolve.importers")

GLIDE_YAML = "glide.yaml"
GLIDE_LOCK = "glide.lock"


class GlideImporter(BaseImporter):
    name = "glide"

    def has_metadata(self, directory: str | Path) -> bool:
        # Only glide.yaml is required; the lock is optional.
        return (Path(directory) / GLIDE_YAML).is_file()

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        directory = Path(directory)
        config = load_yaml(directory / GLIDE_YAML)
        lock_path = directory / GLIDE_LOCK
        lock_data = load_yaml(lock_path) if lock_path.is_file() else {}
        log.info("glide.converting", lock_found=bool(lock_data), root=root)

        packages: list[ImportedPackage] = []
        for pkg in _entries(config, "import") + _entries(config, "testImport"):
            name = pkg.get("package") or ""
            if not name:
                raise self.invalid("package name is required")
            for unsupported in ("os", "arch"):
                if pkg.get(unsupported):
                    self.warn(
                        "glide.unsupported_field",
                        project=name,
                        field=unsupported,
                        value=str(pkg[unsupported]),
                    )
            if pkg.get("subpackages"):
                self.warn("glide.unsupported_field", project=name, field="subpackages")
            packages.append(
                ImportedPackage(
                    name=name,
                    source=pkg.get("repo") or "",
                    constraint_hint=str(pkg.get("version") or ""),
                )
            )

        for pkg in _entries(lock_data, "imports") + _entries(lock_data, "testImports"):
            name = pkg.get("name") or ""
            if not name:
                raise self.invalid("lock entry name is required")
            packages.append(
                ImportedPackage(
                    name=name,
                    source=pkg.get("repo") or "",
                    lock_hint=str(pkg.get("version") or ""),
                )
            )

        manifest, lock = self.import_packages(packages, default_constraint_from_lock=False)

        manifest.add_ignored(str(i) for i in config.get("ignore") or [])
        exclude_dirs = config.get("excludeDirs") or []
        if exclude_dirs:
            declared = config.get("package") or ""
            if declared and declared != root:
                self.warn(
                    "glide.package_mismatch",
                    glide_package=declared,
                    project_root=root,
                    reason="using the deduced project root",
                )
            manifest.add_ignored(posixpath.join(root, str(d)) for d in exclude_dirs)
        return manifest, lock


def _entries(data: dict, key: str) -> list[dict]:
    return [e for e in (data.get(key) or []) if isinstance(e, dict)]


register_importer(GlideImporter)
