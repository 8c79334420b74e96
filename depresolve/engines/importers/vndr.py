"""Importer for vndr's vendor.conf."""

from __future__ import annotations

from pathlib import Path

import structlog

from depresolve.core.errors import ConfigLoadError
from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.registry import register_importer
from depresolve.models.project import Lock, Manifest, ProjectRoot

log = structlog.get_logger("depresolve.importers")

VNDR_CONF = "vendor.conf"


def parse_vndr_line(line: str) -> ImportedPackage | None:
    """Parse one ``path revision [repository]`` line; blank and comment lines yield None."""
    content = line.split("#", 1)[0]
    parts = content.split()
    if not parts:
        return None
    if len(parts) not in (2, 3):
        raise ConfigLoadError(f"invalid config format: {line!r}")
    pkg = ImportedPackage(name=parts[0], lock_hint=parts[1])
    if len(parts) == 3:
        pkg.source = parts[2]
    return pkg


class VndrImporter(BaseImporter):
    name = "vndr"

    def has_metadata(self, directory: str | Path) -> bool:
        return (Path(directory) / VNDR_CONF).is_file()

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        path = Path(directory) / VNDR_CONF
        log.info("vndr.converting", root=root)
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise ConfigLoadError(f"unable to read {path}: {exc}") from exc

        packages: list[ImportedPackage] = []
        for line in lines:
            pkg = parse_vndr_line(line)
            if pkg is None:
                continue
            if not pkg.name or not pkg.lock_hint:
                raise self.invalid("path and revision are required")
            packages.append(pkg)
        return self.import_packages(packages, default_constraint_from_lock=True)


register_importer(VndrImporter)
