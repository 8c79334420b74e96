"""Importer for gom's Gomfile (or Gomfile.lock when present)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from depresolve.core.errors import ConfigLoadError
from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.registry import register_importer
from depresolve.models.project import Lock, Manifest, ProjectRoot

log = structlog.get_logger("depresolve.importers")

GOMFILE = "Gomfile"
GOMFILE_LOCK = "Gomfile.lock"

# Gomfile is a Ruby DSL:
#   gom 'github.com/a/b', :commit => 'abc123', :goos => [:linux, :darwin]
#   group :test, :development do
#     gom 'github.com/c/d'
#   end
_QUOTED = r"'[^']*'|\"[^\"]*\""
_KEY = r":[a-z][a-z0-9_]*"
_ARRAY_ITEM = rf"(?:\s*{_KEY}\s*|,\s*{_KEY}\s*)"
_VALUE = rf"(?:{_QUOTED}|\s*\[\s*{_ARRAY_ITEM}*\s*\]\s*)"
_GROUP_RE = re.compile(rf"group\s+((?:{_KEY}\s*|,\s*{_KEY}\s*)*)\s*do\s*$")
_END_RE = re.compile(r"end\s*$")
_GOM_RE = re.compile(rf"gom\s+({_QUOTED})\s*((?:,\s*{_KEY}\s*=>\s*{_VALUE})*)$")
_OPTION_RE = re.compile(rf",\s*({_KEY})\s*=>\s*({_VALUE})\s*")
_KEY_RE = re.compile(_KEY)


@dataclass
class GomPackage:
    name: str
    options: dict[str, str | list[str]] = field(default_factory=dict)

    def option(self, key: str) -> str:
        value = self.options.get(key)
        return value if isinstance(value, str) else ""


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def _parse_options(text: str) -> dict[str, str | list[str]]:
    options: dict[str, str | list[str]] = {}
    for m in _OPTION_RE.finditer(text):
        key, value = m.group(1)[1:], m.group(2).strip()
        if value.startswith("["):
            options[key] = [k[1:] for k in _KEY_RE.findall(value)]
        else:
            options[key] = _unquote(value)
    return options


def parse_gomfile(text: str) -> list[GomPackage]:
    """Parse Gomfile content; packages inside a ``group`` carry a ``group`` option.

    Raises :class:`ConfigLoadError` on a line that is not a ``gom`` entry, a
    group opener, or a matching ``end``.
    """
    packages: list[GomPackage] = []
    groups: list[str] | None = None
    for n, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        m = _GROUP_RE.match(line)
        if m:
            groups = [k[1:] for k in _KEY_RE.findall(m.group(1))]
            continue
        if _END_RE.match(line):
            if groups is None:
                raise ConfigLoadError(f"{GOMFILE}: syntax error at line {n}")
            groups = None
            continue

        m = _GOM_RE.match(line)
        if not m:
            raise ConfigLoadError(f"{GOMFILE}: syntax error at line {n}")
        pkg = GomPackage(_unquote(m.group(1)), _parse_options(m.group(2)))
        if groups is not None:
            pkg.options["group"] = list(groups)
        packages.append(pkg)
    return packages


class GomImporter(BaseImporter):
    name = "gom"

    def has_metadata(self, directory: str | Path) -> bool:
        return (Path(directory) / GOMFILE).is_file()

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]:
        directory = Path(directory)
        path = directory / GOMFILE_LOCK
        if not path.is_file():
            path = directory / GOMFILE
        log.info("gom.converting", root=root, path=path.name)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigLoadError(f"unable to read {path}: {exc}") from exc

        packages: list[ImportedPackage] = []
        for gom in parse_gomfile(text):
            if not gom.name:
                raise self.invalid("package name is required")
            commit, tag, branch = gom.option("commit"), gom.option("tag"), gom.option("branch")
            packages.append(
                ImportedPackage(
                    name=gom.name,
                    constraint_hint=tag or branch,
                    lock_hint=commit or tag,
                )
            )
        return self.import_packages(packages, default_constraint_from_lock=True)


register_importer(GomImporter)
