"""Go source package lister: package clauses and imports via regular expressions."""

from __future__ import annotations

import os
import re
from pathlib import Path

import structlog

from depresolve.core.errors import SourceError
from depresolve.pkgtree.tree import Package, PackageError, PackageTree

log = structlog.get_logger("depresolve.pkgtree")

_COMMENT_RE = re.compile(r"//[^\n]*|/\*.*?\*/", re.S)
_PACKAGE_RE = re.compile(r"^\s*package\s+([A-Za-z_][A-Za-z0-9_]*)", re.M)
_IMPORT_BLOCK_RE = re.compile(r"^\s*import\s*\((.*?)\)", re.M | re.S)
_IMPORT_SINGLE_RE = re.compile(r'^\s*import\s+(?:[A-Za-z_.][A-Za-z0-9_]*\s+)?"([^"]+)"', re.M)
_IMPORT_SPEC_RE = re.compile(r'(?:[A-Za-z_.][A-Za-z0-9_]*\s+)?"([^"]+)"')
_BUILD_IGNORE_RE = re.compile(r"^//\s*(\+build|go:build)\s+ignore\b", re.M)

_SKIP_DIRS = {"vendor", "testdata"}


def parse_go_source(content: str) -> tuple[str, list[str]]:
    """Return the package name and imported paths of one Go source file.

    Raises :class:`PackageError` when there is no package clause.
    """
    stripped = _COMMENT_RE.sub("", content)
    m = _PACKAGE_RE.search(stripped)
    if not m:
        raise PackageError("no package clause found")

    header = stripped[m.end():]
    imports: list[str] = []
    for block in _IMPORT_BLOCK_RE.finditer(header):
        imports.extend(_IMPORT_SPEC_RE.findall(block.group(1)))
    imports.extend(_IMPORT_SINGLE_RE.findall(header))
    return m.group(1), imports


def _parse_dir(directory: Path, import_path: str, go_files: list[str]) -> Package | PackageError:
    name = ""
    imports: set[str] = set()
    test_imports: set[str] = set()
    for fname in sorted(go_files):
        try:
            content = (directory / fname).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            return PackageError(f"{import_path}: unable to read {fname}: {exc}")
        if _BUILD_IGNORE_RE.search(content):
            continue
        try:
            pkg_name, file_imports = parse_go_source(content)
        except PackageError as exc:
            return PackageError(f"{import_path}/{fname}: {exc}")

        is_test = fname.endswith("_test.go")
        # External test packages (foo_test) live alongside foo.
        if is_test and pkg_name.endswith("_test"):
            pkg_name = pkg_name[: -len("_test")]
        if pkg_name == "documentation":
            continue
        if name and pkg_name != name:
            return PackageError(
                f"{import_path}: found packages {name} and {pkg_name} in {directory}"
            )
        name = pkg_name
        (test_imports if is_test else imports).update(file_imports)

    if not name:
        return PackageError(f"{import_path}: no buildable Go source files in {directory}")
    # A package importing itself from its own tests is not a dependency.
    test_imports.discard(import_path)
    return Package(
        import_path=import_path,
        name=name,
        imports=sorted(imports),
        test_imports=sorted(test_imports - imports),
    )


class GoPackageLister:
    """Builds a :class:`PackageTree` by walking Go sources on disk."""

    def list_packages(self, directory: str | Path, import_prefix: str) -> PackageTree:
        root = Path(directory)
        if not root.is_dir():
            raise SourceError(f"{root} is not a directory")

        tree = PackageTree(import_root=import_prefix)
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(
                d for d in dirnames if d not in _SKIP_DIRS and not d.startswith((".", "_"))
            )
            go_files = [f for f in filenames if f.endswith(".go")]
            if not go_files:
                continue
            rel = Path(dirpath).relative_to(root).as_posix()
            import_path = import_prefix if rel == "." else f"{import_prefix}/{rel}"
            tree.packages[import_path] = _parse_dir(Path(dirpath), import_path, go_files)

        log.debug("pkgtree.listed", root=import_prefix, packages=len(tree.packages))
        return tree
