"""Importer registry: the supported legacy tools, in precedence order."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from depresolve.models.project import Lock, Manifest, ProjectRoot

if TYPE_CHECKING:
    from depresolve.core.context import Ctx
    from depresolve.sources.manager import SourceManager


@runtime_checkable
class Importer(Protocol):
    """Interface that every legacy-configuration importer must satisfy."""

    name: str

    def has_metadata(self, directory: str | Path) -> bool: ...

    def import_config(self, directory: str | Path, root: ProjectRoot) -> tuple[Manifest, Lock]: ...


# Insertion order is precedence order: the first importer with metadata wins.
IMPORTER_REGISTRY: dict[str, type] = {}


def register_importer(cls: type) -> None:
    """Register an importer class by its name."""
    IMPORTER_REGISTRY[cls.name] = cls


def new_importers(ctx: Ctx, sm: SourceManager) -> list[Importer]:
    """Instantiate every registered importer, in precedence order."""
    return [cls(ctx, sm) for cls in IMPORTER_REGISTRY.values()]
