"""Legacy import pipeline: convert other tools' configuration into a manifest and lock."""

# Import order is registry precedence order.
from depresolve.engines.importers import glide  # noqa: F401
from depresolve.engines.importers import godep  # noqa: F401
from depresolve.engines.importers import govend  # noqa: F401
from depresolve.engines.importers import govendor  # noqa: F401
from depresolve.engines.importers import vndr  # noqa: F401
from depresolve.engines.importers import gb  # noqa: F401
from depresolve.engines.importers import gom  # noqa: F401
from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.composite import CompositeAnalyzer
from depresolve.engines.importers.registry import (
    IMPORTER_REGISTRY,
    Importer,
    new_importers,
    register_importer,
)
from depresolve.engines.importers.root_analyzer import RootAnalyzer

__all__ = [
    "BaseImporter",
    "CompositeAnalyzer",
    "IMPORTER_REGISTRY",
    "ImportedPackage",
    "Importer",
    "RootAnalyzer",
    "new_importers",
    "register_importer",
]
