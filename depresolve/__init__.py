"""depresolve: dependency discovery and legacy import for GOPATH-era Go projects."""

__version__ = "0.1.0"

from depresolve.core.context import Ctx, WorkspaceVersion
from depresolve.core.errors import DepResolveError
from depresolve.engines.discovery import GopathScanner, ProjectData
from depresolve.engines.importers import CompositeAnalyzer, RootAnalyzer
from depresolve.engines.solve import InitPipeline, SolveParameters
from depresolve.models import Lock, Manifest
from depresolve.sources import GitSourceManager, SourceManager

__all__ = [
    "CompositeAnalyzer",
    "Ctx",
    "DepResolveError",
    "GitSourceManager",
    "GopathScanner",
    "InitPipeline",
    "Lock",
    "Manifest",
    "ProjectData",
    "RootAnalyzer",
    "SolveParameters",
    "SourceManager",
    "WorkspaceVersion",
]
