"""Dependency discovery engine: classify every project the workspace imports."""

from depresolve.engines.discovery.models import ProjectData
from depresolve.engines.discovery.scanner import (
    GopathScanner,
    get_direct_dependencies,
    prune_unused_constraints,
)

__all__ = ["GopathScanner", "ProjectData", "get_direct_dependencies", "prune_unused_constraints"]
