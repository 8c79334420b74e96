"""Upstream sources: project-root deduction, version listing, synchronisation."""

from depresolve.sources.deduce import deduce_root, default_source_url, is_standard_import_path
from depresolve.sources.manager import GitSourceManager, SourceManager

__all__ = [
    "GitSourceManager",
    "SourceManager",
    "deduce_root",
    "default_source_url",
    "is_standard_import_path",
]
