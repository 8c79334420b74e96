"""Solver invocation and reconciliation."""

from depresolve.engines.solve.params import (
    PrepareSolver,
    ProjectAnalyzer,
    SolveParameters,
    Solver,
)
from depresolve.engines.solve.pipeline import InitPipeline

__all__ = ["InitPipeline", "PrepareSolver", "ProjectAnalyzer", "SolveParameters", "Solver"]
