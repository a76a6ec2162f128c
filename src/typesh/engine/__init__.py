"""Execution engine: runs validated plans as chained OS processes."""

from .builtins import BUILTINS, Builtin, Cd, Session
from .executor import PipelineExecutor, PipelineResult, StageRun, StageState
from .exits import ExitStatus
from .handles import Pipe

__all__ = [
    "BUILTINS",
    "Builtin",
    "Cd",
    "ExitStatus",
    "Pipe",
    "PipelineExecutor",
    "PipelineResult",
    "Session",
    "StageRun",
    "StageState",
]
