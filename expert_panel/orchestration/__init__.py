"""
Multi-expert orchestration.
Parallel task fan-out, directive-based delegation between experts, and team analysis.
"""

from .adapter import build_prompt, invoke
from .analysis import (
    AnalysisResult,
    ExpertInsight,
    StructuredAnalysis,
    generate_persona,
    run_arena,
    run_team_analysis,
)
from .engine import (
    BatchValidationError,
    EngineEvent,
    TaskEngine,
    TaskInvocation,
    TaskState,
)
from .log import ExecutionLog, PendingMarker, PendingStatus, TaskResult
from .protocol import MAX_DEPTH, Delegation, extract_delegations, format_directive

__all__ = [
    "build_prompt",
    "invoke",
    "AnalysisResult",
    "ExpertInsight",
    "StructuredAnalysis",
    "generate_persona",
    "run_arena",
    "run_team_analysis",
    "BatchValidationError",
    "EngineEvent",
    "TaskEngine",
    "TaskInvocation",
    "TaskState",
    "ExecutionLog",
    "PendingMarker",
    "PendingStatus",
    "TaskResult",
    "MAX_DEPTH",
    "Delegation",
    "extract_delegations",
    "format_directive",
]
