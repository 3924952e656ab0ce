"""Models package - chapter records, LLM output schemas, and pipeline state."""

from chapterflow.models.chapter import (
    ChapterOutcome,
    ChapterProgress,
    ChapterRecord,
    ChapterResult,
    GlossaryEntry,
    GlossarySnapshot,
    ResumePoint,
    RunReport,
)
from chapterflow.models.schemas import (
    AnalysisOk,
    AnalysisOutcome,
    AnalysisParseFailure,
    ChapterFailure,
    ChapterStatus,
    ErrorType,
)
from chapterflow.models.state import ChapterState, create_initial_state

__all__ = [
    # Records
    "ChapterRecord",
    "ChapterResult",
    "GlossaryEntry",
    "GlossarySnapshot",
    "ResumePoint",
    "ChapterProgress",
    "ChapterOutcome",
    "RunReport",
    # Schemas
    "AnalysisOk",
    "AnalysisParseFailure",
    "AnalysisOutcome",
    "ChapterFailure",
    "ChapterStatus",
    "ErrorType",
    # State
    "ChapterState",
    "create_initial_state",
]
