"""Pydantic models for structured LLM outputs and chapter failures.

These models define the expected structure of the analysis response
and the error information reported when a chapter fails.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from chapterflow.errors import (
    ChapterReadError,
    MalformedResponseError,
    NotFoundError,
    ProviderError,
    TemplateError,
    WriteError,
)

# =============================================================================
# Error Types
# =============================================================================


class ErrorType(str, Enum):
    """Types of errors that can fail a chapter."""

    NOT_FOUND = "not_found"  # Chapter file vanished
    READ_ERROR = "read_error"  # Chapter file unreadable or not UTF-8
    MALFORMED_RESPONSE = "malformed_response"  # Analysis output not parseable
    WRITE_ERROR = "write_error"  # Snapshot or output could not be written
    PROVIDER_ERROR = "provider_error"  # LLM API errors (auth, rate limit, timeout)
    TEMPLATE_ERROR = "template_error"  # Prompt template defects
    UNKNOWN_ERROR = "unknown_error"  # Catch-all


_ERROR_TYPES: dict[type, ErrorType] = {
    NotFoundError: ErrorType.NOT_FOUND,
    ChapterReadError: ErrorType.READ_ERROR,
    MalformedResponseError: ErrorType.MALFORMED_RESPONSE,
    WriteError: ErrorType.WRITE_ERROR,
    ProviderError: ErrorType.PROVIDER_ERROR,
    TemplateError: ErrorType.TEMPLATE_ERROR,
}


class ChapterStatus(str, Enum):
    """States of the per-chapter two-pass state machine."""

    PENDING = "pending"
    ANALYZING = "analyzing"
    ANALYSIS_DONE = "analysis_done"
    TRANSLATING = "translating"
    DONE = "done"
    FAILED = "failed"


class ChapterFailure(BaseModel):
    """Structured error information for a failed chapter."""

    chapter_id: str = Field(description="Chapter that failed")
    error_type: ErrorType = Field(description="Category of error")
    message: str = Field(description="Human-readable error message")
    stage: ChapterStatus = Field(description="State the chapter was in when it failed")
    timestamp: datetime = Field(default_factory=datetime.now)
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error context")

    @classmethod
    def from_exception(
        cls,
        e: Exception,
        chapter_id: str,
        stage: ChapterStatus,
    ) -> "ChapterFailure":
        """Create a ChapterFailure from an exception.

        Args:
            e: The exception that occurred
            chapter_id: Chapter being processed
            stage: Pipeline state at the time of the failure

        Returns:
            ChapterFailure instance
        """
        error_type = ErrorType.UNKNOWN_ERROR
        for exc_class, mapped in _ERROR_TYPES.items():
            if isinstance(e, exc_class):
                error_type = mapped
                break

        details: dict[str, Any] = {"exception_type": type(e).__name__}
        if isinstance(e, MalformedResponseError) and e.raw_text:
            details["raw_text"] = e.raw_text

        return cls(
            chapter_id=chapter_id,
            error_type=error_type,
            message=str(e),
            stage=stage,
            details=details,
        )


# =============================================================================
# Analysis Pass Output
# =============================================================================


class AnalysisOk(BaseModel):
    """Parsed analysis response: chapter summary plus newly observed terms."""

    kind: Literal["ok"] = "ok"
    summary: str = Field(description="Plot summary up to the end of this chapter")
    new_glossary: dict[str, str] = Field(
        description="Newly observed terms, source term -> target term"
    )


class AnalysisParseFailure(BaseModel):
    """Analysis response that could not be parsed; keeps the raw text."""

    kind: Literal["parse_failure"] = "parse_failure"
    raw_text: str
    reason: str


AnalysisOutcome = AnalysisOk | AnalysisParseFailure


__all__ = [
    "ErrorType",
    "ChapterStatus",
    "ChapterFailure",
    "AnalysisOk",
    "AnalysisParseFailure",
    "AnalysisOutcome",
]
