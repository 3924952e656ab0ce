"""chapterflow - two-pass, context-carrying novel chapter translator.

Each chapter is analyzed (summary + new terms) and then translated with
the accumulated summary and glossary. Progress lives in the output and
glossary folders themselves, so an interrupted run resumes by rescanning.
"""

from chapterflow.errors import (
    ChapterFlowError,
    ChapterReadError,
    ConfigLoadError,
    GlossaryCorruptError,
    MalformedResponseError,
    NotFoundError,
    ProviderError,
    TemplateError,
    WriteError,
)
from chapterflow.llm_client import ChatModelClient, LLMClient, create_client
from chapterflow.models import (
    ChapterOutcome,
    ChapterRecord,
    ChapterResult,
    ChapterStatus,
    GlossarySnapshot,
    ResumePoint,
    RunReport,
)
from chapterflow.pipeline import ChapterPipeline
from chapterflow.progress import ProgressScanner
from chapterflow.runner import RunController
from chapterflow.settings import RunConfig, load_run_config
from chapterflow.storage import ChapterStore, GlossaryLedger, OutputStore

__all__ = [
    # Orchestration
    "RunController",
    "ChapterPipeline",
    "ProgressScanner",
    # Stores
    "ChapterStore",
    "GlossaryLedger",
    "OutputStore",
    # LLM
    "LLMClient",
    "ChatModelClient",
    "create_client",
    # Config
    "RunConfig",
    "load_run_config",
    # Models
    "ChapterRecord",
    "ChapterResult",
    "ChapterOutcome",
    "ChapterStatus",
    "GlossarySnapshot",
    "ResumePoint",
    "RunReport",
    # Errors
    "ChapterFlowError",
    "ChapterReadError",
    "ConfigLoadError",
    "GlossaryCorruptError",
    "MalformedResponseError",
    "NotFoundError",
    "ProviderError",
    "TemplateError",
    "WriteError",
]
