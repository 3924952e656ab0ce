"""Exception taxonomy for chapter processing.

Chapter-level errors (NotFoundError, ChapterReadError, MalformedResponseError,
WriteError, ProviderError) fail a single chapter and stop the run. TemplateError and
ConfigLoadError are configuration defects and abort the whole run.
"""


class ChapterFlowError(Exception):
    """Base class for all chapterflow errors."""

    pass


class ConfigLoadError(ChapterFlowError):
    """Error loading or validating the run configuration file."""

    pass


class NotFoundError(ChapterFlowError):
    """A chapter file vanished between listing and loading."""

    def __init__(self, chapter_id: str, path=None):
        self.chapter_id = chapter_id
        self.path = path
        location = f" ({path})" if path else ""
        super().__init__(f"Chapter not found: {chapter_id}{location}")


class ChapterReadError(ChapterFlowError):
    """A chapter file exists but cannot be read or decoded."""

    def __init__(self, chapter_id: str, path=None, reason: str = ""):
        self.chapter_id = chapter_id
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read chapter {chapter_id} ({path}): {reason}")


class MalformedResponseError(ChapterFlowError):
    """LLM output could not be parsed into the expected structure."""

    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        super().__init__(message)


class WriteError(ChapterFlowError):
    """Persisting a glossary snapshot or translation failed."""

    pass


class ProviderError(ChapterFlowError):
    """LLM provider call failed (network, auth, rate limit, timeout)."""

    pass


class TemplateError(ChapterFlowError):
    """Prompt template is invalid or references a missing variable."""

    pass


class GlossaryCorruptError(ChapterFlowError):
    """A persisted glossary snapshot exists but cannot be parsed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Corrupt glossary snapshot {path}: {reason}")


__all__ = [
    "ChapterFlowError",
    "ConfigLoadError",
    "NotFoundError",
    "ChapterReadError",
    "MalformedResponseError",
    "WriteError",
    "ProviderError",
    "TemplateError",
    "GlossaryCorruptError",
]
