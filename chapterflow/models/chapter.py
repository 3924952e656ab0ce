"""Chapter, glossary, and run records shared across the pipeline."""

from dataclasses import dataclass, field
from pathlib import Path

from chapterflow.models.schemas import ChapterFailure, ChapterStatus


@dataclass(frozen=True)
class ChapterRecord:
    """A source chapter loaded from the input folder.

    Attributes:
        id: File stem of the chapter ("001")
        path: Path of the source file
        text: Raw source text
    """

    id: str
    path: Path
    text: str


@dataclass(frozen=True)
class ChapterResult:
    """Everything a chapter produced once it reached Done."""

    chapter_id: str
    summary: str
    new_terms: dict[str, str]
    translated_text: str


@dataclass(frozen=True)
class GlossaryEntry:
    """One source term and its translation in the merged ledger."""

    source_term: str
    target_term: str
    first_seen_chapter: str | None = None


@dataclass
class GlossarySnapshot:
    """Merged glossary state as of one chapter.

    Attributes:
        chapter_id: Chapter the snapshot belongs to
        summary: Plot summary produced by that chapter's analysis pass
        terms: Merged mapping source term -> target term (not a diff)
        first_seen: Chapter in which each source term first appeared
    """

    chapter_id: str
    summary: str = ""
    terms: dict[str, str] = field(default_factory=dict)
    first_seen: dict[str, str] = field(default_factory=dict)

    def entries(self) -> list[GlossaryEntry]:
        """Return the snapshot as a list of glossary entries."""
        return [
            GlossaryEntry(source, target, self.first_seen.get(source))
            for source, target in self.terms.items()
        ]

    def to_dict(self) -> dict:
        """Convert to the on-disk JSON layout."""
        return {
            "chapter_name": self.chapter_id,
            "summary": self.summary,
            "terms": dict(self.terms),
            "first_seen": dict(self.first_seen),
        }


@dataclass(frozen=True)
class ResumePoint:
    """Where a run should continue.

    Attributes:
        index: 0-based position in the sorted chapter list
        chapter_id: Chapter to start with, None when everything is done
        total: Number of chapters found
    """

    index: int
    chapter_id: str | None
    total: int

    @property
    def finished(self) -> bool:
        return self.chapter_id is None


@dataclass(frozen=True)
class ChapterProgress:
    """Per-chapter view of the output and glossary stores."""

    chapter_id: str
    has_output: bool
    has_glossary: bool

    @property
    def complete(self) -> bool:
        return self.has_output and self.has_glossary


@dataclass
class ChapterOutcome:
    """Final state of one pipeline invocation."""

    chapter_id: str
    status: ChapterStatus
    result: ChapterResult | None = None
    snapshot: GlossarySnapshot | None = None
    failure: ChapterFailure | None = None
    transitions: list[ChapterStatus] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == ChapterStatus.DONE


@dataclass
class RunReport:
    """Summary of a run, returned by RunController.run()."""

    total: int = 0
    start_index: int | None = None
    processed: list[str] = field(default_factory=list)
    failure: ChapterFailure | None = None
    stopped_by_operator: bool = False

    @property
    def succeeded(self) -> bool:
        return self.failure is None
