"""Run controller - sequential orchestration over the chapter list.

list chapters -> suggest resume point -> operator confirms/overrides ->
load context of the chapter before the start -> run each chapter,
handing its summary and merged glossary to the next.

Operator interaction goes through three callbacks so the controller
stays testable; the CLI supplies input()-based implementations.

Starting earlier than the resume suggestion re-processes chapters:
their snapshots and outputs are overwritten, and each one re-merges on
top of the snapshot of the chapter before it.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from chapterflow.errors import GlossaryCorruptError
from chapterflow.llm_client import LLMClient, create_client
from chapterflow.models import (
    ChapterFailure,
    ChapterOutcome,
    ChapterStatus,
    ResumePoint,
    RunReport,
)
from chapterflow.pipeline import CHAPTER_ERRORS, ChapterPipeline
from chapterflow.progress import ProgressScanner
from chapterflow.settings import RunConfig
from chapterflow.storage import ChapterStore, GlossaryLedger, OutputStore

logger = logging.getLogger(__name__)

# (chapters, suggestion) -> 0-based start index, or None to do nothing
ChooseStart = Callable[[list[str], ResumePoint], "int | None"]
# previous chapter id -> True to continue with an empty context
ConfirmEmptyContext = Callable[[str], bool]
# finished chapter id -> True to go on with the next chapter
ContinueAfter = Callable[[str], bool]


def accept_suggestion(chapters: list[str], suggestion: ResumePoint) -> int | None:
    """Default start chooser: take the suggestion, nothing to do if finished."""
    return None if suggestion.finished else suggestion.index


@dataclass
class ChapterContext:
    """Context handed from one chapter to the next."""

    summary: str = ""
    terms: dict[str, str] = field(default_factory=dict)
    first_seen: dict[str, str] = field(default_factory=dict)


class RunController:
    """Drives the pipeline chapter by chapter."""

    def __init__(
        self,
        chapters: ChapterStore,
        ledger: GlossaryLedger,
        outputs: OutputStore,
        pipeline: ChapterPipeline,
        unattended: bool = True,
        choose_start: ChooseStart = accept_suggestion,
        confirm_empty_context: ConfirmEmptyContext = lambda chapter_id: True,
        continue_after: ContinueAfter = lambda chapter_id: True,
        on_outcome: Callable[[ChapterOutcome], None] | None = None,
    ):
        self.chapters = chapters
        self.ledger = ledger
        self.outputs = outputs
        self.pipeline = pipeline
        self.scanner = ProgressScanner(outputs, ledger)
        self.unattended = unattended
        self.choose_start = choose_start
        self.confirm_empty_context = confirm_empty_context
        self.continue_after = continue_after
        self.on_outcome = on_outcome

    @classmethod
    def from_config(
        cls,
        config: RunConfig,
        client: LLMClient | None = None,
        unattended: bool | None = None,
        **callbacks,
    ) -> "RunController":
        """Wire stores, client, and pipeline from a RunConfig."""
        translation = config.translation
        ledger = GlossaryLedger(translation.glossary_folder)
        outputs = OutputStore(translation.output_folder)
        client = client or create_client(config.llm)
        pipeline = ChapterPipeline.from_config(config, client, ledger, outputs)
        return cls(
            chapters=ChapterStore(translation.input_folder),
            ledger=ledger,
            outputs=outputs,
            pipeline=pipeline,
            unattended=config.runtime.unattended_mode if unattended is None else unattended,
            **callbacks,
        )

    def load_context(self, previous_chapter: str) -> ChapterContext | None:
        """Context as of previous_chapter, re-read from disk.

        Uses the latest valid snapshot at or before the chapter, so an
        operator edit to that snapshot wins over anything in memory.
        """
        snapshot = self.ledger.latest_snapshot(previous_chapter)
        if snapshot is None:
            return None
        if snapshot.chapter_id != previous_chapter:
            logger.warning(
                f"No valid snapshot for {previous_chapter}; "
                f"using glossary from {snapshot.chapter_id}"
            )
        return ChapterContext(
            summary=snapshot.summary,
            terms=dict(snapshot.terms),
            first_seen=dict(snapshot.first_seen),
        )

    def reload_context(self, previous_chapter: str, carried: ChapterContext) -> ChapterContext:
        """Re-read the snapshot just written for previous_chapter.

        Picks up operator edits made between chapters. Falls back to the
        carried context if the file has gone missing or become corrupt.
        """
        try:
            snapshot = self.ledger.load_snapshot(previous_chapter)
        except GlossaryCorruptError as e:
            logger.warning(f"{e}; continuing with the in-memory glossary")
            return carried
        if snapshot is None:
            logger.warning(
                f"Snapshot for {previous_chapter} disappeared; "
                "continuing with the in-memory glossary"
            )
            return carried
        return ChapterContext(
            summary=snapshot.summary or carried.summary,
            terms=dict(snapshot.terms),
            first_seen=dict(snapshot.first_seen),
        )

    def run(self, start_index: int | None = None) -> RunReport:
        """Process chapters from the confirmed start to the end.

        Args:
            start_index: Explicit 0-based start; skips the choose_start callback

        Returns:
            RunReport listing processed chapters and the failure, if any

        Raises:
            TemplateError: If a prompt template is broken (aborts the run)
        """
        chapter_ids = self.chapters.list_chapters()
        report = RunReport(total=len(chapter_ids))
        if not chapter_ids:
            logger.info("No chapters found in the input folder")
            return report

        suggestion = self.scanner.suggest_resume_point(chapter_ids)
        logger.info(
            f"Found {len(chapter_ids)} chapters; suggested start: "
            f"{suggestion.chapter_id or 'all done'}"
        )

        if start_index is None:
            start_index = self.choose_start(chapter_ids, suggestion)
        if start_index is None:
            return report
        if not 0 <= start_index < len(chapter_ids):
            raise ValueError(
                f"Start index {start_index} out of range (0-{len(chapter_ids) - 1})"
            )
        report.start_index = start_index

        context = ChapterContext()
        if start_index > 0:
            previous = chapter_ids[start_index - 1]
            loaded = self.load_context(previous)
            if loaded is not None:
                context = loaded
                logger.info(
                    f"Loaded context of {previous} ({len(context.terms)} terms)"
                )
            elif not self.confirm_empty_context(previous):
                logger.info("Run cancelled: no glossary for the previous chapter")
                report.stopped_by_operator = True
                return report
            else:
                logger.warning(f"Starting {chapter_ids[start_index]} with an empty glossary")

        for position in range(start_index, len(chapter_ids)):
            chapter_id = chapter_ids[position]

            if position > start_index:
                context = self.reload_context(chapter_ids[position - 1], context)

            outcome = self._process(chapter_id, context)
            if self.on_outcome is not None:
                self.on_outcome(outcome)

            if not outcome.ok:
                report.failure = outcome.failure
                logger.error(
                    f"Stopping run at {chapter_id}: "
                    f"{outcome.failure.error_type.value if outcome.failure else 'failed'}"
                )
                break

            report.processed.append(chapter_id)
            context = ChapterContext(
                summary=outcome.result.summary,
                terms=dict(outcome.snapshot.terms),
                first_seen=dict(outcome.snapshot.first_seen),
            )

            is_last = position == len(chapter_ids) - 1
            if not self.unattended and not is_last and not self.continue_after(chapter_id):
                logger.info(f"Run stopped by operator after {chapter_id}")
                report.stopped_by_operator = True
                break

        return report

    def _process(self, chapter_id: str, context: ChapterContext) -> ChapterOutcome:
        try:
            record = self.chapters.load(chapter_id)
        except CHAPTER_ERRORS as e:
            return ChapterOutcome(
                chapter_id=chapter_id,
                status=ChapterStatus.FAILED,
                failure=ChapterFailure.from_exception(e, chapter_id, ChapterStatus.PENDING),
                transitions=[ChapterStatus.PENDING, ChapterStatus.FAILED],
            )

        return self.pipeline.process(
            record,
            prev_summary=context.summary,
            previous_merged=context.terms,
            previous_first_seen=context.first_seen,
        )
