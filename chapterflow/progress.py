"""Progress scanner - derive the resume point from the file stores.

There is no progress file. A chapter counts as complete only when its
translation exists and is non-empty and its glossary snapshot exists
and parses. The first chapter failing that check is where a run should
continue; a corrupt snapshot therefore forces that chapter to be
processed again.
"""

import logging

from chapterflow.models import ChapterProgress, ResumePoint
from chapterflow.storage import GlossaryLedger, OutputStore

logger = logging.getLogger(__name__)


class ProgressScanner:
    """Cross-references chapter ids against outputs and snapshots."""

    def __init__(self, outputs: OutputStore, ledger: GlossaryLedger):
        self.outputs = outputs
        self.ledger = ledger

    def check(self, chapter_id: str) -> ChapterProgress:
        return ChapterProgress(
            chapter_id=chapter_id,
            has_output=self.outputs.has_output(chapter_id),
            has_glossary=self.ledger.is_valid(chapter_id),
        )

    def describe(self, chapters: list[str]) -> list[ChapterProgress]:
        """Per-chapter progress, in the given order."""
        return [self.check(chapter_id) for chapter_id in chapters]

    def suggest_resume_point(self, chapters: list[str]) -> ResumePoint:
        """Return the first chapter lacking a valid output or snapshot.

        Args:
            chapters: Chapter ids in reading order

        Returns:
            ResumePoint; chapter_id is None (index == len(chapters))
            when every chapter is complete
        """
        for index, chapter_id in enumerate(chapters):
            progress = self.check(chapter_id)
            if not progress.complete:
                logger.debug(
                    f"Resume at {chapter_id}: output={progress.has_output} "
                    f"glossary={progress.has_glossary}"
                )
                return ResumePoint(index=index, chapter_id=chapter_id, total=len(chapters))

        return ResumePoint(index=len(chapters), chapter_id=None, total=len(chapters))
