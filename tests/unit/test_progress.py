"""Tests for chapterflow.progress."""

from chapterflow.models import GlossarySnapshot
from chapterflow.progress import ProgressScanner


def _complete(ledger, write_output, chapter_id):
    write_output(chapter_id)
    ledger.persist(GlossarySnapshot(chapter_id, "s", {"A": "a"}))


class TestSuggestResumePoint:
    """Tests for ProgressScanner.suggest_resume_point."""

    def test_fresh_start(self, outputs, ledger):
        """Empty stores suggest the first chapter."""
        scanner = ProgressScanner(outputs, ledger)

        point = scanner.suggest_resume_point(["1", "2", "3"])

        assert point.index == 0
        assert point.chapter_id == "1"
        assert not point.finished

    def test_first_chapter_missing_either_file(self, outputs, ledger, write_output):
        """Suggests the first chapter lacking output or glossary."""
        _complete(ledger, write_output, "1")
        _complete(ledger, write_output, "2")
        write_output("3")  # glossary missing
        scanner = ProgressScanner(outputs, ledger)

        assert scanner.suggest_resume_point(["1", "2", "3", "4"]).chapter_id == "3"

    def test_glossary_without_output(self, outputs, ledger, write_output):
        """A snapshot alone does not make a chapter complete."""
        _complete(ledger, write_output, "1")
        ledger.persist(GlossarySnapshot("2", "s", {}))
        scanner = ProgressScanner(outputs, ledger)

        assert scanner.suggest_resume_point(["1", "2"]).chapter_id == "2"

    def test_idempotent(self, outputs, ledger, write_output):
        """Repeated scans give the same answer."""
        _complete(ledger, write_output, "1")
        scanner = ProgressScanner(outputs, ledger)
        chapters = ["1", "2", "3"]

        results = {scanner.suggest_resume_point(chapters) for _ in range(3)}
        assert len(results) == 1
        assert results.pop().chapter_id == "2"

    def test_corrupt_snapshot_forces_reprocessing(
        self, outputs, ledger, write_output, write_snapshot
    ):
        """Chapter 3 with valid output but invalid JSON glossary -> 3, not 4."""
        for chapter_id in ("1", "2"):
            _complete(ledger, write_output, chapter_id)
        write_output("3")
        write_snapshot("3", "{this is not json")
        scanner = ProgressScanner(outputs, ledger)

        assert scanner.suggest_resume_point(["1", "2", "3", "4"]).chapter_id == "3"

    def test_empty_output_is_incomplete(self, outputs, ledger, write_output):
        """A zero-byte translation does not count."""
        write_output("1", "")
        ledger.persist(GlossarySnapshot("1", "s", {}))
        scanner = ProgressScanner(outputs, ledger)

        assert scanner.suggest_resume_point(["1"]).chapter_id == "1"

    def test_all_done_is_past_the_end(self, outputs, ledger, write_output):
        """Everything complete -> index == len, chapter_id None."""
        for chapter_id in ("1", "2"):
            _complete(ledger, write_output, chapter_id)
        scanner = ProgressScanner(outputs, ledger)

        point = scanner.suggest_resume_point(["1", "2"])

        assert point.finished
        assert point.index == 2
        assert point.total == 2


class TestDescribe:
    """Tests for ProgressScanner.describe."""

    def test_reports_each_store(self, outputs, ledger, write_output):
        _complete(ledger, write_output, "1")
        write_output("2")
        scanner = ProgressScanner(outputs, ledger)

        progress = scanner.describe(["1", "2", "3"])

        assert [p.complete for p in progress] == [True, False, False]
        assert progress[1].has_output and not progress[1].has_glossary
        assert not progress[2].has_output
