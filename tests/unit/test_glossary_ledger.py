"""Tests for chapterflow.storage.glossary_ledger."""

import json

import pytest

from chapterflow.errors import GlossaryCorruptError, WriteError
from chapterflow.models import GlossarySnapshot
from chapterflow.storage import GlossaryLedger, merge_terms


class TestMergeTerms:
    """Tests for the merge rule."""

    def test_existing_mapping_wins(self):
        """An extracted T->Y never replaces an existing T->X."""
        merged, added = merge_terms({"Aria": "亞莉亞"}, {"Aria": "艾莉亞"})

        assert merged == {"Aria": "亞莉亞"}
        assert added == []

    def test_new_terms_added_as_is(self):
        """New source terms are added unchanged."""
        merged, added = merge_terms({"Aria": "亞莉亞"}, {"Leon": "里昂"})

        assert merged == {"Aria": "亞莉亞", "Leon": "里昂"}
        assert added == ["Leon"]

    def test_blank_terms_dropped(self):
        """Empty source or target terms are ignored."""
        merged, _ = merge_terms({}, {"": "x", "Kai": " ", "Mira": "米拉"})

        assert merged == {"Mira": "米拉"}

    def test_inputs_not_mutated(self):
        """Merge returns a new mapping."""
        previous = {"Aria": "亞莉亞"}
        new = {"Leon": "里昂"}
        merge_terms(previous, new)

        assert previous == {"Aria": "亞莉亞"}
        assert new == {"Leon": "里昂"}


class TestApplyNewTerms:
    """Tests for GlossaryLedger.apply_new_terms."""

    def test_returns_merged_and_snapshot(self, ledger):
        """Snapshot carries merged terms and summary."""
        merged, snapshot = ledger.apply_new_terms(
            "002", {"Leon": "里昂"}, {"Aria": "亞莉亞"}, summary="They met."
        )

        assert merged == {"Aria": "亞莉亞", "Leon": "里昂"}
        assert snapshot.chapter_id == "002"
        assert snapshot.terms == merged
        assert snapshot.summary == "They met."

    def test_first_seen_tracks_new_terms(self, ledger):
        """Added terms are stamped with the chapter; old stamps are kept."""
        _, snapshot = ledger.apply_new_terms(
            "003",
            {"Leon": "里昂", "Aria": "艾莉亞"},
            {"Aria": "亞莉亞"},
            previous_first_seen={"Aria": "001"},
        )

        assert snapshot.first_seen == {"Aria": "001", "Leon": "003"}
        entries = {e.source_term: e for e in snapshot.entries()}
        assert entries["Leon"].first_seen_chapter == "003"
        assert entries["Aria"].target_term == "亞莉亞"

    def test_writes_nothing(self, ledger, folders):
        """apply_new_terms is pure."""
        ledger.apply_new_terms("001", {"Aria": "艾莉亞"}, {})

        assert not folders["glossary"].exists()

    def test_monotonic_across_chapters(self, ledger):
        """Terms are never dropped from one snapshot to the next."""
        merged = {}
        history = []
        extractions = [
            {"Aria": "艾莉亞"},
            {"Leon": "里昂", "Aria": "阿莉雅"},
            {},
            {"Mira": "米拉"},
        ]
        for number, terms in enumerate(extractions, start=1):
            merged, snapshot = ledger.apply_new_terms(str(number), terms, merged)
            history.append(snapshot.terms)

        for before, after in zip(history, history[1:]):
            assert all(after[k] == v for k, v in before.items())


class TestPersistAndLoad:
    """Tests for persist/load_snapshot."""

    def test_persist_writes_json_layout(self, ledger, folders):
        """Snapshot file holds chapter_name, summary, terms, first_seen."""
        snapshot = GlossarySnapshot("002", "sum", {"Aria": "艾莉亞"}, {"Aria": "001"})
        path = ledger.persist(snapshot)

        assert path == folders["glossary"] / "002.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {
            "chapter_name": "002",
            "summary": "sum",
            "terms": {"Aria": "艾莉亞"},
            "first_seen": {"Aria": "001"},
        }
        # Non-ASCII is kept readable for manual editing
        assert "艾莉亞" in path.read_text(encoding="utf-8")

    def test_load_snapshot_round_trip(self, ledger):
        """A persisted snapshot loads back unchanged."""
        snapshot = GlossarySnapshot("5", "sum", {"Aria": "艾莉亞"}, {"Aria": "5"})
        ledger.persist(snapshot)

        assert ledger.load_snapshot("5") == snapshot

    def test_persist_overwrites(self, ledger):
        """Re-running a chapter replaces its own snapshot."""
        ledger.persist(GlossarySnapshot("1", "old", {"A": "a"}))
        ledger.persist(GlossarySnapshot("1", "new", {"B": "b"}))

        assert ledger.load_snapshot("1").terms == {"B": "b"}

    def test_persist_failure_raises_write_error(self, tmp_path):
        """I/O failure surfaces as WriteError."""
        blocker = tmp_path / "glossaries"
        blocker.write_text("not a directory")
        ledger = GlossaryLedger(blocker)

        with pytest.raises(WriteError):
            ledger.persist(GlossarySnapshot("1", "", {"A": "a"}))

    def test_missing_snapshot_is_none(self, ledger):
        assert ledger.load_snapshot("9") is None

    def test_flat_mapping_accepted(self, ledger, write_snapshot):
        """Hand-written {source: target} files are valid snapshots."""
        write_snapshot("2", {"Aria": "亞莉亞"})

        snapshot = ledger.load_snapshot("2")
        assert snapshot.terms == {"Aria": "亞莉亞"}
        assert snapshot.summary == ""

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            "",
            "[1, 2]",
            json.dumps({"terms": {"Aria": 3}}),
            json.dumps({"terms": {}, "summary": ["x"]}),
        ],
    )
    def test_corrupt_snapshot_raises(self, ledger, write_snapshot, content):
        """Unparseable snapshots raise GlossaryCorruptError."""
        write_snapshot("3", content)

        with pytest.raises(GlossaryCorruptError):
            ledger.load_snapshot("3")
        assert ledger.is_valid("3") is False


class TestLoadMerged:
    """Tests for load_merged / latest_snapshot."""

    def test_empty_when_no_snapshots(self, ledger):
        assert ledger.load_merged("5") == {}

    def test_exact_chapter(self, ledger):
        ledger.persist(GlossarySnapshot("1", "", {"A": "a"}))
        ledger.persist(GlossarySnapshot("2", "", {"A": "a", "B": "b"}))

        assert ledger.load_merged("2") == {"A": "a", "B": "b"}

    def test_latest_at_or_before(self, ledger):
        """Chapter 3 with no snapshot falls back to 2, never to 10."""
        ledger.persist(GlossarySnapshot("2", "two", {"A": "a"}))
        ledger.persist(GlossarySnapshot("10", "ten", {"Z": "z"}))

        assert ledger.load_merged("3") == {"A": "a"}
        assert ledger.latest_snapshot("3").summary == "two"

    def test_skips_corrupt_snapshot(self, ledger, write_snapshot):
        """A corrupt latest snapshot is skipped, not propagated."""
        ledger.persist(GlossarySnapshot("1", "", {"A": "a"}))
        write_snapshot("2", "{broken")

        assert ledger.load_merged("2") == {"A": "a"}

    def test_reads_operator_edits(self, ledger, write_snapshot):
        """load_merged always reflects what is on disk."""
        ledger.persist(GlossarySnapshot("2", "", {"Aria": "艾莉亞"}))
        assert ledger.load_merged("2") == {"Aria": "艾莉亞"}

        write_snapshot("2", {"terms": {"Aria": "亞莉亞"}, "summary": ""})

        assert ledger.load_merged("2") == {"Aria": "亞莉亞"}
