"""Glossary ledger - cumulative, chapter-indexed term store.

Each chapter N gets ``{glossary_folder}/{N}.json`` holding the merged
glossary as of N (not a diff) together with N's summary:

    {
      "chapter_name": "002",
      "summary": "...",
      "terms": {"Aria": "艾莉亞"},
      "first_seen": {"Aria": "001"}
    }

A flat ``{"Aria": "艾莉亞"}`` object is also accepted on read so that
operators can hand-write or trim a snapshot. Reads always go to disk;
an operator edit to a snapshot is therefore picked up by the next
chapter that builds on it.

Merge rule: an existing source term is never overwritten by automatic
extraction; new source terms are added as-is.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from chapterflow.config import GLOSSARY_SUFFIX
from chapterflow.errors import GlossaryCorruptError, WriteError
from chapterflow.models import GlossarySnapshot
from chapterflow.storage.chapter_store import chapter_sort_key

logger = logging.getLogger(__name__)


def parse_snapshot(chapter_id: str, raw: str, path: Path | None = None) -> GlossarySnapshot:
    """Parse snapshot file contents.

    Raises:
        GlossaryCorruptError: If the text is not a valid snapshot
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise GlossaryCorruptError(path or chapter_id, f"invalid JSON ({e.msg})") from e

    if not isinstance(data, dict):
        raise GlossaryCorruptError(path or chapter_id, "top level is not an object")

    if isinstance(data.get("terms"), dict):
        terms = data["terms"]
        summary = data.get("summary", "")
        first_seen = data.get("first_seen") or {}
        if not isinstance(summary, str):
            raise GlossaryCorruptError(path or chapter_id, "summary is not a string")
        if not isinstance(first_seen, dict):
            raise GlossaryCorruptError(path or chapter_id, "first_seen is not an object")
    else:
        # Flat, hand-written mapping
        terms, summary, first_seen = data, "", {}

    bad = [k for k, v in terms.items() if not isinstance(v, str)]
    if bad:
        raise GlossaryCorruptError(
            path or chapter_id, f"non-string translation for: {', '.join(bad[:5])}"
        )

    return GlossarySnapshot(
        chapter_id=chapter_id,
        summary=summary,
        terms=dict(terms),
        first_seen={k: str(v) for k, v in first_seen.items() if k in terms},
    )


def merge_terms(
    previous_merged: dict[str, str],
    new_terms: dict[str, str],
) -> tuple[dict[str, str], list[str]]:
    """Merge extracted terms into an existing glossary.

    Existing mappings always win. Blank source or target terms are
    dropped.

    Returns:
        Tuple of (new merged mapping, source terms that were added)
    """
    merged = dict(previous_merged)
    added: list[str] = []

    for source, target in new_terms.items():
        if not source.strip() or not target.strip():
            continue
        if source in merged:
            if merged[source] != target:
                logger.debug(
                    f"Keeping existing mapping {source!r} -> {merged[source]!r} "
                    f"(extracted {target!r})"
                )
            continue
        merged[source] = target
        added.append(source)

    return merged, added


class GlossaryLedger:
    """Data store over the glossary folder."""

    def __init__(self, glossary_folder: Path):
        self.glossary_folder = Path(glossary_folder)

    def path_for(self, chapter_id: str) -> Path:
        return self.glossary_folder / f"{chapter_id}{GLOSSARY_SUFFIX}"

    def load_snapshot(self, chapter_id: str) -> GlossarySnapshot | None:
        """Load the snapshot persisted for exactly this chapter.

        Returns:
            The snapshot, or None if no file exists

        Raises:
            GlossaryCorruptError: If the file exists but cannot be parsed
        """
        path = self.path_for(chapter_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise GlossaryCorruptError(path, f"unreadable ({e})") from e
        return parse_snapshot(chapter_id, raw, path)

    def is_valid(self, chapter_id: str) -> bool:
        """True if a parseable snapshot exists for the chapter."""
        try:
            return self.load_snapshot(chapter_id) is not None
        except GlossaryCorruptError as e:
            logger.warning(str(e))
            return False

    def snapshot_ids(self) -> list[str]:
        """Chapter ids that have a snapshot file, in chapter order."""
        if not self.glossary_folder.is_dir():
            return []
        stems = [
            p.stem
            for p in self.glossary_folder.iterdir()
            if p.is_file() and p.suffix == GLOSSARY_SUFFIX
        ]
        return sorted(stems, key=chapter_sort_key)

    def latest_snapshot(self, up_to_chapter: str) -> GlossarySnapshot | None:
        """Latest parseable snapshot at or before up_to_chapter.

        Corrupt snapshots are skipped with a warning.
        """
        limit = chapter_sort_key(up_to_chapter)
        candidates = [s for s in self.snapshot_ids() if chapter_sort_key(s) <= limit]

        for chapter_id in reversed(candidates):
            try:
                snapshot = self.load_snapshot(chapter_id)
            except GlossaryCorruptError as e:
                logger.warning(f"Skipping {e}")
                continue
            if snapshot is not None:
                return snapshot

        return None

    def load_merged(self, up_to_chapter: str) -> dict[str, str]:
        """Merged glossary as of up_to_chapter (empty if none persisted)."""
        snapshot = self.latest_snapshot(up_to_chapter)
        return dict(snapshot.terms) if snapshot else {}

    def apply_new_terms(
        self,
        chapter_id: str,
        new_terms: dict[str, str],
        previous_merged: dict[str, str],
        summary: str = "",
        previous_first_seen: dict[str, str] | None = None,
    ) -> tuple[dict[str, str], GlossarySnapshot]:
        """Merge a chapter's extracted terms and build its snapshot.

        Pure: neither argument is modified and nothing is written.

        Args:
            chapter_id: Chapter the terms were extracted from
            new_terms: Output of the analysis pass
            previous_merged: Merged glossary as of the previous chapter
            summary: Summary to store alongside the terms
            previous_first_seen: First-seen bookkeeping as of the previous chapter

        Returns:
            Tuple of (merged mapping, snapshot ready for persist())
        """
        merged, added = merge_terms(previous_merged, new_terms)

        first_seen = {
            k: v for k, v in (previous_first_seen or {}).items() if k in merged
        }
        for source in added:
            first_seen[source] = chapter_id

        logger.debug(
            f"Chapter {chapter_id}: {len(added)} new term(s), {len(merged)} total"
        )

        snapshot = GlossarySnapshot(
            chapter_id=chapter_id,
            summary=summary,
            terms=dict(merged),
            first_seen=first_seen,
        )
        return merged, snapshot

    def persist(self, snapshot: GlossarySnapshot) -> Path:
        """Write a snapshot, replacing any previous file for the chapter.

        The file is written to a temporary sibling and moved into place,
        so a crash never leaves a half-written snapshot.

        Raises:
            WriteError: On any I/O failure
        """
        path = self.path_for(snapshot.chapter_id)
        try:
            self.glossary_folder.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.glossary_folder, prefix=f".{snapshot.chapter_id}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(snapshot.to_dict(), f, ensure_ascii=False, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise WriteError(f"Failed to write glossary snapshot {path}: {e}") from e

        logger.info(f"Glossary saved: {path} ({len(snapshot.terms)} terms)")
        return path
