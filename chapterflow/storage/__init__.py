"""Storage package - the three file stores a run reads and writes."""

from chapterflow.storage.chapter_store import ChapterStore, chapter_sort_key
from chapterflow.storage.glossary_ledger import GlossaryLedger, merge_terms, parse_snapshot
from chapterflow.storage.output_store import OutputStore

__all__ = [
    "ChapterStore",
    "chapter_sort_key",
    "GlossaryLedger",
    "merge_terms",
    "parse_snapshot",
    "OutputStore",
]
