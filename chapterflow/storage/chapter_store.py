"""Chapter store - ordered access to the input folder.

Chapters are ``{input_folder}/{NNN}.txt``. The chapter id is the file
stem. Ordering is by the first integer in the stem, so ``2.txt`` comes
before ``10.txt``; stems without a number sort after all numbered ones.
"""

import logging
import re
from pathlib import Path

from chapterflow.config import CHAPTER_SUFFIX
from chapterflow.errors import ChapterReadError, NotFoundError
from chapterflow.models import ChapterRecord

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"\d+")


def chapter_sort_key(stem: str) -> tuple:
    """Sort key giving a stable, total chapter order.

    Numbered stems come first, ordered by value, then by the full stem
    ("01" vs "1"). Un-numbered stems follow, ordered lexically.

    Examples:
        >>> sorted(["10", "2", "1"], key=chapter_sort_key)
        ['1', '2', '10']

        >>> sorted(["notes", "3"], key=chapter_sort_key)
        ['3', 'notes']
    """
    match = _NUMBER_RE.search(stem)
    if match:
        return (0, int(match.group()), stem)
    return (1, 0, stem)


class ChapterStore:
    """Read-only view over the input folder."""

    def __init__(self, input_folder: Path):
        self.input_folder = Path(input_folder)

    def path_for(self, chapter_id: str) -> Path:
        return self.input_folder / f"{chapter_id}{CHAPTER_SUFFIX}"

    def list_chapters(self) -> list[str]:
        """Return chapter ids in reading order.

        Returns:
            Sorted list of file stems; empty if the folder is missing
        """
        if not self.input_folder.is_dir():
            logger.warning(f"Input folder does not exist: {self.input_folder}")
            return []

        stems = [
            p.stem
            for p in self.input_folder.iterdir()
            if p.is_file() and p.suffix == CHAPTER_SUFFIX
        ]
        return sorted(stems, key=chapter_sort_key)

    def load(self, chapter_id: str) -> ChapterRecord:
        """Load a chapter's source text.

        Raises:
            NotFoundError: If the file vanished after listing
            ChapterReadError: If the file cannot be read or is not UTF-8
        """
        path = self.path_for(chapter_id)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NotFoundError(chapter_id, path) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ChapterReadError(chapter_id, path, str(e)) from e
        return ChapterRecord(id=chapter_id, path=path, text=text)
