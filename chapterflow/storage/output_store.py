"""Output store - translated chapters in ``{output_folder}/{NNN}.txt``."""

import logging
import os
import tempfile
from pathlib import Path

from chapterflow.config import CHAPTER_SUFFIX
from chapterflow.errors import WriteError

logger = logging.getLogger(__name__)


class OutputStore:
    """Writes translations under the same base name as the input file."""

    def __init__(self, output_folder: Path):
        self.output_folder = Path(output_folder)

    def path_for(self, chapter_id: str) -> Path:
        return self.output_folder / f"{chapter_id}{CHAPTER_SUFFIX}"

    def has_output(self, chapter_id: str) -> bool:
        """True if a non-empty translation exists for the chapter."""
        path = self.path_for(chapter_id)
        try:
            return path.is_file() and path.stat().st_size > 0
        except OSError:
            return False

    def write(self, chapter_id: str, text: str) -> Path:
        """Persist a translated chapter.

        Raises:
            WriteError: On any I/O failure
        """
        path = self.path_for(chapter_id)
        try:
            self.output_folder.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.output_folder, prefix=f".{chapter_id}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise WriteError(f"Failed to write translation {path}: {e}") from e

        logger.info(f"Translation saved: {path}")
        return path
