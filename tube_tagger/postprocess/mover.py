"""
Moves finished audio files from the working directory into the library.
"""

import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from tube_tagger.core.exceptions import MoveError
from tube_tagger.core.logger import get_logger

logger = get_logger(__name__)


class FileMover:
    """
    Moves audio files into a destination directory.

    Attributes:
        destination: Directory files are moved into (created on first use).
        overwrite: Replace a file of the same name already in the destination.
    """

    def __init__(self, destination: Path, overwrite: bool = True) -> None:
        self.destination = destination
        self.overwrite = overwrite

    def move(self, paths: Iterable[Path]) -> list[Path]:
        """
        Move each file into the destination directory.

        Every file is attempted even if an earlier one fails.

        Returns:
            The new paths of the moved files.

        Raises:
            MoveError: If any file could not be moved. details['moved'] and
                       details['failed'] list what happened to each file.
        """
        try:
            self.destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MoveError(
                f"Cannot create destination directory: {e}",
                details={"destination": str(self.destination), "original_error": str(e)}
            ) from e

        moved: list[Path] = []
        failed: dict[str, str] = {}

        for source in paths:
            target = self.destination / source.name
            try:
                if target.exists() and not self.overwrite:
                    raise FileExistsError(f"{target} already exists")
                # os.replace cannot cross filesystems
                try:
                    os.replace(source, target)
                except OSError:
                    shutil.move(str(source), str(target))
            except OSError as e:
                logger.error(f"- Error moving file \"{source.name}\": {e}")
                failed[str(source)] = str(e)
                continue

            logger.info(f"- Moved \"{source.name}\"")
            moved.append(target)

        if failed:
            raise MoveError(
                f"Failed to move {len(failed)} of {len(moved) + len(failed)} file(s)",
                details={"moved": [str(p) for p in moved], "failed": failed}
            )

        return moved
