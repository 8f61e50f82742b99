"""
File grouping for tube-tagger.

yt-dlp writes three kinds of files per downloaded video into the working
directory, all carrying the video ID in brackets:

    Artist - Song [abcdefghijk].m4a         # audio (one or more)
    Artist - Song [abcdefghijk].info.json   # metadata document
    Artist - Song [abcdefghijk].jpg         # thumbnail

When chapters are split, several audio files share one video ID. This
module collects those files into Bundles, one per video ID, and rejects
any group that does not have at least one audio file, exactly one
metadata document and exactly one image.

Usage:
    grouper = FileGrouper(audio_extensions=(".m4a",))
    bundles, rejected = grouper.partition(paths)
"""

import re
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from tube_tagger.core.config import (
    DEFAULT_AUDIO_EXTENSIONS,
    DEFAULT_IMAGE_EXTENSION,
    DEFAULT_METADATA_EXTENSION,
)


# A bracketed 11-character video ID anywhere in the filename.
# The greedy prefix makes the last bracketed ID win.
RESOURCE_ID_PATTERN = re.compile(r".*\[([\w\-]{11})\].*\.\w+$")


class FileKind(Enum):
    """Role of a file within a bundle."""
    AUDIO = "audio"
    METADATA = "metadata"
    IMAGE = "image"
    OTHER = "other"


@dataclass(frozen=True)
class Bundle:
    """
    All files belonging to one downloaded video.

    Attributes:
        resource_id: The video ID shared by every file in the bundle.
        audio_paths: One audio file, or several if chapters were split.
        metadata_path: The yt-dlp info JSON document.
        image_path: The thumbnail used as cover art.
    """
    resource_id: str
    audio_paths: frozenset[Path]
    metadata_path: Path
    image_path: Path

    def __post_init__(self) -> None:
        if not self.resource_id or not self.resource_id.strip():
            raise ValueError("The resource ID must be provided.")
        if not self.audio_paths:
            raise ValueError("At least one audio file path must be provided.")
        if not str(self.metadata_path).strip():
            raise ValueError("The metadata file path must be provided.")
        if not str(self.image_path).strip():
            raise ValueError("The image file path must be provided.")

    def sorted_audio_paths(self) -> list[Path]:
        """Audio paths in a stable order (chapter files sort by number)."""
        return sorted(self.audio_paths)


@dataclass(frozen=True)
class RejectedGroup:
    """A set of files sharing a video ID that could not form a Bundle."""
    resource_id: str
    paths: tuple[Path, ...]
    reason: str


@dataclass
class _GroupAccumulator:
    audio: list[Path] = field(default_factory=list)
    metadata: list[Path] = field(default_factory=list)
    images: list[Path] = field(default_factory=list)
    other: list[Path] = field(default_factory=list)

    def add(self, kind: FileKind, path: Path) -> None:
        {
            FileKind.AUDIO: self.audio,
            FileKind.METADATA: self.metadata,
            FileKind.IMAGE: self.images,
            FileKind.OTHER: self.other,
        }[kind].append(path)

    def all_paths(self) -> tuple[Path, ...]:
        return tuple(sorted(self.audio + self.metadata + self.images + self.other))

    def rejection_reason(self) -> str | None:
        problems = []
        if not self.audio:
            problems.append("no audio files")
        if len(self.metadata) != 1:
            problems.append(f"{len(self.metadata)} metadata documents (expected 1)")
        if len(self.images) != 1:
            problems.append(f"{len(self.images)} images (expected 1)")
        return "; ".join(problems) if problems else None


def extract_resource_id(path: Path | str) -> str | None:
    """
    Return the video ID embedded in a file name, or None.

    Only the file name is inspected, never the directories above it.

    Example:
        extract_resource_id("/work/Song [AbCdEfGhIjK].m4a")
        # Returns: "AbCdEfGhIjK"
    """
    match = RESOURCE_ID_PATTERN.match(Path(path).name)
    return match.group(1) if match else None


class FileGrouper:
    """
    Partitions a flat list of downloaded files into per-video Bundles.

    The algorithm runs in two passes: classify every path into a
    (resource ID, path, kind) triple, then fold the triples into a
    per-ID accumulator and keep only the groups that satisfy the bundle
    invariant. Output order is unspecified.
    """

    def __init__(
        self,
        audio_extensions: Iterable[str] = DEFAULT_AUDIO_EXTENSIONS,
        metadata_extension: str = DEFAULT_METADATA_EXTENSION,
        image_extension: str = DEFAULT_IMAGE_EXTENSION
    ) -> None:
        self.audio_extensions = tuple(ext.lower() for ext in audio_extensions)
        self.metadata_extension = metadata_extension.lower()
        self.image_extension = image_extension.lower()

    def classify(self, path: Path) -> FileKind:
        """Classify a file by its (case-insensitive) extension."""
        name = path.name.lower()
        if name.endswith(self.audio_extensions):
            return FileKind.AUDIO
        if name.endswith(self.metadata_extension):
            return FileKind.METADATA
        if name.endswith(self.image_extension):
            return FileKind.IMAGE
        return FileKind.OTHER

    def partition(
        self,
        paths: Iterable[Path | str]
    ) -> tuple[list[Bundle], list[RejectedGroup]]:
        """
        Group paths into Bundles and report the groups that were dropped.

        Args:
            paths: File paths from one batch. Paths without a bracketed
                   video ID are ignored silently.

        Returns:
            Tuple of (bundles, rejected groups).
        """
        triples = []
        seen: set[Path] = set()
        for raw_path in paths:
            path = Path(raw_path)
            if path in seen:
                continue
            seen.add(path)
            resource_id = extract_resource_id(path)
            if resource_id is None:
                continue
            triples.append((resource_id, path, self.classify(path)))

        groups: dict[str, _GroupAccumulator] = defaultdict(_GroupAccumulator)
        for resource_id, path, kind in triples:
            groups[resource_id].add(kind, path)

        bundles: list[Bundle] = []
        rejected: list[RejectedGroup] = []
        for resource_id, group in groups.items():
            reason = group.rejection_reason()
            if reason is not None:
                rejected.append(RejectedGroup(resource_id, group.all_paths(), reason))
                continue
            bundles.append(
                Bundle(
                    resource_id=resource_id,
                    audio_paths=frozenset(group.audio),
                    metadata_path=group.metadata[0],
                    image_path=group.images[0],
                )
            )

        return bundles, rejected

    def group(self, paths: Iterable[Path | str]) -> list[Bundle]:
        """Group paths into Bundles, dropping invalid groups."""
        bundles, _ = self.partition(paths)
        return bundles
