"""
Data models for post-processing.

VideoMetadata is the part of yt-dlp's info JSON document that tagging
needs. TagRecord is the finished set of tag values for one bundle.
"""

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from tube_tagger.core.exceptions import MetadataError


class SourceField(Enum):
    """The texts extraction rules are allowed to search."""
    DESCRIPTION = "description"
    TITLE = "title"


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class VideoMetadata:
    """
    Metadata of one downloaded video, read from its info JSON.

    Text fields missing from the document are empty strings.

    Attributes:
        id: Video ID.
        title: Video title.
        fulltitle: Untruncated title (falls back to title).
        description: Free-text description, often multi-line.
        uploader: Channel display name.
        uploader_id: Channel handle or ID.
        uploader_url: Channel URL.
        upload_date: Upload date as YYYYMMDD.
        webpage_url: URL of the video page.
        extractor_key: Name of the yt-dlp extractor (e.g. "Youtube").
        playlist_title: Title of the playlist the video was downloaded from.
    """
    id: str
    title: str
    description: str = ""
    uploader: str = ""
    fulltitle: str = ""
    uploader_id: str = ""
    uploader_url: str = ""
    upload_date: str = ""
    webpage_url: str = ""
    extractor_key: str = ""
    playlist_title: str = ""

    @classmethod
    def from_info_dict(cls, data: dict[str, Any]) -> "VideoMetadata":
        """Build from a parsed yt-dlp info dictionary."""
        title = _text(data, "title")
        return cls(
            id=_text(data, "id"),
            title=title,
            description=_text(data, "description"),
            uploader=_text(data, "uploader"),
            fulltitle=_text(data, "fulltitle") or title,
            uploader_id=_text(data, "uploader_id"),
            uploader_url=_text(data, "uploader_url"),
            upload_date=_text(data, "upload_date"),
            webpage_url=_text(data, "webpage_url"),
            extractor_key=_text(data, "extractor_key"),
            playlist_title=_text(data, "playlist_title"),
        )

    @classmethod
    def from_json_file(cls, path: Path) -> "VideoMetadata":
        """
        Read an info JSON document.

        Raises:
            MetadataError: If the file cannot be read or is not a JSON object.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise MetadataError(
                f"Failed to read metadata document: {e}",
                details={"file_path": str(path), "original_error": str(e)}
            ) from e

        if not isinstance(data, dict):
            raise MetadataError(
                "Metadata document must contain a JSON object",
                details={"file_path": str(path)}
            )

        return cls.from_info_dict(data)

    def text_for(self, source: SourceField) -> str:
        """Return the text a rule with the given source searches."""
        if source is SourceField.DESCRIPTION:
            return self.description
        return self.title

    @property
    def upload_year(self) -> int | None:
        """Year part of upload_date, or None if the date is malformed."""
        if len(self.upload_date) == 8 and self.upload_date.isdigit():
            return int(self.upload_date[:4])
        return None

    @property
    def formatted_upload_date(self) -> str:
        """Upload date as MM/DD/YYYY, or the raw value if malformed."""
        if len(self.upload_date) != 8 or not self.upload_date.isdigit():
            return self.upload_date
        d = self.upload_date
        return f"{d[4:6]}/{d[6:8]}/{d[0:4]}"

    @property
    def uploader_summary(self) -> str:
        channel = self.uploader_url or self.uploader_id
        return f"{self.uploader} ({channel})" if channel else self.uploader

    def generate_comment(self) -> str:
        """
        Summarise where the audio came from, for the comment tag.

        Contains no timestamps, so the same document always produces
        the same comment.
        """
        lines = [
            "SOURCE DATA:",
            f"• Service: {self.extractor_key}",
            f"• URL: {self.webpage_url}",
            f"• Title: {self.fulltitle or self.title}",
            f"• Uploader: {self.uploader_summary}",
            f"• Uploaded: {self.formatted_upload_date}",
        ]
        if self.playlist_title:
            lines.append(f"• Playlist: {self.playlist_title}")
        lines.append(f"• Description: {self.description}")
        return "\n".join(lines)


@dataclass(frozen=True)
class TagRecord:
    """
    Finished tag values for one bundle.

    Attributes:
        title, artist, album: Detected or defaulted text values.
        year: Release year, or None.
        composers: Composer names joined with "; ", or None.
        comment: Source summary written to the comment tag.
        sources: (field name, provenance label) pairs. The label names the
                 rule that produced the value, or is None for a default.
    """
    title: str | None
    artist: str | None
    album: str | None
    year: int | None
    composers: str | None
    comment: str | None = None
    sources: tuple[tuple[str, str | None], ...] = ()

    def source_of(self, name: str) -> str | None:
        """Provenance label for one field (None if defaulted or unknown)."""
        return dict(self.sources).get(name)
