"""
Audio downloader for tube-tagger.

Downloads a video, playlist or channel URL with yt-dlp into the working
directory. For every video yt-dlp leaves three kinds of files, all named
with the video ID in brackets so post-processing can group them:

    Title [abcdefghijk].m4a         # audio, converted by FFmpegExtractAudio
    Title [abcdefghijk].info.json   # metadata document (writeinfojson)
    Title [abcdefghijk].jpg         # thumbnail, converted to JPEG

With chapter splitting enabled, one extra audio file per chapter is
written, each still carrying the video ID.

Dependencies:
    - yt-dlp: YouTube download and extraction
    - FFmpeg: Audio and thumbnail conversion (must be installed)

Usage:
    downloader = Downloader(config.download, config.directories.working)
    result = downloader.download("https://www.youtube.com/watch?v=...")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError as YtDlpDownloadError

from tube_tagger.core.config import DownloadConfig
from tube_tagger.core.exceptions import DownloadError
from tube_tagger.core.logger import get_logger

logger = get_logger(__name__)


# Byte-trimmed title keeps names under filesystem limits with multi-byte text
OUTPUT_TEMPLATE = "%(title).150B [%(id)s].%(ext)s"
CHAPTER_TEMPLATE = "%(title).80B - %(section_number)03d %(section_title).80B [%(id)s].%(ext)s"
MAX_FILENAME_LENGTH = 250


class YtDlpLogger:
    """
    Routes yt-dlp's output into the application logger.

    yt-dlp sends both debug and regular progress messages to debug();
    only real warnings and errors reach the console.
    """

    def __init__(self) -> None:
        self.errors: list[str] = []

    def debug(self, msg: str) -> None:
        logger.debug(msg)

    def info(self, msg: str) -> None:
        logger.debug(msg)

    def warning(self, msg: str) -> None:
        logger.warning(msg)

    def error(self, msg: str) -> None:
        self.errors.append(msg)
        logger.error(msg)


@dataclass
class DownloadResult:
    """
    Outcome of downloading one URL.

    Attributes:
        url: The URL that was downloaded.
        title: Title of the video or playlist, if yt-dlp reported one.
        entries: Number of videos yt-dlp processed.
        errors: Error messages for individual videos that failed.
    """
    url: str
    title: str | None = None
    entries: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.errors)


class Downloader:
    """
    Downloads audio, metadata and thumbnails with yt-dlp.

    Attributes:
        config: Download settings.
        working_directory: Where yt-dlp writes its files.
    """

    def __init__(self, config: DownloadConfig, working_directory: Path) -> None:
        self.config = config
        self.working_directory = working_directory

    def download(self, url: str) -> DownloadResult:
        """
        Download everything behind a URL into the working directory.

        Individual videos of a playlist that fail are skipped and listed in
        the result's errors; post-processing can still handle the rest.

        Raises:
            DownloadError: If yt-dlp cannot process the URL at all.
        """
        self.working_directory.mkdir(parents=True, exist_ok=True)
        yt_logger = YtDlpLogger()

        try:
            with YoutubeDL(self.build_options(yt_logger)) as ydl:
                info = ydl.extract_info(url, download=True)
        except YtDlpDownloadError as e:
            raise DownloadError(
                f"yt-dlp error: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e

        if info is None:
            raise DownloadError(
                "yt-dlp returned no info",
                details={"url": url, "errors": yt_logger.errors}
            )

        return DownloadResult(
            url=url,
            title=info.get("title"),
            entries=_count_entries(info),
            errors=list(yt_logger.errors),
        )

    def build_options(self, yt_logger: YtDlpLogger | None = None) -> dict[str, Any]:
        """
        Build the yt-dlp options dictionary.

        Returns:
            Options for YoutubeDL(): best audio converted to the configured
            format, JPEG thumbnail, info JSON, optional chapter splitting.
        """
        postprocessors: list[dict[str, Any]] = [
            {
                "key": "FFmpegExtractAudio",
                "preferredcodec": self.config.audio_format,
                "preferredquality": "0",
            },
            {
                "key": "FFmpegThumbnailsConvertor",
                "format": "jpg",
                "when": "before_dl",
            },
        ]

        outtmpl: dict[str, str] = {"default": OUTPUT_TEMPLATE}

        if self.config.split_chapters:
            postprocessors.append({"key": "FFmpegSplitChapters", "force_keyframes": False})
            outtmpl["chapter"] = CHAPTER_TEMPLATE

        options: dict[str, Any] = {
            "format": "bestaudio/best",
            "paths": {"home": str(self.working_directory)},
            "outtmpl": outtmpl,
            "trim_file_name": MAX_FILENAME_LENGTH,
            "writethumbnail": True,
            "writeinfojson": True,
            "postprocessors": postprocessors,
            "retries": self.config.retries,
            "fragment_retries": self.config.retries,
            # Skip unavailable playlist items instead of aborting the batch
            "ignoreerrors": "only_download",
            "quiet": True,
            "no_warnings": False,
            "noprogress": True,
            "encoding": "UTF-8",
        }

        if self.config.sleep_seconds > 0:
            options["sleep_interval"] = self.config.sleep_seconds

        if self.config.cookie_file is not None:
            options["cookiefile"] = str(self.config.cookie_file)

        if yt_logger is not None:
            options["logger"] = yt_logger

        return options


def _count_entries(info: dict[str, Any]) -> int:
    entries = info.get("entries")
    if entries is None:
        return 1
    return sum(1 for entry in entries if entry is not None)
