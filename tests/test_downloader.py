# tests/test_downloader.py
"""Tests for the yt-dlp downloader (YoutubeDL is mocked)"""

from unittest.mock import MagicMock, patch

import pytest
from yt_dlp.utils import DownloadError as YtDlpDownloadError

from tube_tagger.core.config import DownloadConfig
from tube_tagger.core.exceptions import DownloadError
from tube_tagger.download.downloader import (
    CHAPTER_TEMPLATE,
    OUTPUT_TEMPLATE,
    Downloader,
    YtDlpLogger,
)


URL = "https://www.youtube.com/watch?v=AbCdEfGhIjK"


def mock_youtube_dl(mock_cls, info=None, error=None):
    ydl = MagicMock()
    if error is not None:
        ydl.extract_info.side_effect = error
    else:
        ydl.extract_info.return_value = info
    mock_cls.return_value.__enter__.return_value = ydl
    return ydl


class TestBuildOptions:
    """Test the yt-dlp options dictionary"""

    def test_default_options(self, temp_dir):
        options = Downloader(DownloadConfig(), temp_dir).build_options()

        assert options["format"] == "bestaudio/best"
        assert options["paths"] == {"home": str(temp_dir)}
        assert options["outtmpl"] == {"default": OUTPUT_TEMPLATE}
        assert options["writethumbnail"] is True
        assert options["writeinfojson"] is True
        assert options["retries"] == 3
        assert options["sleep_interval"] == 3
        assert "cookiefile" not in options

        keys = [pp["key"] for pp in options["postprocessors"]]
        assert keys == ["FFmpegExtractAudio", "FFmpegThumbnailsConvertor"]
        assert options["postprocessors"][0]["preferredcodec"] == "m4a"
        assert options["postprocessors"][1]["format"] == "jpg"

    def test_output_template_keeps_video_id(self):
        assert "[%(id)s]" in OUTPUT_TEMPLATE
        assert "[%(id)s]" in CHAPTER_TEMPLATE

    def test_split_chapters(self, temp_dir):
        config = DownloadConfig(split_chapters=True)
        options = Downloader(config, temp_dir).build_options()

        assert options["outtmpl"]["chapter"] == CHAPTER_TEMPLATE
        assert options["postprocessors"][-1]["key"] == "FFmpegSplitChapters"

    def test_no_sleep_and_cookies(self, temp_dir):
        cookies = temp_dir / "cookies.txt"
        config = DownloadConfig(audio_format="mp3", sleep_seconds=0, cookie_file=cookies)
        options = Downloader(config, temp_dir).build_options()

        assert "sleep_interval" not in options
        assert options["cookiefile"] == str(cookies)
        assert options["postprocessors"][0]["preferredcodec"] == "mp3"

    def test_logger_is_attached(self, temp_dir):
        yt_logger = YtDlpLogger()
        options = Downloader(DownloadConfig(), temp_dir).build_options(yt_logger)

        assert options["logger"] is yt_logger


class TestDownload:
    """Test running a download"""

    @patch("tube_tagger.download.downloader.YoutubeDL")
    def test_single_video(self, mock_cls, temp_dir):
        ydl = mock_youtube_dl(mock_cls, info={"id": "AbCdEfGhIjK", "title": "Blue Sky"})
        working = temp_dir / "working"

        result = Downloader(DownloadConfig(), working).download(URL)

        ydl.extract_info.assert_called_once_with(URL, download=True)
        assert working.is_dir()
        assert result.title == "Blue Sky"
        assert result.entries == 1
        assert not result.partial

    @patch("tube_tagger.download.downloader.YoutubeDL")
    def test_playlist_counts_available_entries(self, mock_cls, temp_dir):
        info = {"title": "Favourites", "entries": [{"id": "a"}, None, {"id": "b"}]}
        mock_youtube_dl(mock_cls, info=info)

        result = Downloader(DownloadConfig(), temp_dir).download(URL)

        assert result.entries == 2

    @patch("tube_tagger.download.downloader.YoutubeDL")
    def test_per_video_errors_are_collected(self, mock_cls, temp_dir):
        ydl = mock_youtube_dl(mock_cls, info={"title": "Favourites", "entries": []})

        def extract_info(url, download):
            options = mock_cls.call_args.args[0]
            options["logger"].error("ERROR: [youtube] xxxxxxxxxxx: Video unavailable")
            return {"title": "Favourites", "entries": []}

        ydl.extract_info.side_effect = extract_info

        result = Downloader(DownloadConfig(), temp_dir).download(URL)

        assert result.partial
        assert result.errors == ["ERROR: [youtube] xxxxxxxxxxx: Video unavailable"]

    @patch("tube_tagger.download.downloader.YoutubeDL")
    def test_yt_dlp_error_is_wrapped(self, mock_cls, temp_dir):
        mock_youtube_dl(mock_cls, error=YtDlpDownloadError("ERROR: Unsupported URL"))

        with pytest.raises(DownloadError) as exc_info:
            Downloader(DownloadConfig(), temp_dir).download(URL)

        assert exc_info.value.details["url"] == URL

    @patch("tube_tagger.download.downloader.YoutubeDL")
    def test_no_info_is_an_error(self, mock_cls, temp_dir):
        mock_youtube_dl(mock_cls, info=None)

        with pytest.raises(DownloadError):
            Downloader(DownloadConfig(), temp_dir).download(URL)
