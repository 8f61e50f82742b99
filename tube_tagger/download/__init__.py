"""
Download module for tube-tagger.

Wraps yt-dlp to fetch audio, the info JSON document and the thumbnail of
every video behind a URL into the working directory.

Usage:
    from tube_tagger.download import Downloader, DownloadResult
"""

from tube_tagger.download.downloader import Downloader, DownloadResult, YtDlpLogger

__all__ = [
    "Downloader",
    "DownloadResult",
    "YtDlpLogger",
]
