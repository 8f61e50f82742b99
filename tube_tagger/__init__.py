"""
tube-tagger: Download YouTube audio and tag it from its metadata.

This package downloads audio with yt-dlp and then post-processes each
batch: every video's audio files, info JSON document and thumbnail are
grouped by video ID, tag fields are detected from the video's title and
description with ordered regex rules, and the tags and cover art are
written with mutagen before the files are moved to the library.

Architecture:
    download/       - yt-dlp wrapper (audio, info JSON, thumbnail)
    postprocess/    - Grouping, field detection, tag assembly, writing, moving
    core/           - Configuration, logging, exceptions
    cli.py          - Command-line interface

Usage:
    Command Line:
        tube-tagger --url "https://www.youtube.com/watch?v=..."
        tube-tagger --process-only

    Python API:
        from tube_tagger.core import load_config, setup_logging
        from tube_tagger.postprocess import (
            FileMover,
            MetadataEmbedder,
            PostProcessingPipeline,
        )

        config = load_config()
        setup_logging(config.directories.logs)

        pipeline = PostProcessingPipeline(
            config.postprocessing,
            tag_writer=MetadataEmbedder(),
            mover=FileMover(config.directories.move_to),
        )
        stats = pipeline.run_directory(config.directories.working)

Dependencies:
    - yt-dlp: YouTube download and extraction
    - mutagen: Audio metadata manipulation
    - click: CLI framework
    - rich-click: CLI colors
    - tqdm: Progress bars
    - pyyaml: Configuration file parsing
"""

__version__ = "0.1.0"
__author__ = "tube-tagger"
__license__ = "MIT"

# Convenience imports for common usage
from tube_tagger.core import (
    Config,
    ConfigError,
    DownloadError,
    MetadataError,
    MoveError,
    TubeTaggerError,
    get_logger,
    load_config,
    setup_logging,
)
from tube_tagger.postprocess import (
    FieldDetector,
    PostProcessingPipeline,
    TagAssembler,
    TagRecord,
    VideoMetadata,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "TubeTaggerError",
    "ConfigError",
    "DownloadError",
    "MetadataError",
    "MoveError",
    # Post-processing
    "FieldDetector",
    "TagAssembler",
    "TagRecord",
    "VideoMetadata",
    "PostProcessingPipeline",
]
