"""
Configuration management for tube-tagger.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - Working directory where yt-dlp writes each batch
    - Optional library directory finished audio files are moved to
    - yt-dlp download behaviour (format, chapter splitting, pacing)
    - Post-processing behaviour (file extensions, threads, fallbacks)

Configuration File Location:
    By default the config.yaml file is read from the current working
    directory. The CLI accepts --config to point elsewhere.

Example config.yaml:
    directories:
      working: "~/Downloads/tube-tagger"
      move_to: "~/Music/tube-tagger"

    download:
      audio_format: "m4a"
      split_chapters: false
      sleep_seconds: 3

    postprocessing:
      audio_extensions: [".m4a"]
      threads: 1
      upload_year_fallback: false
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from tube_tagger.core.exceptions import ConfigError


# Default configuration file name (always in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_AUDIO_FORMAT = "m4a"
DEFAULT_AUDIO_EXTENSIONS = (".m4a",)
DEFAULT_METADATA_EXTENSION = ".json"
DEFAULT_IMAGE_EXTENSION = ".jpg"

# Formats yt-dlp's FFmpegExtractAudio can produce that the tag writer handles
SUPPORTED_AUDIO_FORMATS = ("m4a", "mp3", "flac")


@dataclass(frozen=True)
class DirectoryConfig:
    """
    Directory configuration.

    Attributes:
        working: Directory yt-dlp downloads into. It is listed once per batch
                 to find the files to group. Should be empty between batches.
        move_to: Library directory finished audio files are moved to.
                 None disables moving (files stay in the working directory).
        logs: Directory for log files and the failures report.
    """
    working: Path
    move_to: Path | None
    logs: Path


@dataclass(frozen=True)
class DownloadConfig:
    """
    yt-dlp download configuration.

    Attributes:
        audio_format: Audio codec FFmpegExtractAudio converts to.
        split_chapters: Split videos with chapters into one audio file per
                        chapter. All parts keep the video ID in their names.
        sleep_seconds: Seconds yt-dlp sleeps between playlist items.
        retries: yt-dlp's own retry count for network errors.
        cookie_file: Optional cookies.txt for age-restricted videos.
    """
    audio_format: str = DEFAULT_AUDIO_FORMAT
    split_chapters: bool = False
    sleep_seconds: int = 3
    retries: int = 3
    cookie_file: Path | None = None


@dataclass(frozen=True)
class PostProcessingConfig:
    """
    Post-processing configuration.

    Attributes:
        audio_extensions: Extensions (lower case, with dot) treated as audio.
        metadata_extension: Extension of the info JSON document.
        image_extension: Extension of the thumbnail image.
        threads: Number of bundles processed in parallel. 1 = sequential.
        upload_year_fallback: Use the upload year when no release year is detected.
        embed_images: Embed the thumbnail as cover art.
    """
    audio_extensions: tuple[str, ...] = DEFAULT_AUDIO_EXTENSIONS
    metadata_extension: str = DEFAULT_METADATA_EXTENSION
    image_extension: str = DEFAULT_IMAGE_EXTENSION
    threads: int = 1
    upload_year_fallback: bool = False
    embed_images: bool = True


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Downloading into: {config.directories.working}")
        print(f"Using {config.postprocessing.threads} threads")
    """
    directories: DirectoryConfig
    download: DownloadConfig
    postprocessing: PostProcessingConfig


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     is missing required fields, or contains invalid values.
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return parse_config(raw_config)


def parse_config(raw_config: dict[str, Any]) -> Config:
    """
    Build a Config from an already-parsed YAML dictionary.

    Raises:
        ConfigError: If validation fails.
    """
    _validate_config(raw_config)

    download = _parse_download_config(raw_config.get("download"))

    return Config(
        directories=_parse_directory_config(raw_config["directories"]),
        download=download,
        postprocessing=_parse_postprocessing_config(
            raw_config.get("postprocessing"), download.audio_format
        ),
    )


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Check the configuration has its required section and that every
    present section is a dictionary.
    """
    if "directories" not in raw_config:
        raise ConfigError(
            "Missing required section: 'directories'",
            details={"missing_section": "directories"}
        )

    for section in ("directories", "download", "postprocessing"):
        value = raw_config.get(section)
        if section in raw_config and value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )


def _expand_path(value: Any, field: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field}' must be a non-empty string",
            details={"field": field}
        )
    return Path(value.strip()).expanduser().resolve()


def _parse_directory_config(section: dict[str, Any] | None) -> DirectoryConfig:
    """
    Parse the directories section.

    Expands ~ and converts to absolute paths. Does NOT create the
    directories (that happens when they are first used).
    """
    if section is None:
        raise ConfigError(
            "Section 'directories' must be a dictionary",
            details={"section": "directories"}
        )

    working = _expand_path(section.get("working", ""), "directories.working")

    move_to = None
    if section.get("move_to") is not None:
        move_to = _expand_path(section["move_to"], "directories.move_to")
        if move_to == working:
            raise ConfigError(
                "'directories.move_to' must differ from 'directories.working'",
                details={"field": "directories.move_to", "path": str(move_to)}
            )

    if section.get("logs") is not None:
        logs = _expand_path(section["logs"], "directories.logs")
    else:
        # Outside the working directory so logs never show up in a batch listing
        logs = working.parent / "logs"

    return DirectoryConfig(working=working, move_to=move_to, logs=logs)


def _parse_download_config(section: dict[str, Any] | None) -> DownloadConfig:
    """
    Parse the download section, applying defaults for anything missing.
    """
    if section is None:
        return DownloadConfig()

    audio_format = section.get("audio_format", DEFAULT_AUDIO_FORMAT)
    if not isinstance(audio_format, str) or audio_format.lower() not in SUPPORTED_AUDIO_FORMATS:
        raise ConfigError(
            f"'download.audio_format' must be one of {', '.join(SUPPORTED_AUDIO_FORMATS)}",
            details={"field": "download.audio_format", "value": audio_format}
        )

    split_chapters = section.get("split_chapters", False)
    if not isinstance(split_chapters, bool):
        raise ConfigError(
            "'download.split_chapters' must be true or false",
            details={"field": "download.split_chapters", "value": split_chapters}
        )

    sleep_seconds = _parse_int(section.get("sleep_seconds", 3), "download.sleep_seconds", minimum=0)
    retries = _parse_int(section.get("retries", 3), "download.retries", minimum=0)

    cookie_file = None
    raw_cookie = section.get("cookie_file")
    if raw_cookie is not None:
        cookie_path = _expand_path(raw_cookie, "download.cookie_file")
        if not cookie_path.exists():
            raise ConfigError(
                f"Cookie file not found: {cookie_path}",
                details={"field": "download.cookie_file", "path": str(cookie_path)}
            )
        cookie_file = cookie_path

    return DownloadConfig(
        audio_format=audio_format.lower(),
        split_chapters=split_chapters,
        sleep_seconds=sleep_seconds,
        retries=retries,
        cookie_file=cookie_file,
    )


def _parse_postprocessing_config(
    section: dict[str, Any] | None,
    audio_format: str = DEFAULT_AUDIO_FORMAT
) -> PostProcessingConfig:
    """
    Parse the postprocessing section, applying defaults for anything missing.

    audio_extensions defaults to the extension of the download audio format.
    """
    if section is None:
        return PostProcessingConfig(audio_extensions=(f".{audio_format}",))

    raw_audio = section.get("audio_extensions", [f".{audio_format}"])
    if not isinstance(raw_audio, list) or not raw_audio:
        raise ConfigError(
            "'postprocessing.audio_extensions' must be a non-empty list",
            details={"field": "postprocessing.audio_extensions"}
        )
    audio_extensions = tuple(
        _normalize_extension(ext, "postprocessing.audio_extensions") for ext in raw_audio
    )

    metadata_extension = _normalize_extension(
        section.get("metadata_extension", DEFAULT_METADATA_EXTENSION),
        "postprocessing.metadata_extension",
    )
    image_extension = _normalize_extension(
        section.get("image_extension", DEFAULT_IMAGE_EXTENSION),
        "postprocessing.image_extension",
    )

    if metadata_extension in audio_extensions or image_extension in audio_extensions:
        raise ConfigError(
            "Metadata and image extensions must not also be audio extensions",
            details={"field": "postprocessing.audio_extensions"}
        )

    threads = _parse_int(section.get("threads", 1), "postprocessing.threads", minimum=1)

    flags = {}
    for name, default in (("upload_year_fallback", False), ("embed_images", True)):
        value = section.get(name, default)
        if not isinstance(value, bool):
            raise ConfigError(
                f"'postprocessing.{name}' must be true or false",
                details={"field": f"postprocessing.{name}", "value": value}
            )
        flags[name] = value

    return PostProcessingConfig(
        audio_extensions=audio_extensions,
        metadata_extension=metadata_extension,
        image_extension=image_extension,
        threads=threads,
        **flags,
    )


def _parse_int(value: Any, field: str, minimum: int) -> int:
    # bool is an int subclass; "true" is not a thread count
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(
            f"'{field}' must be an integer >= {minimum}",
            details={"field": field, "value": value}
        )
    return value


def _normalize_extension(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip().lstrip("."):
        raise ConfigError(
            f"'{field}' entries must be non-empty strings",
            details={"field": field, "value": value}
        )
    return "." + value.strip().lstrip(".").lower()
