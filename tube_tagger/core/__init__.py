"""
Core module for tube-tagger.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with multiple outputs

Usage:
    from tube_tagger.core import (
        Config, load_config,
        setup_logging, get_logger,
        TubeTaggerError, ConfigError, MetadataError
    )
"""

from tube_tagger.core.config import (
    Config,
    DirectoryConfig,
    DownloadConfig,
    PostProcessingConfig,
    load_config,
    parse_config,
)
from tube_tagger.core.exceptions import (
    ConfigError,
    DownloadError,
    MetadataError,
    MoveError,
    TubeTaggerError,
)
from tube_tagger.core.logger import (
    get_logger,
    log_bundle_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "DirectoryConfig",
    "DownloadConfig",
    "PostProcessingConfig",
    "load_config",
    "parse_config",
    # Exceptions
    "TubeTaggerError",
    "ConfigError",
    "DownloadError",
    "MetadataError",
    "MoveError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_bundle_failure",
    "shutdown_logging",
]
