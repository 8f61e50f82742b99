"""
Exception classes for tube-tagger.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus a details dictionary,
so failures can be reported to the user and logged with context.

Exception Hierarchy:
    TubeTaggerError (base)
        ConfigError - Configuration file issues
        DownloadError - yt-dlp download issues
        MetadataError - Info JSON reading or tag writing issues
        MoveError - Moving finished files issues
"""


class TubeTaggerError(Exception):
    """
    Base exception for all tube-tagger errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all tube-tagger errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., file paths, URLs).

    Example:
        try:
            # some operation
        except TubeTaggerError as e:
            logger.error(f"Operation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'resource_id': Video ID of the bundle involved
                     - 'file_path': File that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(TubeTaggerError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - Required fields missing (directories.working)
        - Invalid field values (e.g., zero threads, empty extension list)
    """
    pass


class DownloadError(TubeTaggerError):
    """
    Raised when yt-dlp fails to download a URL.

    This is a NON-CRITICAL error: files that did download are still
    post-processed.

    Example:
        raise DownloadError(
            "yt-dlp error: Video unavailable",
            details={'url': 'https://www.youtube.com/watch?v=xxx'}
        )
    """
    pass


class MetadataError(TubeTaggerError):
    """
    Raised when a bundle's metadata cannot be read or written.

    This is a NON-CRITICAL error scoped to one bundle; the pipeline
    records it and continues with the remaining bundles.

    Common causes:
        - Info JSON missing, unreadable or not a JSON object
        - Audio file corrupted or in an unsupported format
        - Cover image unreadable
        - Mutagen failed to save the file
    """
    pass


class MoveError(TubeTaggerError):
    """
    Raised when one or more finished audio files could not be moved.

    Example:
        raise MoveError(
            "Failed to move 1 of 3 file(s)",
            details={'failed': ['/work/song [abcdefghijk].m4a']}
        )
    """
    pass
