"""
Post-processing module for tube-tagger.

Turns a directory of yt-dlp output into tagged, organised audio files:

Components:
    - FileGrouper: Groups audio, info JSON and thumbnail files by video ID
    - Rule tables: Ordered regex rules per tag field
    - FieldDetector: First-match and union detection over the rule tables
    - TagAssembler: Builds a TagRecord per bundle with defaults and provenance
    - MetadataEmbedder: Writes tags and cover art with mutagen
    - FileMover: Moves finished audio files to the library
    - PostProcessingPipeline: Drives all of the above per batch

Usage:
    from tube_tagger.postprocess import (
        FileMover,
        MetadataEmbedder,
        PostProcessingPipeline,
    )
"""

from tube_tagger.postprocess.assembler import TagAssembler
from tube_tagger.postprocess.detector import (
    FieldDetector,
    FieldResult,
    detect_all,
    detect_first,
    parse_text,
    parse_year,
)
from tube_tagger.postprocess.grouping import (
    Bundle,
    FileGrouper,
    RejectedGroup,
    extract_resource_id,
)
from tube_tagger.postprocess.models import SourceField, TagRecord, VideoMetadata
from tube_tagger.postprocess.mover import FileMover
from tube_tagger.postprocess.pipeline import (
    BundleFailure,
    PipelineStats,
    PostProcessingPipeline,
)
from tube_tagger.postprocess.rules import DEFAULT_RULES, ExtractionRule, FieldRules, rule
from tube_tagger.postprocess.tagger import MetadataEmbedder

__all__ = [
    # Grouping
    "Bundle",
    "FileGrouper",
    "RejectedGroup",
    "extract_resource_id",
    # Rules and detection
    "DEFAULT_RULES",
    "ExtractionRule",
    "FieldRules",
    "rule",
    "FieldDetector",
    "FieldResult",
    "detect_first",
    "detect_all",
    "parse_text",
    "parse_year",
    # Models
    "SourceField",
    "TagRecord",
    "VideoMetadata",
    # Assembly, writing, moving
    "TagAssembler",
    "MetadataEmbedder",
    "FileMover",
    # Pipeline
    "BundleFailure",
    "PipelineStats",
    "PostProcessingPipeline",
]
