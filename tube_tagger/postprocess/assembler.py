"""
Tag record assembly.

Runs the FieldDetector once per tag field with that field's default and
combines the results into a TagRecord. Each field produces one log line
saying what was found and where, or that nothing was found.

Defaults:
    title     -> the video title
    artist    -> the uploader (channel name)
    album     -> none
    year      -> the upload year if upload_year_fallback is enabled, else none
    composers -> none
"""

from typing import Any

from tube_tagger.core.logger import get_logger
from tube_tagger.postprocess.detector import FieldDetector, FieldResult
from tube_tagger.postprocess.grouping import Bundle
from tube_tagger.postprocess.models import TagRecord, VideoMetadata

logger = get_logger(__name__)


class TagAssembler:
    """
    Builds the TagRecord for a bundle.

    Example:
        assembler = TagAssembler()
        record = assembler.assemble(bundle, VideoMetadata.from_json_file(bundle.metadata_path))
    """

    def __init__(
        self,
        detector: FieldDetector | None = None,
        upload_year_fallback: bool = False
    ) -> None:
        self.detector = detector or FieldDetector()
        self.upload_year_fallback = upload_year_fallback

    def assemble(self, bundle: Bundle, document: VideoMetadata) -> TagRecord:
        """
        Detect every field for one bundle.

        Args:
            bundle: The bundle being tagged (used for log context).
            document: The bundle's parsed metadata document.

        Returns:
            TagRecord with detected or defaulted values and their provenance.
        """
        year_default = document.upload_year if self.upload_year_fallback else None

        results: dict[str, FieldResult[Any]] = {
            "title": self.detector.detect_title(document, document.title or None),
            "artist": self.detector.detect_artist(document, document.uploader or None),
            "album": self.detector.detect_album(document, None),
            "year": self.detector.detect_release_year(document, year_default),
            "composers": self.detector.detect_composers(document, None),
        }

        for name, result in results.items():
            _log_result(bundle.resource_id, name, result)

        return TagRecord(
            title=results["title"].value,
            artist=results["artist"].value,
            album=results["album"].value,
            year=results["year"].value,
            composers=results["composers"].value,
            comment=document.generate_comment(),
            sources=tuple((name, result.source) for name, result in results.items()),
        )


def _log_result(resource_id: str, name: str, result: FieldResult[Any]) -> None:
    if result.found:
        logger.info(f"[{resource_id}] • Found {name} \"{result.value}\" in {result.source}")
    elif result.value is not None:
        logger.info(f"[{resource_id}] • No {name} parsed, using default \"{result.value}\"")
    else:
        logger.info(f"[{resource_id}] • No {name} parsed.")
