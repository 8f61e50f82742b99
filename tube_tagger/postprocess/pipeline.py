"""
Post-processing pipeline for tube-tagger.

Turns one batch of yt-dlp output into tagged files in the library.

Workflow:
    1. List the working directory once (files only)
    2. Group files into bundles by video ID; warn about rejected groups
    3. For each bundle:
       a. Read the info JSON                          (stage "metadata")
       b. Assemble the TagRecord
       c. Write tags + cover into every audio file    (stage "tagging")
       d. Move the audio files to the library         (stage "moving")
       e. Delete the bundle's info JSON and thumbnail (stage "cleanup")
    4. Report statistics

Bundles are independent. A failure in one bundle is logged, written to
the failures report and recorded in the stats; the remaining bundles
are still processed. Nothing is retried.

Once a bundle's audio has been moved its sidecar files are deleted, so
the next batch in the same working directory starts clean. Without a
mover the whole bundle stays in place and can be processed again.

Usage:
    pipeline = PostProcessingPipeline(
        config.postprocessing,
        tag_writer=MetadataEmbedder(),
        mover=FileMover(config.directories.move_to),
    )
    stats = pipeline.run_directory(config.directories.working)
    print(f"Tagged {stats.tagged_files} file(s), {len(stats.failures)} failure(s)")
"""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from tqdm import tqdm

from tube_tagger.core.config import PostProcessingConfig
from tube_tagger.core.exceptions import MoveError, TubeTaggerError
from tube_tagger.core.logger import get_logger, log_bundle_failure
from tube_tagger.postprocess.assembler import TagAssembler
from tube_tagger.postprocess.grouping import Bundle, FileGrouper
from tube_tagger.postprocess.models import TagRecord, VideoMetadata

logger = get_logger(__name__)


class TagWriter(Protocol):
    def write(self, record: TagRecord, audio_path: Path, image_path: Path | None = None) -> None:
        ...


class Mover(Protocol):
    def move(self, paths: Iterable[Path]) -> list[Path]:
        ...


@dataclass(frozen=True)
class BundleFailure:
    """
    A bundle that could not be fully processed.

    Attributes:
        resource_id: Video ID of the bundle.
        stage: "metadata", "tagging", "moving" or "cleanup".
        message: What went wrong.
    """
    resource_id: str
    stage: str
    message: str


@dataclass
class BundleOutcome:
    """Result of processing one bundle."""
    bundle: Bundle
    record: TagRecord | None = None
    tagged_files: int = 0
    moved_files: list[Path] = field(default_factory=list)
    failure: BundleFailure | None = None


@dataclass
class PipelineStats:
    """
    Statistics from one post-processing batch.

    Attributes:
        bundles: Bundles found in the batch.
        rejected: File groups dropped for not forming a valid bundle.
        succeeded: Bundles processed without failure.
        tagged_files: Audio files whose tags were written.
        moved_files: Audio files moved to the library.
        failures: One entry per failed bundle.
    """
    bundles: int = 0
    rejected: int = 0
    succeeded: int = 0
    tagged_files: int = 0
    moved_files: int = 0
    failures: list[BundleFailure] = field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return bool(self.failures)

    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.bundles == 0:
            return 0.0
        return (self.succeeded / self.bundles) * 100


class PostProcessingPipeline:
    """
    Groups, tags and moves the files of one downloaded batch.

    Attributes:
        grouper: Builds bundles from the file listing.
        assembler: Builds a TagRecord per bundle.
        tag_writer: Writes the TagRecord into each audio file.
        mover: Moves finished files; None leaves them in place.
        threads: Bundles processed in parallel (1 = sequential).
        show_progress: Show a tqdm progress bar.
    """

    def __init__(
        self,
        config: PostProcessingConfig,
        tag_writer: TagWriter,
        mover: Mover | None = None,
        assembler: TagAssembler | None = None,
        show_progress: bool = True
    ) -> None:
        self.grouper = FileGrouper(
            audio_extensions=config.audio_extensions,
            metadata_extension=config.metadata_extension,
            image_extension=config.image_extension,
        )
        self.assembler = assembler or TagAssembler(upload_year_fallback=config.upload_year_fallback)
        self.tag_writer = tag_writer
        self.mover = mover
        self.threads = config.threads
        self.show_progress = show_progress

    def run_directory(self, directory: Path) -> PipelineStats:
        """
        Post-process every file currently in a directory.

        The listing is taken once, before anything is moved.
        """
        paths = [p for p in directory.iterdir() if p.is_file()]
        logger.debug(f"Found {len(paths)} file(s) in {directory}")
        return self.run(paths)

    def run(self, paths: Iterable[Path | str]) -> PipelineStats:
        """
        Post-process a batch of files.

        Args:
            paths: Every file of the batch (audio, info JSON, thumbnails, other).

        Returns:
            PipelineStats for the batch.
        """
        bundles, rejected = self.grouper.partition(paths)
        stats = PipelineStats(bundles=len(bundles), rejected=len(rejected))

        for group in rejected:
            log_bundle_failure(
                logger,
                resource_id=group.resource_id,
                stage="grouping",
                reason=group.reason,
                files=group.paths,
                level=logging.WARNING,
            )

        if not bundles:
            logger.info("No taggable files found")
            return stats

        logger.info(f"Post-processing {len(bundles)} bundle(s)")

        with tqdm(
            total=len(bundles),
            desc="Tagging",
            unit="bundle",
            disable=not self.show_progress
        ) as progress:
            for outcome in self._process_all(bundles):
                self._record(stats, outcome)
                progress.update(1)

        logger.info(
            f"Post-processing complete: {stats.succeeded}/{stats.bundles} bundle(s) OK, "
            f"{stats.tagged_files} file(s) tagged, {stats.moved_files} moved, "
            f"{len(stats.failures)} failed"
        )
        return stats

    def _process_all(self, bundles: list[Bundle]) -> Iterable[BundleOutcome]:
        # Stable order for sequential runs and logs
        ordered = sorted(bundles, key=lambda b: b.resource_id)

        if self.threads <= 1:
            for bundle in ordered:
                yield self.process_bundle(bundle)
            return

        with ThreadPoolExecutor(max_workers=self.threads) as executor:
            futures = [executor.submit(self.process_bundle, bundle) for bundle in ordered]
            for future in as_completed(futures):
                yield future.result()

    def process_bundle(self, bundle: Bundle) -> BundleOutcome:
        """
        Tag and move one bundle.

        Never raises: any failure is logged and returned in the outcome.
        """
        outcome = BundleOutcome(bundle=bundle)
        stage = "metadata"

        try:
            document = VideoMetadata.from_json_file(bundle.metadata_path)
            outcome.record = self.assembler.assemble(bundle, document)

            stage = "tagging"
            for audio_path in bundle.sorted_audio_paths():
                self.tag_writer.write(outcome.record, audio_path, bundle.image_path)
                outcome.tagged_files += 1

            if self.mover is not None:
                stage = "moving"
                outcome.moved_files = self.mover.move(bundle.sorted_audio_paths())

                stage = "cleanup"
                self._remove_sidecars(bundle)

        except MoveError as e:
            outcome.moved_files = [Path(p) for p in e.details.get("moved", [])]
            outcome.failure = BundleFailure(bundle.resource_id, stage, e.message)
        except TubeTaggerError as e:
            outcome.failure = BundleFailure(bundle.resource_id, stage, e.message)
        except OSError as e:
            outcome.failure = BundleFailure(bundle.resource_id, stage, f"File system error: {e}")
        except Exception as e:
            logger.exception(f"[{bundle.resource_id}] Unexpected error during {stage}")
            outcome.failure = BundleFailure(bundle.resource_id, stage, f"Unexpected error: {e}")

        if outcome.failure is not None:
            log_bundle_failure(
                logger,
                resource_id=bundle.resource_id,
                stage=stage,
                reason=outcome.failure.message,
                files=bundle.audio_paths,
            )

        return outcome

    @staticmethod
    def _remove_sidecars(bundle: Bundle) -> None:
        for path in (bundle.metadata_path, bundle.image_path):
            path.unlink(missing_ok=True)
            logger.debug(f"[{bundle.resource_id}] Deleted \"{path.name}\"")

    @staticmethod
    def _record(stats: PipelineStats, outcome: BundleOutcome) -> None:
        stats.tagged_files += outcome.tagged_files
        stats.moved_files += len(outcome.moved_files)
        if outcome.failure is None:
            stats.succeeded += 1
        else:
            stats.failures.append(outcome.failure)
