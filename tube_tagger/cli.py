"""
Command-line interface for tube-tagger.

This module implements the CLI using Click, downloading audio with yt-dlp
and then tagging and moving the results. rich-click is used for the
output colors.

Commands:
    tube-tagger --url <url>                 Download, tag and move
    tube-tagger --url <url1> --url <url2>   Several URLs, one batch each
    tube-tagger --process-only              Tag and move what is already downloaded
    tube-tagger --url <url> --no-move       Leave tagged files in the working directory

Options:
    --config <path>                         Use a config file other than ./config.yaml
    --verbose                               Show debug output on the console

Usage:
    # Download a single video
    tube-tagger --url "https://www.youtube.com/watch?v=..."

    # Download a whole playlist
    tube-tagger --url "https://www.youtube.com/playlist?list=..."

    # Retry tagging after fixing a failure
    tube-tagger --process-only

Configuration:
    The CLI requires a config.yaml file in the current directory (or the
    path given with --config) with:
    - The working directory yt-dlp downloads into
    - An optional library directory finished files are moved to
    - Download and post-processing settings

Exit codes:
    0    Everything succeeded
    1    Configuration error or unexpected error
    4    Other application error
    5    Some downloads or bundles failed (details in the failures log)
    130  Interrupted by user
"""

import sys
from pathlib import Path

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Input",
            "options": ["--url", "--process-only"],
        },
        {
            "name": "Options",
            "options": ["--config", "--no-move", "--verbose"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from tube_tagger.core import (
    Config,
    ConfigError,
    TubeTaggerError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from tube_tagger.core.exceptions import DownloadError
from tube_tagger.download import Downloader
from tube_tagger.postprocess import (
    FileMover,
    MetadataEmbedder,
    PipelineStats,
    PostProcessingPipeline,
)

logger = get_logger(__name__)


# Version string (if updated, update also in setup.py)
__version__ = "0.1.0"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_APP_ERROR = 4
EXIT_PARTIAL_FAILURE = 5
EXIT_INTERRUPTED = 130


@click.command()
@click.option(
    "--url", "urls",
    type=str,
    multiple=True,
    metavar="<url>",
    help="Video, playlist or channel URL (repeatable)"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Path to the config file"
)
@click.option(
    "--process-only",
    is_flag=True,
    help="Skip downloading; tag and move files already in the working directory"
)
@click.option(
    "--no-move",
    is_flag=True,
    help="Leave tagged files in the working directory"
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show debug output on the console"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    urls: tuple[str, ...],
    config_path: Path | None,
    process_only: bool,
    no_move: bool,
    verbose: bool,
    version: bool
) -> None:
    """
    tube-tagger: Download YouTube audio and tag it from its metadata.

    Downloads audio with yt-dlp, detects title, artist, album, year and
    composers from each video's title and description, writes the tags
    and cover art, and moves the files to your library.

    \b
    BASIC USAGE:
        tube-tagger --url "https://www.youtube.com/watch?v=..."
        tube-tagger --url "https://www.youtube.com/playlist?list=..."

    \b
    POST-PROCESSING ONLY:
        tube-tagger --process-only              # Tag what is already downloaded
        tube-tagger --process-only --no-move    # ...and keep it in place
    """
    if version:
        click.echo(f"tube-tagger {__version__}")
        ctx.exit(0)

    if not urls and not process_only:
        click.echo(ctx.get_help())
        ctx.exit(0)

    if urls and process_only:
        raise click.UsageError("Cannot use --url with --process-only")

    exit_code = _run(
        urls=list(urls),
        config_path=config_path,
        no_move=no_move,
        verbose=verbose,
    )
    sys.exit(exit_code)


def _run(
    urls: list[str],
    config_path: Path | None,
    no_move: bool,
    verbose: bool
) -> int:
    """
    Execute the download and post-processing workflow.

    This is the main orchestration function that:
    1. Loads configuration
    2. Sets up logging
    3. Downloads each URL (a failed download is logged, not fatal)
    4. Post-processes the working directory after each URL
    5. Reports results

    Returns:
        Process exit code.
    """
    try:
        config = load_config(config_path)

        setup_logging(config.directories.logs, verbose=verbose)
        logger.info("tube-tagger starting")

        config.directories.working.mkdir(parents=True, exist_ok=True)
        pipeline = _build_pipeline(config, no_move)

        all_stats: list[PipelineStats] = []
        failed_downloads = 0

        if not urls:
            all_stats.append(pipeline.run_directory(config.directories.working))

        downloader = Downloader(config.download, config.directories.working)
        for url in urls:
            if not _download(downloader, config.directories.working, url):
                failed_downloads += 1
            all_stats.append(pipeline.run_directory(config.directories.working))

        _print_final_stats(all_stats, failed_downloads)

        if failed_downloads or any(stats.partial_failure for stats in all_stats):
            logger.warning(
                f"Finished with failures. See {config.directories.logs} for details."
            )
            return EXIT_PARTIAL_FAILURE

        logger.info("tube-tagger completed successfully")
        return EXIT_OK

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        return EXIT_ERROR

    except TubeTaggerError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        return EXIT_APP_ERROR

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        return EXIT_ERROR

    finally:
        shutdown_logging()


def _build_pipeline(config: Config, no_move: bool) -> PostProcessingPipeline:
    """
    Wire the post-processing pipeline from the configuration.

    Files are moved only when directories.move_to is set and --no-move
    was not given.
    """
    mover = None
    if config.directories.move_to is not None and not no_move:
        mover = FileMover(config.directories.move_to)
    elif config.directories.move_to is None:
        logger.debug("No move_to directory configured; files stay in the working directory")

    return PostProcessingPipeline(
        config.postprocessing,
        tag_writer=MetadataEmbedder(embed_images=config.postprocessing.embed_images),
        mover=mover,
    )


def _download(downloader: Downloader, working_directory: Path, url: str) -> bool:
    """
    Download one URL into the working directory.

    Returns:
        False if yt-dlp failed entirely or skipped some videos.
    """
    leftovers = [p for p in working_directory.iterdir() if p.is_file()]
    if leftovers:
        logger.warning(
            f"Working directory {working_directory} already contains "
            f"{len(leftovers)} file(s); they will be post-processed with this batch"
        )

    logger.info(f"Downloading {url}")
    try:
        result = downloader.download(url)
    except DownloadError as e:
        logger.error(f"Download failed: {e.message}")
        logger.debug(f"Download error details: {e.details}")
        return False

    logger.info(f"Downloaded {result.entries} video(s) from {result.title or url}")
    if result.partial:
        logger.warning(f"{len(result.errors)} video(s) could not be downloaded")
        return False
    return True


def _print_final_stats(all_stats: list[PipelineStats], failed_downloads: int) -> None:
    """Log totals across every batch of this run."""
    total = PipelineStats(
        bundles=sum(s.bundles for s in all_stats),
        rejected=sum(s.rejected for s in all_stats),
        succeeded=sum(s.succeeded for s in all_stats),
        tagged_files=sum(s.tagged_files for s in all_stats),
        moved_files=sum(s.moved_files for s in all_stats),
        failures=[f for s in all_stats for f in s.failures],
    )

    logger.info("=" * 60)
    logger.info(f"Bundles:           {total.bundles}")
    logger.info(f"Succeeded:         {total.succeeded}")
    logger.info(f"Rejected groups:   {total.rejected}")
    logger.info(f"Files tagged:      {total.tagged_files}")
    logger.info(f"Files moved:       {total.moved_files}")
    logger.info(f"Failed bundles:    {len(total.failures)}")
    if total.bundles:
        logger.info(f"Success rate:      {total.success_rate:.1f}%")
    if failed_downloads:
        logger.info(f"Failed downloads:  {failed_downloads}")
    logger.info("=" * 60)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `tube-tagger` from the command line.
    """
    cli()


if __name__ == "__main__":
    main()
