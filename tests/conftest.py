"""Test configuration and fixtures"""

import json
import tempfile
from pathlib import Path

import pytest

from tube_tagger.postprocess.models import VideoMetadata


TOPIC_DESCRIPTION = (
    "Provided to YouTube by Example Records\n"
    "\n"
    "Blue Sky · The Examples\n"
    "\n"
    "Weather Report\n"
    "\n"
    "℗ 2019 Example Records\n"
    "\n"
    "Released on: 2019-05-01\n"
    "\n"
    "Composer: A. Smith\n"
    "\n"
    "Auto-generated by YouTube."
)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def topic_info():
    """yt-dlp info dictionary of a YouTube Music Topic upload"""
    return {
        "id": "AbCdEfGhIjK",
        "title": "Blue Sky",
        "fulltitle": "Blue Sky",
        "description": TOPIC_DESCRIPTION,
        "uploader": "The Examples - Topic",
        "uploader_id": "@TheExamples-Topic",
        "uploader_url": "https://www.youtube.com/@TheExamples-Topic",
        "upload_date": "20190502",
        "webpage_url": "https://www.youtube.com/watch?v=AbCdEfGhIjK",
        "extractor_key": "Youtube",
    }


@pytest.fixture
def plain_info():
    """Info dictionary with nothing the detection rules recognise"""
    return {
        "id": "ZyXwVuTsRqP",
        "title": "My holiday vlog",
        "description": "Thanks for watching!",
        "uploader": "Some Channel",
        "upload_date": "20210315",
        "webpage_url": "https://www.youtube.com/watch?v=ZyXwVuTsRqP",
        "extractor_key": "Youtube",
    }


@pytest.fixture
def topic_document(topic_info):
    return VideoMetadata.from_info_dict(topic_info)


def write_bundle_files(directory, resource_id, info, audio_names=None, image=True, stem=None):
    """
    Write the files yt-dlp would leave for one video.

    Returns:
        List of paths written.
    """
    stem = stem or f"{info.get('title', 'Video')} [{resource_id}]"
    audio_names = audio_names if audio_names is not None else [f"{stem}.m4a"]

    paths = []
    for name in audio_names:
        path = directory / name
        path.write_bytes(b"audio")
        paths.append(path)

    metadata = directory / f"{stem}.info.json"
    metadata.write_text(json.dumps(info), encoding="utf-8")
    paths.append(metadata)

    if image:
        image_path = directory / f"{stem}.jpg"
        image_path.write_bytes(b"\xff\xd8\xff\xe0jpeg")
        paths.append(image_path)

    return paths


@pytest.fixture
def make_bundle_files(temp_dir):
    """Factory writing one video's files into the temp directory"""
    def _make(resource_id, info, **kwargs):
        return write_bundle_files(temp_dir, resource_id, info, **kwargs)
    return _make


@pytest.fixture
def write_bundle():
    """write_bundle_files for tests that need their own directories"""
    return write_bundle_files
