# tests/test_tagger.py
"""Tests for writing tags with mutagen (mutagen file classes are mocked)"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from mutagen import MutagenError
from mutagen.id3 import ID3NoHeaderError
from mutagen.mp4 import MP4Cover

from tube_tagger.core.exceptions import MetadataError
from tube_tagger.postprocess.models import TagRecord
from tube_tagger.postprocess.tagger import MetadataEmbedder


@pytest.fixture
def record():
    return TagRecord(
        title="Blue Sky",
        artist="The Examples",
        album="Weather Report",
        year=2019,
        composers="A. Smith; J. Doe",
        comment="SOURCE DATA:",
    )


@pytest.fixture
def cover(temp_dir):
    path = temp_dir / "Blue Sky [AbCdEfGhIjK].jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0jpeg")
    return path


def assigned(mock_file):
    """Map of key -> value for every item assignment on a mocked mutagen file"""
    return {c.args[0]: c.args[1] for c in mock_file.__setitem__.call_args_list}


class TestMP4:
    """Test M4A tag writing"""

    @patch("tube_tagger.postprocess.tagger.MP4")
    def test_writes_atoms_and_cover(self, mock_mp4, record, cover):
        audio = MagicMock()
        mock_mp4.return_value = audio

        MetadataEmbedder().write(record, Path("song.m4a"), cover)

        values = assigned(audio)
        assert values["\xa9nam"] == ["Blue Sky"]
        assert values["\xa9ART"] == ["The Examples"]
        assert values["\xa9alb"] == ["Weather Report"]
        assert values["\xa9day"] == ["2019"]
        assert values["\xa9wrt"] == ["A. Smith; J. Doe"]
        assert values["\xa9cmt"] == ["SOURCE DATA:"]
        assert values["covr"][0].imageformat == MP4Cover.FORMAT_JPEG
        audio.save.assert_called_once()

    @patch("tube_tagger.postprocess.tagger.MP4")
    def test_none_fields_are_skipped(self, mock_mp4, cover):
        audio = MagicMock()
        mock_mp4.return_value = audio
        record = TagRecord(title="Song", artist=None, album=None, year=None, composers=None)

        MetadataEmbedder().write(record, Path("song.m4a"), cover)

        assert set(assigned(audio)) == {"\xa9nam", "covr"}

    @patch("tube_tagger.postprocess.tagger.MP4")
    def test_adds_tags_when_missing(self, mock_mp4, record):
        audio = MagicMock()
        audio.tags = None
        mock_mp4.return_value = audio

        MetadataEmbedder().write(record, Path("song.m4a"))

        audio.add_tags.assert_called_once()

    @patch("tube_tagger.postprocess.tagger.MP4")
    def test_embed_images_disabled(self, mock_mp4, record, cover):
        audio = MagicMock()
        mock_mp4.return_value = audio

        MetadataEmbedder(embed_images=False).write(record, Path("song.m4a"), cover)

        assert "covr" not in assigned(audio)

    @patch("tube_tagger.postprocess.tagger.MP4")
    def test_png_cover(self, mock_mp4, record, temp_dir):
        audio = MagicMock()
        mock_mp4.return_value = audio
        png = temp_dir / "cover.png"
        png.write_bytes(b"\x89PNG")

        MetadataEmbedder().write(record, Path("song.m4a"), png)

        assert assigned(audio)["covr"][0].imageformat == MP4Cover.FORMAT_PNG

    @patch("tube_tagger.postprocess.tagger.MP4")
    def test_mutagen_error_becomes_metadata_error(self, mock_mp4, record):
        mock_mp4.side_effect = MutagenError("not an MP4 file")

        with pytest.raises(MetadataError) as exc_info:
            MetadataEmbedder().write(record, Path("song.m4a"))

        assert "song.m4a" in exc_info.value.message


class TestMP3:
    """Test ID3 tag writing"""

    @patch("tube_tagger.postprocess.tagger.ID3")
    def test_writes_frames(self, mock_id3, record, cover):
        tags = MagicMock()
        mock_id3.return_value = tags

        MetadataEmbedder().write(record, Path("song.mp3"), cover)

        frames = {c.args[0]: c.args[1][0] for c in tags.setall.call_args_list}
        assert set(frames) == {"TIT2", "TPE1", "TALB", "TDRC", "TCOM", "COMM", "APIC"}
        assert frames["TIT2"].text == ["Blue Sky"]
        assert frames["APIC"].mime == "image/jpeg"
        assert frames["APIC"].type == 3
        tags.save.assert_called_once_with(Path("song.mp3"))

    @patch("tube_tagger.postprocess.tagger.ID3")
    def test_file_without_id3_header(self, mock_id3, record):
        tags = MagicMock()
        mock_id3.side_effect = [ID3NoHeaderError("no ID3 header"), tags]

        MetadataEmbedder().write(record, Path("song.mp3"))

        tags.save.assert_called_once_with(Path("song.mp3"))


class TestFLAC:
    """Test Vorbis comment writing"""

    @patch("tube_tagger.postprocess.tagger.FLAC")
    def test_writes_vorbis_comments_and_picture(self, mock_flac, record, cover):
        audio = MagicMock()
        mock_flac.return_value = audio

        MetadataEmbedder().write(record, Path("song.flac"), cover)

        values = assigned(audio)
        assert values["title"] == ["Blue Sky"]
        assert values["date"] == ["2019"]
        assert values["composer"] == ["A. Smith; J. Doe"]
        picture = audio.add_picture.call_args.args[0]
        assert picture.type == 3
        assert picture.data == cover.read_bytes()
        audio.save.assert_called_once()


class TestMetadataEmbedder:
    """Test dispatch and error handling"""

    @patch("tube_tagger.postprocess.tagger.MP4")
    def test_extension_case_is_ignored(self, mock_mp4, record):
        MetadataEmbedder(embed_images=False).write(record, Path("SONG.M4A"))

        mock_mp4.assert_called_once_with(Path("SONG.M4A"))

    def test_unsupported_format(self, record):
        with pytest.raises(MetadataError):
            MetadataEmbedder().write(record, Path("song.ogg"))

    @patch("tube_tagger.postprocess.tagger.MP4")
    def test_unreadable_cover(self, mock_mp4, record, temp_dir):
        with pytest.raises(MetadataError):
            MetadataEmbedder().write(record, Path("song.m4a"), temp_dir / "missing.jpg")

        mock_mp4.assert_not_called()
