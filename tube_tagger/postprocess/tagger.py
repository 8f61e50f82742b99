"""
Tag writing for tube-tagger.

Writes a TagRecord into audio files with mutagen and embeds the bundle's
thumbnail as the front cover.

Tag Mapping:
    TagRecord      M4A       MP3 (ID3)   FLAC (Vorbis)
    ---------      ---       ---------   -------------
    title          \xa9nam      TIT2        title
    artist         \xa9ART      TPE1        artist
    album          \xa9alb      TALB        album
    year           \xa9day      TDRC        date
    composers      \xa9wrt      TCOM        composer
    comment        \xa9cmt      COMM        comment
    cover image    covr      APIC        Picture block

Fields whose value is None are left untouched.

Usage:
    embedder = MetadataEmbedder()
    embedder.write(record, Path("Song [abcdefghijk].m4a"), Path("Song [abcdefghijk].jpg"))
"""

from pathlib import Path

from mutagen import MutagenError
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, COMM, ID3, ID3NoHeaderError, TALB, TCOM, TDRC, TIT2, TPE1
from mutagen.mp4 import MP4, MP4Cover

from tube_tagger.core.exceptions import MetadataError
from tube_tagger.core.logger import get_logger
from tube_tagger.postprocess.models import TagRecord

logger = get_logger(__name__)


M4A_TAGS = {
    "title": "\xa9nam",
    "artist": "\xa9ART",
    "album": "\xa9alb",
    "year": "\xa9day",
    "composers": "\xa9wrt",
    "comment": "\xa9cmt",
    "cover": "covr",
}

# ID3 picture type 3 = front cover
FRONT_COVER = 3

# ID3v2 text encoding 3 = UTF-8
UTF8 = 3

IMAGE_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}


def _text_fields(record: TagRecord) -> dict[str, str]:
    """Non-empty TagRecord values as strings, keyed by field name."""
    values = {
        "title": record.title,
        "artist": record.artist,
        "album": record.album,
        "year": str(record.year) if record.year is not None else None,
        "composers": record.composers,
        "comment": record.comment,
    }
    return {name: value for name, value in values.items() if value}


class MetadataEmbedder:
    """
    Writes tags and cover art into M4A, MP3 and FLAC files.

    Each write() call opens, updates and saves a single file, so
    different files can be written from different threads.

    Attributes:
        embed_images: Whether the cover image is embedded.
    """

    def __init__(self, embed_images: bool = True) -> None:
        self.embed_images = embed_images
        self._writers = {
            ".m4a": self._write_mp4,
            ".mp4": self._write_mp4,
            ".mp3": self._write_mp3,
            ".flac": self._write_flac,
        }

    def write(self, record: TagRecord, audio_path: Path, image_path: Path | None = None) -> None:
        """
        Write a TagRecord into one audio file.

        Args:
            record: Values to write.
            audio_path: File to update in place.
            image_path: Cover image to embed, if any.

        Raises:
            MetadataError: If the format is unsupported, the image cannot be
                           read, or mutagen fails to load or save the file.
        """
        writer = self._writers.get(audio_path.suffix.lower())
        if writer is None:
            raise MetadataError(
                f"Unsupported audio format: {audio_path.suffix}",
                details={"file_path": str(audio_path)}
            )

        cover = None
        if self.embed_images and image_path is not None:
            cover = self._read_image(image_path)

        try:
            writer(audio_path, _text_fields(record), cover, image_path)
        except (MutagenError, OSError) as e:
            raise MetadataError(
                f"Failed to write tags to {audio_path.name}: {e}",
                details={"file_path": str(audio_path), "original_error": str(e)}
            ) from e

        logger.debug(f"Tags written: {audio_path.name}")

    def _read_image(self, image_path: Path) -> bytes:
        try:
            return image_path.read_bytes()
        except OSError as e:
            raise MetadataError(
                f"Failed to read cover image: {e}",
                details={"file_path": str(image_path), "original_error": str(e)}
            ) from e

    def _write_mp4(
        self,
        audio_path: Path,
        fields: dict[str, str],
        cover: bytes | None,
        image_path: Path | None
    ) -> None:
        audio = MP4(audio_path)
        if audio.tags is None:
            audio.add_tags()

        for name, value in fields.items():
            audio[M4A_TAGS[name]] = [value]

        if cover is not None:
            image_format = (
                MP4Cover.FORMAT_PNG
                if image_path is not None and image_path.suffix.lower() == ".png"
                else MP4Cover.FORMAT_JPEG
            )
            audio[M4A_TAGS["cover"]] = [MP4Cover(cover, imageformat=image_format)]

        audio.save()

    def _write_mp3(
        self,
        audio_path: Path,
        fields: dict[str, str],
        cover: bytes | None,
        image_path: Path | None
    ) -> None:
        try:
            tags = ID3(audio_path)
        except ID3NoHeaderError:
            tags = ID3()

        frames = {
            "title": TIT2,
            "artist": TPE1,
            "album": TALB,
            "year": TDRC,
            "composers": TCOM,
        }
        for name, frame in frames.items():
            if name in fields:
                tags.setall(frame.__name__, [frame(encoding=UTF8, text=fields[name])])

        if "comment" in fields:
            tags.setall("COMM", [COMM(encoding=UTF8, lang="eng", desc="", text=fields["comment"])])

        if cover is not None:
            tags.setall("APIC", [
                APIC(
                    encoding=UTF8,
                    mime=self._mime_type(image_path),
                    type=FRONT_COVER,
                    desc="Cover",
                    data=cover,
                )
            ])

        tags.save(audio_path)

    def _write_flac(
        self,
        audio_path: Path,
        fields: dict[str, str],
        cover: bytes | None,
        image_path: Path | None
    ) -> None:
        audio = FLAC(audio_path)

        vorbis_keys = {
            "title": "title",
            "artist": "artist",
            "album": "album",
            "year": "date",
            "composers": "composer",
            "comment": "comment",
        }
        for name, value in fields.items():
            audio[vorbis_keys[name]] = [value]

        if cover is not None:
            picture = Picture()
            picture.type = FRONT_COVER
            picture.mime = self._mime_type(image_path)
            picture.desc = "Cover"
            picture.data = cover
            audio.clear_pictures()
            audio.add_picture(picture)

        audio.save()

    @staticmethod
    def _mime_type(image_path: Path | None) -> str:
        if image_path is None:
            return "image/jpeg"
        return IMAGE_MIME_TYPES.get(image_path.suffix.lower(), "image/jpeg")
