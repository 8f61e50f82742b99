# tests/test_config.py
"""Tests for configuration loading"""

import pytest

from tube_tagger.core.config import (
    DownloadConfig,
    PostProcessingConfig,
    load_config,
    parse_config,
)
from tube_tagger.core.exceptions import ConfigError


def write_config(directory, text):
    path = directory / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test reading config.yaml"""

    def test_minimal_config_uses_defaults(self, temp_dir):
        working = temp_dir / "working"
        path = write_config(temp_dir, f"directories:\n  working: \"{working}\"\n")

        config = load_config(path)

        assert config.directories.working == working.resolve()
        assert config.directories.move_to is None
        assert config.directories.logs == working.resolve().parent / "logs"
        assert config.download == DownloadConfig()
        assert config.postprocessing == PostProcessingConfig()

    def test_full_config(self, temp_dir):
        cookies = temp_dir / "cookies.txt"
        cookies.write_text("# Netscape HTTP Cookie File", encoding="utf-8")
        path = write_config(temp_dir, f"""
directories:
  working: "{temp_dir / 'working'}"
  move_to: "{temp_dir / 'library'}"
  logs: "{temp_dir / 'logs'}"
download:
  audio_format: "MP3"
  split_chapters: true
  sleep_seconds: 0
  retries: 5
  cookie_file: "{cookies}"
postprocessing:
  audio_extensions: ["mp3", ".FLAC"]
  metadata_extension: "json"
  image_extension: ".webp"
  threads: 4
  upload_year_fallback: true
  embed_images: false
""")

        config = load_config(path)

        assert config.directories.move_to == (temp_dir / "library").resolve()
        assert config.download.audio_format == "mp3"
        assert config.download.split_chapters is True
        assert config.download.cookie_file == cookies.resolve()
        assert config.postprocessing.audio_extensions == (".mp3", ".flac")
        assert config.postprocessing.metadata_extension == ".json"
        assert config.postprocessing.image_extension == ".webp"
        assert config.postprocessing.threads == 4
        assert config.postprocessing.upload_year_fallback is True
        assert config.postprocessing.embed_images is False

    def test_home_is_expanded(self):
        config = parse_config({"directories": {"working": "~/tube-tagger"}})
        assert "~" not in str(config.directories.working)

    def test_audio_extensions_follow_audio_format(self):
        config = parse_config({
            "directories": {"working": "/tmp/work"},
            "download": {"audio_format": "flac"},
        })
        assert config.postprocessing.audio_extensions == (".flac",)

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigError) as exc_info:
            load_config(temp_dir / "config.yaml")
        assert "not found" in exc_info.value.message

    def test_invalid_yaml(self, temp_dir):
        path = write_config(temp_dir, "directories: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_not_a_dictionary(self, temp_dir):
        path = write_config(temp_dir, "- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_config(path)


class TestValidation:
    """Test rejection of invalid values"""

    @pytest.mark.parametrize("raw", [
        {},
        {"directories": None},
        {"directories": {"working": ""}},
        {"directories": {"working": "/tmp/a", "move_to": "/tmp/a"}},
        {"directories": {"working": "/tmp/a"}, "download": "m4a"},
        {"directories": {"working": "/tmp/a"}, "download": {"audio_format": "ogg"}},
        {"directories": {"working": "/tmp/a"}, "download": {"split_chapters": "yes"}},
        {"directories": {"working": "/tmp/a"}, "download": {"retries": -1}},
        {"directories": {"working": "/tmp/a"}, "download": {"cookie_file": "/nonexistent/cookies.txt"}},
        {"directories": {"working": "/tmp/a"}, "postprocessing": {"threads": 0}},
        {"directories": {"working": "/tmp/a"}, "postprocessing": {"threads": True}},
        {"directories": {"working": "/tmp/a"}, "postprocessing": {"audio_extensions": []}},
        {"directories": {"working": "/tmp/a"}, "postprocessing": {"audio_extensions": [".m4a", ".json"]}},
        {"directories": {"working": "/tmp/a"}, "postprocessing": {"image_extension": "."}},
        {"directories": {"working": "/tmp/a"}, "postprocessing": {"embed_images": "no"}},
    ])
    def test_invalid_config(self, raw):
        with pytest.raises(ConfigError):
            parse_config(raw)

    def test_error_names_the_field(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_config({"directories": {"working": "/tmp/a"}, "postprocessing": {"threads": 0}})

        assert exc_info.value.details["field"] == "postprocessing.threads"
