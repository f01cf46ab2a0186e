from __future__ import annotations

import pytest
from pydantic import ValidationError

from attachkit.core.config import AttachmentOptions, Settings


def test_settings_defaults(monkeypatch):
    for name in (
        "APP_ROOT",
        "ATTACHMENT_STRICT_DELETES",
        "ATTACHMENT_STRICT_THUMBNAILS",
        "IMAGEMAGICK_CONVERT_BIN",
        "IMAGEMAGICK_IDENTIFY_BIN",
        "THUMBNAIL_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.strict_deletes is False
    assert settings.strict_thumbnails is True
    assert settings.convert_bin == "convert"
    assert settings.identify_bin == "identify"
    assert settings.thumbnail_timeout_seconds == 30.0


def test_settings_read_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("APP_ROOT", str(tmp_path))
    monkeypatch.setenv("ATTACHMENT_STRICT_DELETES", "true")
    monkeypatch.setenv("ATTACHMENT_STRICT_THUMBNAILS", "false")
    monkeypatch.setenv("IMAGEMAGICK_CONVERT_BIN", "/opt/im/convert")
    monkeypatch.setenv("THUMBNAIL_TIMEOUT_SECONDS", "2.5")

    options = AttachmentOptions.from_settings(Settings(_env_file=None))

    assert options.app_root == str(tmp_path.resolve())
    assert options.strict_deletes is True
    assert options.strict_thumbnails is False
    assert options.convert_bin == "/opt/im/convert"
    assert options.thumbnail_timeout_seconds == 2.5


def test_attachment_options_are_frozen():
    options = AttachmentOptions()

    with pytest.raises(ValidationError):
        options.strict_deletes = True
