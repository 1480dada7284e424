import pytest

from videoscribe.config import (
    SpeechConfig,
    StorageConfig,
    SummarizerConfig,
    load_config,
    validate_config,
)
from videoscribe.exceptions import ConfigurationError


def test_defaults(monkeypatch):
    for name in (
        "GCS_BUCKET",
        "FFMPEG_PATH",
        "FFPROBE_PATH",
        "SPEECH_POLL_DELAY_SECONDS",
        "MAX_UPLOAD_BYTES",
    ):
        monkeypatch.delenv(name, raising=False)
    config = load_config()
    assert config.storage.credentials_path == "bucket.json"
    assert config.storage.object_prefix == "audio-files/"
    assert config.transcoder.ffmpeg_path is None
    assert config.transcoder.ffprobe_path is None
    assert config.transcoder.bitrate == "64k"
    assert config.speech.language_code == "id-ID"
    assert config.speech.poll_delay_seconds == 10.0
    assert config.upload.max_bytes == 50_000 * 1024
    assert config.upload.allowed_mimetypes == ("video/mp4", "video/x-matroska")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("GCS_BUCKET", "my-bucket")
    monkeypatch.setenv("GCP_API_KEY", "k1")
    monkeypatch.setenv("COHERE_API_KEY", "k2")
    monkeypatch.setenv("FFMPEG_PATH", "/usr/local/bin/ffmpeg")
    monkeypatch.setenv("FFPROBE_PATH", "/opt/probe/ffprobe")
    monkeypatch.setenv("SPEECH_POLL_DELAY_SECONDS", "5")
    monkeypatch.setenv("PIPELINE_TIMEOUT_SECONDS", "600")
    config = load_config()
    assert config.storage.bucket == "my-bucket"
    assert config.speech.api_key == "k1"
    assert config.summarizer.api_key == "k2"
    assert config.transcoder.ffmpeg_path == "/usr/local/bin/ffmpeg"
    assert config.transcoder.ffprobe_path == "/opt/probe/ffprobe"
    assert config.speech.poll_delay_seconds == 5.0
    assert config.pipeline.timeout_seconds == 600.0
    validate_config(config)


def test_validate_accepts_complete_config(config):
    validate_config(config)


def test_validate_names_every_missing_setting(monkeypatch):
    for name in ("GCS_BUCKET", "GCP_API_KEY", "COHERE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    with pytest.raises(ConfigurationError) as excinfo:
        validate_config(load_config())
    message = str(excinfo.value)
    assert "GCS_BUCKET" in message
    assert "GCP_API_KEY" in message
    assert "COHERE_API_KEY" in message


@pytest.mark.parametrize(
    "update, missing",
    [
        ({"storage": StorageConfig(bucket="")}, "GCS_BUCKET"),
        ({"speech": SpeechConfig(api_key="  ")}, "GCP_API_KEY"),
        ({"summarizer": SummarizerConfig(api_key="")}, "COHERE_API_KEY"),
    ],
)
def test_validate_rejects_blank_setting(config, update, missing):
    with pytest.raises(ConfigurationError, match=missing):
        validate_config(config.model_copy(update=update))
