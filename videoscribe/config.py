"""Application configuration loaded from environment variables."""

import os
from typing import Optional, Tuple

from pydantic import BaseModel

from .exceptions import ConfigurationError


class StorageConfig(BaseModel, frozen=True):
    """Google Cloud Storage settings."""

    bucket: str
    project_id: str = ""
    credentials_path: str = "bucket.json"
    object_prefix: str = "audio-files/"
    public_base_url: str = "https://storage.googleapis.com"


class TranscoderConfig(BaseModel, frozen=True):
    """ffmpeg settings for the video to audio conversion."""

    ffmpeg_path: Optional[str] = None
    ffprobe_path: Optional[str] = None
    channels: int = 1
    bitrate: str = "64k"


class SpeechConfig(BaseModel, frozen=True):
    """Speech-to-Text REST API settings."""

    api_key: str
    api_url: str = "https://speech.googleapis.com/v1"
    encoding: str = "MP3"
    sample_rate_hertz: int = 16000
    language_code: str = "id-ID"
    enable_automatic_punctuation: bool = True
    model: str = "latest_long"
    poll_delay_seconds: float = 10.0
    poll_max_attempts: int = 360
    poll_timeout_seconds: float = 3600.0


class SummarizerConfig(BaseModel, frozen=True):
    """Cohere summarize API settings."""

    api_key: str
    api_url: str = "https://api.cohere.ai/v1/summarize"
    model: str = "summarize-xlarge"
    length: str = "short"
    format: str = "paragraph"
    extractiveness: str = "low"


class RetryConfig(BaseModel, frozen=True):
    """Backoff for transient transport errors."""

    attempts: int = 3
    backoff_seconds: float = 1.0


class HttpConfig(BaseModel, frozen=True):
    """Outbound HTTP settings shared by the API clients."""

    timeout_seconds: float = 300.0
    retry: RetryConfig = RetryConfig()


class UploadConfig(BaseModel, frozen=True):
    """Inbound upload settings."""

    work_dir: str = "storage"
    max_bytes: int = 50_000 * 1024
    allowed_mimetypes: Tuple[str, ...] = ("video/mp4", "video/x-matroska")


class PipelineConfig(BaseModel, frozen=True):
    """Bounds for a single pipeline run."""

    timeout_seconds: float = 3600.0


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    storage: StorageConfig
    transcoder: TranscoderConfig = TranscoderConfig()
    speech: SpeechConfig
    summarizer: SummarizerConfig
    http: HttpConfig = HttpConfig()
    upload: UploadConfig = UploadConfig()
    pipeline: PipelineConfig = PipelineConfig()


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    return AppConfig(
        storage=StorageConfig(
            bucket=os.getenv("GCS_BUCKET", ""),
            project_id=os.getenv("GOOGLE_CLOUD_PROJECT", ""),
            credentials_path=os.getenv("GCS_CREDENTIALS_PATH", "bucket.json"),
            object_prefix=os.getenv("GCS_OBJECT_PREFIX", "audio-files/"),
        ),
        transcoder=TranscoderConfig(
            ffmpeg_path=os.getenv("FFMPEG_PATH") or None,
            ffprobe_path=os.getenv("FFPROBE_PATH") or None,
            bitrate=os.getenv("AUDIO_BITRATE", "64k"),
        ),
        speech=SpeechConfig(
            api_key=os.getenv("GCP_API_KEY", ""),
            api_url=os.getenv("SPEECH_API_URL", "https://speech.googleapis.com/v1"),
            language_code=os.getenv("SPEECH_LANGUAGE_CODE", "id-ID"),
            poll_delay_seconds=float(os.getenv("SPEECH_POLL_DELAY_SECONDS", "10")),
            poll_max_attempts=int(os.getenv("SPEECH_POLL_MAX_ATTEMPTS", "360")),
            poll_timeout_seconds=float(
                os.getenv("SPEECH_POLL_TIMEOUT_SECONDS", "3600")
            ),
        ),
        summarizer=SummarizerConfig(
            api_key=os.getenv("COHERE_API_KEY", ""),
            api_url=os.getenv("COHERE_API_URL", "https://api.cohere.ai/v1/summarize"),
        ),
        http=HttpConfig(
            timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "300")),
        ),
        upload=UploadConfig(
            work_dir=os.getenv("WORK_DIR", "storage"),
            max_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(50_000 * 1024))),
        ),
        pipeline=PipelineConfig(
            timeout_seconds=float(os.getenv("PIPELINE_TIMEOUT_SECONDS", "3600")),
        ),
    )


def validate_config(config: AppConfig) -> None:
    """Fails fast on settings the pipeline cannot run without.

    Raises:
        ConfigurationError: Naming every missing environment variable.
    """
    required = {
        "GCS_BUCKET": config.storage.bucket,
        "GCP_API_KEY": config.speech.api_key,
        "COHERE_API_KEY": config.summarizer.api_key,
    }
    missing = [name for name, value in required.items() if not value.strip()]
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
