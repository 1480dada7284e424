"""
Error types raised by the transcription pipeline.

Every stage raises a subclass of :class:`PipelineError`.  The HTTP layer in
:mod:`videoscribe.main` collapses all of them into a single failure response,
so the hierarchy exists for logging and tests rather than for callers to
branch on.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for every failure surfaced by the pipeline."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class ConfigurationError(PipelineError):
    """Raised when required configuration is missing or invalid."""


class CredentialsError(ConfigurationError):
    """Raised when the object-store credentials file cannot be found."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Credentials file not found: {path}")


class TranscodeError(PipelineError):
    """Raised when a video cannot be converted to audio."""

    def __init__(self, video_path: str, cause: Optional[BaseException] = None):
        self.video_path = video_path
        super().__init__("Failed to convert video to MP3", cause)


class StorageUploadError(PipelineError):
    """Raised when uploading the audio file to the bucket fails."""

    def __init__(self, object_name: str, cause: Optional[BaseException] = None):
        self.object_name = object_name
        super().__init__(f"Failed to upload '{object_name}' to storage", cause)


class InvalidAudioUriError(PipelineError):
    """Raised when an audio reference is not a ``gs://`` URI."""

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Audio URI must start with gs://, got '{uri}'")


class TranscriptionSubmitError(PipelineError):
    """Raised when the speech API does not accept a recognition request."""


class TranscriptionError(PipelineError):
    """Raised when a long-running recognition operation fails."""


class EmptyTranscriptError(TranscriptionError):
    """Raised when a finished operation carries no usable transcript."""


class TranscriptionTimeout(TranscriptionError):
    """Raised when polling exceeds its attempt or time budget."""


class SummarizationError(PipelineError):
    """Raised when the summarization API call fails."""


class PipelineTimeout(PipelineError):
    """Raised when the whole pipeline runs past its deadline."""


class PipelineCancelled(PipelineError):
    """Raised when the caller cancels a running pipeline."""
