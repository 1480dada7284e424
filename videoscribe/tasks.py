"""
Orchestration layer for the transcription pipeline.

:func:`process_video` is called from the HTTP entrypoint in
:mod:`videoscribe.main` once an upload has been validated and saved.  It runs
the stages in order:

1. Convert the saved video to a mono MP3 and delete the video.
2. Upload the MP3 to Cloud Storage.
3. Run long-running speech recognition on the uploaded object.
4. Summarise the transcript.

The first failing stage aborts the run; nothing is returned for the stages
that did succeed.  Local files are removed when the run ends, whatever the
outcome.
"""

import logging
import os
import secrets
import threading
import time
from typing import Callable, Dict, Optional

from pydantic import BaseModel

from . import audio_processor, storage_service, stt_service, summarizer
from .config import AppConfig
from .exceptions import PipelineCancelled, PipelineTimeout

logger = logging.getLogger(__name__)

VIDEO_DIR = "videos"
AUDIO_DIR = "audios"


class PipelineResult(BaseModel, frozen=True):
    """Outputs of a successful run."""

    audio_url: str
    gcs_uri: str
    transcript: str
    summary: str

    def as_response(self) -> Dict[str, str]:
        return {
            "audioUrl": self.audio_url,
            "gcsUri": self.gcs_uri,
            "transcript": self.transcript,
            "summary": self.summary,
        }


def new_token() -> str:
    """Random identifier used to name one request's local and remote files."""
    return secrets.token_hex(20)


def video_path_for(config: AppConfig, token: str, extension: str) -> str:
    return os.path.join(config.upload.work_dir, VIDEO_DIR, f"{token}{extension}")


def audio_path_for(config: AppConfig, token: str) -> str:
    return os.path.join(config.upload.work_dir, AUDIO_DIR, f"{token}.mp3")


def _checkpoint(
    stage: str,
    deadline: float,
    cancel_event: threading.Event,
    clock: Callable[[], float],
) -> None:
    if cancel_event.is_set():
        raise PipelineCancelled(f"Pipeline cancelled before {stage}")
    if clock() >= deadline:
        raise PipelineTimeout(f"Pipeline deadline passed before {stage}")


def process_video(
    config: AppConfig,
    video_path: str,
    token: str,
    *,
    cancel_event: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
) -> PipelineResult:
    """Run the whole pipeline on a saved video.

    Args:
        config: Application configuration.
        video_path: Local path of the uploaded video.
        token: Unique request token; names the MP3 locally and in the bucket.
        cancel_event: Optional event that aborts the run when set.
        clock: Monotonic time source.

    Returns:
        The public audio URL, the ``gs://`` URI, the transcript and summary.

    Raises:
        PipelineError: From whichever stage failed first.
    """
    if cancel_event is None:
        cancel_event = threading.Event()
    deadline = clock() + config.pipeline.timeout_seconds
    audio_path = audio_path_for(config, token)
    logger.info("Processing video %s", video_path)

    try:
        _checkpoint("transcoding", deadline, cancel_event, clock)
        audio_processor.convert_to_mp3(
            video_path,
            audio_path,
            channels=config.transcoder.channels,
            bitrate=config.transcoder.bitrate,
            ffmpeg_path=config.transcoder.ffmpeg_path,
            ffprobe_path=config.transcoder.ffprobe_path,
        )
        audio_processor.cleanup_temp_file(video_path)

        _checkpoint("upload", deadline, cancel_event, clock)
        object_name = storage_service.object_name_for(config.storage, audio_path)
        gcs_uri = storage_service.upload_file(
            config.storage,
            audio_path,
            object_name,
            timeout=config.http.timeout_seconds,
        )

        _checkpoint("transcription", deadline, cancel_event, clock)
        transcript = stt_service.transcribe(
            config,
            gcs_uri,
            cancel_event=cancel_event,
            deadline=deadline,
            clock=clock,
        )

        _checkpoint("summarization", deadline, cancel_event, clock)
        summary = summarizer.summarise(config, transcript)
    finally:
        audio_processor.cleanup_temp_file(video_path)
        audio_processor.cleanup_temp_file(audio_path)

    logger.info("Finished processing %s as %s", video_path, gcs_uri)
    return PipelineResult(
        audio_url=storage_service.public_url(config.storage, object_name),
        gcs_uri=gcs_uri,
        transcript=transcript,
        summary=summary,
    )
