"""
Google Speech-to-Text long-running recognition over REST.

Audio longer than a minute has to go through ``speech:longrunningrecognize``:
the API answers with an operation name straight away and the transcript has
to be fetched later by polling ``operations/<name>``.  This module builds the
recognition request, submits it, and runs the polling loop.

Usage::

    from videoscribe.stt_service import transcribe

    text = transcribe(config, "gs://my-bucket/audio-files/example.mp3")

The loop in :func:`wait_for_operation` always terminates: it stops on the
first error, on the first finished operation (with or without a transcript),
after ``max_attempts`` polls, or when its deadline passes.  The delay between
polls waits on a :class:`threading.Event`, so setting that event interrupts a
wait immediately.
"""

import enum
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from . import http_client
from .config import AppConfig, SpeechConfig
from .exceptions import (
    EmptyTranscriptError,
    InvalidAudioUriError,
    PipelineCancelled,
    TranscriptionError,
    TranscriptionSubmitError,
    TranscriptionTimeout,
)
from .storage_service import GCS_SCHEME

logger = logging.getLogger(__name__)


class OperationState(enum.Enum):
    RUNNING = "running"
    DONE_SUCCESS = "done_success"
    DONE_ERROR = "done_error"


@dataclass(frozen=True)
class PollPolicy:
    """How often, and for how long, an operation is polled.

    Attributes:
        delay_seconds: Fixed wait between two status checks.
        max_attempts: Maximum number of status checks.
        timeout_seconds: Wall-clock budget measured from the first check.
    """

    delay_seconds: float = 10.0
    max_attempts: int = 360
    timeout_seconds: float = 3600.0

    @classmethod
    def from_config(cls, config: SpeechConfig) -> "PollPolicy":
        return cls(
            delay_seconds=config.poll_delay_seconds,
            max_attempts=config.poll_max_attempts,
            timeout_seconds=config.poll_timeout_seconds,
        )


def _headers(config: SpeechConfig) -> Dict[str, str]:
    return {"Content-Type": "application/json", "X-Goog-Api-Key": config.api_key}


def build_recognition_request(config: SpeechConfig, audio_uri: str) -> Dict[str, Any]:
    """Build the JSON body for a long-running recognition request.

    Raises:
        InvalidAudioUriError: If ``audio_uri`` is not a ``gs://`` URI.
    """
    if not audio_uri or not audio_uri.startswith(GCS_SCHEME):
        raise InvalidAudioUriError(audio_uri)
    return {
        "config": {
            "encoding": config.encoding,
            "sampleRateHertz": config.sample_rate_hertz,
            "languageCode": config.language_code,
            "enableAutomaticPunctuation": config.enable_automatic_punctuation,
            "model": config.model,
        },
        "audio": {"uri": audio_uri},
    }


def submit_recognition(config: AppConfig, audio_uri: str) -> str:
    """Start a long-running recognition job.

    Returns:
        The operation name to poll.

    Raises:
        InvalidAudioUriError: If the URI is rejected locally.
        TranscriptionSubmitError: If the request fails, the response carries
            an ``error`` field or lacks a ``name``.
    """
    payload = build_recognition_request(config.speech, audio_uri)
    url = f"{config.speech.api_url.rstrip('/')}/speech:longrunningrecognize"
    logger.info("Submitting recognition job for %s", audio_uri)
    try:
        response = http_client.send(
            "POST",
            url,
            retry=config.http.retry,
            timeout=config.http.timeout_seconds,
            headers=_headers(config.speech),
            json=payload,
        )
    except requests.RequestException as exc:
        logger.error("Recognition request for %s failed: %s", audio_uri, exc)
        raise TranscriptionSubmitError(
            f"Speech API request failed: {exc}", exc
        ) from exc

    data = http_client.json_body(response)
    if data is None:
        raise TranscriptionSubmitError(
            f"Speech API returned a non-JSON response (HTTP {response.status_code})"
        )
    if "error" in data or not data.get("name"):
        raise TranscriptionSubmitError(
            f"Failed to start operation. API response: {data}"
        )
    logger.info("Recognition job %s started", data["name"])
    return data["name"]


def get_operation(config: AppConfig, operation_name: str) -> Dict[str, Any]:
    """Fetch the current status of an operation.

    Raises:
        TranscriptionError: On transport failure or a non-JSON response.
    """
    url = f"{config.speech.api_url.rstrip('/')}/operations/{operation_name}"
    try:
        response = http_client.send(
            "GET",
            url,
            retry=config.http.retry,
            timeout=config.http.timeout_seconds,
            headers=_headers(config.speech),
        )
    except requests.RequestException as exc:
        logger.error("Status check for operation %s failed: %s", operation_name, exc)
        raise TranscriptionError(f"Speech API request failed: {exc}", exc) from exc

    data = http_client.json_body(response)
    if data is None:
        raise TranscriptionError(
            f"Speech API returned a non-JSON response (HTTP {response.status_code})"
        )
    return data


def operation_state(payload: Dict[str, Any]) -> OperationState:
    if "error" in payload:
        return OperationState.DONE_ERROR
    if payload.get("done") is True:
        return OperationState.DONE_SUCCESS
    return OperationState.RUNNING


def extract_transcript(payload: Dict[str, Any]) -> Optional[str]:
    """Return the first alternative of the first result, if there is one."""
    try:
        first = payload["response"]["results"][0]
        transcript = first["alternatives"][0]["transcript"]
    except (KeyError, IndexError, TypeError):
        return None
    return transcript if isinstance(transcript, str) else None


def wait_for_operation(
    config: AppConfig,
    operation_name: str,
    *,
    policy: Optional[PollPolicy] = None,
    cancel_event: Optional[threading.Event] = None,
    deadline: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """Poll an operation until it finishes and return its transcript.

    Args:
        config: Application configuration.
        operation_name: Name returned by :func:`submit_recognition`.
        policy: Poll cadence and limits; built from ``config.speech`` when
            omitted.
        cancel_event: Event that interrupts the wait between polls.
        deadline: Absolute ``clock()`` value after which polling stops, in
            addition to ``policy.timeout_seconds``.
        clock: Monotonic time source.

    Raises:
        TranscriptionError: If the operation reports an error.
        EmptyTranscriptError: If the operation finished without a transcript.
        TranscriptionTimeout: If the attempt cap or deadline is reached.
        PipelineCancelled: If ``cancel_event`` is set while waiting.
    """
    if policy is None:
        policy = PollPolicy.from_config(config.speech)
    if cancel_event is None:
        cancel_event = threading.Event()

    stop_at = clock() + policy.timeout_seconds
    if deadline is not None:
        stop_at = min(stop_at, deadline)

    attempts = 0
    while True:
        attempts += 1
        payload = get_operation(config, operation_name)
        state = operation_state(payload)

        if state is OperationState.DONE_ERROR:
            logger.error("Operation %s failed: %s", operation_name, payload["error"])
            raise TranscriptionError(
                f"Transcription failed. API response: {payload['error']}"
            )

        if state is OperationState.DONE_SUCCESS:
            transcript = extract_transcript(payload)
            if transcript is None:
                raise EmptyTranscriptError(
                    f"No transcription result. API response: {payload}"
                )
            logger.info(
                "Operation %s finished after %d poll(s)", operation_name, attempts
            )
            return transcript

        if attempts >= policy.max_attempts:
            raise TranscriptionTimeout(
                f"Operation {operation_name} still running after {attempts} poll(s)"
            )
        if clock() + policy.delay_seconds > stop_at:
            raise TranscriptionTimeout(
                f"Operation {operation_name} did not finish before the deadline"
            )

        logger.debug(
            "Operation %s still running, next check in %ss",
            operation_name,
            policy.delay_seconds,
        )
        if cancel_event.wait(policy.delay_seconds):
            raise PipelineCancelled(
                f"Cancelled while waiting for operation {operation_name}"
            )


def transcribe(config: AppConfig, audio_uri: str, **poll_kwargs: Any) -> str:
    """Submit ``audio_uri`` for recognition and wait for the transcript."""
    operation_name = submit_recognition(config, audio_uri)
    return wait_for_operation(config, operation_name, **poll_kwargs)
