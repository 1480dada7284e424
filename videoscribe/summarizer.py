"""
Transcript summarisation via the Cohere summarize API.

The transcript is prefixed with a fixed instruction that pins the output
language to Indonesian and asks for a plain, fluent paragraph.  Length,
format, extractiveness and model tier come from
:class:`videoscribe.config.SummarizerConfig`.
"""

import logging

import requests

from . import http_client
from .config import AppConfig
from .exceptions import SummarizationError

logger = logging.getLogger(__name__)


INSTRUCTION = (
    "Summarize the following text **strictly in Indonesian**. The summary must "
    "be fully in Indonesian, using natural and fluent language as if explaining "
    "to a native speaker. Do not include any introductory labels or language "
    "indicators. The summary should be concise, clear, and easy to understand, "
    "while keeping the key points intact:"
)


def build_prompt(transcript: str) -> str:
    return f"{INSTRUCTION}\n\n{transcript}"


def summarise(config: AppConfig, transcript: str) -> str:
    """Generate a summary for the given transcript.

    Args:
        config: Application configuration.
        transcript: Text returned by the speech recogniser.

    Returns:
        The summary with leading and trailing whitespace removed.

    Raises:
        SummarizationError: On transport errors, error statuses, or a
            response without a ``summary`` field.
    """
    settings = config.summarizer
    payload = {
        "text": build_prompt(transcript),
        "length": settings.length,
        "format": settings.format,
        "extractiveness": settings.extractiveness,
        "model": settings.model,
    }
    logger.info("Calling summarize model %s", settings.model)
    try:
        response = http_client.send(
            "POST",
            settings.api_url,
            retry=config.http.retry,
            timeout=config.http.timeout_seconds,
            headers={
                "Authorization": f"Bearer {settings.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            json=payload,
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Summarization request failed: %s", exc)
        raise SummarizationError(
            f"Summarization with Cohere failed: {exc}", exc
        ) from exc

    data = http_client.json_body(response)
    summary = data.get("summary") if data else None
    if not isinstance(summary, str):
        raise SummarizationError(
            f"Summarization with Cohere failed: unexpected response {data}"
        )
    return summary.strip()
