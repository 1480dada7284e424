import pytest

from videoscribe.config import (
    AppConfig,
    HttpConfig,
    RetryConfig,
    SpeechConfig,
    StorageConfig,
    SummarizerConfig,
    UploadConfig,
)


@pytest.fixture
def config(tmp_path):
    creds = tmp_path / "bucket.json"
    creds.write_text("{}")
    return AppConfig(
        storage=StorageConfig(
            bucket="bucket", project_id="proj", credentials_path=str(creds)
        ),
        speech=SpeechConfig(api_key="speech-key", poll_delay_seconds=5.0),
        summarizer=SummarizerConfig(api_key="cohere-key"),
        http=HttpConfig(
            timeout_seconds=30.0, retry=RetryConfig(attempts=3, backoff_seconds=0)
        ),
        upload=UploadConfig(work_dir=str(tmp_path / "work")),
    )


class FakeEvent:
    """Stands in for threading.Event; records waits instead of sleeping."""

    def __init__(self, cancel_after=None):
        self.waits = []
        self.cancel_after = cancel_after

    def wait(self, timeout=None):
        self.waits.append(timeout)
        return self.cancel_after is not None and len(self.waits) >= self.cancel_after

    def is_set(self):
        return False


@pytest.fixture
def make_event():
    return FakeEvent
