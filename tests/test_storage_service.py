from unittest.mock import Mock

import pytest

import videoscribe.storage_service as storage_service
from videoscribe.exceptions import CredentialsError, StorageUploadError


class FakeBlob:
    def __init__(self, name):
        self.name = name
        self.uploaded = None

    def upload_from_filename(self, filename, content_type=None, timeout=None):
        self.uploaded = (filename, content_type, timeout)


class FakeBucket:
    def __init__(self):
        self.blobs = {}

    def blob(self, name):
        return self.blobs.setdefault(name, FakeBlob(name))


class FakeClient:
    def __init__(self):
        self.buckets = {}

    def bucket(self, name):
        return self.buckets.setdefault(name, FakeBucket())


def test_names_and_urls(config):
    name = storage_service.object_name_for(config.storage, "/work/audios/abc.mp3")
    assert name == "audio-files/abc.mp3"
    uri = storage_service.gcs_uri(config.storage, name)
    assert uri == "gs://bucket/audio-files/abc.mp3"
    assert (
        storage_service.public_url(config.storage, name)
        == "https://storage.googleapis.com/bucket/audio-files/abc.mp3"
    )


def test_upload_returns_gcs_uri(config):
    client = FakeClient()
    uri = storage_service.upload_file(
        config.storage,
        "/work/audios/abc.mp3",
        "audio-files/abc.mp3",
        timeout=30,
        client=client,
    )
    assert uri == "gs://bucket/audio-files/abc.mp3"
    blob = client.buckets["bucket"].blobs["audio-files/abc.mp3"]
    assert blob.uploaded == ("/work/audios/abc.mp3", "audio/mpeg", 30)


def test_client_built_from_credentials_file(config, monkeypatch):
    client = FakeClient()
    factory = Mock(return_value=client)
    monkeypatch.setattr(
        storage_service.storage.Client, "from_service_account_json", factory
    )

    storage_service.upload_file(config.storage, "a.mp3", "audio-files/a.mp3")

    factory.assert_called_once_with(config.storage.credentials_path, project="proj")
    assert "audio-files/a.mp3" in client.buckets["bucket"].blobs


def test_missing_credentials_fail_fast(config, monkeypatch, tmp_path):
    factory = Mock()
    monkeypatch.setattr(
        storage_service.storage.Client, "from_service_account_json", factory
    )
    storage_config = config.storage.model_copy(
        update={"credentials_path": str(tmp_path / "missing.json")}
    )

    with pytest.raises(CredentialsError):
        storage_service.upload_file(storage_config, "a.mp3", "audio-files/a.mp3")
    factory.assert_not_called()


def test_upload_failure_raises_storage_error(config):
    client = FakeClient()
    blob = client.bucket("bucket").blob("audio-files/a.mp3")
    blob.upload_from_filename = Mock(side_effect=OSError("broken pipe"))

    with pytest.raises(StorageUploadError) as excinfo:
        storage_service.upload_file(
            config.storage, "a.mp3", "audio-files/a.mp3", client=client
        )
    assert excinfo.value.object_name == "audio-files/a.mp3"
