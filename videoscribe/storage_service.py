"""
Google Cloud Storage upload helpers.

The speech API reads long audio from Cloud Storage only, so the converted MP3
is uploaded to the configured bucket first.  The returned ``gs://`` URI is the
reference handed to :mod:`videoscribe.stt_service`; :func:`public_url` builds
the HTTPS address returned to the browser for playback.
"""

import logging
import os
from typing import Optional

from google.cloud import storage

from .config import StorageConfig
from .exceptions import CredentialsError, StorageUploadError

logger = logging.getLogger(__name__)

GCS_SCHEME = "gs://"


def object_name_for(config: StorageConfig, file_name: str) -> str:
    """Derive the bucket object name for a local audio file."""
    return f"{config.object_prefix}{os.path.basename(file_name)}"


def gcs_uri(config: StorageConfig, object_name: str) -> str:
    return f"{GCS_SCHEME}{config.bucket}/{object_name}"


def public_url(config: StorageConfig, object_name: str) -> str:
    return f"{config.public_base_url.rstrip('/')}/{config.bucket}/{object_name}"


def get_client(config: StorageConfig) -> storage.Client:
    """Build a storage client from the service-account key file.

    Raises:
        CredentialsError: If the key file does not exist.
    """
    if not os.path.exists(config.credentials_path):
        logger.error("Storage credentials file not found: %s", config.credentials_path)
        raise CredentialsError(config.credentials_path)
    return storage.Client.from_service_account_json(
        config.credentials_path, project=config.project_id or None
    )


def upload_file(
    config: StorageConfig,
    local_path: str,
    object_name: str,
    *,
    content_type: str = "audio/mpeg",
    timeout: Optional[float] = None,
    client: Optional[storage.Client] = None,
) -> str:
    """Upload a local file to the configured bucket.

    Args:
        config: Storage configuration.
        local_path: File to upload.
        object_name: Destination object name inside the bucket.
        content_type: MIME type stored on the object.
        timeout: Per-request timeout in seconds.
        client: Optional pre-built client; built from the credentials file
            otherwise.

    Returns:
        The canonical ``gs://bucket/object`` URI of the uploaded object.

    Raises:
        CredentialsError: If no client is given and the key file is missing.
        StorageUploadError: If the upload itself fails.
    """
    if client is None:
        client = get_client(config)
    try:
        blob = client.bucket(config.bucket).blob(object_name)
        kwargs = {"content_type": content_type}
        if timeout is not None:
            kwargs["timeout"] = timeout
        blob.upload_from_filename(local_path, **kwargs)
    except Exception as exc:
        logger.exception("Upload of %s to bucket %s failed", object_name, config.bucket)
        raise StorageUploadError(object_name, exc) from exc
    uri = gcs_uri(config, object_name)
    logger.info("Uploaded %s to %s", local_path, uri)
    return uri
