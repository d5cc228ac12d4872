"""Profile picture storage: a GCS bucket when configured, else a local directory."""

import random
import time
from pathlib import Path

from google.cloud import storage as gcs_storage

from app.config import get_settings

LOCAL_URL_PREFIX = "/uploads"


def get_storage_client():
    return gcs_storage.Client(project=get_settings().GCP_PROJECT_ID or None)


def get_bucket():
    client = get_storage_client()
    return client.bucket(get_settings().GCS_BUCKET_NAME)


def unique_filename(field_name: str, original_name: str | None) -> str:
    """``<field>-<epoch ms>-<random><ext>``, keeping the original extension."""
    suffix = Path(original_name or "").suffix.lower()
    return f"{field_name}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


def upload_file(
    filename: str,
    file_bytes: bytes,
    content_type: str = "application/octet-stream",
) -> str:
    """Store an uploaded file and return the URL clients should use."""
    settings = get_settings()

    if settings.GCS_BUCKET_NAME:
        bucket = get_bucket()
        blob = bucket.blob(f"uploads/{filename}")
        blob.upload_from_string(file_bytes, content_type=content_type)
        return blob.public_url

    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    (upload_dir / filename).write_bytes(file_bytes)
    return f"{LOCAL_URL_PREFIX}/{filename}"
