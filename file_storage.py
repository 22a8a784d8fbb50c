import logging
import time
from dataclasses import dataclass
from urllib.parse import unquote, urlparse

from google.api_core.exceptions import NotFound

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """An upload or delete against the storage bucket failed."""


@dataclass
class UploadedFile:
    url: str
    file_name: str
    file_type: str  # 'image' | 'video'


def folder_path(entity_type: str, entity_id: str, file_kind: str) -> str:
    """e.g. martyrs/abc123/photos - file_kind is photos, videos or photos360."""
    return f"{entity_type}/{entity_id}/{file_kind}"


def _blob_path_from_url(file_url: str) -> str:
    parsed = urlparse(file_url)
    if '/o/' in parsed.path:
        # https://firebasestorage.googleapis.com/v0/b/<bucket>/o/<encoded path>?alt=media
        return unquote(parsed.path.split('/o/', 1)[1])
    # https://storage.googleapis.com/<bucket>/<path>
    parts = parsed.path.lstrip('/').split('/', 1)
    if len(parts) != 2:
        raise StorageError(f"Cannot find an object path in '{file_url}'")
    return unquote(parts[1])


def upload_file(bucket, data: bytes, original_name: str, content_type: str, folder: str, file_name: str = None) -> UploadedFile:
    """
    Uploads raw bytes and returns the public URL of the stored object.
    """
    final_name = file_name or f"{int(time.time() * 1000)}_{original_name}"
    blob = bucket.blob(f"{folder}/{final_name}")
    try:
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
    except Exception as e:
        logger.error("Error uploading %s: %s", final_name, e)
        raise StorageError("Failed to upload file") from e

    file_type = 'image' if (content_type or '').startswith('image/') else 'video'
    return UploadedFile(url=blob.public_url, file_name=final_name, file_type=file_type)


def upload_streamlit_files(bucket, uploaded_files, folder: str) -> list:
    """Uploads the files returned by st.file_uploader."""
    return [
        upload_file(bucket, f.getvalue(), f.name, f.type, folder)
        for f in uploaded_files or []
    ]


def delete_file(bucket, file_url: str):
    """Deletes the object behind a URL. A missing object counts as deleted."""
    path = _blob_path_from_url(file_url)
    try:
        bucket.blob(path).delete()
    except NotFound:
        logger.warning("File already deleted or doesn't exist: %s", file_url)
    except Exception as e:
        logger.error("Error deleting %s: %s", file_url, e)
        raise StorageError("Failed to delete file") from e


def delete_files(bucket, file_urls: list) -> list:
    """
    Deletes several files; failures are logged and returned, never raised.
    """
    failed = []
    for url in file_urls or []:
        try:
            delete_file(bucket, url)
        except StorageError as e:
            logger.warning("Failed to delete file %s: %s", url, e)
            failed.append(url)
    return failed
