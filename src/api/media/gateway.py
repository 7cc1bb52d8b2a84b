import logging
import mimetypes
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile

from api.config import settings

logger = logging.getLogger("media")

VIDEO = "video"
IMAGE = "image"


@dataclass
class MediaAsset:
    url: str
    public_id: str
    resource_type: str


def _resource_type_for(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    if mime and mime.startswith("video/"):
        return VIDEO
    return IMAGE


def _object_key(public_id: str, resource_type: str) -> str:
    # videos/<id> and images/<id> are deleted through separate calls upstream
    return f"{resource_type}s/{public_id}"


def s3_client():
    return boto3.client(
        "s3",
        endpoint_url=settings.MEDIA_ENDPOINT,
        aws_access_key_id=settings.MEDIA_ACCESS_KEY,
        aws_secret_access_key=settings.MEDIA_SECRET_KEY,
        region_name=settings.MEDIA_REGION,
    )


class MediaGateway:
    """Uploads and deletes binary media in an S3-compatible object store.

    Failures never raise: ``store`` returns ``None`` and ``remove`` returns
    ``False`` so callers can report a uniform upstream error.
    """

    def __init__(self, client=None, bucket: str | None = None, public_url: str | None = None):
        self.client = client or s3_client()
        self.bucket = bucket or settings.MEDIA_BUCKET
        base = public_url or settings.MEDIA_PUBLIC_URL
        if not base:
            endpoint = settings.MEDIA_ENDPOINT or f"https://s3.{settings.MEDIA_REGION}.amazonaws.com"
            base = f"{endpoint.rstrip('/')}/{self.bucket}"
        self.public_url = base.rstrip("/")

    def store(
        self,
        local_file_path: Optional[str],
        resource_type: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Optional[MediaAsset]:
        """Upload a local file and delete it afterwards.

        ``resource_type`` picks the key prefix and must be passed again to
        ``remove``; it is only guessed from the file name when omitted.
        """
        if not local_file_path:
            return None
        public_id = str(uuid.uuid4())
        resource_type = resource_type or _resource_type_for(local_file_path)
        key = _object_key(public_id, resource_type)
        content_type = (
            content_type
            or mimetypes.guess_type(local_file_path)[0]
            or "application/octet-stream"
        )
        try:
            with open(local_file_path, "rb") as fh:
                self.client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=fh,
                    ContentType=content_type,
                )
            logger.info(f"Uploaded {resource_type} asset {public_id}")
            return MediaAsset(
                url=f"{self.public_url}/{key}",
                public_id=public_id,
                resource_type=resource_type,
            )
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error(f"Media upload failed for {local_file_path}: {e}")
            return None
        finally:
            _discard(local_file_path)

    def remove(self, public_id: Optional[str], resource_type: str = VIDEO) -> bool:
        if not public_id:
            return True
        try:
            self.client.delete_object(Bucket=self.bucket, Key=_object_key(public_id, resource_type))
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Media delete failed for {resource_type} {public_id}: {e}")
            return False
        logger.info(f"Deleted {resource_type} asset {public_id}")
        return True


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def save_upload(upload: UploadFile) -> str:
    """Spool a multipart upload to a local temp file, keeping its extension."""
    suffix = os.path.splitext(upload.filename or "")[1]
    fd, path = tempfile.mkstemp(suffix=suffix, dir=settings.UPLOAD_TMP_DIR)
    with os.fdopen(fd, "wb") as out:
        shutil.copyfileobj(upload.file, out)
    return path


@lru_cache
def get_media_gateway() -> MediaGateway:
    return MediaGateway()
