"""
S3-compatible object storage for uploaded article images.

boto3 is blocking, so every call is pushed to Starlette's threadpool.  The
client is created on first use; constructing ``ObjectStorage`` never touches
the network.
"""
import logging
import time
import uuid
from typing import Mapping

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from newsroom.errors import PayloadTooLargeError, UnexpectedError

logger = logging.getLogger(__name__)


def object_key_for(filename: str | None) -> str:
    """Return ``<epoch millis>-<random>.<extension>`` for an uploaded file name."""
    _, dot, extension = (filename or "").rpartition(".")
    if not dot or not extension:
        extension = "bin"
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}.{extension.lower()}"


def key_from_path(path: str) -> str:
    """The object key is the last segment of a public path."""
    return path.rstrip("/").split("/")[-1]


class ObjectStorage:
    def __init__(
        self,
        bucket: str,
        public_url: str,
        endpoint_url: str | None = None,
        access_key: str = "",
        secret_key: str = "",
        max_size: int = 3_000_000,
    ) -> None:
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")
        self.endpoint_url = endpoint_url
        self.access_key = access_key
        self.secret_key = secret_key
        self.max_size = max_size
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self.access_key or None,
                aws_secret_access_key=self.secret_key or None,
                region_name="us-east-1",
            )
        return self._client

    async def upload(self, files: Mapping[str, UploadFile]) -> dict[str, str]:
        """
        Store each file and return ``{field: public_url}``.

        Files larger than ``max_size`` are rejected before anything is
        written.  At most ``max_size + 1`` bytes are read from each file.
        """
        payloads: dict[str, tuple[str, bytes, str]] = {}
        for field, upload in files.items():
            data = await upload.read(self.max_size + 1)
            if len(data) > self.max_size:
                raise PayloadTooLargeError(f"File {field!r} exceeds {self.max_size} bytes")
            content_type = upload.content_type or "application/octet-stream"
            payloads[field] = (object_key_for(upload.filename), data, content_type)

        result: dict[str, str] = {}
        for field, (key, data, content_type) in payloads.items():
            try:
                await run_in_threadpool(
                    self.client.put_object,
                    Bucket=self.bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                    Metadata={"fieldName": field},
                )
            except (BotoCoreError, ClientError) as exc:
                raise UnexpectedError(f"Unable to upload object: {exc}") from exc
            logger.info("Uploaded %s as %s/%s", field, self.bucket, key)
            result[field] = f"{self.public_url}/{key}"
        return result

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise UnexpectedError(f"Unable to remove object: {exc}") from exc
        logger.info("Removed %s/%s", self.bucket, key)
