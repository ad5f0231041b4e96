"""
S3 object storage implementation.

This module provides the S3-based implementation of the ObjectStoragePort
interface. Reads stream straight from the ``get_object`` body and writes
are streamed through a multipart upload, so neither side holds a whole
audio file in memory.
"""
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ...core.ports.storage_service import ObjectStoragePort, StorageError
from ...infrastructure.aws.aws_config import AWSConfigManager
from ...infrastructure.config.infrastructure_settings import MIN_UPLOAD_PART_SIZE
from ...infrastructure.logging.log_config import get_logger
from ...infrastructure.logging.log_decorators import log_infrastructure_operation

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = 'application/octet-stream'

_NOT_FOUND_CODES = ('NoSuchKey', 'NoSuchBucket', '404', 'NotFound')


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code', '')
    return ''


class S3ObjectReader:
    """
    Readable byte stream over a ``get_object`` body.

    Transport errors raised mid-stream surface as StorageError like every
    other storage failure.
    """

    def __init__(self, body, bucket: str, key: str, content_length: Optional[int] = None):
        self._body = body
        self.bucket = bucket
        self.key = key
        self.content_length = content_length
        self.bytes_read = 0

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        try:
            data = self._body.read(size if size is not None and size >= 0 else None)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to read S3 object: {e}", "read", self.key) from e
        self.bytes_read += len(data)
        return data

    def close(self) -> None:
        self._body.close()


class S3ObjectWriter:
    """
    Writable byte stream backed by an S3 multipart upload.

    Data is buffered until ``part_size`` bytes are available and then sent
    as one part. Objects that never fill a part are written with a single
    ``put_object`` on close.
    """

    def __init__(
        self,
        s3_client,
        bucket: str,
        key: str,
        content_type: str,
        part_size: int,
        aws_config: Optional[AWSConfigManager] = None
    ):
        if part_size < MIN_UPLOAD_PART_SIZE:
            raise ValueError(f"part_size must be at least {MIN_UPLOAD_PART_SIZE} bytes")

        self.s3_client = s3_client
        self.bucket = bucket
        self.key = key
        self.content_type = content_type
        self.part_size = part_size
        self._aws_config = aws_config

        self._buffer = bytearray()
        self._upload_id: Optional[str] = None
        self._parts: List[Dict[str, Any]] = []
        self._closed = False
        self.bytes_written = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return not self._closed

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed S3 object stream")

        self._buffer.extend(data)
        self.bytes_written += len(data)

        while len(self._buffer) >= self.part_size:
            chunk = bytes(self._buffer[:self.part_size])
            del self._buffer[:self.part_size]
            self._upload_part(chunk)

        return len(data)

    def close(self) -> None:
        """Flush remaining data and make the object visible."""
        if self._closed:
            return

        try:
            if self._upload_id is None:
                self.s3_client.put_object(
                    Bucket=self.bucket,
                    Key=self.key,
                    Body=bytes(self._buffer),
                    ContentType=self.content_type
                )
            else:
                if self._buffer:
                    self._upload_part(bytes(self._buffer))
                self.s3_client.complete_multipart_upload(
                    Bucket=self.bucket,
                    Key=self.key,
                    UploadId=self._upload_id,
                    MultipartUpload={'Parts': self._parts}
                )
        except (ClientError, BotoCoreError) as e:
            self.abort()
            raise self._wrap(e, "close") from e

        self._buffer.clear()
        self._closed = True

        logger.info("S3 object written", extra={'extra_fields': {
            "bucket": self.bucket,
            "key": self.key,
            "size_bytes": self.bytes_written,
            "parts": len(self._parts) or 1
        }})

    def abort(self) -> None:
        """
        Abandon the write. An open multipart upload is aborted so its
        parts do not linger; an already completed object is left alone.
        """
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()

        if self._upload_id is None:
            return

        try:
            self.s3_client.abort_multipart_upload(
                Bucket=self.bucket,
                Key=self.key,
                UploadId=self._upload_id
            )
            logger.warning("Multipart upload aborted", extra={'extra_fields': {
                "bucket": self.bucket,
                "key": self.key,
                "upload_id": self._upload_id
            }})
        except (ClientError, BotoCoreError) as e:
            # The original failure is what the caller needs to see
            logger.warning("Failed to abort multipart upload", extra={'extra_fields': {
                "bucket": self.bucket,
                "key": self.key,
                "error": str(e)
            }})

    def _upload_part(self, chunk: bytes) -> None:
        try:
            if self._upload_id is None:
                response = self.s3_client.create_multipart_upload(
                    Bucket=self.bucket,
                    Key=self.key,
                    ContentType=self.content_type
                )
                self._upload_id = response['UploadId']
                logger.debug("Multipart upload started", extra={'extra_fields': {
                    "bucket": self.bucket,
                    "key": self.key,
                    "upload_id": self._upload_id
                }})

            part_number = len(self._parts) + 1
            response = self.s3_client.upload_part(
                Bucket=self.bucket,
                Key=self.key,
                UploadId=self._upload_id,
                PartNumber=part_number,
                Body=chunk
            )
            self._parts.append({'ETag': response['ETag'], 'PartNumber': part_number})
        except (ClientError, BotoCoreError) as e:
            self.abort()
            raise self._wrap(e, "upload_part") from e

    def _wrap(self, error: Exception, operation: str) -> StorageError:
        if self._aws_config is not None:
            self._aws_config.handle_aws_error(error, operation, f"{self.bucket}/{self.key}")
        return StorageError(f"Failed to write S3 object: {error}", operation, self.key)


class S3ObjectStorage(ObjectStoragePort):
    """
    S3 implementation of the object storage port.

    Works against AWS S3 and S3-compatible endpoints (MinIO) alike; the
    endpoint is decided by the injected client.
    """

    def __init__(self, aws_config: AWSConfigManager, part_size: int):
        self.aws_config = aws_config
        self.part_size = part_size

    @property
    def s3_client(self):
        return self.aws_config.s3_client

    @log_infrastructure_operation("open_read", include_args=True)
    def open_read(self, bucket: str, path: str) -> S3ObjectReader:
        try:
            response = self.s3_client.get_object(Bucket=bucket, Key=path)
        except (ClientError, BotoCoreError) as e:
            raise self._storage_error(e, "open_read", bucket, path) from e

        logger.debug("S3 read stream opened", extra={'extra_fields': {
            "bucket": bucket,
            "key": path,
            "size_bytes": response.get('ContentLength'),
            "content_type": response.get('ContentType', 'unknown')
        }})
        return S3ObjectReader(response['Body'], bucket, path, response.get('ContentLength'))

    @log_infrastructure_operation("open_write", include_args=True)
    def open_write(self, bucket: str, path: str, content_type: str) -> S3ObjectWriter:
        return S3ObjectWriter(
            self.s3_client,
            bucket,
            path,
            content_type,
            part_size=self.part_size,
            aws_config=self.aws_config
        )

    @log_infrastructure_operation("get_content_type", level="DEBUG", include_args=True, include_result=True)
    def get_content_type(self, bucket: str, path: str) -> str:
        try:
            response = self.s3_client.head_object(Bucket=bucket, Key=path)
        except (ClientError, BotoCoreError) as e:
            raise self._storage_error(e, "get_content_type", bucket, path) from e

        return response.get('ContentType') or DEFAULT_CONTENT_TYPE

    def _storage_error(self, error: Exception, operation: str, bucket: str, path: str) -> StorageError:
        code = _error_code(error)
        if code in _NOT_FOUND_CODES:
            message = f"S3 object not found: s3://{bucket}/{path}"
        else:
            self.aws_config.handle_aws_error(error, operation, f"{bucket}/{path}")
            message = f"S3 {operation} failed for s3://{bucket}/{path}: {error}"
        return StorageError(message, operation, path)
