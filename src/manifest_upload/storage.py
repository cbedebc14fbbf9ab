"""Remote object storage: write streams to S3 objects."""

from contextlib import suppress
from typing import Any, Dict, List, Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from manifest_upload.config import MIN_PART_SIZE
from manifest_upload.exceptions import RemoteStoreError


class ObjectWriter(Protocol):
    """A write stream to one remote object.

    Used as a context manager: a clean exit commits the object, an exception
    aborts it so nothing partial becomes visible.
    """

    def write(self, data: bytes) -> int:
        ...

    def __enter__(self) -> "ObjectWriter":
        ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...


class ObjectStore(Protocol):
    def open_writer(self, key: str) -> ObjectWriter:
        ...


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code', 'Unknown')
    return type(error).__name__


class S3ObjectWriter:
    """
    Buffered write stream to a single S3 object.

    Data is accumulated until ``part_size`` bytes are buffered, at which point
    a multipart upload is started and parts are sent as they fill. Objects that
    never reach ``part_size`` are sent with a single PutObject on commit.
    """

    def __init__(self, client, bucket: str, key: str, part_size: int = MIN_PART_SIZE):
        self.client = client
        self.bucket = bucket
        self.key = key
        self.part_size = max(part_size, MIN_PART_SIZE)
        self.bytes_written = 0
        self._buffer = bytearray()
        self._upload_id: Optional[str] = None
        self._parts: List[Dict[str, Any]] = []
        self._closed = False

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def _fail(self, action: str, error: Exception) -> RemoteStoreError:
        code = _error_code(error)
        return RemoteStoreError(
            f"Failed to {action} {self.uri}: {code} - {error}",
            {"bucket": self.bucket, "key": self.key, "code": code},
        )

    def write(self, data: bytes) -> int:
        if self._closed:
            raise RemoteStoreError(f"Write to closed stream {self.uri}")

        self._buffer.extend(data)
        self.bytes_written += len(data)
        while len(self._buffer) >= self.part_size:
            part = bytes(self._buffer[:self.part_size])
            del self._buffer[:self.part_size]
            self._upload_part(part)
        return len(data)

    def _upload_part(self, body: bytes) -> None:
        try:
            if self._upload_id is None:
                response = self.client.create_multipart_upload(Bucket=self.bucket, Key=self.key)
                self._upload_id = response['UploadId']

            part_number = len(self._parts) + 1
            response = self.client.upload_part(
                Bucket=self.bucket,
                Key=self.key,
                UploadId=self._upload_id,
                PartNumber=part_number,
                Body=body,
            )
        except (BotoCoreError, ClientError) as e:
            raise self._fail("write", e) from e

        self._parts.append({'PartNumber': part_number, 'ETag': response['ETag']})

    def commit(self) -> None:
        """Flush what is buffered and make the object visible."""
        if self._closed:
            return

        try:
            self._flush()
        except RemoteStoreError:
            self.abort()
            raise

        self._buffer.clear()
        self._closed = True

    def _flush(self) -> None:
        if self._upload_id is None:
            try:
                self.client.put_object(Bucket=self.bucket, Key=self.key, Body=bytes(self._buffer))
            except (BotoCoreError, ClientError) as e:
                raise self._fail("commit", e) from e
            return

        if self._buffer:
            self._upload_part(bytes(self._buffer))
        try:
            self.client.complete_multipart_upload(
                Bucket=self.bucket,
                Key=self.key,
                UploadId=self._upload_id,
                MultipartUpload={'Parts': self._parts},
            )
        except (BotoCoreError, ClientError) as e:
            raise self._fail("commit", e) from e

    def abort(self) -> None:
        """Discard buffered data and any multipart upload in progress."""
        self._buffer.clear()
        self._closed = True
        if self._upload_id is not None:
            # Best effort: the caller is already handling the original failure
            with suppress(BotoCoreError, ClientError):
                self.client.abort_multipart_upload(
                    Bucket=self.bucket, Key=self.key, UploadId=self._upload_id
                )
            self._upload_id = None

    def __enter__(self) -> "S3ObjectWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.abort()


class S3ObjectStore:
    """Opens independent write streams against one bucket through a shared client."""

    def __init__(self, client, bucket: str, part_size: int = MIN_PART_SIZE):
        self.client = client
        self.bucket = bucket
        self.part_size = part_size

    def open_writer(self, key: str) -> S3ObjectWriter:
        return S3ObjectWriter(self.client, self.bucket, key, part_size=self.part_size)
