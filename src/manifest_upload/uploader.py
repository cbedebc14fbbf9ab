"""Upload one local file while hashing the bytes that are sent."""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from manifest_upload.checksum import HashingTee
from manifest_upload.exceptions import LocalReadError, UploadCancelledError
from manifest_upload.storage import ObjectStore


@dataclass(frozen=True)
class UploadResult:
    """A file that was uploaded, and the digest of exactly the bytes sent."""

    relative_path: str
    digest: str


class _Source:
    """Local file reader that reports read failures as LocalReadError."""

    def __init__(self, handle, path: Path):
        self.handle = handle
        self.path = path

    def read(self, size: int) -> bytes:
        try:
            return self.handle.read(size)
        except OSError as e:
            raise LocalReadError(f"Failed to read {self.path}: {e}", {"path": str(self.path)}) from e


def upload_file(
    store: ObjectStore,
    local_path: Path,
    relative_path: str,
    key: str,
    chunk_size: int = 1024 * 1024,
    should_stop: Optional[Callable[[], bool]] = None,
) -> UploadResult:
    """
    Stream a local file to ``key`` and compute its digest on the way.

    The remote object is only committed once the whole file has been read
    without error; on any failure it is aborted and the error propagates.

    Args:
        store: Remote store to open the write stream on
        local_path: Absolute path of the file to upload
        relative_path: Path recorded in the manifest
        key: Destination object key
        chunk_size: Bytes per read
        should_stop: Polled between chunks; returning True cancels the upload

    Returns:
        UploadResult for the file

    Raises:
        LocalReadError: If the local file cannot be opened or read
        RemoteStoreError: If the remote object cannot be written or committed
        UploadCancelledError: If ``should_stop`` requested cancellation
    """
    with store.open_writer(key) as writer:
        try:
            handle = open(local_path, "rb")
        except OSError as e:
            raise LocalReadError(f"Failed to open {local_path}: {e}", {"path": str(local_path)}) from e

        with handle:
            tee = HashingTee(_Source(handle, local_path), writer)
            tee.copy(chunk_size, should_stop=should_stop)

        if not tee.exhausted:
            raise UploadCancelledError(f"Upload of {relative_path} cancelled")
        digest = tee.finalize()

    return UploadResult(relative_path=relative_path, digest=digest)
