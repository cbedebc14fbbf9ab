"""Digest formatting and the hashing tee used during upload."""

import hashlib
from typing import BinaryIO, Callable, Optional, Protocol

DEFAULT_ALGORITHM = "sha256"
DEFAULT_CHUNK_SIZE = 8192


class ByteSink(Protocol):
    def write(self, data: bytes) -> int:
        ...


def format_digest(hasher) -> str:
    """Render a hashlib object as ``<algorithm>:<lowercase hex>``."""
    return f"{hasher.name}:{hasher.hexdigest()}"


class HashingTee:
    """
    Read-through wrapper that forwards every chunk to a sink and a digest.
    
    Each ``read`` of N bytes performs exactly one ``sink.write`` of those N
    bytes followed by one digest update, before the bytes are returned. If the
    sink raises, the digest is left untouched and the error propagates.
    """
    
    def __init__(self, source: BinaryIO, sink: ByteSink, algorithm: str = DEFAULT_ALGORITHM):
        self.source = source
        self.sink = sink
        self._hasher = hashlib.new(algorithm)
        self.bytes_read = 0
        self._exhausted = False
    
    def read(self, size: int = DEFAULT_CHUNK_SIZE) -> bytes:
        chunk = self.source.read(size)
        if not chunk:
            self._exhausted = True
            return b""
        
        self.sink.write(chunk)
        self._hasher.update(chunk)
        self.bytes_read += len(chunk)
        return chunk
    
    def copy(self, chunk_size: int = DEFAULT_CHUNK_SIZE,
             should_stop: Optional[Callable[[], bool]] = None) -> int:
        """
        Drain the source through the tee.
        
        Args:
            chunk_size: Bytes requested per read
            should_stop: Checked before every read; when it returns True the
                copy stops early and the tee is left unfinished
                
        Returns:
            Number of bytes copied
        """
        while not self._exhausted:
            if should_stop is not None and should_stop():
                break
            self.read(chunk_size)
        return self.bytes_read
    
    @property
    def exhausted(self) -> bool:
        return self._exhausted
    
    def finalize(self) -> str:
        """Return the formatted digest of everything read so far."""
        if not self._exhausted:
            raise RuntimeError("Cannot finalize digest before the source is exhausted")
        return format_digest(self._hasher)
