"""Shared fixtures: an in-memory object store and tree builders."""

import io
import threading
from pathlib import Path
from typing import Dict, Iterable

import pytest
from rich.console import Console

from manifest_upload.exceptions import RemoteStoreError


class InMemoryWriter:
    """Write stream that commits into InMemoryObjectStore on clean exit."""
    
    def __init__(self, store: "InMemoryObjectStore", key: str):
        self.store = store
        self.key = key
        self.buffer = bytearray()
    
    def write(self, data: bytes) -> int:
        if self.key in self.store.fail_keys:
            raise RemoteStoreError(f"Simulated write failure for {self.key}")
        self.buffer.extend(data)
        return len(data)
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.store.commit(self.key, bytes(self.buffer))
        else:
            self.store.abort(self.key)


class InMemoryObjectStore:
    """Thread-safe stand-in for S3ObjectStore."""
    
    def __init__(self, fail_keys: Iterable[str] = ()):
        self.fail_keys = set(fail_keys)
        self.objects: Dict[str, bytes] = {}
        self.opened = []
        self.aborted = []
        self._lock = threading.Lock()
    
    def open_writer(self, key: str) -> InMemoryWriter:
        with self._lock:
            self.opened.append(key)
        return InMemoryWriter(self, key)
    
    def commit(self, key: str, data: bytes) -> None:
        with self._lock:
            self.objects[key] = data
    
    def abort(self, key: str) -> None:
        with self._lock:
            self.aborted.append(key)


def write_tree(root: Path, files: Dict[str, bytes]) -> Path:
    """Create files (relative path -> content) under root."""
    for relative_path, content in files.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return root


@pytest.fixture
def store():
    return InMemoryObjectStore()


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def make_store():
    """Factory for stores that fail writes to the given keys."""
    return InMemoryObjectStore


@pytest.fixture
def make_tree(tmp_path):
    """Factory that writes a tree under tmp_path/src and returns its root."""
    def _make_tree(files: Dict[str, bytes], name: str = "src") -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        return write_tree(root, files)
    return _make_tree
