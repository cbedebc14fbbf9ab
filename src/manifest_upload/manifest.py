"""Manifest serialization and publishing."""

import json
from pathlib import Path
from typing import Dict, List

from manifest_upload.destination import Destination
from manifest_upload.exceptions import (
    LocalWriteError,
    ManifestUploadError,
    SerializationError,
)
from manifest_upload.storage import ObjectStore

MANIFEST_FILENAME = "manifest.json"


class ManifestPublisher:
    """Write a finished manifest to the remote store and to local disk."""

    def __init__(self, filename: str = MANIFEST_FILENAME):
        self.filename = filename

    def serialize(self, manifest: Dict[str, str]) -> bytes:
        """Encode the manifest as human-readable JSON with sorted keys."""
        try:
            return json.dumps(manifest, indent=2, sort_keys=True, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize manifest: {e}") from e

    def publish(
        self,
        manifest: Dict[str, str],
        store: ObjectStore,
        destination: Destination,
        output_dir: Path,
    ) -> bytes:
        """
        Publish the manifest to ``<prefix>/manifest.json`` and ``<output_dir>/manifest.json``.

        Both writes are attempted even if the first fails; the first error is
        raised once both have been tried.

        Args:
            manifest: Relative path to digest mapping
            store: Remote store for the remote copy
            destination: Bucket and prefix of the upload
            output_dir: Local directory for the local copy

        Returns:
            The serialized manifest bytes
        """
        data = self.serialize(manifest)
        errors: List[ManifestUploadError] = []

        try:
            self.upload_manifest(data, store, destination)
        except ManifestUploadError as e:
            errors.append(e)

        try:
            self.save_manifest(data, output_dir)
        except LocalWriteError as e:
            errors.append(e)

        if errors:
            raise errors[0]
        return data

    def upload_manifest(self, data: bytes, store: ObjectStore, destination: Destination) -> str:
        """Write the manifest object next to the uploaded files and return its key."""
        key = destination.key_for(self.filename)
        with store.open_writer(key) as writer:
            writer.write(data)
        return key

    def save_manifest(self, data: bytes, output_dir: Path) -> Path:
        """Write the local manifest copy and return its path."""
        manifest_path = Path(output_dir) / self.filename
        try:
            manifest_path.parent.mkdir(parents=True, exist_ok=True)
            manifest_path.write_bytes(data)
        except OSError as e:
            raise LocalWriteError(
                f"Failed to write {manifest_path}: {e}", {"path": str(manifest_path)}
            ) from e
        return manifest_path
