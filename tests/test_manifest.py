"""Tests for manifest serialization and publishing."""

import json
from unittest.mock import patch

import pytest

from manifest_upload.destination import Destination
from manifest_upload.exceptions import LocalWriteError, RemoteStoreError, SerializationError
from manifest_upload.manifest import ManifestPublisher


class TestManifestPublisher:
    """Test writing the manifest to both destinations."""
    
    def setup_method(self):
        """Set up test fixtures."""
        self.publisher = ManifestPublisher()
        self.destination = Destination(bucket="bucket", prefix="runs/1")
        self.manifest = {
            "b.txt": "sha256:" + "b" * 64,
            "a/c.txt": "sha256:" + "c" * 64,
        }
    
    def test_serialize_is_sorted_readable_json(self):
        """Test the canonical encoding."""
        data = self.publisher.serialize(self.manifest)
        
        assert json.loads(data) == self.manifest
        text = data.decode("utf-8")
        assert text.index('"a/c.txt"') < text.index('"b.txt"')
        assert "\n" in text
    
    def test_serialize_empty_manifest(self):
        """Test that an empty manifest is still a valid JSON object."""
        assert json.loads(self.publisher.serialize({})) == {}
    
    def test_serialize_failure(self):
        """Test that unencodable data raises SerializationError."""
        with pytest.raises(SerializationError):
            self.publisher.serialize({"a": object()})
    
    def test_publish_writes_both_copies(self, store, tmp_path):
        """Test that the same bytes go to the remote object and the local file."""
        output_dir = tmp_path / "out"
        
        data = self.publisher.publish(self.manifest, store, self.destination, output_dir)
        
        assert store.objects["runs/1/manifest.json"] == data
        assert (output_dir / "manifest.json").read_bytes() == data
        assert json.loads(data) == self.manifest
    
    def test_remote_failure_still_writes_local_then_raises(self, make_store, tmp_path):
        """Test that both writes are attempted before the remote error is raised."""
        store = make_store(fail_keys={"runs/1/manifest.json"})
        
        with pytest.raises(RemoteStoreError):
            self.publisher.publish(self.manifest, store, self.destination, tmp_path)
        
        assert (tmp_path / "manifest.json").exists()
        assert "runs/1/manifest.json" not in store.objects
    
    def test_local_failure_still_uploads_then_raises(self, store, tmp_path):
        """Test that a local write failure is reported after the remote write."""
        with patch("pathlib.Path.write_bytes", side_effect=PermissionError("read-only")):
            with pytest.raises(LocalWriteError):
                self.publisher.publish(self.manifest, store, self.destination, tmp_path)
        
        assert "runs/1/manifest.json" in store.objects
    
    def test_custom_filename(self, store, tmp_path):
        """Test publishing under a different file name."""
        publisher = ManifestPublisher(filename="digests.json")
        
        publisher.publish({}, store, self.destination, tmp_path)
        
        assert "runs/1/digests.json" in store.objects
        assert (tmp_path / "digests.json").exists()
