"""Manifest Upload - Concurrent S3 upload with a content-addressed manifest."""

__version__ = "0.1.0"
__author__ = "Manifest Upload Team"
__email__ = "manifest-upload@example.com"

from manifest_upload.sync_engine import ManifestUpload
from manifest_upload.config import Config

__all__ = ["ManifestUpload", "Config", "__version__"]
