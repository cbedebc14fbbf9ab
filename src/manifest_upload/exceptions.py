"""Exception hierarchy for manifest uploads.

Every error here is fatal to a run: nothing is retried at this layer and no
partial manifest is ever published.
"""

from typing import Dict, Optional


class ManifestUploadError(Exception):
    """Base exception for all manifest-upload errors."""
    
    def __init__(self, message: str, details: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(ManifestUploadError):
    """Raised when the destination URI or other configuration is invalid."""


class TraversalError(ManifestUploadError):
    """Raised when the local tree cannot be walked."""


class LocalReadError(ManifestUploadError):
    """Raised when a local file cannot be opened or read."""


class RemoteStoreError(ManifestUploadError):
    """Raised when a remote object cannot be opened, written or committed."""


class SerializationError(ManifestUploadError):
    """Raised when the manifest cannot be encoded."""


class LocalWriteError(ManifestUploadError):
    """Raised when the local manifest copy cannot be written."""


class UploadCancelledError(ManifestUploadError):
    """Raised inside an upload task that stopped because the run was aborted."""
