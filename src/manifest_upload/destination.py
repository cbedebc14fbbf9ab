"""Destination URI parsing."""

import re
from dataclasses import dataclass

from manifest_upload.exceptions import ConfigError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


@dataclass(frozen=True)
class Destination:
    """A bucket and the key prefix everything is uploaded under."""
    
    bucket: str
    prefix: str
    
    def key_for(self, relative_path: str) -> str:
        """Object key for a path relative to the upload root."""
        return f"{self.prefix}/{relative_path.lstrip('/')}"
    
    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.prefix}"


def parse_destination(uri: str) -> Destination:
    """
    Split ``[scheme://]bucket/prefix`` into its bucket and prefix.
    
    Args:
        uri: Destination URI, e.g. ``s3://bucket/some/prefix`` or ``bucket/prefix``
        
    Returns:
        The parsed Destination
        
    Raises:
        ConfigError: If the bucket or the prefix is missing
    """
    remainder = _SCHEME_RE.sub("", uri.strip(), count=1)
    bucket, sep, prefix = remainder.partition("/")
    prefix = prefix.strip("/")
    
    if not bucket:
        raise ConfigError(f"invalid uri: {uri} (missing bucket)", {"uri": uri})
    if not sep or not prefix:
        raise ConfigError(f"invalid uri: {uri} (missing prefix)", {"uri": uri})
    
    return Destination(bucket=bucket, prefix=prefix)
