"""Configuration for manifest uploads."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

ENV_PREFIX = "MANIFEST_UPLOAD_"

# S3 rejects multipart parts smaller than this, except the last one
MIN_PART_SIZE = 5 * 1024 * 1024


@dataclass
class AWSConfig:
    """AWS credentials and connection settings."""
    
    profile: Optional[str] = None
    region: Optional[str] = None
    endpoint_url: Optional[str] = None


@dataclass
class S3Config:
    """Transfer settings for the remote store."""
    
    max_concurrency: int = 10
    part_size: int = 8 * 1024 * 1024
    chunk_size: int = 1024 * 1024
    
    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.part_size = max(self.part_size, MIN_PART_SIZE)


@dataclass
class ManifestConfig:
    """Where and under which name the manifest is published."""
    
    filename: str = "manifest.json"
    output_dir: Path = field(default_factory=lambda: Path("."))


@dataclass
class Config:
    """Top-level configuration."""
    
    aws: AWSConfig = field(default_factory=AWSConfig)
    s3: S3Config = field(default_factory=S3Config)
    manifest: ManifestConfig = field(default_factory=ManifestConfig)
    verbose: bool = False
    
    @classmethod
    def from_env(cls) -> "Config":
        """Build configuration from MANIFEST_UPLOAD_* environment variables."""
        config = cls()
        config.aws.profile = os.environ.get(f"{ENV_PREFIX}AWS_PROFILE") or None
        config.aws.region = os.environ.get(f"{ENV_PREFIX}AWS_REGION") or None
        config.aws.endpoint_url = os.environ.get(f"{ENV_PREFIX}ENDPOINT_URL") or None
        
        max_concurrency = os.environ.get(f"{ENV_PREFIX}MAX_CONCURRENCY")
        if max_concurrency:
            config.s3 = S3Config(
                max_concurrency=int(max_concurrency),
                part_size=config.s3.part_size,
                chunk_size=config.s3.chunk_size,
            )
        
        verbose = os.environ.get(f"{ENV_PREFIX}VERBOSE", "")
        config.verbose = verbose.lower() in ("1", "true", "yes", "on")
        return config
    
    def get_aws_session_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for boto3.Session."""
        kwargs: Dict[str, Any] = {}
        if self.aws.profile:
            kwargs["profile_name"] = self.aws.profile
        if self.aws.region:
            kwargs["region_name"] = self.aws.region
        return kwargs
    
    def get_s3_client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for session.client('s3', ...)."""
        kwargs: Dict[str, Any] = {}
        if self.aws.region:
            kwargs["region_name"] = self.aws.region
        if self.aws.endpoint_url:
            kwargs["endpoint_url"] = self.aws.endpoint_url
        return kwargs
