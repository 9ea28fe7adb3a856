"""
S3Config - Connection settings for the remote object store and CDN.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


def extract_bucket_name(value: str) -> str:
    """
    Return the bucket name from an S3 ARN, or the input unchanged.

    'arn:aws:s3:::my-bucket/some/prefix' -> 'my-bucket'
    """
    trimmed = value.strip()
    if trimmed.startswith('arn:'):
        resource = trimmed.split(':', 5)[-1]
        bucket = resource.split('/', 1)[0]
        if bucket:
            return bucket
    return trimmed


def extract_distribution_id(value: str) -> str:
    """
    Return the distribution id from a CloudFront ARN, or the input unchanged.

    'arn:aws:cloudfront::123456:distribution/E1ABC2DEF3GH' -> 'E1ABC2DEF3GH'
    """
    trimmed = value.strip()
    if trimmed.startswith('arn:'):
        last = trimmed.rsplit('/', 1)[-1]
        if last:
            return last
    return trimmed


def normalize_prefix(prefix: str) -> str:
    """Strip leading slashes and make sure a non-empty prefix ends with '/'."""
    prefix = prefix.strip().lstrip('/')
    if prefix and not prefix.endswith('/'):
        prefix += '/'
    return prefix


@dataclass
class S3Config:
    """
    Configuration for the publish target.

    Attributes:
        bucket: Bucket name or bucket ARN
        region: AWS region of the bucket
        prefix: Key prefix that scopes everything the engine may touch
        access_key: Access key id (from the credential store)
        secret_key: Secret access key (from the credential store)
        endpoint: Optional endpoint URL for S3-compatible stores
        distribution_id: Optional CloudFront distribution id or ARN
        verify_ssl: Verify TLS certificates
        static_assets: Workspace-relative site files always published
    """
    bucket: str = ''
    region: str = 'ap-southeast-2'
    prefix: str = 'galleries/'
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    endpoint: Optional[str] = None
    distribution_id: str = ''
    verify_ssl: bool = True
    static_assets: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_env(cls) -> 'S3Config':
        """Build configuration from environment variables."""
        static_assets = tuple(
            p.strip() for p in os.getenv('GALSYNC_STATIC_ASSETS', '').split(',') if p.strip()
        )
        return cls(
            bucket=os.getenv('S3_BUCKET', ''),
            region=os.getenv('S3_REGION', 'ap-southeast-2'),
            prefix=os.getenv('S3_PREFIX', 'galleries/'),
            access_key=os.getenv('S3_ACCESS_KEY'),
            secret_key=os.getenv('S3_SECRET_KEY'),
            endpoint=os.getenv('S3_ENDPOINT') or None,
            distribution_id=os.getenv('CLOUDFRONT_DISTRIBUTION_ID', ''),
            verify_ssl=os.getenv('S3_VERIFY_SSL', 'true').lower() not in ('0', 'false', 'no'),
            static_assets=static_assets,
        )

    @property
    def bucket_name(self) -> str:
        """Bare bucket name, even if an ARN was configured."""
        return extract_bucket_name(self.bucket)

    @property
    def key_prefix(self) -> str:
        """Normalised key prefix ending with '/'."""
        return normalize_prefix(self.prefix)

    @property
    def bare_distribution_id(self) -> str:
        """Bare CloudFront distribution id, or '' if none is configured."""
        return extract_distribution_id(self.distribution_id or '')

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when valid)."""
        errors = []
        if not self.bucket_name:
            errors.append("S3 bucket is not configured (S3_BUCKET)")
        if not self.region:
            errors.append("S3 region is not configured (S3_REGION)")
        if not self.key_prefix:
            errors.append("S3 prefix must not be empty (S3_PREFIX)")
        if not self.access_key or not self.secret_key:
            errors.append("Credentials missing (S3_ACCESS_KEY / S3_SECRET_KEY)")
        return errors

    def __repr__(self) -> str:
        return (
            f"S3Config(bucket={self.bucket_name!r}, region={self.region!r}, "
            f"prefix={self.key_prefix!r}, endpoint={self.endpoint!r}, "
            f"distribution_id={self.bare_distribution_id!r})"
        )
