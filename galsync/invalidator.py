"""
Invalidator - CloudFront cache invalidation after a successful publish.
"""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ConnectTimeoutError, ReadTimeoutError

from .errors import InvalidationError
from .s3_config import S3Config, extract_distribution_id


class Invalidator:
    """
    Issues a single wildcard invalidation for the published prefix.

    The request is bounded by TIMEOUT_SECONDS and is not retried.
    """

    TIMEOUT_SECONDS = 30
    # CloudFront is a global service with its control plane in us-east-1
    REGION = 'us-east-1'

    def __init__(
        self,
        config: S3Config,
        client=None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize invalidator.

        Args:
            config: Configuration with distribution id and credentials
            client: Optional preconfigured boto3 cloudfront client
            logger: Optional logger instance
        """
        self.distribution_id = extract_distribution_id(config.distribution_id or '')
        self.logger = logger or logging.getLogger(__name__)
        self._client = client or boto3.client(
            'cloudfront',
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=self.REGION,
            config=Config(
                connect_timeout=self.TIMEOUT_SECONDS,
                read_timeout=self.TIMEOUT_SECONDS,
                retries={'max_attempts': 1, 'mode': 'standard'},
            ),
        )

    @classmethod
    def from_config(cls, config: S3Config, logger: Optional[logging.Logger] = None) -> Optional['Invalidator']:
        """Return an Invalidator, or None when no distribution is configured."""
        if not config.bare_distribution_id:
            return None
        return cls(config, logger=logger)

    @staticmethod
    def invalidation_path(prefix: str) -> str:
        return f"/{prefix.lstrip('/')}*"

    def invalidate(self, prefix: str) -> str:
        """
        Invalidate every cached object under `prefix`.

        The request runs on a helper thread so the deadline covers the whole
        call, not just individual socket reads.

        Returns:
            The invalidation id

        Raises:
            InvalidationError: if the request is rejected or times out
        """
        path = self.invalidation_path(prefix)
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix='galsync-invalidate')
        try:
            future = pool.submit(
                self._client.create_invalidation,
                DistributionId=self.distribution_id,
                InvalidationBatch={
                    'Paths': {'Quantity': 1, 'Items': [path]},
                    'CallerReference': str(uuid.uuid4()),
                },
            )
            response = future.result(timeout=self.TIMEOUT_SECONDS)
        except (FutureTimeoutError, ConnectTimeoutError, ReadTimeoutError) as e:
            raise InvalidationError(
                f"CloudFront invalidation timed out after {self.TIMEOUT_SECONDS}s."
            ) from e
        except (ClientError, BotoCoreError) as e:
            raise InvalidationError(f"CloudFront invalidation failed: {e}") from e
        finally:
            # An abandoned request finishes in the background.
            pool.shutdown(wait=False)

        invalidation_id = response.get('Invalidation', {}).get('Id', '')
        self.logger.info(f"CloudFront invalidation {invalidation_id} created for path: {path}")
        return invalidation_id
