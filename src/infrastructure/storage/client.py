"""
Object storage client for meme media.

Wraps the two S3 operations the dashboard consumes:
- list_objects_v2, one page at a time (the pager drives the loop)
- generate_presigned_url for time-limited read access

Mock mode keeps objects in memory, enabling the dashboard to run
without a bucket or credentials.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol

from ...core.dashboard.models import ListPage, ObjectDescriptor

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for the S3 client.

    Credentials are optional: when unset, boto3 resolves them from
    the environment, shared config or instance profile.
    """
    region: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Using a protocol means tests can provide mocks and the pager
    does not care which backend answers.
    """

    async def list_objects_page(
        self,
        bucket: str,
        prefix: str,
        max_keys: int = 1000,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        """Return one page of objects under prefix."""
        ...

    async def get_presigned_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int = 3600,
    ) -> str:
        """Generate temporary download URL."""
        ...


class S3StorageClient:
    """
    AWS S3 client backed by boto3.

    boto3 is synchronous, so each call runs in a worker thread via
    asyncio.to_thread. This keeps the event loop free while the count
    queries and the listing are in flight together.
    """

    def __init__(self, config: StorageConfig) -> None:
        import boto3
        from botocore.config import Config

        self._config = config

        boto_config = Config(signature_version='s3v4')

        self._s3_client = boto3.client(
            's3',
            region_name=config.region,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            endpoint_url=config.endpoint_url,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={"region": config.region}
        )

    async def list_objects_page(
        self,
        bucket: str,
        prefix: str,
        max_keys: int = 1000,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        """
        Fetch a single list_objects_v2 page.

        NextContinuationToken is only trusted while IsTruncated is set,
        so a final page never yields a token.
        """
        params = {
            'Bucket': bucket,
            'Prefix': prefix,
            'MaxKeys': max_keys,
        }
        if continuation_token:
            params['ContinuationToken'] = continuation_token

        try:
            response = await asyncio.to_thread(
                self._s3_client.list_objects_v2, **params
            )
        except Exception as e:
            logger.error(
                "Failed to list objects",
                extra={"bucket": bucket, "prefix": prefix, "error": str(e)}
            )
            raise StorageError(f"List failed: {e}")

        objects = [
            ObjectDescriptor(
                key=entry['Key'],
                size=int(entry.get('Size', 0)),
                last_modified=entry['LastModified'],
            )
            for entry in response.get('Contents', [])
        ]

        next_token = None
        if response.get('IsTruncated'):
            next_token = response.get('NextContinuationToken')

        logger.debug(
            "Listed objects page",
            extra={
                "bucket": bucket,
                "prefix": prefix,
                "count": len(objects),
                "truncated": next_token is not None,
            }
        )

        return ListPage(objects=objects, next_token=next_token)

    async def get_presigned_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int = 3600,
    ) -> str:
        """
        Generate a temporary download URL.

        The grid loads media straight from S3 with these, so the
        dashboard never proxies object bytes.
        """
        try:
            return await asyncio.to_thread(
                self._s3_client.generate_presigned_url,
                'get_object',
                Params={'Bucket': bucket, 'Key': key},
                ExpiresIn=expiry_seconds,
            )
        except Exception as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"bucket": bucket, "key": key, "error": str(e)}
            )
            raise StorageError(f"Presigned URL generation failed: {e}")


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development and tests.

    Objects are kept per bucket in insertion order and paged the same
    way S3 pages them, with an opaque offset as the continuation token.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, list[ObjectDescriptor]] = {}
        self.list_calls: list[dict] = []
        logger.info("Initialized mock storage client (in-memory)")

    def put_object(
        self,
        bucket: str,
        key: str,
        size: int = 0,
        last_modified: Optional[datetime] = None,
    ) -> ObjectDescriptor:
        """Register an object; used to seed the mock."""
        obj = ObjectDescriptor(
            key=key,
            size=size,
            last_modified=last_modified or datetime.now(timezone.utc),
        )
        self._buckets.setdefault(bucket, []).append(obj)
        return obj

    async def list_objects_page(
        self,
        bucket: str,
        prefix: str,
        max_keys: int = 1000,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        """Return a page of stored objects under prefix."""
        self.list_calls.append({
            "bucket": bucket,
            "prefix": prefix,
            "max_keys": max_keys,
            "continuation_token": continuation_token,
        })

        matching = [
            obj for obj in self._buckets.get(bucket, [])
            if obj.key.startswith(prefix)
        ]

        try:
            start = int(continuation_token) if continuation_token else 0
        except ValueError:
            raise StorageError(f"Invalid continuation token: {continuation_token}")

        end = start + max_keys
        next_token = str(end) if end < len(matching) else None

        return ListPage(objects=matching[start:end], next_token=next_token)

    async def get_presigned_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int = 3600,
    ) -> str:
        """Return a mock URL for the object."""
        if not any(obj.key == key for obj in self._buckets.get(bucket, [])):
            raise StorageError(f"Object not found: {key}")

        return f"mock://{bucket}/{key}?expires={expiry_seconds}"


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return mock client for testing

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
