"""
Interfaces the dashboard logic depends on.

Using Protocols here means the core doesn't know or care whether it
is talking to S3, DynamoDB and a file on disk, or to in-memory mocks.
"""

from typing import Optional, Protocol

from .models import CountFilter, ListPage


class ObjectStore(Protocol):
    """Paged listing and URL signing over an object store."""

    async def list_objects_page(
        self,
        bucket: str,
        prefix: str,
        max_keys: int = 1000,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        ...

    async def get_presigned_url(
        self,
        bucket: str,
        key: str,
        expiry_seconds: int = 3600,
    ) -> str:
        ...


class CountSource(Protocol):
    """Count-only queries against a document database."""

    async def count(
        self,
        table: str,
        count_filter: Optional[CountFilter] = None,
    ) -> int:
        ...


class HistorySlot(Protocol):
    """A single named string value that is read and replaced wholesale."""

    async def load(self) -> Optional[str]:
        ...

    async def save(self, payload: str) -> None:
        ...
