"""
Media grid: the most recent uploads with signed URLs.
"""

import asyncio
import logging
from typing import Awaitable, Iterable, Optional

from .errors import MediaError
from .models import MediaItem, ObjectDescriptor
from .pager import DEFAULT_PAGE_SIZE, ObjectLister, ObjectPredicate, exclude, is_directory_marker
from .ports import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_GRID_LIMIT = 32
DEFAULT_URL_EXPIRY_SECONDS = 3600
VIDEO_SUFFIXES = (".mp4",)


def is_video(key: str) -> bool:
    return key.lower().endswith(VIDEO_SUFFIXES)


def newest_first(
    objects: Iterable[ObjectDescriptor],
    limit: int,
) -> list[ObjectDescriptor]:
    """Sort by last_modified descending and keep the first limit."""
    ordered = sorted(objects, key=lambda obj: obj.last_modified, reverse=True)
    return ordered[:limit]


class MediaGridBuilder:
    """
    Lists the media prefix and signs a read URL for each recent upload.

    URL signing is per object and independent, so the signatures are
    requested together once the listing is complete.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        prefix: str,
        limit: int = DEFAULT_GRID_LIMIT,
        expiry_seconds: int = DEFAULT_URL_EXPIRY_SECONDS,
        page_size: int = DEFAULT_PAGE_SIZE,
        exclude_object: ObjectPredicate = is_directory_marker,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")

        self._store = store
        self._bucket = bucket
        self._lister = ObjectLister(store, bucket, prefix, page_size=page_size)
        self._limit = limit
        self._expiry_seconds = expiry_seconds
        self._exclude_object = exclude_object

    async def build(
        self,
        listing: Optional[Awaitable[list[ObjectDescriptor]]] = None,
    ) -> list[MediaItem]:
        """
        Args:
            listing: A listing already in flight; the prefix is listed
                here when omitted

        Raises:
            MediaError: if the listing or any URL signature fails
        """
        if listing is None:
            listing = self._lister.list()

        try:
            objects = await listing
            recent = newest_first(exclude(objects, self._exclude_object), self._limit)
            urls = await asyncio.gather(*(
                self._store.get_presigned_url(
                    self._bucket,
                    obj.key,
                    expiry_seconds=self._expiry_seconds,
                )
                for obj in recent
            ))
        except Exception as e:
            logger.error(
                "Failed to build media grid",
                extra={"bucket": self._bucket, "error": str(e)}
            )
            raise MediaError(f"Media unavailable: {e}") from e

        return [
            MediaItem(
                key=obj.key,
                url=url,
                last_modified=obj.last_modified,
                is_video=is_video(obj.key),
            )
            for obj, url in zip(recent, urls)
        ]
