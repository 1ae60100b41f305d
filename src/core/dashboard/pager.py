"""
Paginated object listing.

S3 returns at most 1000 keys per call, so a complete listing means
following NextContinuationToken until a page comes back without one.
Pages must be fetched one after another: each request needs the token
from the previous response.
"""

import logging
from typing import Callable, Iterable

from .models import ObjectDescriptor
from .ports import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000

ObjectPredicate = Callable[[ObjectDescriptor], bool]


def is_directory_marker(obj: ObjectDescriptor) -> bool:
    """S3 console "folders" are zero-content keys ending in a slash."""
    return obj.key.endswith("/")


async def list_all_objects(
    store: ObjectStore,
    bucket: str,
    prefix: str,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[ObjectDescriptor]:
    """
    Return every object under prefix, in the order the store lists them.

    Any failed page propagates the store's error; objects collected from
    earlier pages are dropped with it, so callers never see a partial
    listing.

    Args:
        store: Object store to page through
        bucket: Bucket to list
        prefix: Key prefix, e.g. "Memes/"
        page_size: MaxKeys hint for each request
    """
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    objects: list[ObjectDescriptor] = []
    token = None
    pages = 0

    while True:
        page = await store.list_objects_page(
            bucket,
            prefix,
            max_keys=page_size,
            continuation_token=token,
        )
        objects.extend(page.objects)
        pages += 1

        token = page.next_token
        if not token:
            break

    logger.info(
        "Listed objects",
        extra={
            "bucket": bucket,
            "prefix": prefix,
            "pages": pages,
            "count": len(objects),
        }
    )

    return objects


class ObjectLister:
    """
    A complete listing of one bucket prefix.

    One refresh lists the prefix once and hands the result to both the
    metric snapshot and the media grid, so the cards and the grid
    describe the same set of objects.
    """

    def __init__(
        self,
        store: ObjectStore,
        bucket: str,
        prefix: str,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")

        self._store = store
        self._bucket = bucket
        self._prefix = prefix
        self._page_size = page_size

    async def list(self) -> list[ObjectDescriptor]:
        return await list_all_objects(
            self._store,
            self._bucket,
            self._prefix,
            page_size=self._page_size,
        )


def exclude(
    objects: Iterable[ObjectDescriptor],
    predicate: ObjectPredicate = is_directory_marker,
) -> list[ObjectDescriptor]:
    """Drop objects matching predicate (directory markers by default)."""
    return [obj for obj in objects if not predicate(obj)]
