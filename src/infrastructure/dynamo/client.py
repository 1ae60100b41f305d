"""
DynamoDB row counts for the metric cards.

The dashboard only ever asks "how many rows match", so this client
exposes a single count operation. It scans with Select=COUNT, which
returns no item payloads, and sums the per-page counts because a
scan stops at 1MB of evaluated data.
"""

import asyncio
import logging
import operator
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from ...core.dashboard.models import CountFilter

logger = logging.getLogger(__name__)


class CountQueryError(Exception):
    """Raised when a count query fails."""
    pass


@dataclass
class DynamoConfig:
    """Connection settings for DynamoDB."""
    region: str
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None


class CountClient(Protocol):
    """Protocol for counting table rows."""

    async def count(
        self,
        table: str,
        count_filter: Optional[CountFilter] = None,
    ) -> int:
        """Return the number of rows in table matching count_filter."""
        ...


def build_condition(count_filter: CountFilter):
    """Translate a CountFilter into a boto3 condition expression."""
    from boto3.dynamodb.conditions import Attr

    attr = Attr(count_filter.field)
    builders = {
        "=": attr.eq,
        "<>": attr.ne,
        ">": attr.gt,
        ">=": attr.gte,
        "<": attr.lt,
        "<=": attr.lte,
    }
    return builders[count_filter.operator](count_filter.value)


class DynamoCountClient:
    """
    Count client backed by the boto3 DynamoDB resource.

    The resource is created once and shared by every count; it is
    owned by whoever constructs this client, never a module global.
    """

    def __init__(self, config: DynamoConfig) -> None:
        import boto3

        self._config = config
        self._dynamodb = boto3.resource(
            'dynamodb',
            region_name=config.region,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            endpoint_url=config.endpoint_url,
        )

        logger.info(
            "Initialized DynamoDB count client",
            extra={"region": config.region}
        )

    async def count(
        self,
        table: str,
        count_filter: Optional[CountFilter] = None,
    ) -> int:
        try:
            return await asyncio.to_thread(self._scan_count, table, count_filter)
        except Exception as e:
            logger.error(
                "Failed to count table rows",
                extra={"table": table, "error": str(e)}
            )
            raise CountQueryError(f"Count on {table} failed: {e}")

    def _scan_count(
        self,
        table: str,
        count_filter: Optional[CountFilter],
    ) -> int:
        handle = self._dynamodb.Table(table)

        params: dict[str, Any] = {'Select': 'COUNT'}
        if count_filter is not None:
            params['FilterExpression'] = build_condition(count_filter)

        response = handle.scan(**params)
        total = response.get('Count', 0)

        # Handle DynamoDB pagination (1MB limit)
        while 'LastEvaluatedKey' in response:
            response = handle.scan(
                ExclusiveStartKey=response['LastEvaluatedKey'],
                **params,
            )
            total += response.get('Count', 0)

        logger.debug(
            "Counted table rows",
            extra={"table": table, "count": total}
        )

        return total


# ---------------------------------------------------------------------------
# Mock Tables for Local Development
# ---------------------------------------------------------------------------

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "<>": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


class MockCountClient:
    """
    In-memory tables for local development and tests.

    Rows are plain dicts. Filters follow DynamoDB semantics closely
    enough for the dashboard: a row missing the attribute matches
    only "<>".
    """

    def __init__(self, tables: Optional[dict[str, list[dict]]] = None) -> None:
        self._tables: dict[str, list[dict]] = {
            name: list(rows) for name, rows in (tables or {}).items()
        }
        logger.info("Initialized mock count client (in-memory)")

    def put_item(self, table: str, item: dict) -> None:
        self._tables.setdefault(table, []).append(item)

    async def count(
        self,
        table: str,
        count_filter: Optional[CountFilter] = None,
    ) -> int:
        rows = self._tables.get(table, [])
        if count_filter is None:
            return len(rows)

        compare = _COMPARATORS[count_filter.operator]
        matched = 0
        for row in rows:
            if count_filter.field not in row:
                if count_filter.operator == "<>":
                    matched += 1
                continue
            if compare(row[count_filter.field], count_filter.value):
                matched += 1
        return matched


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_count_client(
    config: Optional[DynamoConfig] = None,
    mock_mode: bool = False,
) -> CountClient:
    """
    Create count client based on configuration.

    Args:
        config: DynamoDB configuration (required if not mock_mode)
        mock_mode: If True, return in-memory tables

    Returns:
        CountClient implementation (DynamoDB or Mock)
    """
    if mock_mode:
        return MockCountClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return DynamoCountClient(config)
