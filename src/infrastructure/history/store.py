"""
Local persistence for the trend history.

The history lives in one named, string-valued slot that is read and
overwritten wholesale on every aggregation. On disk a slot is a single
file; writes go to a temp file first and are renamed over the old one,
so a failed write leaves the previous series intact.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)


class HistoryStoreError(Exception):
    """Raised when the history slot cannot be read or written."""
    pass


class HistoryStore(Protocol):
    """Protocol for a single string-valued persistence slot."""

    async def load(self) -> Optional[str]:
        """Return the stored payload, or None if the slot is empty."""
        ...

    async def save(self, payload: str) -> None:
        """Replace the stored payload."""
        ...


class FileHistoryStore:
    """Slot stored as <directory>/<slot>.json."""

    def __init__(self, directory: Union[str, Path], slot: str) -> None:
        if not slot or os.sep in slot or (os.altsep and os.altsep in slot):
            raise ValueError(f"Invalid history slot name: {slot!r}")

        self._path = Path(directory) / f"{slot}.json"

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> Optional[str]:
        return await asyncio.to_thread(self._read)

    async def save(self, payload: str) -> None:
        await asyncio.to_thread(self._write, payload)

    def _read(self) -> Optional[str]:
        if not self._path.exists():
            return None

        try:
            return self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            # Garbled content is an empty history; the next save replaces it
            logger.warning(
                "History slot is not valid UTF-8, starting fresh",
                extra={"path": str(self._path), "error": str(e)}
            )
            return None
        except OSError as e:
            logger.error(
                "Failed to read history slot",
                extra={"path": str(self._path), "error": str(e)}
            )
            raise HistoryStoreError(f"Read failed: {e}")

    def _write(self, payload: str) -> None:
        temp_path = self._path.with_suffix(".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(payload, encoding="utf-8")
            temp_path.replace(self._path)
        except OSError as e:
            logger.error(
                "Failed to write history slot",
                extra={"path": str(self._path), "error": str(e)}
            )
            temp_path.unlink(missing_ok=True)
            raise HistoryStoreError(f"Write failed: {e}")

        logger.debug(
            "Wrote history slot",
            extra={"path": str(self._path), "size_bytes": len(payload)}
        )


class MockHistoryStore:
    """In-memory slot for local development and tests."""

    def __init__(self, payload: Optional[str] = None) -> None:
        self.payload = payload
        self.save_count = 0

    async def load(self) -> Optional[str]:
        return self.payload

    async def save(self, payload: str) -> None:
        self.payload = payload
        self.save_count += 1


def create_history_store(
    directory: Optional[Union[str, Path]] = None,
    slot: str = "meme_history",
    mock_mode: bool = False,
) -> HistoryStore:
    """
    Create history store based on configuration.

    Mock mode keeps the series in memory only, so it is lost when the
    process exits.
    """
    if mock_mode:
        return MockHistoryStore()

    if directory is None:
        raise ValueError("directory is required when not in mock mode")

    return FileHistoryStore(directory, slot)
