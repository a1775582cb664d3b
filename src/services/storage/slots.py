"""
Key-value slot backends for client-side persistence.

A slot is one named text value that is always read and written whole.
``SQLiteSlotBackend`` keeps slots in the ``storage_slots`` table;
``FileSlotBackend`` keeps one file per slot and swaps it in atomically.
"""

import asyncio
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from src.core.config import get_settings
from src.core.exceptions import ConfigurationError
from src.services.storage.database import get_session, init_db
from src.services.storage.models_db import StorageSlot

logger = logging.getLogger(__name__)


class SlotBackend(ABC):
    """Interface for whole-value key-value storage."""

    @abstractmethod
    async def read(self, key: str) -> str | None:
        """Return the stored value, or ``None`` if the slot was never written."""

    @abstractmethod
    async def write(self, key: str, value: str) -> None:
        """Replace the slot's value. Either fully succeeds or leaves the old value."""


class SQLiteSlotBackend(SlotBackend):
    """Slots stored as rows of the ``storage_slots`` table.

    Each write runs in its own transaction via :func:`get_session`, so a
    failed write rolls back and the previous value stays intact.
    """

    def __init__(self) -> None:
        self._schema_ready = False

    async def _ensure_schema(self) -> None:
        if not self._schema_ready:
            await init_db()
            self._schema_ready = True

    async def read(self, key: str) -> str | None:
        await self._ensure_schema()
        async with get_session() as session:
            slot = await session.get(StorageSlot, key)
            return slot.value if slot is not None else None

    async def write(self, key: str, value: str) -> None:
        await self._ensure_schema()
        async with get_session() as session:
            slot = await session.get(StorageSlot, key)
            if slot is None:
                session.add(StorageSlot(key=key, value=value))
            else:
                slot.value = value
        logger.debug("Wrote slot %r (%d chars)", key, len(value))


class FileSlotBackend(SlotBackend):
    """Slots stored as ``<directory>/<key>.json`` files.

    Writes go to a temporary file in the same directory which then
    replaces the target with ``os.replace``, so readers never see a
    half-written file.

    Args:
        directory: Folder holding the slot files (falls back to settings).
    """

    def __init__(self, directory: str | Path | None = None) -> None:
        self._directory = Path(directory or get_settings().slots_dir)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def _read_sync(self, key: str) -> str | None:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def _write_sync(self, key: str, value: str) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    async def read(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read_sync, key)

    async def write(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write_sync, key, value)
        logger.debug("Wrote slot file %s (%d chars)", self._path(key), len(value))


def create_slot_backend(kind: str | None = None) -> SlotBackend:
    """
    Factory function to create a slot backend.

    Args:
        kind: "sqlite" or "file" (falls back to ``settings.note_storage``)

    Returns:
        SlotBackend implementation instance

    Raises:
        ConfigurationError: If the backend kind is unknown
    """
    kind = kind or get_settings().note_storage
    if kind == "sqlite":
        return SQLiteSlotBackend()
    elif kind == "file":
        return FileSlotBackend()
    else:
        raise ConfigurationError(detail=f"Unknown note storage backend: {kind}")
