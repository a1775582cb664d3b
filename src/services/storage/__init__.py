"""
Storage module - Key-value slots and the saved-note store.
"""

from src.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from src.services.storage.models_db import StorageSlot
from src.services.storage.note_store import NoteStore
from src.services.storage.slots import (
    FileSlotBackend,
    SlotBackend,
    SQLiteSlotBackend,
    create_slot_backend,
)

__all__ = [
    "Base",
    "FileSlotBackend",
    "NoteStore",
    "SQLiteSlotBackend",
    "SlotBackend",
    "StorageSlot",
    "close_db",
    "create_slot_backend",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
