"""
Note store: the ordered list of saved notes mirrored to one storage slot.

The whole list is loaded once at startup and rewritten on every mutation.
Each mutation is a single critical section: the new list is built, fully
persisted, and only then published in memory. A failed write therefore
leaves both copies at the previous state.
"""

import asyncio
import logging
import time
from datetime import UTC, datetime

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from src.core.config import get_settings
from src.core.exceptions import NoteNotFoundError, NoteStoreCorruptError, ValidationError
from src.core.models import Analysis, Note
from src.services.storage.slots import SlotBackend

logger = logging.getLogger(__name__)

_NOTES = TypeAdapter(list[Note])


class NoteStore:
    """Most-recent-first collection of :class:`Note` objects.

    Args:
        backend: Slot backend the list is persisted to.
        key: Slot name (falls back to ``settings.notes_storage_key``).
    """

    def __init__(self, backend: SlotBackend, key: str | None = None) -> None:
        self._backend = backend
        self._key = key or get_settings().notes_storage_key
        self._notes: list[Note] = []
        self._loaded = False
        self._last_id = 0
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def notes(self) -> list[Note]:
        """A snapshot of the notes, newest first."""
        return list(self._notes)

    @property
    def loaded(self) -> bool:
        return self._loaded

    def __len__(self) -> int:
        return len(self._notes)

    def get(self, note_id: str) -> Note:
        """Return the note with *note_id* or raise :class:`NoteNotFoundError`."""
        return self._notes[self._index_of(note_id)]

    def _index_of(self, note_id: str) -> int:
        for index, note in enumerate(self._notes):
            if note.id == note_id:
                return index
        raise NoteNotFoundError(note_id)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def load(self) -> list[Note]:
        """Read the persisted list into memory.

        A slot that was never written loads as an empty store.

        Raises:
            NoteStoreCorruptError: The slot holds something that is not a
                list of notes. The slot is not modified.
        """
        async with self._lock:
            await self._load_locked()
        return self.notes

    async def _load_locked(self) -> None:
        try:
            raw = await self._backend.read(self._key)
        except UnicodeDecodeError as exc:
            logger.error("Stored notes in slot %r are not valid UTF-8: %s", self._key, exc)
            raise NoteStoreCorruptError(
                detail=f"Saved notes in '{self._key}' are corrupt and were left untouched"
            ) from exc
        if raw is None or not raw.strip():
            notes: list[Note] = []
        else:
            try:
                notes = _NOTES.validate_json(raw)
            except SchemaValidationError as exc:
                logger.error("Stored notes in slot %r are unreadable: %s", self._key, exc)
                raise NoteStoreCorruptError(
                    detail=f"Saved notes in '{self._key}' are corrupt and were left untouched"
                ) from exc

        self._notes = notes
        self._loaded = True
        self._last_id = max(
            (int(note.id) for note in notes if note.id.isdigit()),
            default=0,
        )
        logger.info("Loaded %d notes from slot %r", len(notes), self._key)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def new_note(self, title: str, transcription: str, analysis: Analysis) -> Note:
        """Build (but do not store) a note with a fresh time-based id."""
        # Millisecond stamps, bumped when two notes land in the same millisecond
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        return Note(
            id=str(self._last_id),
            title=title,
            transcription=transcription,
            analysis=analysis,
            created_at=datetime.now(UTC),
        )

    async def append(self, note: Note) -> None:
        """Insert *note* at the front and persist."""
        async with self._lock:
            await self._ensure_loaded()
            if any(existing.id == note.id for existing in self._notes):
                raise ValidationError(detail=f"Duplicate note id: {note.id}")
            updated = [note, *self._notes]
            await self._persist(updated)
            self._notes = updated
        logger.info("Saved note %s (%r)", note.id, note.title)

    async def rename(self, note_id: str, new_title: str) -> Note:
        """Change a note's title and persist.

        Raises:
            NoteNotFoundError: No note has *note_id*.
            ValidationError: *new_title* is blank.
        """
        title = new_title.strip()
        if not title:
            raise ValidationError(detail="Note title cannot be empty")

        async with self._lock:
            await self._ensure_loaded()
            index = self._index_of(note_id)
            renamed = self._notes[index].model_copy(update={"title": title})
            updated = list(self._notes)
            updated[index] = renamed
            await self._persist(updated)
            self._notes = updated
        logger.info("Renamed note %s to %r", note_id, title)
        return renamed

    async def delete(self, note_id: str) -> None:
        """Remove a note and persist.

        Raises:
            NoteNotFoundError: No note has *note_id*.
        """
        async with self._lock:
            await self._ensure_loaded()
            index = self._index_of(note_id)
            updated = self._notes[:index] + self._notes[index + 1 :]
            await self._persist(updated)
            self._notes = updated
        logger.info("Deleted note %s", note_id)

    async def _ensure_loaded(self) -> None:
        # Writing before loading would overwrite the slot with an empty list
        if not self._loaded:
            await self._load_locked()

    async def _persist(self, notes: list[Note]) -> None:
        payload = _NOTES.dump_json(notes, by_alias=True).decode("utf-8")
        await self._backend.write(self._key, payload)
