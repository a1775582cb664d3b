"""
SQLAlchemy ORM models for local storage.

Table: ``storage_slots`` - a plain key-value table; each row holds one
JSON document under a fixed key.
"""

from datetime import UTC, datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.services.storage.database import Base


class StorageSlot(Base):
    """One named key-value slot."""

    __tablename__ = "storage_slots"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, default="")
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<StorageSlot key={self.key!r} bytes={len(self.value or '')}>"
