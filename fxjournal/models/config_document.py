"""
Configuration document model.

Small JSON documents shared by every client of the database, addressed by
a string key (e.g. the VIP showcase settings).
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import TIMESTAMP, String
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import Mapped, mapped_column

from fxjournal.lib.db import Base


class ConfigDocument(Base):  # type: ignore[misc,valid-type]
    """
    Represents a named configuration document.

    Attributes:
        key: Document name
        data: JSON payload
        updated_at: Timestamp of the last write
    """

    __tablename__ = "config_documents"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)

    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        """Return string representation of config document."""
        return f"<ConfigDocument(key={self.key!r}, data={self.data!r})>"
