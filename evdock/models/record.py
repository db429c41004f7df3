"""Key-value table backing the SQL record store."""
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, LargeBinary
from sqlalchemy.orm import Mapped, mapped_column

from evdock.database import Base


class StoredRecord(Base):
    """One namespaced key and its serialized record."""
    __tablename__ = "records"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<StoredRecord(key='{self.key}', bytes={len(self.value or b'')})>"
