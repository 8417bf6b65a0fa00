import uuid
from datetime import date as date_type, datetime

from sqlalchemy import BigInteger, Date, DateTime, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from kost.core.database import Base


class Expense(Base):
    """Operating expense; an independent ledger, never reconciled against payments."""
    __tablename__ = "expenses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    date: Mapped[date_type] = mapped_column(Date, index=True)
    category: Mapped[str] = mapped_column(String(50))  # listrik | air | internet | kebersihan | perbaikan | gaji | lainnya
    description: Mapped[str] = mapped_column(String(255))
    amount: Mapped[int] = mapped_column(BigInteger)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()")
    )
