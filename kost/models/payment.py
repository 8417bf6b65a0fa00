import uuid
from datetime import date, datetime

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from kost.core.database import Base


class Payment(Base):
    """One payment event. Amount fields are whole rupiah."""
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), index=True
    )
    receipt_number: Mapped[str] = mapped_column(String(32), unique=True)
    payment_date: Mapped[date] = mapped_column(Date)
    period_month: Mapped[int] = mapped_column(Integer)
    period_year: Mapped[int] = mapped_column(Integer)
    rent_amount: Mapped[int] = mapped_column(BigInteger)
    previous_balance: Mapped[int] = mapped_column(BigInteger, default=0)
    payment_amount: Mapped[int] = mapped_column(BigInteger)
    discount_amount: Mapped[int] = mapped_column(BigInteger, default=0)
    remaining_balance: Mapped[int] = mapped_column(BigInteger)
    payment_status: Mapped[str] = mapped_column(String(20))  # paid_in_full | under_paid | over_paid
    payment_method: Mapped[str] = mapped_column(String(20))  # cash | transfer | e-wallet
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=text("now()")
    )
