from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint
from typing import Optional
from datetime import datetime
from uuid import uuid4

from coursepay.constants.payment_status import PaymentStatus


class PaymentAttempt(SQLModel, table=True):
    """One checkout attempt against the gateway. Never deleted."""

    __tablename__ = "payment"
    __table_args__ = (
        UniqueConstraint("user_id", "paymob_order_id", name="uq_payment_user_order"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    user_id: str = Field(foreign_key="profile.id", index=True)
    course_id: str = Field(foreign_key="course.id", index=True)

    amount_cents: int
    currency: str = Field(default="EGP")
    payment_method: str  # card | voucher

    paymob_order_id: Optional[str] = Field(default=None, index=True)
    paymob_payment_key: Optional[str] = None
    paymob_transaction_id: Optional[str] = None

    status: str = Field(default=PaymentStatus.pending.value, index=True)
    payment_data: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    @property
    def amount(self) -> float:
        return self.amount_cents / 100
