from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime
from uuid import uuid4


class Enrollment(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    student_id: str = Field(foreign_key="profile.id", index=True)
    course_id: str = Field(foreign_key="course.id", index=True)
    payment_id: Optional[str] = Field(default=None, foreign_key="payment.id")

    enrollment_type: str  # free | purchase | voucher
    payment_status: Optional[str] = None

    progress: int = 0
    completed_lessons: int = 0

    enrolled_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
