from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import uuid4


class Course(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    title_en: str
    title_ar: str
    short_description_en: Optional[str] = None
    short_description_ar: Optional[str] = None

    # major units (EGP)
    price: float = 0.0
    is_published: bool = Field(default=False)

    teacher_id: Optional[str] = Field(default=None, foreign_key="profile.id")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_free(self) -> bool:
        return not self.price
