from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import uuid4


class Profile(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    email: str = Field(index=True)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str = Field(default="student")  # student | teacher | admin
    created_at: datetime = Field(default_factory=datetime.utcnow)
