# medplus_booking/db/models/catalog/branch.py
import uuid
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class Branch(SQLModel, table=True):
    __tablename__ = "branches"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    hospital_id: Optional[str] = Field(default=None, index=True)
    name: str
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
