# medplus_booking/db/models/catalog/doctor.py
import uuid
from sqlmodel import SQLModel, Field
from datetime import datetime

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    full_name: str
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
