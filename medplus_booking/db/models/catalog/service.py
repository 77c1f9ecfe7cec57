# medplus_booking/db/models/catalog/service.py
import uuid
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

class Service(SQLModel, table=True):
    __tablename__ = "services"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str
    duration_minutes: Optional[int] = None
    price: Optional[float] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
