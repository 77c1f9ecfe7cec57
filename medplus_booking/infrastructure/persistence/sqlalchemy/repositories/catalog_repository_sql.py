from typing import Optional
from sqlmodel import Session, select

from .....db.models import Doctor, Branch, Service
from .....application.ports.catalog_repo import (
    CatalogRepository,
    DoctorDto,
    BranchDto,
    ServiceDto,
)
from ..errors import store_errors


class SqlCatalogRepository(CatalogRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_doctor(self, doctor_id: str) -> Optional[DoctorDto]:
        with store_errors(self.session, "load doctor"):
            d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
        if not d:
            return None
        return DoctorDto(id=d.id, full_name=d.full_name, is_active=bool(d.is_active))

    def get_branch(self, branch_id: str) -> Optional[BranchDto]:
        with store_errors(self.session, "load branch"):
            b = self.session.exec(select(Branch).where(Branch.id == branch_id)).first()
        if not b:
            return None
        return BranchDto(id=b.id, name=b.name, hospital_id=b.hospital_id)

    def get_service(self, service_id: str) -> Optional[ServiceDto]:
        with store_errors(self.session, "load service"):
            s = self.session.exec(select(Service).where(Service.id == service_id)).first()
        if not s:
            return None
        return ServiceDto(id=s.id, name=s.name, duration_minutes=s.duration_minutes)
