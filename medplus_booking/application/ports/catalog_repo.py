from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class DoctorDto:
    id: str
    full_name: str
    is_active: bool


@dataclass
class BranchDto:
    id: str
    name: str
    hospital_id: Optional[str]


@dataclass
class ServiceDto:
    id: str
    name: str
    duration_minutes: Optional[int]


class CatalogRepository(Protocol):
    def get_doctor(self, doctor_id: str) -> Optional[DoctorDto]:
        ...

    def get_branch(self, branch_id: str) -> Optional[BranchDto]:
        ...

    def get_service(self, service_id: str) -> Optional[ServiceDto]:
        ...
