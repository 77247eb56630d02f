from typing import Any, Dict, List, Optional
import logging
import re
import uuid

from ..core.config import settings
from ..core.exceptions import StorageError, ValidationError
from ..database.collections import COLLECTIONS
from ..database.database_service import database_service
from ..models.database_models import CustomerCare, Department
from .complaint_lifecycle import utc_now

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS = [
    'Waste Management Department',
    'Water Supply and Drainage Department',
    'Roads and Transportation Department',
    'Streetlight and Electricity Maintenance',
    'Public Health and Sanitation Department',
    'Garden and Parks Department',
    'Building and Construction Department',
    'Environmental and Pollution Control Department',
    'Fire and Emergency Services',
    'Public Works Department (PWD)',
    'Water Drainage (Sewage) Department',
    'Solid Waste Recycling Department',
    'Public Grievance and Feedback Cell',
]

_DEPARTMENT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "departments.civicease.gov")


def default_department_id(name: str) -> str:
    """Seeded departments get name-derived ids so a second boot finds them instead of duplicating."""
    return str(uuid.uuid5(_DEPARTMENT_NAMESPACE, name))


def customer_care_email(name: str) -> str:
    local_part = re.sub(r"\s+", "", name.lower())
    return f"{local_part}@{settings.CUSTOMER_CARE_EMAIL_DOMAIN}"


def _creation_order(department: Dict[str, Any]):
    # Seeded departments share a createdAt; ties fall back to their seed position
    name = department.get("name")
    seed_position = DEFAULT_DEPARTMENTS.index(name) if name in DEFAULT_DEPARTMENTS else len(DEFAULT_DEPARTMENTS)
    return department.get("createdAt") or "", seed_position


class DepartmentService:
    def __init__(self):
        self.db = database_service

    def _build(self, department_id: str, name: str, phone: Optional[str] = None, email: Optional[str] = None) -> Dict[str, Any]:
        return Department(
            id=department_id,
            name=name,
            customerCare=CustomerCare(
                phone=phone or settings.DEFAULT_CUSTOMER_CARE_PHONE,
                email=email or customer_care_email(name),
            ),
            subAdminId=None,
            createdAt=utc_now(),
        ).model_dump()

    async def initialize_default_departments(self) -> int:
        """Create any missing seed department; returns how many were created."""
        created = 0
        for name in DEFAULT_DEPARTMENTS:
            department_id = default_department_id(name)
            success, existing, error = await self.db.get_document(COLLECTIONS['departments'], department_id)
            if not success:
                raise StorageError(f"Failed to check department '{name}': {error}")
            if existing:
                continue

            success, _, error = await self.db.create_document(
                COLLECTIONS['departments'], self._build(department_id, name), document_id=department_id
            )
            if not success:
                raise StorageError(f"Failed to seed department '{name}': {error}")
            created += 1

        if created:
            logger.info(f"Seeded {created} default department(s)")
        return created

    async def list_departments(self) -> List[Dict[str, Any]]:
        success, departments, error = await self.db.get_all_documents(COLLECTIONS['departments'])
        if not success:
            raise StorageError(f"Failed to load departments: {error}")
        return sorted(departments, key=_creation_order)

    async def get_department(self, department_id: str) -> Optional[Dict[str, Any]]:
        if not department_id:
            return None
        success, department, error = await self.db.get_document(COLLECTIONS['departments'], department_id)
        if not success:
            raise StorageError(f"Failed to load department: {error}")
        return department

    async def create_department(self, name: str, phone: Optional[str] = None, email: Optional[str] = None) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Missing required fields: name")

        department = self._build(str(uuid.uuid4()), name, phone, email)
        success, _, error = await self.db.create_document(
            COLLECTIONS['departments'], department, document_id=department["id"]
        )
        if not success:
            raise StorageError(f"Failed to add department: {error}")

        logger.info(f"Department created: {name} ({department['id']})")
        return department

    async def link_subadmin(self, department_id: str, subadmin_id: str, subadmin_name: str) -> None:
        success, error = await self.db.update_document(
            COLLECTIONS['departments'],
            department_id,
            {"subAdminId": subadmin_id, "subAdminName": subadmin_name},
        )
        if not success:
            raise StorageError(f"Failed to link sub-admin to department: {error}")


department_service = DepartmentService()
