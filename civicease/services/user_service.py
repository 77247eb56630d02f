from typing import Any, Dict, List, Optional
import logging

from ..auth.firebase_auth import firebase_auth
from ..core.exceptions import NotFoundError, StorageError, ValidationError
from ..database.collections import COLLECTIONS
from ..database.database_service import database_service
from ..models.user import (
    AdminCreate,
    CitizenSignup,
    ContractorSignup,
    SubAdminSignup,
    UserProfile,
    UserRole,
)
from .complaint_lifecycle import utc_now

logger = logging.getLogger(__name__)


class UserService:
    """Accounts in the identity provider plus their profile records (users/<uid>)."""

    def __init__(self):
        self.db = database_service
        self.auth = firebase_auth

    async def get_profile(self, uid: str) -> Optional[Dict[str, Any]]:
        if not uid:
            return None
        success, profile, error = await self.db.get_document(COLLECTIONS['users'], uid)
        if not success:
            raise StorageError(f"Failed to load profile: {error}")
        return profile

    async def _register(self, role: UserRole, email: str, password: str, name: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        account = await self.auth.create_user(email, password, display_name=name, role=role.value)

        profile = UserProfile(
            id=account["uid"],
            email=email,
            name=name,
            role=role,
            createdAt=utc_now(),
            **fields,
        ).model_dump(mode="json", exclude_none=True)

        success, _, error = await self.db.create_document(COLLECTIONS['users'], profile, document_id=account["uid"])
        if not success:
            raise StorageError(f"Signup failed: {error}")

        logger.info(f"Registered {role.value} {email} ({account['uid']})")
        return profile

    async def signup_citizen(self, body: CitizenSignup) -> Dict[str, Any]:
        return await self._register(
            UserRole.CITIZEN, body.email, body.password, body.name,
            {"phone": body.phone, "aadhaar": body.aadhaar, "address": body.address},
        )

    async def signup_contractor(self, body: ContractorSignup) -> Dict[str, Any]:
        return await self._register(
            UserRole.CONTRACTOR, body.email, body.password, body.name,
            {
                "phone": body.phone,
                "aadhaar": body.aadhaar,
                "address": body.address,
                "workTypes": body.workTypes,
                "departments": body.departments,
            },
        )

    async def signup_subadmin(self, body: SubAdminSignup) -> Dict[str, Any]:
        from .department_service import department_service

        department_name = body.departmentName
        department = None
        if body.departmentId:
            department = await department_service.get_department(body.departmentId)
            if department:
                department_name = department_name or department.get("name")

        profile = await self._register(
            UserRole.SUBADMIN, body.email, body.password, body.name,
            {
                "phone": body.phone,
                "departmentId": body.departmentId,
                "departmentName": department_name,
            },
        )

        if department:
            await department_service.link_subadmin(department["id"], profile["id"], profile["name"])

        return profile

    async def create_admin(self, body: AdminCreate) -> Dict[str, Any]:
        return await self._register(UserRole.ADMIN, body.email, body.password, body.name, {})

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        token_data = await self.auth.sign_in_with_password(email, password)
        profile = await self.get_profile(token_data.get("localId"))
        return {
            "idToken": token_data.get("idToken"),
            "refreshToken": token_data.get("refreshToken"),
            "expiresIn": token_data.get("expiresIn"),
            "user": profile,
        }

    async def list_by_role(self, role: UserRole) -> List[Dict[str, Any]]:
        success, users, error = await self.db.query_documents(
            COLLECTIONS['users'],
            [("role", "==", role.value)]
        )
        if not success:
            raise StorageError(f"Failed to list users: {error}")
        return sorted(users, key=lambda u: u.get("name") or "")

    async def reassign_subadmin_department(self, subadmin_id: str, department_id: str) -> Dict[str, Any]:
        """Move a sub-admin to another department, keeping both departments' back-references right."""
        from .department_service import department_service

        subadmin = await self.get_profile(subadmin_id)
        if not subadmin or subadmin.get("role") != UserRole.SUBADMIN.value:
            raise NotFoundError("Sub-admin not found")

        department = await department_service.get_department(department_id)
        if not department:
            raise NotFoundError("Department not found")

        previous_id = subadmin.get("departmentId")
        if previous_id == department_id:
            raise ValidationError("Sub-admin already belongs to this department")

        subadmin["departmentId"] = department_id
        subadmin["departmentName"] = department["name"]
        department["subAdminId"] = subadmin_id
        department["subAdminName"] = subadmin.get("name")

        writes = [
            (COLLECTIONS['users'], subadmin_id, subadmin, False),
            (COLLECTIONS['departments'], department_id, department, False),
        ]
        if previous_id:
            previous = await department_service.get_department(previous_id)
            if previous and previous.get("subAdminId") == subadmin_id:
                previous["subAdminId"] = None
                previous["subAdminName"] = None
                writes.append((COLLECTIONS['departments'], previous_id, previous, False))

        success, error = await self.db.commit_batch(writes)
        if not success:
            raise StorageError(f"Failed to reassign sub-admin: {error}")

        logger.info(f"Sub-admin {subadmin_id} moved from department {previous_id} to {department_id}")
        return subadmin


user_service = UserService()
