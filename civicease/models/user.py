from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from enum import Enum

# ──────────────────────────────────────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────────────────────────────────────

class UserRole(str, Enum):
    CITIZEN = "citizen"
    CONTRACTOR = "contractor"
    SUBADMIN = "subadmin"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value) -> Optional["UserRole"]:
        """Map a stored role string to the enum; unknown or missing roles give None."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


# ──────────────────────────────────────────────────────────────────────────────
# Signup / login payloads (camelCase, matching the web client)
# ──────────────────────────────────────────────────────────────────────────────

class CitizenSignup(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    aadhaar: Optional[str] = None
    address: Optional[str] = None


class ContractorSignup(CitizenSignup):
    workTypes: List[str] = []
    departments: List[str] = []


class SubAdminSignup(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    departmentId: Optional[str] = None
    departmentName: Optional[str] = None


class AdminCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    secretKey: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class DepartmentReassignment(BaseModel):
    departmentId: str


# ──────────────────────────────────────────────────────────────────────────────
# Stored profile (users/<uid>)
# ──────────────────────────────────────────────────────────────────────────────

class UserProfile(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole
    phone: Optional[str] = None

    # citizen / contractor
    aadhaar: Optional[str] = None
    address: Optional[str] = None

    # contractor
    workTypes: Optional[List[str]] = None
    departments: Optional[List[str]] = None

    # subadmin
    departmentId: Optional[str] = None
    departmentName: Optional[str] = None

    createdAt: Optional[str] = None
