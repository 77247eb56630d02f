from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum


class ComplaintStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED_TO_SUBADMIN = "assigned_to_subadmin"
    ASSIGNED_TO_CONTRACTOR = "assigned_to_contractor"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"
    REOPENED = "reopened"
    CLOSED_BY_AUTHORITY = "closed_by_authority"
    CONTRACTOR_REJECTED = "contractor_rejected"


# Timeline-only marker; never stored as a complaint status
PRIORITY_UPDATED = "priority_updated"


class ComplaintPriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class ContractorStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"


class AnnouncementPriority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


# Department Model
class CustomerCare(BaseModel):
    phone: str
    email: str

class Department(BaseModel):
    id: str
    name: str
    customerCare: CustomerCare
    subAdminId: Optional[str] = None
    subAdminName: Optional[str] = None
    createdAt: Optional[str] = None


# Complaint Model
class TimelineEntry(BaseModel):
    status: str  # a ComplaintStatus value or "priority_updated"
    timestamp: str
    message: str

class Complaint(BaseModel):
    id: str
    token: str  # e.g. "CMP-1735689600000-4K9QZX"
    citizenId: str
    citizenName: Optional[str] = None
    citizenPhone: Optional[str] = None
    departmentId: str
    departmentName: Optional[str] = None  # filled in on read, not stored
    complaintType: str
    description: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    photos: List[str] = []  # data URIs or storage URLs
    status: str = Field(default=ComplaintStatus.PENDING.value)
    priority: str = Field(default=ComplaintPriority.NORMAL.value)
    timeline: List[TimelineEntry] = []
    closureReason: Optional[str] = None
    closedBy: Optional[str] = None
    createdAt: str
    updatedAt: str


# Assignment Model (doc id = complaint id)
class Assignment(BaseModel):
    complaintId: str
    subAdminId: Optional[str] = None
    subAdminName: Optional[str] = None
    subAdminAssignedAt: Optional[str] = None
    contractorId: Optional[str] = None
    contractorName: Optional[str] = None
    contractorPhone: Optional[str] = None
    contractorAssignedAt: Optional[str] = None
    estimatedFees: Optional[float] = None
    estimatedTime: Optional[str] = None
    assignmentDescription: Optional[str] = None
    contractorStatus: Optional[str] = None  # pending, accepted, rejected, completed
    workStartedAt: Optional[str] = None
    rejectedAt: Optional[str] = None
    completedAt: Optional[str] = None
    completionNotes: Optional[str] = None
    completionPhotos: List[str] = []
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


# Feedback Model (doc id = complaint id)
class Feedback(BaseModel):
    complaintId: str
    citizenId: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    satisfied: bool
    submittedAt: str
    round: int = 1  # completion round this feedback closes or reopens
    previousRounds: List[dict] = []  # unsatisfied rounds before this one


# Announcement Model
class Announcement(BaseModel):
    id: str
    title: str
    message: str
    priority: str = Field(default=AnnouncementPriority.NORMAL.value)  # normal, high
    isActive: bool = True
    createdBy: Optional[str] = None
    createdByName: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
