"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Request bodies use `exclude_unset` when turned into document updates,
so PUT bodies only touch the fields the client sent.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    company = "company"
    institution = "institution"
    admin = "admin"


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class CompanyStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    suspended = "suspended"
    rejected = "rejected"


class JobStatus(str, Enum):
    active = "active"
    paused = "paused"
    closed = "closed"


class JobApplicationStatus(str, Enum):
    pending = "pending"
    applied = "applied"
    reviewed = "reviewed"
    interview = "interview"
    rejected = "rejected"
    hired = "hired"
    withdrawn = "withdrawn"


class CourseApplicationStatus(str, Enum):
    pending = "pending"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"


class AdmissionStatus(str, Enum):
    upcoming = "upcoming"
    active = "active"
    published = "published"
    closed = "closed"


class CourseLevel(str, Enum):
    undergraduate = "undergraduate"
    postgraduate = "postgraduate"
    diploma = "diploma"
    certificate = "certificate"


class DocumentType(str, Enum):
    transcript = "transcript"
    certificate = "certificate"
    id_document = "id_document"
    recommendation = "recommendation"
    other = "other"


# ============================================================
# COMMON
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class IdResponse(MessageResponse):
    id: str


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole
    full_name: str = ""
    phone: str = ""
    organization_name: str = ""   # company / institution display name


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: str


class UserResponse(BaseModel):
    user_id: str
    email: str
    role: str
    status: str = "active"
    full_name: str = ""
    phone: str = ""
    created_at: Optional[datetime] = None


# ============================================================
# ADMIN SCHEMAS
# ============================================================

class SettingsUpdate(BaseModel):
    site_name: Optional[str] = None
    site_description: Optional[str] = None
    admin_email: Optional[EmailStr] = None
    support_email: Optional[EmailStr] = None
    auto_approve_companies: Optional[bool] = None
    require_company_verification: Optional[bool] = None
    max_admission_duration: Optional[int] = Field(None, ge=1)
    email_notifications: Optional[bool] = None
    system_alerts: Optional[bool] = None
    weekly_reports: Optional[bool] = None
    require_strong_passwords: Optional[bool] = None
    session_timeout: Optional[int] = Field(None, ge=1)
    max_login_attempts: Optional[int] = Field(None, ge=1)


class ReasonRequest(BaseModel):
    reason: str = ""


class InstitutionCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: str = "University"
    location: str = ""
    description: str = ""
    email: str = ""
    phone: str = ""
    website: str = ""
    established_year: Optional[str] = None
    accreditation_status: str = "accredited"


class InstitutionUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    established_year: Optional[str] = None
    accreditation_status: Optional[str] = None
    status: Optional[str] = None


class FacultyCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    dean: str = ""
    institution_id: Optional[str] = None
    courses: List[Any] = []


class FacultyUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    dean: Optional[str] = None
    status: Optional[str] = None
    courses: Optional[List[Any]] = None


class AdmissionCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    institution_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    requirements: Optional[str] = None
    status: Optional[AdmissionStatus] = None


class AdmissionUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    requirements: Optional[str] = None
    status: Optional[AdmissionStatus] = None


class AdmissionStatusUpdate(BaseModel):
    status: AdmissionStatus


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserRoleUpdate(BaseModel):
    role: str = Field(..., min_length=1)


class NotificationCreate(BaseModel):
    title: str
    message: str
    type: str = "system"
    recipient: str = "admin"
    priority: str = "medium"


# ============================================================
# COMPANY SCHEMAS
# ============================================================

class CompanyProfileUpdate(BaseModel):
    company_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    industry: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    employees: Optional[str] = None
    founded: Optional[str] = None
    contact_person: Optional[str] = None
    social_links: Optional[Dict[str, str]] = None
    benefits: Optional[List[str]] = None
    tech_stack: Optional[List[str]] = None


class JobRequirements(BaseModel):
    min_education: Optional[str] = None
    min_grade: Optional[str] = None
    skills: List[str] = []
    min_experience: Optional[float] = None


class JobCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    department: str = ""
    job_type: str = "full-time"
    location: str = ""
    industry: Optional[str] = None
    salary: Optional[float] = None
    salary_range: Optional[str] = None
    deadline: Optional[datetime] = None
    requirements: JobRequirements = JobRequirements()
    skills: List[str] = []
    benefits: List[str] = []
    remote: bool = False
    urgency: str = "normal"


class JobUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    department: Optional[str] = None
    job_type: Optional[str] = None
    location: Optional[str] = None
    industry: Optional[str] = None
    salary: Optional[float] = None
    salary_range: Optional[str] = None
    deadline: Optional[datetime] = None
    requirements: Optional[JobRequirements] = None
    skills: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    remote: Optional[bool] = None
    urgency: Optional[str] = None
    status: Optional[JobStatus] = None
    is_active: Optional[bool] = None


class JobApplicationStatusUpdate(BaseModel):
    status: JobApplicationStatus
    notes: str = ""


# ============================================================
# INSTITUTION SCHEMAS
# ============================================================

class CourseRequirements(BaseModel):
    min_education: Optional[str] = None
    min_grade: Optional[str] = None


class CourseCreate(BaseModel):
    name: str = Field(..., min_length=1)
    faculty_id: Optional[str] = None
    code: str = ""
    description: str = ""
    level: CourseLevel = CourseLevel.undergraduate
    duration: str = ""
    fees: Optional[float] = None
    capacity: Optional[int] = None
    requirements: Optional[CourseRequirements] = None
    status: str = "active"


class CourseUpdate(BaseModel):
    name: Optional[str] = None
    faculty_id: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    level: Optional[CourseLevel] = None
    duration: Optional[str] = None
    fees: Optional[float] = None
    capacity: Optional[int] = None
    requirements: Optional[CourseRequirements] = None
    status: Optional[str] = None


class CourseApplicationStatusUpdate(BaseModel):
    status: CourseApplicationStatus
    notes: str = ""


class ApplicationReviewResponse(BaseModel):
    application_id: str
    status: str
    auto_rejected_count: int = 0


# ============================================================
# STUDENT SCHEMAS
# ============================================================

class StudentProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    skills: Optional[List[str]] = None
    experience: Optional[float] = None


class QualificationsUpdate(BaseModel):
    education_level: Optional[str] = None
    overall_grade: Optional[str] = None
    institution: Optional[str] = None
    graduation_year: Optional[str] = None
    subjects: Optional[List[Any]] = None
    certificates: Optional[List[Any]] = None


class JobPreferencesUpdate(BaseModel):
    industries: Optional[List[str]] = None
    job_types: Optional[List[str]] = None
    locations: Optional[List[str]] = None
    min_salary: Optional[float] = None


class CourseApplyRequest(BaseModel):
    motivation: str = ""


class JobApplyRequest(BaseModel):
    cover_letter: str = ""


class EligibilityResponse(BaseModel):
    eligible: bool
    reason: str


class StudentDashboardStats(BaseModel):
    pending_applications: int
    admissions: int
    pending_job_applications: int
    job_matches: int
    unread_notifications: int
    profile_completion: int


# ============================================================
# HELPERS
# ============================================================

def to_document(model: BaseModel, partial: bool = False) -> dict:
    """
    Request model -> document fields (enums as values, dates as ISO strings).

    partial=True keeps only the fields the client actually sent.
    """
    if partial:
        return model.model_dump(mode="json", exclude_unset=True)
    return model.model_dump(mode="json", exclude_none=True)
