"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Field names are snake_case in Python and camelCase on the wire
(and in MongoDB documents).
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from enum import Enum


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, enums stored as their values."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True
    )

    def to_document(self) -> dict:
        """Fields the client actually sent, keyed by their camelCase names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


# ============================================================
# ENUMS
# ============================================================

class DegreeLevel(str, Enum):
    bachelors = "Bachelors"
    masters = "Masters"
    phd = "PhD"
    diploma = "Diploma"


class IntakeSeason(str, Enum):
    fall = "Fall"
    spring = "Spring"
    summer = "Summer"
    winter = "Winter"


class ApplicationStatus(str, Enum):
    submitted = "submitted"
    under_review = "under_review"
    shortlisted = "shortlisted"
    accepted = "accepted"
    rejected = "rejected"
    waitlisted = "waitlisted"


class UserRole(str, Enum):
    admin = "admin"
    reviewer = "reviewer"
    admission_officer = "admission_officer"


URL_PATTERN = r"^https?://[^\s$.?#].[^\s]*$"


def _lower(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if isinstance(value, str) else value


def _not_null(value):
    # optional in a partial update, but cannot be cleared
    if value is None:
        raise ValueError("cannot be null")
    return value


# ============================================================
# UNIVERSITY SCHEMAS
# ============================================================

class UniversityCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1)
    city: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    degree_level: DegreeLevel
    programs: List[str] = []
    min_gpa: float = Field(..., ge=0, le=4.0, alias="minGPA")
    min_ielts: float = Field(..., ge=0, le=9, alias="minIELTS")
    tuition_fee: float = Field(..., ge=0)
    scholarships_available: bool = False
    application_deadline: Optional[datetime] = None
    intake_seasons: List[IntakeSeason] = []
    ranking: Optional[int] = Field(None, ge=1)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    contact_email: Optional[EmailStr] = None
    logo_url: Optional[str] = None
    campus_photos: List[str] = []

    @field_validator("name", "country", "city", "website", "logo_url")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("programs", "campus_photos")
    @classmethod
    def strip_items(cls, v):
        return [item.strip() for item in v]

    @field_validator("contact_email")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class UniversityUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    country: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    degree_level: Optional[DegreeLevel] = None
    programs: Optional[List[str]] = None
    min_gpa: Optional[float] = Field(None, ge=0, le=4.0, alias="minGPA")
    min_ielts: Optional[float] = Field(None, ge=0, le=9, alias="minIELTS")
    tuition_fee: Optional[float] = Field(None, ge=0)
    scholarships_available: Optional[bool] = None
    application_deadline: Optional[datetime] = None
    intake_seasons: Optional[List[IntakeSeason]] = None
    ranking: Optional[int] = Field(None, ge=1)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    contact_email: Optional[EmailStr] = None
    logo_url: Optional[str] = None
    campus_photos: Optional[List[str]] = None

    @field_validator(
        "name", "country", "degree_level", "programs", "min_gpa", "min_ielts", "tuition_fee",
        "scholarships_available", "intake_seasons", "campus_photos", mode="before"
    )
    @classmethod
    def reject_null(cls, v):
        return _not_null(v)

    @field_validator("name", "country", "city", "website", "logo_url")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("programs", "campus_photos")
    @classmethod
    def strip_items(cls, v):
        return [item.strip() for item in v]

    @field_validator("contact_email")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class EligibilityCheckRequest(BaseModel):
    gpa: float
    ielts: float


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class GreScore(CamelModel):
    verbal: Optional[float] = None
    quantitative: Optional[float] = None
    analytical: Optional[float] = None


class AcademicBackground(CamelModel):
    degree: Optional[str] = None
    institution: Optional[str] = None
    year_of_completion: Optional[int] = None
    major: Optional[str] = None


class WorkExperience(CamelModel):
    company: Optional[str] = None
    position: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None


class ApplicationCreate(CamelModel):
    student_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    address: Optional[Address] = None
    gpa: float = Field(..., ge=0, le=4.0)
    ielts: float = Field(..., ge=0, le=9)
    gre_score: Optional[GreScore] = None
    academic_background: Optional[AcademicBackground] = None
    work_experience: List[WorkExperience] = []
    statement_of_purpose: Optional[str] = Field(None, max_length=2000)
    university_id: str = Field(..., min_length=1)
    program_applied: Optional[str] = None
    application_fee: float = Field(0, ge=0)

    @field_validator("student_name", "phone", "program_applied")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None


class ApplicationAssign(CamelModel):
    assigned_to: str = Field(..., min_length=1)


class ReviewNoteCreate(BaseModel):
    note: str = Field(..., min_length=1)
    reviewer: str = Field(..., min_length=1)


# ============================================================
# USER / AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.reviewer
    department: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class ProfileUpdate(BaseModel):
    # password and role are not accepted here; extra keys are ignored
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    department: Optional[str] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def reject_null(cls, v):
        return _not_null(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _lower(v)


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=8)
