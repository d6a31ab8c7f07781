from __future__ import annotations
from datetime import datetime, date
from typing import Literal
from pydantic import BaseModel, EmailStr, Field

from .models import (
    ApplicationStatus,
    EmailStatus,
    EmailType,
    InterviewProgress,
    InterviewStatus,
    JobStatus,
    Role,
)
from .postings import Decision

# Profiles
class ProfileCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=255)
    role: Literal["student", "employer"] = "student"

class ProfileOut(BaseModel):
    id: str
    email: EmailStr
    full_name: str
    role: Role
    verified: bool
    verification_requested_at: datetime | None = None
    email_notifications: bool
    created_at: datetime

    model_config = {"from_attributes": True}

class PreferencesUpdate(BaseModel):
    email_notifications: bool

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Jobs
class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=512)
    company: str = Field(min_length=1, max_length=512)
    description: str = Field(min_length=1)
    location: str = Field(min_length=1, max_length=512)
    salary: str = Field(min_length=1, max_length=128)
    type: str = Field(min_length=1, max_length=64)
    deadline: date

class JobOut(BaseModel):
    id: str
    employer_id: str
    title: str
    company: str
    description: str
    location: str
    salary: str
    type: str
    deadline: date
    status: JobStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

class ModerationIn(BaseModel):
    decision: Decision

# Applications
class ApplicationCreate(BaseModel):
    cover_letter: str | None = None
    resume_url: str | None = Field(None, max_length=2048)
    applicant_name: str | None = Field(None, max_length=255)
    applicant_email: EmailStr | None = None
    additional_comments: str | None = None

class ApplicationOut(BaseModel):
    id: str
    job_id: str
    student_id: str
    status: ApplicationStatus
    interview_status: InterviewProgress
    cover_letter: str | None = None
    resume_url: str | None = None
    applicant_name: str | None = None
    applicant_email: str | None = None
    additional_comments: str | None = None
    employer_message: str | None = None
    applied_at: datetime

    model_config = {"from_attributes": True}

class StatusUpdate(BaseModel):
    status: ApplicationStatus

class MessageIn(BaseModel):
    message: str = Field(min_length=1)

# Interviews
class ScheduleIn(BaseModel):
    confirmed: bool = False

class ResolveIn(BaseModel):
    outcome: Literal["completed", "declined"]

class InterviewOut(BaseModel):
    id: str
    application_id: str
    employer_message: str
    status: InterviewStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

# Ledger
class EmailLogOut(BaseModel):
    id: str
    application_id: str | None = None
    recipient_email: str
    email_type: EmailType
    subject: str
    status: EmailStatus
    created_at: datetime
    sent_at: datetime | None = None

    model_config = {"from_attributes": True}

class DashboardOut(BaseModel):
    total_jobs: int
    approved_jobs: int
    pending_jobs: int
    applications: int
