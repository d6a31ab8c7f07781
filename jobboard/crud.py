from __future__ import annotations
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session

from . import models, security
from .config import settings


def today() -> date:
    """Calendar date used for deadline checks."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Profiles
def get_profile(db: Session, profile_id: str) -> models.Profile | None:
    return db.get(models.Profile, profile_id)

def get_profile_by_email(db: Session, email: str) -> models.Profile | None:
    return db.query(models.Profile).filter(models.Profile.email == email).first()

def create_profile(
    db: Session, email: str, password: str, full_name: str, role: models.Role
) -> models.Profile:
    hashed_pw = security.hash_password(password)
    profile = models.Profile(email=email, hashed_password=hashed_pw, full_name=full_name, role=role)
    # admins moderate other accounts, nobody verifies them
    profile.verified = role == models.Role.ADMIN
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile

def list_verification_requests(db: Session) -> list[models.Profile]:
    return (
        db.query(models.Profile)
        .filter(models.Profile.verified.is_(False), models.Profile.verification_requested_at.isnot(None))
        .order_by(models.Profile.verification_requested_at.asc())
        .all()
    )


# Entity lookups (no visibility filtering)
def get_job(db: Session, job_id: str) -> models.Job | None:
    return db.get(models.Job, job_id)

def get_application(db: Session, application_id: str) -> models.Application | None:
    return db.get(models.Application, application_id)

def get_interview(db: Session, interview_id: str) -> models.Interview | None:
    return db.get(models.Interview, interview_id)

def get_email_log(db: Session, log_id: str) -> models.EmailLog | None:
    return db.get(models.EmailLog, log_id)

def find_application(db: Session, job_id: str, student_id: str) -> models.Application | None:
    return db.execute(
        select(models.Application).where(
            models.Application.job_id == job_id, models.Application.student_id == student_id
        )
    ).scalar_one_or_none()


def compare_and_set(db: Session, model, row_id: str, column, expected: list, *criteria, **values) -> bool:
    """
    UPDATE model SET **values WHERE id = row_id AND column IN expected [AND criteria].

    Returns False when no row matched, i.e. the row moved on since it was read.
    The caller owns the transaction.
    """
    result = db.execute(
        update(model)
        .where(model.id == row_id, column.in_(expected), *criteria)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return (result.rowcount or 0) == 1


# Visibility
def _public_clause():
    return and_(models.Job.status == models.JobStatus.APPROVED, models.Job.deadline >= today())

def is_job_visible(job: models.Job, viewer: models.Profile) -> bool:
    if viewer.role == models.Role.ADMIN or job.employer_id == viewer.id:
        return True
    return job.status == models.JobStatus.APPROVED and job.deadline >= today()

def visible_jobs(db: Session, viewer: models.Profile, status: models.JobStatus | None = None) -> list[models.Job]:
    q = db.query(models.Job)
    if viewer.role == models.Role.EMPLOYER:
        q = q.filter(or_(models.Job.employer_id == viewer.id, _public_clause()))
    elif viewer.role != models.Role.ADMIN:
        q = q.filter(_public_clause())
    if status is not None:
        q = q.filter(models.Job.status == status)
    return q.order_by(models.Job.created_at.desc()).all()

def is_application_visible(application: models.Application, viewer: models.Profile) -> bool:
    if viewer.role == models.Role.ADMIN:
        return True
    if viewer.role == models.Role.STUDENT:
        return application.student_id == viewer.id
    return application.job.employer_id == viewer.id

def visible_applications(
    db: Session, viewer: models.Profile, job_id: str | None = None
) -> list[models.Application]:
    q = db.query(models.Application).join(models.Job, models.Application.job_id == models.Job.id)
    if viewer.role == models.Role.STUDENT:
        q = q.filter(models.Application.student_id == viewer.id)
    elif viewer.role == models.Role.EMPLOYER:
        q = q.filter(models.Job.employer_id == viewer.id)
    if job_id is not None:
        q = q.filter(models.Application.job_id == job_id)
    return q.order_by(models.Application.applied_at.desc()).all()

def count_open_applications(db: Session, job_id: str) -> int:
    return (
        db.query(models.Application)
        .filter(
            models.Application.job_id == job_id,
            models.Application.status.in_(
                [models.ApplicationStatus.SUBMITTED, models.ApplicationStatus.UNDER_REVIEW]
            ),
        )
        .count()
    )


# Notification ledger
def recent_email_exists(
    db: Session, application_id: str | None, email_type: models.EmailType, window_seconds: int, recipient: str
) -> bool:
    if window_seconds <= 0:
        return False
    cutoff = utcnow() - timedelta(seconds=window_seconds)
    q = db.query(models.EmailLog).filter(
        models.EmailLog.email_type == email_type,
        models.EmailLog.recipient_email == recipient,
        models.EmailLog.created_at >= cutoff,
    )
    if application_id is None:
        q = q.filter(models.EmailLog.application_id.is_(None))
    else:
        q = q.filter(models.EmailLog.application_id == application_id)
    return db.query(q.exists()).scalar()

def list_email_logs(db: Session, application_ids: list[str] | None = None) -> list[models.EmailLog]:
    """All entries, or those tied to the given applications."""
    q = db.query(models.EmailLog)
    if application_ids is not None:
        q = q.filter(models.EmailLog.application_id.in_(application_ids))
    return q.order_by(models.EmailLog.created_at.desc()).all()

def queued_email_ids(db: Session) -> list[str]:
    rows = db.execute(
        select(models.EmailLog.id)
        .where(models.EmailLog.status == models.EmailStatus.QUEUED)
        .order_by(models.EmailLog.created_at.asc())
    ).all()
    return [r[0] for r in rows]


# Dashboard
def count_by_status(jobs: list[models.Job], status: models.JobStatus) -> int:
    return sum(1 for job in jobs if job.status == status)

def count_applications_for_jobs(db: Session, job_ids: list[str]) -> int:
    if not job_ids:
        return 0
    return db.execute(
        select(func.count(models.Application.id)).where(models.Application.job_id.in_(job_ids))
    ).scalar_one()
