"""
Job posting lifecycle.

A job starts *pending*; an admin approves or rejects it, and the owning
employer (or an admin) may close it while it is pending or approved.
Students only ever see approved jobs whose deadline has not passed.
"""
from __future__ import annotations

import enum
import logging

from sqlalchemy.orm import Session

from . import crud, models, transitions
from .errors import InvalidInput, InvalidTransition, NotFound
from .permissions import Action, authorize

logger = logging.getLogger(__name__)

JOB_FIELDS = ("title", "company", "description", "location", "salary", "type", "deadline")


class Decision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


DECISION_STATUS = {
    Decision.APPROVE: models.JobStatus.APPROVED,
    Decision.REJECT: models.JobStatus.REJECTED,
}


def _load(db: Session, job_id: str) -> models.Job:
    job = crud.get_job(db, job_id)
    if job is None:
        raise NotFound("job not found")
    return job


def _transition(db: Session, job: models.Job, target: models.JobStatus) -> models.Job:
    current = job.status
    transitions.check_job(current, target)
    if not crud.compare_and_set(db, models.Job, job.id, models.Job.status, [current], status=target):
        db.rollback()
        raise InvalidTransition(f"job {job.id} is no longer {current.value}")
    db.commit()
    db.refresh(job)
    logger.info("job %s: %s -> %s", job.id, current.value, target.value)
    return job


def create_job(db: Session, employer: models.Profile, fields: dict) -> models.Job:
    authorize(employer, Action.CREATE_JOB)
    missing = [name for name in JOB_FIELDS if fields.get(name) in (None, "")]
    if missing:
        raise InvalidInput(f"missing job fields: {', '.join(missing)}")
    job = models.Job(
        employer_id=employer.id,
        status=models.JobStatus.PENDING,
        **{name: fields[name] for name in JOB_FIELDS},
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    logger.info("job created: id=%s employer=%s", job.id, employer.id)
    return job


def moderate_job(db: Session, admin: models.Profile, job_id: str, decision: Decision) -> models.Job:
    # role check comes first: a student is refused whatever the job
    authorize(admin, Action.MODERATE_JOB)
    job = _load(db, job_id)
    return _transition(db, job, DECISION_STATUS[Decision(decision)])


def close_job(db: Session, principal: models.Profile, job_id: str) -> models.Job:
    """
    Close a pending or approved job.

    Applications still submitted or under review are left as they are;
    the employer follows up on them by hand.
    """
    job = _load(db, job_id)
    authorize(principal, Action.CLOSE_JOB, job)
    job = _transition(db, job, models.JobStatus.CLOSED)
    still_open = crud.count_open_applications(db, job.id)
    if still_open:
        logger.info("job %s closed with %d open applications left in place", job.id, still_open)
    return job


def delete_job(db: Session, principal: models.Profile, job_id: str) -> None:
    job = _load(db, job_id)
    authorize(principal, Action.DELETE_JOB, job)
    db.delete(job)
    db.commit()
    logger.info("job deleted: id=%s by=%s", job_id, principal.id)


def get_job(db: Session, viewer: models.Profile, job_id: str) -> models.Job:
    job = crud.get_job(db, job_id)
    if job is None or not crud.is_job_visible(job, viewer):
        raise NotFound("job not found")
    return job


def list_jobs(db: Session, viewer: models.Profile, status: models.JobStatus | None = None) -> list[models.Job]:
    return crud.visible_jobs(db, viewer, status)


def dashboard_stats(db: Session, viewer: models.Profile) -> dict[str, int]:
    if viewer.role == models.Role.EMPLOYER:
        jobs = db.query(models.Job).filter(models.Job.employer_id == viewer.id).all()
        applications = crud.count_applications_for_jobs(db, [j.id for j in jobs])
    elif viewer.role == models.Role.ADMIN:
        jobs = db.query(models.Job).all()
        applications = db.query(models.Application).count()
    else:
        jobs = crud.visible_jobs(db, viewer)
        applications = len(crud.visible_applications(db, viewer))
    return {
        "total_jobs": len(jobs),
        "approved_jobs": crud.count_by_status(jobs, models.JobStatus.APPROVED),
        "pending_jobs": crud.count_by_status(jobs, models.JobStatus.PENDING),
        "applications": applications,
    }
