"""
Application lifecycle.

A student has at most one application per job. Withdrawing keeps the row,
and applying again later reuses it with a fresh *submitted* status. Status
changes after submission belong to the employer who owns the job (or an
admin); withdrawal belongs to the student alone.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import crud, models, notifications, transitions
from .config import settings
from .errors import Conflict, Forbidden, InvalidTransition, NotFound
from .permissions import Action, authorize

logger = logging.getLogger(__name__)

APPLICATION_FIELDS = ("cover_letter", "resume_url", "applicant_name", "applicant_email", "additional_comments")

STATUS_EMAILS = {
    models.ApplicationStatus.UNDER_REVIEW: models.EmailType.APPLICATION_UNDER_REVIEW,
    models.ApplicationStatus.ACCEPTED: models.EmailType.APPLICATION_ACCEPTED,
    models.ApplicationStatus.REJECTED: models.EmailType.APPLICATION_REJECTED,
}

ACTIVE_STATUSES = [models.ApplicationStatus.SUBMITTED, models.ApplicationStatus.UNDER_REVIEW]


def notify_applicant(
    db: Session, application: models.Application, email_type: models.EmailType
) -> models.EmailLog | None:
    """
    Queue an email to the applicant inside the current transaction.

    Skipped when the student opted out of email, or when the same email for
    this application was queued within NOTIFICATION_DEDUPE_SECONDS.
    """
    student = application.student
    if not student.email_notifications:
        logger.debug("email suppressed (opted out): application=%s type=%s", application.id, email_type.value)
        return None
    recipient = application.applicant_email or student.email
    if crud.recent_email_exists(db, application.id, email_type, settings.NOTIFICATION_DEDUPE_SECONDS, recipient):
        logger.debug("email suppressed (duplicate): application=%s type=%s", application.id, email_type.value)
        return None
    return notifications.enqueue(
        db, application.id, email_type, recipient, notifications.subject_for(email_type, application)
    )


def load(db: Session, application_id: str) -> models.Application:
    application = crud.get_application(db, application_id)
    if application is None:
        raise NotFound("application not found")
    return application


def submit_application(db: Session, student: models.Profile, job_id: str, fields: dict) -> models.Application:
    authorize(student, Action.SUBMIT_APPLICATION)
    job = crud.get_job(db, job_id)
    if job is None or job.status != models.JobStatus.APPROVED or job.deadline < crud.today():
        raise NotFound("job not found")

    values = {name: fields.get(name) for name in APPLICATION_FIELDS}
    values["applicant_name"] = values["applicant_name"] or student.full_name
    values["applicant_email"] = values["applicant_email"] or student.email

    existing = crud.find_application(db, job.id, student.id)
    try:
        if existing is None:
            application = models.Application(
                job_id=job.id,
                student_id=student.id,
                status=models.ApplicationStatus.SUBMITTED,
                interview_status=models.InterviewProgress.NONE,
                **values,
            )
            db.add(application)
            db.flush()
        else:
            if existing.status != models.ApplicationStatus.WITHDRAWN:
                raise Conflict("you have already applied to this job")
            application = existing
            # a fresh start: drop the interview that belonged to the withdrawn round
            db.query(models.Interview).filter(models.Interview.application_id == application.id).delete(
                synchronize_session=False
            )
            reset = crud.compare_and_set(
                db,
                models.Application,
                application.id,
                models.Application.status,
                [models.ApplicationStatus.WITHDRAWN],
                status=models.ApplicationStatus.SUBMITTED,
                interview_status=models.InterviewProgress.NONE,
                employer_message=None,
                applied_at=crud.utcnow(),
                **values,
            )
            if not reset:
                raise Conflict("you have already applied to this job")
            db.refresh(application)
        notify_applicant(db, application, models.EmailType.APPLICATION_SUBMITTED)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("you have already applied to this job")
    except Exception:
        db.rollback()
        raise
    db.refresh(application)
    logger.info("application submitted: id=%s job=%s student=%s", application.id, job.id, student.id)
    return application


def update_status(
    db: Session, principal: models.Profile, application_id: str, new_status: models.ApplicationStatus
) -> models.Application:
    application = load(db, application_id)
    authorize(principal, Action.UPDATE_APPLICATION_STATUS, application)
    new_status = models.ApplicationStatus(new_status)
    if new_status == models.ApplicationStatus.WITHDRAWN:
        raise Forbidden("only the applicant can withdraw an application")

    current = application.status
    transitions.check_application(current, new_status)
    try:
        if not crud.compare_and_set(
            db, models.Application, application.id, models.Application.status, [current], status=new_status
        ):
            raise InvalidTransition(f"application {application.id} is no longer {current.value}")
        db.refresh(application)
        if new_status in STATUS_EMAILS:
            notify_applicant(db, application, STATUS_EMAILS[new_status])
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(application)
    logger.info("application %s: %s -> %s by %s", application.id, current.value, new_status.value, principal.id)
    return application


def withdraw(db: Session, student: models.Profile, application_id: str) -> models.Application:
    """Withdraw a submitted or under-review application. Repeating it is a no-op."""
    application = load(db, application_id)
    authorize(student, Action.WITHDRAW_APPLICATION, application)
    current = application.status
    if current == models.ApplicationStatus.WITHDRAWN:
        return application

    transitions.check_application(current, models.ApplicationStatus.WITHDRAWN)
    if not crud.compare_and_set(
        db,
        models.Application,
        application.id,
        models.Application.status,
        [current],
        status=models.ApplicationStatus.WITHDRAWN,
    ):
        db.rollback()
        db.refresh(application)
        if application.status == models.ApplicationStatus.WITHDRAWN:
            return application
        raise InvalidTransition(f"application {application.id} is no longer {current.value}")
    db.commit()
    db.refresh(application)
    logger.info("application %s withdrawn from %s", application.id, current.value)
    return application


def message_applicant(
    db: Session, principal: models.Profile, application_id: str, message: str
) -> models.Application:
    application = load(db, application_id)
    authorize(principal, Action.MESSAGE_APPLICANT, application)
    application.employer_message = message
    db.commit()
    db.refresh(application)
    return application


def get_application(db: Session, viewer: models.Profile, application_id: str) -> models.Application:
    application = crud.get_application(db, application_id)
    if application is None or not crud.is_application_visible(application, viewer):
        raise NotFound("application not found")
    return application


def list_applications(db: Session, viewer: models.Profile, job_id: str | None = None) -> list[models.Application]:
    return crud.visible_applications(db, viewer, job_id)
