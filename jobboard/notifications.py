"""
Notification ledger.

Every email the platform tries to send is first appended to ``email_logs``
as *queued*. A separate delivery attempt claims the entry (*sending*) and
then moves it to *sent* or *failed* exactly once; after that the row is
never touched again.
Duplicate suppression is the caller's job, the ledger only appends.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from . import crud, models
from .errors import DeliveryFailed
from .mailer import get_mailer

logger = logging.getLogger(__name__)

SUBJECTS: dict[models.EmailType, str] = {
    models.EmailType.APPLICATION_SUBMITTED: "We received your application for {title}",
    models.EmailType.APPLICATION_UNDER_REVIEW: "Your application for {title} is under review",
    models.EmailType.APPLICATION_ACCEPTED: "Good news about your application for {title}",
    models.EmailType.APPLICATION_REJECTED: "Update on your application for {title}",
    models.EmailType.INTERVIEW_REQUESTED: "Interview request for {title}",
    models.EmailType.INTERVIEW_SCHEDULED: "Your interview for {title} is scheduled",
    models.EmailType.VERIFICATION_APPROVED: "Your account has been verified",
}

BODIES: dict[models.EmailType, str] = {
    models.EmailType.APPLICATION_SUBMITTED: (
        "Hi {name},\n\nThanks for applying to {title} at {company}. "
        "The employer will review your application soon."
    ),
    models.EmailType.APPLICATION_UNDER_REVIEW: (
        "Hi {name},\n\n{company} has started reviewing your application for {title}."
    ),
    models.EmailType.APPLICATION_ACCEPTED: (
        "Hi {name},\n\nCongratulations! {company} has accepted your application for {title}."
    ),
    models.EmailType.APPLICATION_REJECTED: (
        "Hi {name},\n\n{company} has decided not to move forward with your application for {title}."
    ),
    models.EmailType.INTERVIEW_REQUESTED: (
        "Hi {name},\n\n{company} would like to interview you for {title}.\n\n{message}"
    ),
    models.EmailType.INTERVIEW_SCHEDULED: (
        "Hi {name},\n\nYour interview with {company} for {title} has been scheduled.\n\n{message}"
    ),
    models.EmailType.VERIFICATION_APPROVED: (
        "Hi {name},\n\nAn administrator has verified your account. "
        "You now have full access to the job board."
    ),
}


def _context(log: models.EmailLog, db: Session) -> dict[str, str]:
    application = log.application
    if application is None:
        profile = crud.get_profile_by_email(db, log.recipient_email)
        return {
            "name": profile.full_name if profile else log.recipient_email,
            "title": "",
            "company": "",
            "message": "",
        }
    return {
        "name": application.applicant_name or application.student.full_name,
        "title": application.job.title,
        "company": application.job.company,
        "message": application.employer_message or "",
    }


def subject_for(email_type: models.EmailType, application: models.Application | None) -> str:
    title = application.job.title if application is not None else ""
    return SUBJECTS[email_type].format(title=title)


def enqueue(
    db: Session,
    application_id: str | None,
    email_type: models.EmailType,
    recipient: str,
    subject: str,
) -> models.EmailLog:
    """Append a queued entry. Joins the caller's transaction; never commits."""
    log = models.EmailLog(
        application_id=application_id,
        recipient_email=recipient,
        email_type=email_type,
        subject=subject,
        status=models.EmailStatus.QUEUED,
    )
    db.add(log)
    db.flush()
    logger.info("email queued: id=%s type=%s application=%s", log.id, email_type.value, application_id)
    return log


def deliver(db: Session, log_id: str, mailer=None) -> models.EmailLog | None:
    """
    One delivery attempt for a queued entry. Terminal entries are returned untouched.

    The entry is claimed (queued -> sending) and committed before the mailer
    is called, so overlapping drains send each message at most once. Any
    error from building or sending the message is recorded as *failed*.
    """
    log = crud.get_email_log(db, log_id)
    if log is None or log.status != models.EmailStatus.QUEUED:
        return log

    claimed = crud.compare_and_set(
        db,
        models.EmailLog,
        log.id,
        models.EmailLog.status,
        [models.EmailStatus.QUEUED],
        status=models.EmailStatus.SENDING,
    )
    db.commit()
    db.refresh(log)
    if not claimed:
        # another drain owns this entry
        return log

    mailer = mailer or get_mailer()
    try:
        body = BODIES[log.email_type].format(**_context(log, db))
        mailer.send(log.recipient_email, log.subject, body)
    except DeliveryFailed as e:
        logger.warning("email delivery failed: id=%s to=%s: %s", log.id, log.recipient_email, e.detail)
        values = {"status": models.EmailStatus.FAILED}
    except Exception:
        logger.exception("email delivery crashed: id=%s to=%s", log.id, log.recipient_email)
        values = {"status": models.EmailStatus.FAILED}
    else:
        values = {"status": models.EmailStatus.SENT, "sent_at": crud.utcnow()}

    crud.compare_and_set(
        db, models.EmailLog, log.id, models.EmailLog.status, [models.EmailStatus.SENDING], **values
    )
    db.commit()
    db.refresh(log)
    return log


def deliver_queued(session_factory: sessionmaker, mailer=None) -> dict[str, int]:
    """Drain every queued entry in a fresh session. Used as a background task."""
    db = session_factory()
    counts = {"sent": 0, "failed": 0}
    try:
        for log_id in crud.queued_email_ids(db):
            log = deliver(db, log_id, mailer)
            if log is not None and log.status == models.EmailStatus.SENT:
                counts["sent"] += 1
            elif log is not None and log.status == models.EmailStatus.FAILED:
                counts["failed"] += 1
        if counts["sent"] or counts["failed"]:
            logger.info("email delivery: sent=%d failed=%d", counts["sent"], counts["failed"])
        return counts
    except Exception:
        db.rollback()
        logger.exception("deliver_queued aborted")
        raise
    finally:
        db.close()


def list_logs(db: Session, principal: models.Profile, application_id: str | None = None) -> list[models.EmailLog]:
    """Admins see the whole ledger; others see entries for applications visible to them."""
    if principal.role == models.Role.ADMIN:
        if application_id is None:
            return crud.list_email_logs(db)
        return crud.list_email_logs(db, [application_id])
    visible = [a.id for a in crud.visible_applications(db, principal)]
    if application_id is not None:
        visible = [a for a in visible if a == application_id]
    return crud.list_email_logs(db, visible)
