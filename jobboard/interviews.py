"""
Interview sub-process of an application.

The application row carries the interview progress
(none -> requested -> scheduled -> completed | declined); the interview
row exists from scheduling onwards. Every step that touches both rows
writes them in a single transaction.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import crud, models, transitions
from .applications import ACTIVE_STATUSES, load as load_application, notify_applicant
from .errors import InvalidTransition, NotFound
from .permissions import Action, authorize

logger = logging.getLogger(__name__)


def _load(db: Session, interview_id: str) -> models.Interview:
    interview = crud.get_interview(db, interview_id)
    if interview is None:
        raise NotFound("interview not found")
    return interview


def request_interview(
    db: Session, principal: models.Profile, application_id: str, message: str
) -> models.Application:
    application = load_application(db, application_id)
    authorize(principal, Action.REQUEST_INTERVIEW, application)
    if application.status not in ACTIVE_STATUSES:
        raise InvalidTransition(f"cannot interview for a {application.status.value} application")
    transitions.check_interview_progress(application.interview_status, models.InterviewProgress.REQUESTED)
    try:
        if not crud.compare_and_set(
            db,
            models.Application,
            application.id,
            models.Application.interview_status,
            [models.InterviewProgress.NONE],
            models.Application.status.in_(ACTIVE_STATUSES),
            interview_status=models.InterviewProgress.REQUESTED,
            employer_message=message,
        ):
            raise InvalidTransition(f"application {application.id} changed before the interview was requested")
        db.refresh(application)
        notify_applicant(db, application, models.EmailType.INTERVIEW_REQUESTED)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(application)
    logger.info("interview requested: application=%s by %s", application.id, principal.id)
    return application


def schedule_interview(
    db: Session, principal: models.Profile, application_id: str, confirmed: bool = False
) -> models.Interview:
    """
    Create the interview row and mark the application scheduled, atomically.

    ``confirmed`` records whether the time was already agreed with the
    student (confirmed) or still awaits their confirmation (proposed).
    """
    application = load_application(db, application_id)
    authorize(principal, Action.SCHEDULE_INTERVIEW, application)
    if application.status not in ACTIVE_STATUSES:
        raise InvalidTransition(f"cannot interview for a {application.status.value} application")
    transitions.check_interview_progress(application.interview_status, models.InterviewProgress.SCHEDULED)

    interview = models.Interview(
        application_id=application.id,
        employer_message=application.employer_message or "",
        status=models.InterviewStatus.CONFIRMED if confirmed else models.InterviewStatus.PROPOSED,
    )
    try:
        db.add(interview)
        db.flush()
        if not crud.compare_and_set(
            db,
            models.Application,
            application.id,
            models.Application.interview_status,
            [models.InterviewProgress.REQUESTED],
            models.Application.status.in_(ACTIVE_STATUSES),
            interview_status=models.InterviewProgress.SCHEDULED,
        ):
            raise InvalidTransition(f"application {application.id} is no longer awaiting an interview")
        db.refresh(application)
        notify_applicant(db, application, models.EmailType.INTERVIEW_SCHEDULED)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidTransition(f"application {application.id} already has an interview")
    except Exception:
        db.rollback()
        raise
    db.refresh(interview)
    logger.info(
        "interview scheduled: id=%s application=%s status=%s", interview.id, application.id, interview.status.value
    )
    return interview


def confirm_interview(db: Session, student: models.Profile, interview_id: str) -> models.Interview:
    """The applicant accepts a proposed interview slot."""
    interview = _load(db, interview_id)
    authorize(student, Action.CONFIRM_INTERVIEW, interview)
    current = interview.status
    transitions.check_interview(current, models.InterviewStatus.CONFIRMED)
    if not crud.compare_and_set(
        db, models.Interview, interview.id, models.Interview.status, [current], status=models.InterviewStatus.CONFIRMED
    ):
        db.rollback()
        raise InvalidTransition(f"interview {interview.id} is no longer {current.value}")
    db.commit()
    db.refresh(interview)
    logger.info("interview confirmed: id=%s", interview.id)
    return interview


def resolve_interview(
    db: Session, principal: models.Profile, interview_id: str, outcome: models.InterviewProgress
) -> models.Interview:
    interview = _load(db, interview_id)
    authorize(principal, Action.RESOLVE_INTERVIEW, interview)
    application = interview.application
    outcome = models.InterviewProgress(outcome)
    if application.status == models.ApplicationStatus.WITHDRAWN:
        raise InvalidTransition(f"application {application.id} was withdrawn")

    transitions.check_interview_progress(application.interview_status, outcome)
    current = interview.status
    target = transitions.INTERVIEW_OUTCOMES[outcome]
    transitions.check_interview(current, target)
    try:
        moved = crud.compare_and_set(
            db, models.Interview, interview.id, models.Interview.status, [current], status=target
        ) and crud.compare_and_set(
            db,
            models.Application,
            application.id,
            models.Application.interview_status,
            [models.InterviewProgress.SCHEDULED],
            models.Application.status != models.ApplicationStatus.WITHDRAWN,
            interview_status=outcome,
        )
        if not moved:
            raise InvalidTransition(f"interview {interview.id} changed before it could be resolved")
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(interview)
    db.refresh(application)
    logger.info("interview %s resolved as %s by %s", interview.id, outcome.value, principal.id)
    return interview


def get_interview(db: Session, viewer: models.Profile, interview_id: str) -> models.Interview:
    interview = crud.get_interview(db, interview_id)
    if interview is None or not crud.is_application_visible(interview.application, viewer):
        raise NotFound("interview not found")
    return interview


def list_interviews(db: Session, viewer: models.Profile) -> list[models.Interview]:
    application_ids = [a.id for a in crud.visible_applications(db, viewer)]
    if not application_ids:
        return []
    return (
        db.query(models.Interview)
        .filter(models.Interview.application_id.in_(application_ids))
        .order_by(models.Interview.created_at.desc())
        .all()
    )
