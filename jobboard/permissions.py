"""
Authorization gate consulted before every mutation.

``can_perform`` is a pure predicate over the principal's role, verification
flag and ownership of the target; ``authorize`` turns a negative answer
into :class:`Forbidden`.
"""
from __future__ import annotations

import enum
import logging

from . import models
from .errors import Forbidden

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    CREATE_JOB = "create_job"
    MODERATE_JOB = "moderate_job"
    CLOSE_JOB = "close_job"
    DELETE_JOB = "delete_job"
    SUBMIT_APPLICATION = "submit_application"
    UPDATE_APPLICATION_STATUS = "update_application_status"
    MESSAGE_APPLICANT = "message_applicant"
    WITHDRAW_APPLICATION = "withdraw_application"
    REQUEST_INTERVIEW = "request_interview"
    SCHEDULE_INTERVIEW = "schedule_interview"
    CONFIRM_INTERVIEW = "confirm_interview"
    RESOLVE_INTERVIEW = "resolve_interview"
    APPROVE_VERIFICATION = "approve_verification"
    REVIEW_VERIFICATIONS = "review_verifications"


def is_admin(profile: models.Profile | None) -> bool:
    return profile is not None and profile.role == models.Role.ADMIN


def owns_job(profile: models.Profile, job: models.Job) -> bool:
    return profile.role == models.Role.EMPLOYER and job.employer_id == profile.id


def owns_application(profile: models.Profile, application: models.Application) -> bool:
    """The student who applied."""
    return profile.role == models.Role.STUDENT and application.student_id == profile.id


def manages_application(profile: models.Profile, application: models.Application) -> bool:
    """The employer who posted the job, or an admin."""
    return is_admin(profile) or owns_job(profile, application.job)


def _application_of(target) -> models.Application | None:
    if isinstance(target, models.Application):
        return target
    if isinstance(target, models.Interview):
        return target.application
    return None


def can_perform(principal: models.Profile | None, action: Action, target=None) -> bool:
    if principal is None:
        return False

    if action in (Action.MODERATE_JOB, Action.APPROVE_VERIFICATION, Action.REVIEW_VERIFICATIONS):
        return is_admin(principal)

    if action == Action.CREATE_JOB:
        return principal.role == models.Role.EMPLOYER and bool(principal.verified)

    if action in (Action.CLOSE_JOB, Action.DELETE_JOB):
        return isinstance(target, models.Job) and (is_admin(principal) or owns_job(principal, target))

    if action == Action.SUBMIT_APPLICATION:
        return principal.role == models.Role.STUDENT

    application = _application_of(target)
    if application is None:
        return False

    if action in (
        Action.UPDATE_APPLICATION_STATUS,
        Action.MESSAGE_APPLICANT,
        Action.REQUEST_INTERVIEW,
        Action.SCHEDULE_INTERVIEW,
    ):
        return manages_application(principal, application)

    if action in (Action.WITHDRAW_APPLICATION, Action.CONFIRM_INTERVIEW):
        return owns_application(principal, application)

    if action == Action.RESOLVE_INTERVIEW:
        return manages_application(principal, application) or owns_application(principal, application)

    return False


def authorize(principal: models.Profile | None, action: Action, target=None) -> None:
    if not can_perform(principal, action, target):
        logger.warning(
            "forbidden: principal=%s role=%s action=%s",
            getattr(principal, "id", None),
            getattr(getattr(principal, "role", None), "value", None),
            action.value,
        )
        raise Forbidden(f"not allowed to {action.value.replace('_', ' ')}")
