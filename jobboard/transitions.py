"""
Transition tables for every stateful entity.

All status changes are validated here, so the allowed moves for a Job,
an Application, an Interview or the interview progress mirrored on an
Application live in one place.
"""
from __future__ import annotations

from .errors import InvalidTransition
from .models import ApplicationStatus, InterviewProgress, InterviewStatus, JobStatus

JOB_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.APPROVED, JobStatus.REJECTED, JobStatus.CLOSED}),
    JobStatus.APPROVED: frozenset({JobStatus.CLOSED}),
    JobStatus.REJECTED: frozenset(),
    JobStatus.CLOSED: frozenset(),
}

APPLICATION_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.SUBMITTED: frozenset({ApplicationStatus.UNDER_REVIEW, ApplicationStatus.WITHDRAWN}),
    ApplicationStatus.UNDER_REVIEW: frozenset(
        {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN}
    ),
    ApplicationStatus.ACCEPTED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.WITHDRAWN: frozenset(),
}

INTERVIEW_PROGRESS_TRANSITIONS: dict[InterviewProgress, frozenset[InterviewProgress]] = {
    InterviewProgress.NONE: frozenset({InterviewProgress.REQUESTED}),
    InterviewProgress.REQUESTED: frozenset({InterviewProgress.SCHEDULED}),
    InterviewProgress.SCHEDULED: frozenset({InterviewProgress.COMPLETED, InterviewProgress.DECLINED}),
    InterviewProgress.COMPLETED: frozenset(),
    InterviewProgress.DECLINED: frozenset(),
}

INTERVIEW_TRANSITIONS: dict[InterviewStatus, frozenset[InterviewStatus]] = {
    InterviewStatus.PROPOSED: frozenset(
        {InterviewStatus.CONFIRMED, InterviewStatus.COMPLETED, InterviewStatus.CANCELLED}
    ),
    InterviewStatus.CONFIRMED: frozenset({InterviewStatus.COMPLETED, InterviewStatus.CANCELLED}),
    InterviewStatus.COMPLETED: frozenset(),
    InterviewStatus.CANCELLED: frozenset(),
}

# resolving an interview writes both rows; these are the paired values
INTERVIEW_OUTCOMES: dict[InterviewProgress, InterviewStatus] = {
    InterviewProgress.COMPLETED: InterviewStatus.COMPLETED,
    InterviewProgress.DECLINED: InterviewStatus.CANCELLED,
}


def _check(table: dict, entity: str, current, target) -> None:
    if target not in table.get(current, frozenset()):
        raise InvalidTransition(f"{entity} cannot move from {current.value} to {target.value}")


def check_job(current: JobStatus, target: JobStatus) -> None:
    _check(JOB_TRANSITIONS, "job", current, target)


def check_application(current: ApplicationStatus, target: ApplicationStatus) -> None:
    _check(APPLICATION_TRANSITIONS, "application", current, target)


def check_interview_progress(current: InterviewProgress, target: InterviewProgress) -> None:
    _check(INTERVIEW_PROGRESS_TRANSITIONS, "interview progress", current, target)


def check_interview(current: InterviewStatus, target: InterviewStatus) -> None:
    _check(INTERVIEW_TRANSITIONS, "interview", current, target)
