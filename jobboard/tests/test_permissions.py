import pytest

from jobboard import models
from jobboard.errors import Forbidden
from jobboard.permissions import Action, authorize, can_perform, is_admin

from .factories import make_profile


def _application(db, job, student):
    app = models.Application(job_id=job.id, student_id=student.id, applicant_email=student.email)
    db.add(app)
    db.commit()
    db.refresh(app)
    return app


def test_is_admin_reads_role_only(db_session, admin, employer, student):
    assert is_admin(admin) is True
    assert is_admin(employer) is False
    assert is_admin(student) is False
    assert is_admin(None) is False


@pytest.mark.parametrize("action", [Action.MODERATE_JOB, Action.APPROVE_VERIFICATION, Action.REVIEW_VERIFICATIONS])
def test_admin_only_actions(db_session, admin, employer, student, job, action):
    assert can_perform(admin, action)
    assert not can_perform(employer, action, job)
    assert not can_perform(student, action, job)


def test_create_job_needs_verified_employer(db_session, employer, student, admin):
    unverified = make_profile(db_session, models.Role.EMPLOYER, verified=False)
    assert can_perform(employer, Action.CREATE_JOB)
    assert not can_perform(unverified, Action.CREATE_JOB)
    assert not can_perform(student, Action.CREATE_JOB)
    assert not can_perform(admin, Action.CREATE_JOB)


def test_close_job_owner_or_admin(db_session, employer, admin, student, job):
    other = make_profile(db_session, models.Role.EMPLOYER)
    assert can_perform(employer, Action.CLOSE_JOB, job)
    assert can_perform(admin, Action.CLOSE_JOB, job)
    assert not can_perform(other, Action.CLOSE_JOB, job)
    assert not can_perform(student, Action.CLOSE_JOB, job)


def test_application_actions_split_between_employer_and_student(db_session, employer, admin, student, job):
    app = _application(db_session, job, student)
    other_employer = make_profile(db_session, models.Role.EMPLOYER)
    other_student = make_profile(db_session, models.Role.STUDENT)

    for action in (Action.UPDATE_APPLICATION_STATUS, Action.REQUEST_INTERVIEW, Action.MESSAGE_APPLICANT):
        assert can_perform(employer, action, app)
        assert can_perform(admin, action, app)
        assert not can_perform(other_employer, action, app)
        assert not can_perform(student, action, app)

    assert can_perform(student, Action.WITHDRAW_APPLICATION, app)
    assert not can_perform(other_student, Action.WITHDRAW_APPLICATION, app)
    assert not can_perform(employer, Action.WITHDRAW_APPLICATION, app)


def test_resolve_interview_open_to_both_parties(db_session, employer, student, job):
    app = _application(db_session, job, student)
    interview = models.Interview(application_id=app.id, employer_message="Tuesday")
    db_session.add(interview)
    db_session.commit()
    outsider = make_profile(db_session, models.Role.STUDENT)

    assert can_perform(employer, Action.RESOLVE_INTERVIEW, interview)
    assert can_perform(student, Action.RESOLVE_INTERVIEW, interview)
    assert not can_perform(outsider, Action.RESOLVE_INTERVIEW, interview)
    assert can_perform(student, Action.CONFIRM_INTERVIEW, interview)
    assert not can_perform(employer, Action.CONFIRM_INTERVIEW, interview)


def test_authorize_raises_forbidden(db_session, student, job):
    with pytest.raises(Forbidden) as exc:
        authorize(student, Action.MODERATE_JOB, job)
    assert exc.value.code == "forbidden"
    with pytest.raises(Forbidden):
        authorize(None, Action.SUBMIT_APPLICATION)


def test_missing_target_is_refused(db_session, employer):
    assert not can_perform(employer, Action.CLOSE_JOB)
    assert not can_perform(employer, Action.UPDATE_APPLICATION_STATUS)
