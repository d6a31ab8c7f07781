import pytest

from jobboard import applications, crud, interviews, models
from jobboard.errors import Forbidden, InvalidTransition, NotFound

from .factories import make_profile


@pytest.fixture()
def reviewed(db_session, employer, student, job):
    app = applications.submit_application(db_session, student, job.id, {"cover_letter": "hi"})
    return applications.update_status(db_session, employer, app.id, models.ApplicationStatus.UNDER_REVIEW)


@pytest.fixture()
def requested(db_session, employer, reviewed):
    return interviews.request_interview(db_session, employer, reviewed.id, "Can you interview Tuesday?")


def test_request_then_schedule(db_session, employer, requested):
    assert requested.interview_status == models.InterviewProgress.REQUESTED
    assert requested.employer_message == "Can you interview Tuesday?"

    interview = interviews.schedule_interview(db_session, employer, requested.id)
    assert interview.status == models.InterviewStatus.PROPOSED
    assert interview.employer_message == "Can you interview Tuesday?"
    db_session.refresh(requested)
    assert requested.interview_status == models.InterviewProgress.SCHEDULED

    types = [log.email_type for log in requested.email_logs]
    assert models.EmailType.INTERVIEW_REQUESTED in types
    assert models.EmailType.INTERVIEW_SCHEDULED in types


def test_schedule_already_confirmed(db_session, admin, requested):
    interview = interviews.schedule_interview(db_session, admin, requested.id, confirmed=True)
    assert interview.status == models.InterviewStatus.CONFIRMED


def test_request_twice_fails(db_session, employer, requested):
    with pytest.raises(InvalidTransition):
        interviews.request_interview(db_session, employer, requested.id, "again")


def test_request_needs_active_application(db_session, employer, student, reviewed):
    applications.withdraw(db_session, student, reviewed.id)
    with pytest.raises(InvalidTransition):
        interviews.request_interview(db_session, employer, reviewed.id, "still keen?")


def test_schedule_after_withdrawal_fails(db_session, employer, student, requested):
    applications.withdraw(db_session, student, requested.id)
    with pytest.raises(InvalidTransition):
        interviews.schedule_interview(db_session, employer, requested.id)

    db_session.refresh(requested)
    assert requested.status == models.ApplicationStatus.WITHDRAWN
    assert requested.interview_status == models.InterviewProgress.REQUESTED
    assert db_session.query(models.Interview).count() == 0
    types = [log.email_type for log in requested.email_logs]
    assert models.EmailType.INTERVIEW_SCHEDULED not in types


def test_resolve_after_withdrawal_fails(db_session, employer, student, requested):
    interview = interviews.schedule_interview(db_session, employer, requested.id)
    applications.withdraw(db_session, student, requested.id)
    with pytest.raises(InvalidTransition):
        interviews.resolve_interview(db_session, employer, interview.id, models.InterviewProgress.COMPLETED)
    db_session.refresh(interview)
    assert interview.status == models.InterviewStatus.PROPOSED


def test_request_and_schedule_need_owning_employer(db_session, student, reviewed):
    other = make_profile(db_session, models.Role.EMPLOYER)
    with pytest.raises(Forbidden):
        interviews.request_interview(db_session, other, reviewed.id, "hi")
    with pytest.raises(Forbidden):
        interviews.request_interview(db_session, student, reviewed.id, "hi")
    with pytest.raises(Forbidden):
        interviews.schedule_interview(db_session, other, reviewed.id)


def test_schedule_without_request_fails(db_session, employer, reviewed):
    with pytest.raises(InvalidTransition):
        interviews.schedule_interview(db_session, employer, reviewed.id)
    assert db_session.query(models.Interview).count() == 0


def test_schedule_twice_fails(db_session, employer, requested):
    interviews.schedule_interview(db_session, employer, requested.id)
    with pytest.raises(InvalidTransition):
        interviews.schedule_interview(db_session, employer, requested.id)
    assert db_session.query(models.Interview).count() == 1


def test_schedule_is_all_or_nothing(db_session, employer, requested, monkeypatch):
    def crash(*args, **kwargs):
        raise RuntimeError("store went away after the interview insert")

    monkeypatch.setattr(crud, "compare_and_set", crash)
    with pytest.raises(RuntimeError):
        interviews.schedule_interview(db_session, employer, requested.id)
    monkeypatch.undo()

    assert db_session.query(models.Interview).count() == 0
    db_session.refresh(requested)
    assert requested.interview_status == models.InterviewProgress.REQUESTED

    # nothing half-written blocks a retry
    interview = interviews.schedule_interview(db_session, employer, requested.id)
    assert interview.application_id == requested.id


def test_student_confirms_proposed_interview(db_session, employer, student, requested):
    interview = interviews.schedule_interview(db_session, employer, requested.id)
    with pytest.raises(Forbidden):
        interviews.confirm_interview(db_session, employer, interview.id)
    interview = interviews.confirm_interview(db_session, student, interview.id)
    assert interview.status == models.InterviewStatus.CONFIRMED
    with pytest.raises(InvalidTransition):
        interviews.confirm_interview(db_session, student, interview.id)


def test_resolve_completed_mirrors_into_application(db_session, employer, requested):
    interview = interviews.schedule_interview(db_session, employer, requested.id, confirmed=True)
    interview = interviews.resolve_interview(db_session, employer, interview.id, models.InterviewProgress.COMPLETED)
    assert interview.status == models.InterviewStatus.COMPLETED
    db_session.refresh(requested)
    assert requested.interview_status == models.InterviewProgress.COMPLETED


def test_student_declines(db_session, employer, student, requested):
    interview = interviews.schedule_interview(db_session, employer, requested.id)
    interview = interviews.resolve_interview(db_session, student, interview.id, "declined")
    assert interview.status == models.InterviewStatus.CANCELLED
    db_session.refresh(requested)
    assert requested.interview_status == models.InterviewProgress.DECLINED


def test_resolve_outside_scheduled_fails(db_session, employer, requested):
    interview = interviews.schedule_interview(db_session, employer, requested.id)
    interviews.resolve_interview(db_session, employer, interview.id, models.InterviewProgress.COMPLETED)
    with pytest.raises(InvalidTransition):
        interviews.resolve_interview(db_session, employer, interview.id, models.InterviewProgress.DECLINED)
    with pytest.raises(InvalidTransition):
        interviews.resolve_interview(db_session, employer, interview.id, models.InterviewProgress.REQUESTED)


def test_outsider_cannot_resolve_or_see(db_session, employer, requested):
    interview = interviews.schedule_interview(db_session, employer, requested.id)
    outsider = make_profile(db_session, models.Role.STUDENT)
    with pytest.raises(Forbidden):
        interviews.resolve_interview(db_session, outsider, interview.id, models.InterviewProgress.DECLINED)
    with pytest.raises(NotFound):
        interviews.get_interview(db_session, outsider, interview.id)
    assert interviews.list_interviews(db_session, outsider) == []
    assert [i.id for i in interviews.list_interviews(db_session, employer)] == [interview.id]


def test_resubmission_drops_old_interview(db_session, employer, student, job, requested):
    interviews.schedule_interview(db_session, employer, requested.id)
    applications.withdraw(db_session, student, requested.id)
    again = applications.submit_application(db_session, student, job.id, {})
    assert again.interview_status == models.InterviewProgress.NONE
    assert db_session.query(models.Interview).count() == 0
