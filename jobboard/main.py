# jobboard/main.py
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from . import accounts, applications, crud, interviews, models, notifications, postings
from .auth import authenticate, get_current_principal
from .config import configure_logging, settings
from .database import get_db, get_session_factory
from .errors import LifecycleError
from .mailer import get_mailer
from .schemas import (
    ApplicationCreate,
    ApplicationOut,
    DashboardOut,
    EmailLogOut,
    InterviewOut,
    JobCreate,
    JobOut,
    MessageIn,
    ModerationIn,
    PreferencesUpdate,
    ProfileCreate,
    ProfileOut,
    ResolveIn,
    ScheduleIn,
    StatusUpdate,
    Token,
)
from .security import create_access_token


app = FastAPI(title="Job Board", version="1.0.0")

@app.on_event("startup")
async def startup_event():
    from .database import engine, Base
    configure_logging()
    # Create tables if they don't exist
    Base.metadata.create_all(bind=engine)

@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "detail": exc.detail})


def _deliver_later(background_tasks: BackgroundTasks, session_factory: sessionmaker, mailer) -> None:
    background_tasks.add_task(notifications.deliver_queued, session_factory, mailer)


@app.get("/health", tags=["monitoring"])
def health_check(db: Session = Depends(get_db)):
    """
    Checks if the application is healthy, including the database connection.
    """
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "ok"}
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database connection error"
        )

# Auth
@app.post("/api/register", response_model=ProfileOut, status_code=status.HTTP_201_CREATED, tags=["auth"])
def register(payload: ProfileCreate, db: Session = Depends(get_db)):
    if crud.get_profile_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    role = models.Role(payload.role)
    if payload.email.lower() in {e.lower() for e in settings.BOOTSTRAP_ADMIN_EMAILS}:
        role = models.Role.ADMIN
    try:
        return crud.create_profile(db, payload.email, payload.password, payload.full_name, role)
    except IntegrityError:
        # a concurrent registration won the unique email
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

@app.post("/api/login", response_model=Token, tags=["auth"])
def login(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    profile = authenticate(db, form.username, form.password)
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return {"access_token": create_access_token(subject=profile.id), "token_type": "bearer"}

# Profiles
@app.get("/api/me", response_model=ProfileOut, tags=["profiles"])
def me(principal: models.Profile = Depends(get_current_principal)):
    return principal

@app.post("/api/me/verification", response_model=ProfileOut, tags=["profiles"])
def request_verification(db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)):
    return accounts.request_verification(db, principal)

@app.put("/api/me/preferences", response_model=ProfileOut, tags=["profiles"])
def update_preferences(
    payload: PreferencesUpdate,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
):
    return accounts.update_preferences(db, principal, payload.email_notifications)

@app.get("/api/admin/verifications", response_model=list[ProfileOut], tags=["profiles"])
def list_verification_requests(db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)):
    return accounts.list_verification_requests(db, principal)

@app.post("/api/admin/profiles/{profile_id}/verify", response_model=ProfileOut, tags=["profiles"])
def approve_verification(
    profile_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
    session_factory: sessionmaker = Depends(get_session_factory),
    mailer=Depends(get_mailer),
):
    existing = crud.get_profile(db, profile_id)
    was_verified = bool(existing and existing.verified)
    target = accounts.approve_verification(db, principal, profile_id)
    # the account layer leaves notifying to its caller
    if not was_verified and target.email_notifications:
        notifications.enqueue(
            db,
            None,
            models.EmailType.VERIFICATION_APPROVED,
            target.email,
            notifications.subject_for(models.EmailType.VERIFICATION_APPROVED, None),
        )
        db.commit()
        _deliver_later(background_tasks, session_factory, mailer)
    return target

# Jobs
@app.post("/api/jobs", response_model=JobOut, status_code=status.HTTP_201_CREATED, tags=["jobs"])
def create_job(payload: JobCreate, db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)):
    return postings.create_job(db, principal, payload.model_dump())

@app.get("/api/jobs", response_model=list[JobOut], tags=["jobs"])
def list_jobs(
    job_status: models.JobStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
):
    return postings.list_jobs(db, principal, job_status)

@app.get("/api/jobs/{job_id}", response_model=JobOut, tags=["jobs"])
def get_job(job_id: str, db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)):
    return postings.get_job(db, principal, job_id)

@app.post("/api/jobs/{job_id}/moderate", response_model=JobOut, tags=["jobs"])
def moderate_job(
    job_id: str,
    payload: ModerationIn,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
):
    return postings.moderate_job(db, principal, job_id, payload.decision)

@app.post("/api/jobs/{job_id}/close", response_model=JobOut, tags=["jobs"])
def close_job(job_id: str, db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)):
    return postings.close_job(db, principal, job_id)

@app.delete("/api/jobs/{job_id}", status_code=204, tags=["jobs"])
def delete_job(job_id: str, db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)):
    postings.delete_job(db, principal, job_id)
    return None

@app.get("/api/dashboard", response_model=DashboardOut, tags=["jobs"])
def dashboard(db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)):
    return postings.dashboard_stats(db, principal)

# Applications
@app.post(
    "/api/jobs/{job_id}/applications",
    response_model=ApplicationOut,
    status_code=status.HTTP_201_CREATED,
    tags=["applications"],
)
def submit_application(
    job_id: str,
    payload: ApplicationCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
    session_factory: sessionmaker = Depends(get_session_factory),
    mailer=Depends(get_mailer),
):
    application = applications.submit_application(db, principal, job_id, payload.model_dump())
    _deliver_later(background_tasks, session_factory, mailer)
    return application

@app.get("/api/applications", response_model=list[ApplicationOut], tags=["applications"])
def list_applications(
    job_id: str | None = Query(None),
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
):
    return applications.list_applications(db, principal, job_id)

@app.get("/api/applications/{application_id}", response_model=ApplicationOut, tags=["applications"])
def get_application(
    application_id: str, db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)
):
    return applications.get_application(db, principal, application_id)

@app.post("/api/applications/{application_id}/status", response_model=ApplicationOut, tags=["applications"])
def update_application_status(
    application_id: str,
    payload: StatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
    session_factory: sessionmaker = Depends(get_session_factory),
    mailer=Depends(get_mailer),
):
    application = applications.update_status(db, principal, application_id, payload.status)
    _deliver_later(background_tasks, session_factory, mailer)
    return application

@app.post("/api/applications/{application_id}/withdraw", response_model=ApplicationOut, tags=["applications"])
def withdraw_application(
    application_id: str, db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)
):
    return applications.withdraw(db, principal, application_id)

@app.post("/api/applications/{application_id}/message", response_model=ApplicationOut, tags=["applications"])
def message_applicant(
    application_id: str,
    payload: MessageIn,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
):
    return applications.message_applicant(db, principal, application_id, payload.message)

# Interviews
@app.post("/api/applications/{application_id}/interview-request", response_model=ApplicationOut, tags=["interviews"])
def request_interview(
    application_id: str,
    payload: MessageIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
    session_factory: sessionmaker = Depends(get_session_factory),
    mailer=Depends(get_mailer),
):
    application = interviews.request_interview(db, principal, application_id, payload.message)
    _deliver_later(background_tasks, session_factory, mailer)
    return application

@app.post(
    "/api/applications/{application_id}/interview",
    response_model=InterviewOut,
    status_code=status.HTTP_201_CREATED,
    tags=["interviews"],
)
def schedule_interview(
    application_id: str,
    background_tasks: BackgroundTasks,
    payload: ScheduleIn | None = None,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
    session_factory: sessionmaker = Depends(get_session_factory),
    mailer=Depends(get_mailer),
):
    confirmed = payload.confirmed if payload else False
    interview = interviews.schedule_interview(db, principal, application_id, confirmed=confirmed)
    _deliver_later(background_tasks, session_factory, mailer)
    return interview

@app.get("/api/interviews", response_model=list[InterviewOut], tags=["interviews"])
def list_interviews(db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)):
    return interviews.list_interviews(db, principal)

@app.get("/api/interviews/{interview_id}", response_model=InterviewOut, tags=["interviews"])
def get_interview(
    interview_id: str, db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)
):
    return interviews.get_interview(db, principal, interview_id)

@app.post("/api/interviews/{interview_id}/confirm", response_model=InterviewOut, tags=["interviews"])
def confirm_interview(
    interview_id: str, db: Session = Depends(get_db), principal: models.Profile = Depends(get_current_principal)
):
    return interviews.confirm_interview(db, principal, interview_id)

@app.post("/api/interviews/{interview_id}/resolve", response_model=InterviewOut, tags=["interviews"])
def resolve_interview(
    interview_id: str,
    payload: ResolveIn,
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
):
    return interviews.resolve_interview(db, principal, interview_id, models.InterviewProgress(payload.outcome))

# Ledger
@app.get("/api/email-logs", response_model=list[EmailLogOut], tags=["notifications"])
def list_email_logs(
    application_id: str | None = Query(None),
    db: Session = Depends(get_db),
    principal: models.Profile = Depends(get_current_principal),
):
    return notifications.list_logs(db, principal, application_id)
