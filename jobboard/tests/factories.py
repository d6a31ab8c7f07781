from datetime import timedelta

from jobboard import crud, models
from jobboard.errors import DeliveryFailed
from jobboard.security import create_access_token


class RecordingMailer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send(self, recipient, subject, body):
        if self.fail:
            raise DeliveryFailed(f"mailbox {recipient} unavailable")
        self.sent.append((recipient, subject, body))


def make_profile(db, role, verified=True, email=None, full_name=None, email_notifications=True):
    n = db.query(models.Profile).count() + 1
    profile = models.Profile(
        email=email or f"{role.value}{n}@example.com",
        hashed_password="!",  # login is covered separately; tests use tokens
        full_name=full_name or f"{role.value.title()} {n}",
        role=role,
        verified=verified,
        email_notifications=email_notifications,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def make_job(db, employer, status=models.JobStatus.APPROVED, deadline=None, title="Backend Intern"):
    job = models.Job(
        employer_id=employer.id,
        title=title,
        company="Acme",
        description="Build APIs",
        location="Remote",
        salary="20/h",
        type="internship",
        deadline=deadline or crud.today() + timedelta(days=30),
        status=status,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def auth_headers(profile):
    return {"Authorization": f"Bearer {create_access_token(profile.id)}"}
