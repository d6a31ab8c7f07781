from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from . import crud, models
from .errors import NotFound
from .permissions import Action, authorize

logger = logging.getLogger(__name__)


def get_role(principal: models.Profile) -> models.Role:
    return principal.role

def is_verified(principal: models.Profile) -> bool:
    return bool(principal.verified)


def request_verification(db: Session, principal: models.Profile) -> models.Profile:
    """Record a verification request. Repeated calls keep the first timestamp."""
    if principal.verified or principal.verification_requested_at is not None:
        return principal
    # the IS NULL guard keeps the first timestamp under concurrent requests
    db.execute(
        update(models.Profile)
        .where(models.Profile.id == principal.id, models.Profile.verification_requested_at.is_(None))
        .values(verification_requested_at=crud.utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(principal)
    logger.info("verification requested: profile=%s", principal.id)
    return principal


def approve_verification(db: Session, admin: models.Profile, target_id: str) -> models.Profile:
    authorize(admin, Action.APPROVE_VERIFICATION)
    target = crud.get_profile(db, target_id)
    if target is None:
        raise NotFound("profile not found")
    if target.verified:
        return target
    target.verified = True
    db.commit()
    db.refresh(target)
    logger.info("profile verified: profile=%s by admin=%s", target.id, admin.id)
    return target


def list_verification_requests(db: Session, admin: models.Profile) -> list[models.Profile]:
    authorize(admin, Action.REVIEW_VERIFICATIONS)
    return crud.list_verification_requests(db)


def update_preferences(db: Session, principal: models.Profile, email_notifications: bool) -> models.Profile:
    principal.email_notifications = email_notifications
    db.commit()
    db.refresh(principal)
    return principal
