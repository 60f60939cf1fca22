import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .auth import Actor, decode_token
from .config import settings
from .database import get_db
from .errors import ForbiddenError, UniqueViolation
from .gateway import DataGateway
from .models import Profile, Role
from .reservations import ReservationManager

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_gateway(db: Session = Depends(get_db)) -> DataGateway:
    return DataGateway(db)


def get_manager(gateway: DataGateway = Depends(get_gateway)) -> ReservationManager:
    return ReservationManager(gateway)


def _provision_profile(gateway: DataGateway, subject: str, claims: dict) -> Profile:
    email = claims.get("email")
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no email claim")
    role = Role.ADMIN.value if email.lower() in settings.admin_emails else Role.USER.value
    metadata = claims.get("user_metadata") or {}
    profile = gateway.insert(
        "profiles",
        {"id": subject, "email": email, "full_name": metadata.get("full_name"), "role": role},
    )
    logger.info("Provisioned profile %s (role=%s)", subject, role)
    return profile


def get_current_user(
    gateway: DataGateway = Depends(get_gateway),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Profile:
    if creds is None or creds.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    payload = decode_token(creds.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    subject = str(payload["sub"])
    profile = gateway.select_one("profiles", {"id": subject})
    if profile is None:
        try:
            profile = _provision_profile(gateway, subject, payload)
        except UniqueViolation:
            # Concurrent first request already created it.
            profile = gateway.select_one("profiles", {"id": subject})
            if profile is None:
                raise
    return profile


def get_actor(user: Profile = Depends(get_current_user)) -> Actor:
    # Role comes from the profile row, never from token claims.
    return Actor(user_id=user.id, role=user.role)


def require_role(required: Role):
    def checker(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role != required.value:
            raise ForbiddenError("Insufficient permissions")
        return actor
    return checker

RequireAdmin = require_role(Role.ADMIN)
