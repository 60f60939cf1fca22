# itclinic/auth.py
from dataclasses import dataclass
from typing import Optional

from jose import JWTError, jwt

from .config import settings
from .models import Role


@dataclass(frozen=True)
class Actor:
    """Who is calling: the profile id and the role read from that profile."""

    user_id: str
    role: str = Role.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


def decode_token(token: str) -> Optional[dict]:
    """Claims of a token issued by the auth provider, or None when it does not verify."""
    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        return None
