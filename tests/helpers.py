"""Constants and token helpers shared by the test modules."""

from datetime import date, datetime, timedelta, timezone

from jose import jwt

from itclinic.config import settings

FIXED_TODAY = date(2025, 1, 5)

CUSTOMER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_ID = "22222222-2222-4222-8222-222222222222"
ADMIN_ID = "33333333-3333-4333-8333-333333333333"


def make_token(sub: str, email: str, **claims) -> str:
    payload = {
        "sub": sub,
        "email": email,
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        **claims,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_header(sub: str, email: str) -> dict:
    return {"Authorization": f"Bearer {make_token(sub, email)}"}


def future_day(days: int = 7) -> str:
    return (date.today() + timedelta(days=days)).isoformat()
