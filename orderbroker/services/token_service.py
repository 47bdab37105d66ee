# orderbroker/services/token_service.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from orderbroker.domain.enums import Role, STAFF_ROLES
from orderbroker.domain.errors import Unauthenticated
from orderbroker.utils.settings import JWT_SECRET, JWT_ALGORITHM


@dataclass(frozen=True)
class Principal:
    """Kto wola endpoint: id z claimu sub i rola."""

    user_id: int
    role: Role

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def decode_token(token: str, secret: str | None = None) -> Principal:
    try:
        claims = jwt.decode(token, secret or JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        raise Unauthenticated("Invalid token") from e

    sub = claims.get("sub")
    if not sub:
        raise Unauthenticated("Invalid token")

    try:
        return Principal(user_id=int(sub), role=Role(claims.get("role")))
    except ValueError as e:
        raise Unauthenticated("Invalid token") from e


def create_token(user_id: int, role: Role, expires_in: timedelta = timedelta(days=1), secret: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "role": Role(role).value,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, secret or JWT_SECRET, algorithm=JWT_ALGORITHM)
