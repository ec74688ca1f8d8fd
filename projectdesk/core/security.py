"""
Password hashing and the JWTs handed out at sign-in.

Access tokens carry the user's id, email and role; refresh tokens carry only
the id. Both are HS256-signed with JWT_SECRET_KEY and tagged with a `type`
claim so a refresh token is never accepted where an access token is expected.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import uuid

from jose import JWTError, jwt
import bcrypt
from fastapi import HTTPException, status

from projectdesk.core.config import settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

# bcrypt ignores everything past 72 bytes; newer releases refuse it outright
BCRYPT_MAX_BYTES = 72


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bcrypt_input(password: str) -> bytes:
    return password.encode('utf-8')[:BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(_bcrypt_input(plain_password), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """bcrypt hash using BCRYPT_ROUNDS (tests run with 4)"""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_bcrypt_input(password), salt).decode('utf-8')


def _encode(claims: Dict[str, Any], token_type: str, lifetime: timedelta) -> str:
    payload = {**claims, "exp": datetime.utcnow() + lifetime, "type": token_type}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, ACCESS_TOKEN, lifetime)


def create_refresh_token(data: Dict[str, Any]) -> str:
    return _encode(data, REFRESH_TOKEN, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str, expected_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    With `expected_type` set, a token of any other type is refused with
    "Invalid token type". Every failure is an HTTP 401.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise _unauthorized("Could not validate credentials")

    if expected_type is not None and payload.get("type") != expected_type:
        raise _unauthorized("Invalid token type")
    return payload


def token_subject(payload: Dict[str, Any]) -> str:
    """The user id in `sub`, which must be a UUID string"""
    subject = payload.get("sub")
    if not subject:
        raise _unauthorized("Invalid token payload")
    try:
        uuid.UUID(str(subject))
    except ValueError:
        raise _unauthorized("Invalid user ID format")
    return str(subject)
