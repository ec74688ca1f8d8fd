"""
Sign-up and sign-in.

Accounts created here are always clients; admin and developer accounts are
provisioned out of band. Every sign-in names the role the user is signing in
as, and a mismatch is refused.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    EmailAlreadyRegisteredError,
    RoleMismatchError,
)
from projectdesk.core.logging_config import logger
from projectdesk.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
)
from projectdesk.models.user import User, UserRole
from projectdesk.modules.oauth.google_provider import GoogleOAuthProvider
from projectdesk.schemas.auth import Token, UserResponse


AUTH_ERROR_MESSAGES = {
    "auth/email-already-in-use": "This email is already registered",
    "auth/invalid-email": "Please enter a valid email address",
    "auth/weak-password": "Password must be at least 8 characters",
    "auth/user-not-found": "No account found with this email",
    "auth/wrong-password": "Incorrect password",
    "auth/invalid-credential": "Invalid email or password",
    "auth/too-many-requests": "Too many attempts. Please try again later",
    "auth/user-disabled": "This account has been disabled",
    "auth/popup-closed-by-user": "Sign-in popup was closed before completing",
    "auth/invalid-id-token": "Google sign-in could not be verified",
}

DEFAULT_AUTH_ERROR = "An error occurred during authentication"


def friendly_auth_error(code: Optional[str]) -> str:
    return AUTH_ERROR_MESSAGES.get(code or "", DEFAULT_AUTH_ERROR)


def issue_tokens(user: User) -> Token:
    token_data = {"sub": str(user.id), "email": user.email, "role": user.role.value}
    return Token(
        access_token=create_access_token(token_data),
        refresh_token=create_refresh_token({"sub": str(user.id)}),
        user=UserResponse.model_validate(user),
    )


class AuthService:

    def __init__(self, db: AsyncSession, google: Optional[GoogleOAuthProvider] = None):
        self.db = db
        self.google = google

    async def _get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def register(self, name: str, email: str, password: str,
                       phone_number: Optional[str] = None) -> User:
        if await self._get_by_email(email):
            logger.log_auth_event("register", success=False, user_email=email, reason="email exists")
            raise EmailAlreadyRegisteredError(email)

        user = User(
            email=email.lower(),
            name=name,
            phone_number=phone_number,
            hashed_password=get_password_hash(password),
            role=UserRole.CLIENT,
            is_active=True,
            created_at=datetime.utcnow(),
        )
        self.db.add(user)
        await self.db.flush()
        logger.log_auth_event("register", success=True, user_email=user.email)
        return user

    def _check_role(self, user: User, role: UserRole, event: str) -> None:
        if user.role != role:
            logger.log_auth_event(event, success=False, user_email=user.email, reason=f"role {role.value}")
            raise RoleMismatchError(role.value)
        if not user.is_active:
            logger.log_auth_event(event, success=False, user_email=user.email, reason="inactive")
            raise AuthorizationError(friendly_auth_error("auth/user-disabled"))

    async def login(self, email: str, password: str, role: UserRole = UserRole.CLIENT) -> Token:
        user = await self._get_by_email(email)
        if not user or not user.hashed_password or not verify_password(password, user.hashed_password):
            logger.log_auth_event("login", success=False, user_email=email, reason="bad credentials")
            raise AuthenticationError(friendly_auth_error("auth/invalid-credential"))

        self._check_role(user, role, "login")
        user.last_login = datetime.utcnow()
        await self.db.flush()
        logger.log_auth_event("login", success=True, user_email=user.email)
        return issue_tokens(user)

    async def google_sign_in(self, token: str, role: UserRole = UserRole.CLIENT) -> Token:
        """Verify a Google ID token; first-time users get a client profile"""
        if self.google is None:
            raise AuthenticationError("Google sign-in is not configured")

        info = await self.google.verify_id_token_async(token)
        if not info:
            logger.log_auth_event("google", success=False, reason="invalid token")
            raise AuthenticationError(friendly_auth_error("auth/invalid-id-token"))

        user = await self._get_by_email(info["email"])
        if user is None:
            user = User(
                email=info["email"].lower(),
                name=info.get("name") or None,
                role=UserRole.CLIENT,
                google_id=info["google_id"],
                oauth_provider="google",
                avatar_url=info.get("avatar_url") or None,
                is_active=True,
                created_at=datetime.utcnow(),
            )
            self.db.add(user)
            await self.db.flush()
            logger.log_auth_event("google_register", success=True, user_email=user.email)
        elif not user.google_id:
            user.google_id = info["google_id"]
            user.oauth_provider = user.oauth_provider or "google"

        self._check_role(user, role, "google")
        user.last_login = datetime.utcnow()
        await self.db.flush()
        logger.log_auth_event("google", success=True, user_email=user.email)
        return issue_tokens(user)
