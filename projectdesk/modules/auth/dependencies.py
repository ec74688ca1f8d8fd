from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from projectdesk.core.database import get_db
from projectdesk.core.logging_config import bind_user
from projectdesk.core.security import ACCESS_TOKEN, decode_token, token_subject
from projectdesk.models.user import User, UserRole

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials, expected_type=ACCESS_TOKEN)
    user_id = token_subject(payload)

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    bind_user(str(user.id), user.role.value)
    return user


def require_role(*roles: UserRole):
    """Dependency factory: the current user must hold one of `roles`"""
    allowed = set(roles)
    label = " or ".join(r.value for r in roles)

    async def _check(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{label.capitalize()} access required"
            )
        return current_user

    return _check


get_current_client = require_role(UserRole.CLIENT)
get_current_admin = require_role(UserRole.ADMIN)
get_current_developer = require_role(UserRole.DEVELOPER)
