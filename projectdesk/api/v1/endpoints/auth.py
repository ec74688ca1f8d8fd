from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.api.deps import get_google_provider
from projectdesk.core.database import get_db
from projectdesk.core.rate_limiter import auth_rate_limit
from projectdesk.models.user import User
from projectdesk.modules.auth.dependencies import get_current_user
from projectdesk.modules.oauth.google_provider import GoogleOAuthProvider
from projectdesk.schemas.auth import GoogleSignIn, Token, UserLogin, UserRegister, UserResponse
from projectdesk.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
async def register(request: Request, user_data: UserRegister, db: AsyncSession = Depends(get_db)):
    """Create a client account"""
    user = await AuthService(db).register(
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        phone_number=user_data.phone_number,
    )
    return user


@router.post("/login", response_model=Token)
@auth_rate_limit()
async def login(request: Request, credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Email/password sign-in for the requested role"""
    return await AuthService(db).login(credentials.email, credentials.password, credentials.role)


@router.post("/google", response_model=Token)
@auth_rate_limit()
async def google_sign_in(
    request: Request,
    payload: GoogleSignIn,
    db: AsyncSession = Depends(get_db),
    google: GoogleOAuthProvider = Depends(get_google_provider),
):
    return await AuthService(db, google=google).google_sign_in(payload.id_token, payload.role)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
