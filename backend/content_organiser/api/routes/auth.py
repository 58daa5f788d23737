"""
Authentication API routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, EmailStr, Field

from content_organiser.core.auth import (get_identity, require_api_session,
                                         set_session_cookie)
from content_organiser.core.config import get_settings
from content_organiser.core.exceptions import (AuthenticationError,
                                               GatewayError)
from content_organiser.core.identity import AuthState, IdentityResolver
from content_organiser.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# Request/Response models
class SignupRequest(BaseModel):
    """Self-registration request"""
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=8, max_length=72)
    display_name: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    """Email/password login request"""
    email: EmailStr
    password: str = Field(..., max_length=72)


class IdentityResponse(BaseModel):
    """Resolved identity of the caller"""
    user_id: str
    role: Optional[str] = None
    display_name: Optional[str] = None
    expires_at: Optional[str] = None


class LoginResponse(BaseModel):
    """Login response model"""
    token: str
    expires_at: Optional[str] = None
    identity: IdentityResponse


def _identity_response(state: AuthState) -> IdentityResponse:
    session = state.session
    profile = state.profile
    return IdentityResponse(
        user_id=session.user_id,
        role=profile.role.value if profile else None,
        display_name=profile.display_name if profile else None,
        expires_at=session.expires_at.isoformat() if session.expires_at else None,
    )


async def _settled_state(resolver: IdentityResolver) -> AuthState:
    return await resolver.wait_for_profile(timeout=get_settings().auth_wait_timeout_ms / 1000.0)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    resolver: IdentityResolver = Depends(get_identity),
):
    """Create an account; the new profile gets the configured default role"""
    try:
        await resolver.provider.sign_up(request.email, request.password, request.display_name)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except GatewayError as e:
        logger.error(f"Error signing up: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sign-up failed"
        )

    return {
        "email": request.email.lower(),
        "role": get_settings().default_signup_role,
        "message": "Account created. You can sign in now.",
    }


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    resolver: IdentityResolver = Depends(get_identity),
):
    """Login and create a session"""
    try:
        session = await resolver.provider.sign_in_with_password(request.email, request.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except GatewayError as e:
        logger.error(f"Error logging in: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Sign-in is temporarily unavailable"
        )

    set_session_cookie(response, session.access_token)
    state = await _settled_state(resolver)
    return LoginResponse(
        token=session.access_token,
        expires_at=session.expires_at.isoformat() if session.expires_at else None,
        identity=_identity_response(state),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    response: Response,
    resolver: IdentityResolver = Depends(get_identity),
):
    """Logout and invalidate session"""
    try:
        await resolver.sign_out()
    except GatewayError as e:
        # Still clear cookie even if logout fails
        logger.error(f"Error logging out: {e}", exc_info=True)
    set_session_cookie(response, None)
    return None


@router.post("/refresh", response_model=LoginResponse)
async def refresh(
    response: Response,
    _: AuthState = Depends(require_api_session),
    resolver: IdentityResolver = Depends(get_identity),
):
    """Rotate the session token"""
    try:
        session = await resolver.provider.refresh_session()
    except GatewayError as e:
        logger.error(f"Error refreshing session: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session refresh is temporarily unavailable"
        )
    if session is None:
        set_session_cookie(response, None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired",
            headers={"WWW-Authenticate": "Bearer"},
        )

    set_session_cookie(response, session.access_token)
    state = await _settled_state(resolver)
    return LoginResponse(
        token=session.access_token,
        expires_at=session.expires_at.isoformat() if session.expires_at else None,
        identity=_identity_response(state),
    )


@router.get("/me", response_model=IdentityResponse)
async def get_current_identity(
    _: AuthState = Depends(require_api_session),
    resolver: IdentityResolver = Depends(get_identity),
):
    """Get the caller's session and profile"""
    return _identity_response(await _settled_state(resolver))
