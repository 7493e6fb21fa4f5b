from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from src.application.dtos.common_dto import ErrorResponse
from src.application.dtos.session_dto import LoginRequest, SessionStateResponse, SignUpRequest
from src.application.services.session_manager import SessionManager
from src.domain.errors import AuthError, ConstraintError, PermissionDenied, SessionError
from src.infrastructure.api.dependencies import get_session_manager

router = APIRouter(
    prefix="/session",
    tags=["Session"],
    responses={
        422: {"description": "Validation Error - Invalid request format"},
        503: {"description": "Service Unavailable - Session manager not started"},
    },
)


def _http_error(exc: SessionError) -> HTTPException:
    if isinstance(exc, PermissionDenied):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ConstraintError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, AuthError):
        code = status.HTTP_401_UNAUTHORIZED
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=exc.to_dict())


@router.get(
    "",
    response_model=SessionStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Session State",
    description="""
    Return the current session state: status, authentication source,
    profile, provider identity and the last error descriptor.

    The provider access token is never included.
    """,
    response_description="Current session state",
)
def get_session(manager: SessionManager = Depends(get_session_manager)):
    """Get the current session state."""
    return SessionStateResponse.from_state(manager.state)


@router.post(
    "/login",
    response_model=SessionStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Log In",
    description="""
    Sign in with email and password.

    Demo accounts are resolved locally. Other credentials go to the
    identity provider; a successful provider sign-in may still report
    `is_loading` until the profile has been loaded.
    """,
    response_description="Session state after the login attempt",
    responses={401: {"model": ErrorResponse, "description": "Unauthorized - Credentials rejected"}},
)
async def login(body: LoginRequest, manager: SessionManager = Depends(get_session_manager)):
    """Log in with demo or provider credentials."""
    try:
        state = await manager.login(body.email, body.password)
    except SessionError as exc:
        raise _http_error(exc) from exc
    return SessionStateResponse.from_state(state)


@router.post(
    "/signup",
    response_model=SessionStateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign Up",
    description="""
    Create a gymnast account.

    Without an identity provider the profile is created locally and the
    session enters demo mode. With a provider the account, a sign-in and the
    profile row are created in that order. If the profile row is rejected
    the provider account is **not** removed.
    """,
    response_description="Session state after sign-up",
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized - Account creation or sign-in failed"},
        403: {"model": ErrorResponse, "description": "Forbidden - Profile write denied by access policy"},
        409: {"model": ErrorResponse, "description": "Conflict - Profile row could not be created"},
    },
)
async def sign_up(body: SignUpRequest, manager: SessionManager = Depends(get_session_manager)):
    """Create an account and its profile."""
    try:
        state = await manager.sign_up(
            body.email, body.password, body.first_name.strip(), body.last_name.strip()
        )
    except SessionError as exc:
        raise _http_error(exc) from exc
    return SessionStateResponse.from_state(state)


@router.post(
    "/logout",
    response_model=SessionStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Log Out",
    description="""
    End the session. Always succeeds; a provider sign-out failure is
    reported in the returned `error` field.
    """,
    response_description="Session state after logout",
)
async def logout(manager: SessionManager = Depends(get_session_manager)):
    """Log out of demo and provider sessions."""
    return SessionStateResponse.from_state(await manager.logout())
