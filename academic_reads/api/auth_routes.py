"""Authentication API routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from academic_reads.api.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from academic_reads.core.dependencies import get_auth_service, get_current_session, get_current_user
from academic_reads.domain.entities import Session, User
from academic_reads.domain.exceptions import EmailTakenError, InvalidCredentialsError, ValidationError
from academic_reads.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse)
async def register(
    body: RegisterRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    """Register a new user with email and password."""
    try:
        user = await auth_service.register(body.name, body.email, body.password)
        return UserResponse.model_validate(user)
    except EmailTakenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    try:
        session = await auth_service.authenticate(body.email, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(access_token=session.token, expires_at=session.expires_at)


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    """Get the authenticated user's profile."""
    return UserResponse.model_validate(current_user)


@router.post("/signout", status_code=status.HTTP_200_OK)
async def signout(
    session: Annotated[Session, Depends(get_current_session)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> dict:
    """Sign out: the token is rejected from now on, even before it expires."""
    await auth_service.sign_out(session)
    return {"detail": "Successfully signed out"}
