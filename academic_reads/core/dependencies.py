"""Dependency injection container."""

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from academic_reads.core.config import settings
from academic_reads.core.redis_client import get_redis
from academic_reads.domain.entities import Session, User
from academic_reads.domain.exceptions import UnauthenticatedError
from academic_reads.domain.repositories import (
    IMetadataResolver,
    IPaperRepository,
    IReviewRepository,
    IUserRepository,
)
from academic_reads.domain.services import ICatalogService
from academic_reads.infrastructure.database.connection import get_db
from academic_reads.infrastructure.database.repository import (
    PaperRepository,
    ReviewRepository,
    UserRepository,
)
from academic_reads.infrastructure.metadata.crossref import CrossrefMetadataResolver
from academic_reads.services.auth_service import AuthService
from academic_reads.services.catalog_service import CatalogService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# ---------------------------------------------------------------------------
# Infrastructure providers
# ---------------------------------------------------------------------------
def get_metadata_resolver() -> IMetadataResolver:
    """Return the configured external metadata registry client."""
    return CrossrefMetadataResolver(
        base_url=settings.metadata_registry_url,
        timeout=settings.metadata_timeout_seconds,
        user_agent=settings.metadata_user_agent,
    )


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_user_repository(session: AsyncSession = Depends(get_db)) -> IUserRepository:
    return UserRepository(session)


async def get_paper_repository(session: AsyncSession = Depends(get_db)) -> IPaperRepository:
    return PaperRepository(session)


async def get_review_repository(session: AsyncSession = Depends(get_db)) -> IReviewRepository:
    return ReviewRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_auth_service(
    user_repo: IUserRepository = Depends(get_user_repository),
    redis_client: aioredis.Redis = Depends(get_redis),
) -> AuthService:
    return AuthService(user_repository=user_repo, redis_client=redis_client)


async def get_catalog_service(
    paper_repo: IPaperRepository = Depends(get_paper_repository),
    review_repo: IReviewRepository = Depends(get_review_repository),
) -> ICatalogService:
    return CatalogService(paper_repository=paper_repo, review_repository=review_repo)


# ---------------------------------------------------------------------------
# Auth dependency
# ---------------------------------------------------------------------------
async def get_current_session(
    token: str = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Session:
    """Validate the bearer token and return the caller's session.

    Tokens listed in the Redis revocation list (signed out) are rejected.
    """
    try:
        return await auth_service.resolve_session(token)
    except UnauthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(session: Session = Depends(get_current_session)) -> User:
    return session.user
