"""Authentication service."""

import logging
import time
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import redis.asyncio as aioredis
from email_validator import EmailNotValidError, validate_email
from starlette.concurrency import run_in_threadpool

from academic_reads.core.config import settings
from academic_reads.core.redis_client import is_token_revoked, revoke_token
from academic_reads.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_dummy_password,
    verify_password,
)
from academic_reads.domain.entities import AuthMethod, Session, User
from academic_reads.domain.exceptions import (
    ConflictError,
    EmailTakenError,
    InvalidCredentialsError,
    UnauthenticatedError,
    ValidationError,
)
from academic_reads.domain.repositories import IUserRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Handles registration, credential login, and session tokens.

    bcrypt runs in Starlette's thread pool so hashing never blocks the event
    loop. Token revocation (signout) needs a Redis client; without one,
    tokens are only checked for signature and expiry.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        redis_client: Optional[aioredis.Redis] = None,
    ):
        self.user_repository = user_repository
        self.redis_client = redis_client

    async def register(self, name: Optional[str], email: str, password: str) -> User:
        """Register a credential-based user."""
        email = self._validate_email(email)
        if len(password) < settings.password_min_length:
            raise ValidationError(
                f"Password must be at least {settings.password_min_length} characters"
            )

        if await self.user_repository.get_by_email(email):
            raise EmailTakenError()

        user = User(
            id=uuid4(),
            name=(name or "").strip() or None,
            email=email,
            hashed_password=await run_in_threadpool(hash_password, password),
        )
        try:
            created = await self.user_repository.create(user)
        except ConflictError as exc:
            # lost a race with a concurrent registration of the same email
            raise EmailTakenError() from exc
        logger.info("User registered: %s", created.id)
        return created

    async def provision_external(self, email: str, name: Optional[str] = None) -> User:
        """Create (or return) a password-less identity from a third-party login."""
        email = self._validate_email(email)
        existing = await self.user_repository.get_by_email(email)
        if existing:
            return existing
        user = User(id=uuid4(), name=(name or "").strip() or None, email=email)
        try:
            created = await self.user_repository.create(user)
        except ConflictError:
            return await self.user_repository.get_by_email(email)
        logger.info("External identity provisioned: %s", created.id)
        return created

    async def authenticate(self, email: str, password: str) -> Session:
        """Exchange credentials for a session.

        Every failure raises the same :class:`InvalidCredentialsError`.
        """
        user = await self.user_repository.get_by_email(email)
        if user is not None and user.is_active and user.auth_method is AuthMethod.PASSWORD:
            valid = await run_in_threadpool(verify_password, password, user.hashed_password)
        else:
            # every rejection path pays for one bcrypt comparison
            valid = await run_in_threadpool(verify_dummy_password, password)
        if not valid:
            raise InvalidCredentialsError()

        token, expires_at = create_access_token(data={"sub": str(user.id)})
        logger.info("User logged in: %s", user.id)
        return Session(user=user, token=token, expires_at=expires_at)

    async def resolve_session(self, token: str) -> Session:
        """Turn a bearer token back into a live session."""
        payload = decode_access_token(token) if token else None
        if payload is None:
            raise UnauthenticatedError()

        jti: Optional[str] = payload.get("jti")
        if jti and self.redis_client is not None and await is_token_revoked(self.redis_client, jti):
            raise UnauthenticatedError("Token has been revoked")

        try:
            user_id = UUID(payload.get("sub") or "")
        except ValueError:
            raise UnauthenticatedError()
        user = await self.user_repository.get_by_id(user_id)
        if user is None or not user.is_active:
            raise UnauthenticatedError()

        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc).replace(tzinfo=None)
        return Session(user=user, token=token, expires_at=expires_at)

    async def validate(self, token: str) -> User:
        session = await self.resolve_session(token)
        return session.user

    async def sign_out(self, session: Session) -> None:
        """Revoke the session's token for the rest of its lifetime."""
        payload = decode_access_token(session.token)
        if not payload or self.redis_client is None:
            return
        jti: Optional[str] = payload.get("jti")
        exp: Optional[int] = payload.get("exp")
        if jti and exp:
            ttl = max(int(exp - time.time()), 1)
            await revoke_token(self.redis_client, jti, ttl)
            logger.info("Token jti=%s revoked (TTL=%ds) for user %s", jti, ttl, session.user.id)

    async def get_profile(self, user_id: UUID) -> Optional[User]:
        return await self.user_repository.get_by_id(user_id)

    @staticmethod
    def _validate_email(email: str) -> str:
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValidationError(f"Invalid email address: {exc}") from exc
        return email
