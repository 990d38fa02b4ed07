"""
AcademicReads - Test Configuration and Fixtures
"""
import os
from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set testing environment before the app reads its settings
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///:memory:'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['BCRYPT_ROUNDS'] = '4'

from academic_reads.core.redis_client import get_redis
from academic_reads.domain.entities import Paper, Review, Session, User
from academic_reads.domain.exceptions import ConflictError
from academic_reads.domain.repositories import IPaperRepository, IReviewRepository, IUserRepository
from academic_reads.infrastructure.database.connection import get_db
from academic_reads.infrastructure.database.models import Base
from academic_reads.infrastructure.database.repository import UserRepository
from academic_reads.main import app


# ---------------------------------------------------------------------------
# In-memory doubles
# ---------------------------------------------------------------------------
class FakeRedis:
    """Just enough of redis.asyncio.Redis for the revocation list."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.ttls[key] = ttl

    async def exists(self, key: str) -> int:
        return 1 if key in self.store else 0

    async def aclose(self) -> None:
        pass


class InMemoryUserRepository(IUserRepository):
    def __init__(self):
        self.users: dict[UUID, User] = {}

    async def create(self, user: User) -> User:
        if any(u.email == user.email for u in self.users.values()):
            raise ConflictError(f"User with email {user.email!r} already exists")
        self.users[user.id] = user
        return user

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return self.users.get(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)


class InMemoryPaperRepository(IPaperRepository):
    def __init__(self):
        self.papers: dict[UUID, Paper] = {}

    async def create(self, paper: Paper) -> Paper:
        self.papers[paper.id] = paper
        return paper

    async def get_by_id(self, paper_id: UUID) -> Optional[Paper]:
        return self.papers.get(paper_id)

    def _newest_first(self) -> list[Paper]:
        return sorted(self.papers.values(), key=lambda p: p.created_at, reverse=True)

    async def list_recent(self, skip: int = 0, limit: int = 100) -> list[Paper]:
        return self._newest_first()[skip:skip + limit]

    async def search(self, query: str, limit: int = 100) -> list[Paper]:
        q = query.lower()
        return [
            p for p in self._newest_first()
            if q in p.title.lower() or q in p.authors.lower() or q in p.abstract.lower()
        ][:limit]


class InMemoryReviewRepository(IReviewRepository):
    def __init__(self):
        self.reviews: list[Review] = []

    async def create(self, review: Review) -> Review:
        self.reviews.append(review)
        return review

    async def get_by_paper(self, paper_id: UUID) -> list[Review]:
        return [r for r in self.reviews if r.paper_id == paper_id]

    async def get_by_papers(self, paper_ids: list[UUID]) -> dict[UUID, list[Review]]:
        grouped: dict[UUID, list[Review]] = {}
        for review in self.reviews:
            if review.paper_id in paper_ids:
                grouped.setdefault(review.paper_id, []).append(review)
        return grouped


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def paper_repo() -> InMemoryPaperRepository:
    return InMemoryPaperRepository()


@pytest.fixture
def review_repo() -> InMemoryReviewRepository:
    return InMemoryReviewRepository()


@pytest.fixture
def reader() -> User:
    return User(
        id=UUID('00000000-0000-0000-0000-000000000001'),
        email='reader@example.com',
        name='Reader',
        hashed_password='not-used',
    )


@pytest.fixture
def reader_session(reader: User) -> Session:
    return Session(user=reader, token='token', expires_at=datetime.utcnow() + timedelta(hours=1))


# ---------------------------------------------------------------------------
# Database + API client
# ---------------------------------------------------------------------------
@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database for each test"""
    engine = create_async_engine(
        'sqlite+aiosqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


class StaleReadUserRepository(UserRepository):
    """First email lookup misses, as if a concurrent registration had not committed yet."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.missed = False

    async def get_by_email(self, email: str) -> Optional[User]:
        if not self.missed:
            self.missed = True
            return None
        return await super().get_by_email(email)


@pytest.fixture
def stale_user_repo(db_session: AsyncSession) -> StaleReadUserRepository:
    return StaleReadUserRepository(db_session)


@pytest.fixture
async def client(db_session: AsyncSession, fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    """API client bound to the test database and fake Redis"""
    async def override_get_db():
        yield db_session

    async def override_get_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def user_data() -> dict:
    return {'name': 'Ada Lovelace', 'email': 'ada@example.com', 'password': 'analytical'}


@pytest.fixture
async def auth_headers(client: AsyncClient, user_data: dict) -> dict:
    """Register and log in a user, return bearer headers"""
    await client.post('/auth/register', json=user_data)
    response = await client.post(
        '/auth/login',
        json={'email': user_data['email'], 'password': user_data['password']},
    )
    token = response.json()['accessToken']
    return {'Authorization': f'Bearer {token}'}
