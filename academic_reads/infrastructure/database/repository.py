"""Repository implementations."""

from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academic_reads.domain.entities import Paper, Review, User
from academic_reads.domain.exceptions import ConflictError
from academic_reads.domain.repositories import IPaperRepository, IReviewRepository, IUserRepository
from academic_reads.infrastructure.database.models import PaperModel, ReviewModel, UserModel


# ---------------------------------------------------------------------------
# User Repository
# ---------------------------------------------------------------------------
class UserRepository(IUserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        db_user = UserModel(
            id=user.id,
            name=user.name,
            email=user.email,
            hashed_password=user.hashed_password,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self.session.add(db_user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(f"User with email {user.email!r} already exists") from exc
        await self.session.refresh(db_user)
        return self._to_entity(db_user)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(UserModel).where(UserModel.email == email))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            name=model.name,
            email=model.email,
            hashed_password=model.hashed_password,
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Paper Repository
# ---------------------------------------------------------------------------
class PaperRepository(IPaperRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, paper: Paper) -> Paper:
        db_paper = PaperModel(
            id=paper.id,
            user_id=paper.user_id,
            title=paper.title,
            abstract=paper.abstract,
            authors=paper.authors,
            doi=paper.doi,
            published_year=paper.published_year,
            created_at=paper.created_at,
            updated_at=paper.updated_at,
        )
        self.session.add(db_paper)
        await self.session.commit()
        await self.session.refresh(db_paper)
        return self._to_entity(db_paper)

    async def get_by_id(self, paper_id: UUID) -> Optional[Paper]:
        result = await self.session.execute(select(PaperModel).where(PaperModel.id == paper_id))
        db_paper = result.scalar_one_or_none()
        return self._to_entity(db_paper) if db_paper else None

    async def list_recent(self, skip: int = 0, limit: int = 100) -> list[Paper]:
        result = await self.session.execute(
            select(PaperModel).order_by(PaperModel.created_at.desc()).offset(skip).limit(limit)
        )
        return [self._to_entity(p) for p in result.scalars().all()]

    async def search(self, query: str, limit: int = 100) -> list[Paper]:
        stmt = (
            select(PaperModel)
            .where(
                or_(
                    PaperModel.title.icontains(query, autoescape=True),
                    PaperModel.authors.icontains(query, autoescape=True),
                    PaperModel.abstract.icontains(query, autoescape=True),
                )
            )
            .order_by(PaperModel.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(p) for p in result.scalars().all()]

    @staticmethod
    def _to_entity(model: PaperModel) -> Paper:
        return Paper(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            abstract=model.abstract,
            authors=model.authors,
            doi=model.doi,
            published_year=model.published_year,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Review Repository
# ---------------------------------------------------------------------------
class ReviewRepository(IReviewRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, review: Review) -> Review:
        db_review = ReviewModel(
            id=review.id,
            user_id=review.user_id,
            paper_id=review.paper_id,
            content=review.content,
            rating=review.rating,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )
        self.session.add(db_review)
        await self.session.commit()
        await self.session.refresh(db_review)
        return self._to_entity(db_review)

    async def get_by_paper(self, paper_id: UUID) -> list[Review]:
        result = await self.session.execute(
            select(ReviewModel)
            .where(ReviewModel.paper_id == paper_id)
            .order_by(ReviewModel.created_at.asc())
        )
        return [self._to_entity(r) for r in result.scalars().all()]

    async def get_by_papers(self, paper_ids: list[UUID]) -> dict[UUID, list[Review]]:
        if not paper_ids:
            return {}
        result = await self.session.execute(
            select(ReviewModel)
            .where(ReviewModel.paper_id.in_(paper_ids))
            .order_by(ReviewModel.created_at.asc())
        )
        grouped: dict[UUID, list[Review]] = {}
        for db_review in result.scalars().all():
            grouped.setdefault(db_review.paper_id, []).append(self._to_entity(db_review))
        return grouped

    @staticmethod
    def _to_entity(model: ReviewModel) -> Review:
        return Review(
            id=model.id,
            user_id=model.user_id,
            paper_id=model.paper_id,
            content=model.content,
            rating=model.rating,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
