"""Catalog service: papers, reviews, and their derived ratings."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from academic_reads.core.config import settings
from academic_reads.domain.entities import Paper, PaperFields, PaperView, Review, Session
from academic_reads.domain.exceptions import NotFoundError, UnauthenticatedError, ValidationError
from academic_reads.domain.identifiers import normalize_doi
from academic_reads.domain.rating import aggregate_ratings
from academic_reads.domain.repositories import IPaperRepository, IReviewRepository
from academic_reads.domain.services import ICatalogService

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class CatalogService(ICatalogService):
    """Owns the paper and review lifecycles.

    Mutations take the caller's :class:`Session` explicitly; reads are open.
    Ratings are aggregated from the stored reviews on every read.
    """

    def __init__(self, paper_repository: IPaperRepository, review_repository: IReviewRepository):
        self.paper_repository = paper_repository
        self.review_repository = review_repository

    async def create_paper(self, session: Session, fields: PaperFields) -> PaperView:
        user_id = self._require_session(session)

        title = (fields.title or "").strip()
        abstract = (fields.abstract or "").strip()
        if not title:
            raise ValidationError("Title is required")
        if not abstract:
            raise ValidationError("Abstract is required")
        self._check_year(fields.published_year)
        doi = self._clean_doi(fields.doi)

        now = datetime.utcnow()
        paper = Paper(
            id=uuid4(),
            user_id=user_id,
            title=title,
            abstract=abstract,
            authors=(fields.authors or "").strip(),
            published_year=fields.published_year,
            doi=doi,
            created_at=now,
            updated_at=now,
        )
        created = await self.paper_repository.create(paper)
        logger.info("Paper created: %s by user %s", created.id, user_id)
        return PaperView(paper=created, reviews=[], rating=aggregate_ratings([]))

    async def create_review(
        self, session: Session, paper_id: UUID, content: str, rating: int
    ) -> Review:
        user_id = self._require_session(session)

        if not (content or "").strip():
            raise ValidationError("Review content is required")
        # bool is an int subclass; True must not count as a 1-star rating
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValidationError("Rating must be an integer")
        if not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")

        paper = await self.paper_repository.get_by_id(paper_id)
        if paper is None:
            raise NotFoundError("Paper not found")

        now = datetime.utcnow()
        review = Review(
            id=uuid4(),
            user_id=user_id,
            paper_id=paper.id,
            content=content.strip(),
            rating=rating,
            created_at=now,
            updated_at=now,
        )
        created = await self.review_repository.create(review)
        logger.info("Review created: %s for paper %s", created.id, paper_id)
        return created

    async def get_paper(self, paper_id: UUID) -> PaperView:
        paper = await self.paper_repository.get_by_id(paper_id)
        if paper is None:
            raise NotFoundError("Paper not found")
        reviews = await self.review_repository.get_by_paper(paper_id)
        return PaperView(paper=paper, reviews=reviews, rating=aggregate_ratings(reviews))

    async def list_papers(self, skip: int = 0, limit: int = 100) -> list[PaperView]:
        papers = await self.paper_repository.list_recent(skip=skip, limit=limit)
        return await self._with_reviews(papers)

    async def search_papers(self, query: str, limit: int = 100) -> list[PaperView]:
        query = (query or "").strip()
        if not query:
            return await self.list_papers(limit=limit)
        papers = await self.paper_repository.search(query, limit=limit)
        logger.debug("Search %r matched %d papers", query, len(papers))
        return await self._with_reviews(papers)

    async def list_reviews(self, paper_id: UUID) -> list[Review]:
        if await self.paper_repository.get_by_id(paper_id) is None:
            raise NotFoundError("Paper not found")
        return await self.review_repository.get_by_paper(paper_id)

    # -- internal helpers ---------------------------------------------------

    async def _with_reviews(self, papers: list[Paper]) -> list[PaperView]:
        grouped = await self.review_repository.get_by_papers([p.id for p in papers])
        views = []
        for paper in papers:
            reviews = grouped.get(paper.id, [])
            views.append(PaperView(paper=paper, reviews=reviews, rating=aggregate_ratings(reviews)))
        return views

    @staticmethod
    def _require_session(session: Optional[Session]) -> UUID:
        if session is None or session.is_expired:
            raise UnauthenticatedError()
        return session.user.id

    @staticmethod
    def _check_year(year: int) -> None:
        current_year = datetime.utcnow().year
        if isinstance(year, bool) or not isinstance(year, int):
            raise ValidationError("Published year must be an integer")
        if not settings.min_published_year <= year <= current_year:
            raise ValidationError(
                f"Published year must be between {settings.min_published_year} and {current_year}"
            )

    @staticmethod
    def _clean_doi(value: Optional[str]) -> Optional[str]:
        if not (value or "").strip():
            return None
        doi = normalize_doi(value)
        if doi is None:
            raise ValidationError("Invalid DOI")
        return doi
