"""Domain-level application service interfaces (ports).

Route handlers depend on these abstractions; concrete implementations live in
``academic_reads/services/`` and are wired by ``academic_reads/core/dependencies.py``.
Tests can swap any of them through ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from academic_reads.domain.entities import PaperFields, PaperView, Review, Session


class ICatalogService(ABC):

    @abstractmethod
    async def create_paper(self, session: Session, fields: PaperFields) -> PaperView:
        """Catalog a paper owned by the session's user."""
        pass

    @abstractmethod
    async def create_review(
        self, session: Session, paper_id: UUID, content: str, rating: int
    ) -> Review:
        pass

    @abstractmethod
    async def get_paper(self, paper_id: UUID) -> PaperView:
        pass

    @abstractmethod
    async def list_papers(self, skip: int = 0, limit: int = 100) -> list[PaperView]:
        pass

    @abstractmethod
    async def search_papers(self, query: str, limit: int = 100) -> list[PaperView]:
        pass

    @abstractmethod
    async def list_reviews(self, paper_id: UUID) -> list[Review]:
        pass
