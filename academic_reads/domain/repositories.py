"""Repository interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from academic_reads.domain.entities import Paper, PaperMetadata, Review, User


class IUserRepository(ABC):

    @abstractmethod
    async def create(self, user: User) -> User:
        """Insert a user. Raises ``ConflictError`` if the email is already stored."""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Exact, case-sensitive lookup."""
        pass


class IPaperRepository(ABC):

    @abstractmethod
    async def create(self, paper: Paper) -> Paper:
        pass

    @abstractmethod
    async def get_by_id(self, paper_id: UUID) -> Optional[Paper]:
        pass

    @abstractmethod
    async def list_recent(self, skip: int = 0, limit: int = 100) -> list[Paper]:
        """Papers ordered by creation time, newest first."""
        pass

    @abstractmethod
    async def search(self, query: str, limit: int = 100) -> list[Paper]:
        """Case-insensitive substring match on title, authors or abstract, newest first."""
        pass


class IReviewRepository(ABC):

    @abstractmethod
    async def create(self, review: Review) -> Review:
        pass

    @abstractmethod
    async def get_by_paper(self, paper_id: UUID) -> list[Review]:
        """Reviews of one paper, oldest first."""
        pass

    @abstractmethod
    async def get_by_papers(self, paper_ids: list[UUID]) -> dict[UUID, list[Review]]:
        """Reviews grouped by paper id, oldest first. Papers without reviews are absent."""
        pass


class IMetadataResolver(ABC):

    @abstractmethod
    async def resolve(self, identifier: str) -> PaperMetadata:
        """Resolve an external identifier (DOI) into normalized paper metadata.

        Raises ``MetadataNotFoundError`` when the registry has no usable
        record and ``TransientError`` when the registry could not be reached.
        """
        pass
