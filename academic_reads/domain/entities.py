"""Domain entities for AcademicReads."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID


class AuthMethod(str, Enum):
    """How an identity proves who it is."""

    PASSWORD = "password"  # email + password credentials
    EXTERNAL = "external"  # provisioned by a third-party login, no local password


@dataclass
class User:
    id: UUID
    email: str
    name: Optional[str] = None
    hashed_password: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def auth_method(self) -> AuthMethod:
        return AuthMethod.PASSWORD if self.hashed_password else AuthMethod.EXTERNAL


@dataclass
class Session:
    """A successfully authenticated identity, valid until ``expires_at``."""

    user: User
    token: str
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() >= self.expires_at


@dataclass
class Paper:
    id: UUID
    user_id: UUID
    title: str
    abstract: str
    authors: str
    published_year: int
    doi: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def doi_url(self) -> Optional[str]:
        return f"https://doi.org/{self.doi}" if self.doi else None


@dataclass
class Review:
    id: UUID
    user_id: UUID
    paper_id: UUID
    content: str
    rating: int
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class PaperFields:
    """User-supplied fields for a new paper, before validation."""

    title: str
    abstract: str
    authors: str
    published_year: int
    doi: Optional[str] = None


@dataclass(frozen=True)
class PaperMetadata:
    """Normalized metadata resolved from an external registry."""

    doi: str
    title: str
    authors: str
    published_year: int
    abstract: str = ""


@dataclass(frozen=True)
class RatingSummary:
    """Derived rating of a paper.

    ``has_reviews`` is False when nothing has been reviewed yet; in that state
    ``average`` is ``None`` rather than ``0``.
    """

    has_reviews: bool
    average: Optional[float] = None
    count: int = 0


@dataclass
class PaperView:
    """A paper read together with its reviews and derived rating."""

    paper: Paper
    reviews: list[Review]
    rating: RatingSummary
