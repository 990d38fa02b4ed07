"""Pydantic schemas for API requests and responses.

Fields travel as camelCase on the wire; snake_case is accepted on input too.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from academic_reads.domain.entities import PaperMetadata, PaperView, RatingSummary


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class RegisterRequest(ApiModel):
    name: Optional[str] = Field(None, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(ApiModel):
    email: str
    password: str


class TokenResponse(ApiModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class UserResponse(ApiModel):
    id: UUID
    name: Optional[str] = None
    email: str
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Papers
# ---------------------------------------------------------------------------
class PaperCreateRequest(ApiModel):
    title: str = Field(..., min_length=1, max_length=500)
    abstract: str = Field(..., min_length=1)
    authors: str = ""
    doi: Optional[str] = Field(None, max_length=255)
    published_year: int = Field(..., ge=1800)


class RatingResponse(ApiModel):
    has_reviews: bool
    average: Optional[float] = None
    count: int = 0

    @classmethod
    def from_summary(cls, summary: RatingSummary) -> "RatingResponse":
        return cls(has_reviews=summary.has_reviews, average=summary.average, count=summary.count)


class ReviewResponse(ApiModel):
    id: UUID
    user_id: UUID
    paper_id: UUID
    content: str
    rating: int
    created_at: datetime
    updated_at: datetime


class PaperResponse(ApiModel):
    id: UUID
    title: str
    abstract: str
    authors: str
    doi: Optional[str] = None
    doi_url: Optional[str] = None
    published_year: int
    user_id: UUID
    created_at: datetime
    updated_at: datetime
    reviews: list[ReviewResponse] = []
    rating: RatingResponse

    @classmethod
    def from_view(cls, view: PaperView) -> "PaperResponse":
        paper = view.paper
        return cls(
            id=paper.id,
            title=paper.title,
            abstract=paper.abstract,
            authors=paper.authors,
            doi=paper.doi,
            doi_url=paper.doi_url,
            published_year=paper.published_year,
            user_id=paper.user_id,
            created_at=paper.created_at,
            updated_at=paper.updated_at,
            reviews=[ReviewResponse.model_validate(r) for r in view.reviews],
            rating=RatingResponse.from_summary(view.rating),
        )


class PaperMetadataResponse(ApiModel):
    doi: str
    title: str
    authors: str
    published_year: int
    abstract: str

    def to_metadata(self) -> PaperMetadata:
        return PaperMetadata(
            doi=self.doi,
            title=self.title,
            authors=self.authors,
            published_year=self.published_year,
            abstract=self.abstract,
        )


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class ReviewCreateRequest(ApiModel):
    content: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5, strict=True)
