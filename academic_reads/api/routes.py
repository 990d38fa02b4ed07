"""Paper API routes (catalog, search, DOI lookup, reviews)."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from academic_reads.api.schemas import (
    PaperCreateRequest,
    PaperMetadataResponse,
    PaperResponse,
    ReviewCreateRequest,
    ReviewResponse,
)
from academic_reads.core.dependencies import (
    get_catalog_service,
    get_current_session,
    get_metadata_resolver,
)
from academic_reads.domain.entities import PaperFields, Session
from academic_reads.domain.exceptions import (
    NotFoundError,
    TransientError,
    UnauthenticatedError,
    ValidationError,
)
from academic_reads.domain.repositories import IMetadataResolver
from academic_reads.domain.services import ICatalogService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/papers", tags=["papers"])


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
@router.post("", response_model=PaperResponse)
async def create_paper(
    body: PaperCreateRequest,
    session: Annotated[Session, Depends(get_current_session)],
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> PaperResponse:
    """Catalog a new paper owned by the caller."""
    fields = PaperFields(
        title=body.title,
        abstract=body.abstract,
        authors=body.authors,
        published_year=body.published_year,
        doi=body.doi,
    )
    try:
        view = await catalog.create_paper(session, fields)
        return PaperResponse.from_view(view)
    except UnauthenticatedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to create paper: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create paper")


@router.get("", response_model=list[PaperResponse])
async def list_papers(
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
) -> list[PaperResponse]:
    """List papers, newest first, with their reviews and rating."""
    views = await catalog.list_papers(skip=skip, limit=limit)
    return [PaperResponse.from_view(v) for v in views]


@router.get("/search", response_model=list[PaperResponse])
async def search_papers(
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
    q: str = "",
) -> list[PaperResponse]:
    """Case-insensitive search over title, authors and abstract."""
    views = await catalog.search_papers(q)
    return [PaperResponse.from_view(v) for v in views]


@router.get("/lookup", response_model=PaperMetadataResponse)
async def lookup_metadata(
    resolver: Annotated[IMetadataResolver, Depends(get_metadata_resolver)],
    doi: str = "",
) -> PaperMetadataResponse:
    """Resolve a DOI into pre-fill values for the new-paper form."""
    try:
        metadata = await resolver.resolve(doi)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except TransientError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to look up DOI {doi!r}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to look up paper metadata")
    return PaperMetadataResponse.model_validate(metadata)


@router.get("/{paper_id}", response_model=PaperResponse)
async def get_paper(
    paper_id: UUID,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> PaperResponse:
    """Get a paper by ID."""
    try:
        return PaperResponse.from_view(await catalog.get_paper(paper_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
@router.get("/{paper_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    paper_id: UUID,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> list[ReviewResponse]:
    try:
        reviews = await catalog.list_reviews(paper_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return [ReviewResponse.model_validate(r) for r in reviews]


@router.post("/{paper_id}/reviews", response_model=ReviewResponse)
async def create_review(
    paper_id: UUID,
    body: ReviewCreateRequest,
    session: Annotated[Session, Depends(get_current_session)],
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> ReviewResponse:
    """Rate and review a paper. Repeat reviews by the same user are allowed."""
    try:
        review = await catalog.create_review(session, paper_id, body.content, body.rating)
        return ReviewResponse.model_validate(review)
    except UnauthenticatedError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to create review: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create review")
