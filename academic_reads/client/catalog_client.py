"""HTTP client for the AcademicReads API.

Used by front-end code: it feeds :class:`SearchCoordinator` and
:class:`PaperDraft`, and maps HTTP status codes back onto the domain errors.
"""

import logging
from typing import Any, Optional

import httpx

from academic_reads.api.schemas import PaperMetadataResponse
from academic_reads.domain.entities import PaperFields, PaperMetadata
from academic_reads.domain.exceptions import (
    InternalError,
    InvalidCredentialsError,
    MetadataNotFoundError,
    NotFoundError,
    TransientError,
    UnauthenticatedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class CatalogClient:
    """Thin async wrapper over the REST API.

    Constructor args:
        base_url:   API root, e.g. ``http://localhost:8000``.
        token:      bearer token for authenticated calls (see :meth:`login`).
        timeout:    per-request timeout in seconds.
        transport:  optional httpx transport (tests, ASGI in-process).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    # -- auth -----------------------------------------------------------------

    async def login(self, email: str, password: str) -> str:
        resp = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        if resp.status_code == 401:
            raise InvalidCredentialsError()
        self._raise_for_status(resp)
        self.token = resp.json()["accessToken"]
        return self.token

    # -- catalog --------------------------------------------------------------

    async def list_papers(self) -> list[dict[str, Any]]:
        resp = await self._request("GET", "/papers")
        self._raise_for_status(resp)
        return resp.json()

    async def search_papers(self, query: str) -> list[dict[str, Any]]:
        resp = await self._request("GET", "/papers/search", params={"q": query})
        self._raise_for_status(resp)
        return resp.json()

    async def create_paper(self, fields: PaperFields) -> dict[str, Any]:
        body = {
            "title": fields.title,
            "abstract": fields.abstract,
            "authors": fields.authors,
            "doi": fields.doi,
            "publishedYear": fields.published_year,
        }
        resp = await self._request("POST", "/papers", json=body)
        self._raise_for_status(resp)
        return resp.json()

    async def create_review(self, paper_id: str, content: str, rating: int) -> dict[str, Any]:
        resp = await self._request(
            "POST", f"/papers/{paper_id}/reviews", json={"content": content, "rating": rating}
        )
        self._raise_for_status(resp)
        return resp.json()

    async def resolve_metadata(self, doi: str) -> PaperMetadata:
        """Server-side DOI lookup, shaped for :meth:`PaperDraft.prefill`."""
        resp = await self._request("GET", "/papers/lookup", params={"doi": doi})
        if resp.status_code == 404:
            raise MetadataNotFoundError(doi)
        self._raise_for_status(resp)
        return PaperMetadataResponse.model_validate(resp.json()).to_metadata()

    # -- internal helpers -----------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                return await client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransientError(f"Request to {path} failed") from exc

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.is_success:
            return
        detail = ""
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = str(body.get("detail", ""))
        code = resp.status_code
        if code == 401:
            raise UnauthenticatedError(detail or "Could not validate credentials")
        if code == 404:
            raise NotFoundError(detail or "Not found")
        if code in (400, 422):
            raise ValidationError(detail or "Invalid request")
        if code in (502, 503, 504):
            raise TransientError(detail or f"Service unavailable ({code})")
        logger.error("Unexpected %d from %s", code, resp.request.url)
        raise InternalError()
