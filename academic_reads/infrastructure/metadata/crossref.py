"""Crossref-backed paper metadata resolver.

Talks to the Crossref REST API (``GET /works/{doi}``) over **httpx** and maps
the ``message`` document onto :class:`PaperMetadata`:

- title      first entry of ``title``
- authors    ``"given family"`` per author, registry order, joined by ``", "``
- year       year of ``created.date-time`` (``created.date-parts`` as fallback)
- abstract   ``abstract`` with JATS markup stripped, ``""`` when absent

Client errors (4xx) and incomplete records raise
:class:`MetadataNotFoundError`; connection problems, timeouts and 5xx
responses raise :class:`TransientError`.
"""

import html
import logging
import re
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

import httpx

from academic_reads.domain.entities import PaperMetadata
from academic_reads.domain.exceptions import MetadataNotFoundError, TransientError, ValidationError
from academic_reads.domain.identifiers import normalize_doi
from academic_reads.domain.repositories import IMetadataResolver

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


class CrossrefMetadataResolver(IMetadataResolver):
    """Resolve DOIs against Crossref.

    Constructor args:
        base_url:    works endpoint (default ``https://api.crossref.org/works``).
        timeout:     per-request timeout in seconds; expiry is a transient failure.
        user_agent:  sent so Crossref routes us to its polite pool.
        transport:   optional httpx transport, used by tests.
    """

    def __init__(
        self,
        base_url: str = "https://api.crossref.org/works",
        timeout: float = 10.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    async def resolve(self, identifier: str) -> PaperMetadata:
        if not identifier or not identifier.strip():
            raise ValidationError("A DOI is required")
        doi = normalize_doi(identifier)
        if doi is None:
            logger.info("Identifier %r is not a DOI", identifier)
            raise MetadataNotFoundError(identifier)

        message = await self._fetch(doi)
        metadata = self._normalize(doi, message)
        logger.info("Resolved DOI %s: %r (%d)", doi, metadata.title, metadata.published_year)
        return metadata

    # -- internal helpers ---------------------------------------------------

    async def _fetch(self, doi: str) -> dict[str, Any]:
        url = f"{self.base_url}/{quote(doi, safe='/')}"
        headers = {"Accept": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                resp = await client.get(url, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("Crossref timed out for %s: %s", doi, exc)
            raise TransientError("Metadata registry timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("Crossref request failed for %s: %s", doi, exc)
            raise TransientError("Metadata registry is unreachable") from exc

        if resp.status_code >= 500:
            logger.warning("Crossref returned %d for %s", resp.status_code, doi)
            raise TransientError(f"Metadata registry error ({resp.status_code})")
        if resp.status_code >= 400:
            logger.info("Crossref returned %d for %s", resp.status_code, doi)
            raise MetadataNotFoundError(doi)

        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("Crossref sent an undecodable body for %s", doi)
            raise TransientError("Metadata registry sent an invalid response") from exc

        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise MetadataNotFoundError(doi)
        return message

    @classmethod
    def _normalize(cls, doi: str, message: dict[str, Any]) -> PaperMetadata:
        title = cls._first_title(message.get("title"))
        year = cls._created_year(message.get("created"))
        authors = cls._join_authors(message.get("author") or [])
        if not title or year is None or authors is None:
            logger.info(
                "Crossref record for %s is incomplete or malformed (title=%r, year=%r)",
                doi, title, year,
            )
            raise MetadataNotFoundError(doi)

        return PaperMetadata(
            doi=doi,
            title=title,
            authors=authors,
            published_year=year,
            abstract=cls._clean_abstract(message.get("abstract")),
        )

    @staticmethod
    def _first_title(titles: Any) -> str:
        if isinstance(titles, str):
            return titles.strip()
        if isinstance(titles, list) and titles and isinstance(titles[0], str):
            return titles[0].strip()
        return ""

    @staticmethod
    def _join_authors(authors: Any) -> Optional[str]:
        """``"given family"`` per author joined by ``", "``; None if the list is malformed."""
        if not isinstance(authors, list):
            return None
        names = []
        for author in authors:
            if not isinstance(author, dict):
                return None
            parts = [author.get("given"), author.get("family")]
            name = " ".join(p.strip() for p in parts if isinstance(p, str) and p.strip())
            # organisations come through as a single "name"
            if not name and isinstance(author.get("name"), str):
                name = author["name"].strip()
            if name:
                names.append(name)
        return ", ".join(names)

    @staticmethod
    def _created_year(created: Any) -> Optional[int]:
        if not isinstance(created, dict):
            return None
        stamp = created.get("date-time")
        if isinstance(stamp, str) and stamp:
            try:
                return datetime.fromisoformat(stamp.replace("Z", "+00:00")).year
            except ValueError:
                pass
        parts = created.get("date-parts")
        if not (isinstance(parts, list) and parts and isinstance(parts[0], list) and parts[0]):
            return None
        try:
            return int(parts[0][0])
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _clean_abstract(raw: Any) -> str:
        if not isinstance(raw, str) or not raw:
            return ""
        text = html.unescape(_TAG_RE.sub(" ", raw))
        return _WS_RE.sub(" ", text).strip()
