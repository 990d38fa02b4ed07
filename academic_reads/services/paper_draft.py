"""New-paper form state with DOI pre-fill."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Optional

from academic_reads.domain.entities import PaperFields, PaperMetadata
from academic_reads.domain.exceptions import (
    InternalError,
    NotFoundError,
    TransientError,
    ValidationError,
)

logger = logging.getLogger(__name__)

LOOKUP_FAILED_MESSAGE = "Could not find paper with this DOI. Please enter details manually."
LOOKUP_UNAVAILABLE_MESSAGE = "The DOI service is unavailable right now. Please try again."


def _current_year() -> int:
    return datetime.utcnow().year


@dataclass
class PaperDraft:
    """Values typed into the new-paper form.

    :meth:`prefill` replaces title, authors, year and abstract in one step
    from a resolved DOI, or changes nothing but :attr:`error`.
    """

    doi: str = ""
    title: str = ""
    authors: str = ""
    abstract: str = ""
    published_year: int = field(default_factory=_current_year)
    error: Optional[str] = None

    async def prefill(self, resolve: Callable[[str], Awaitable[PaperMetadata]]) -> bool:
        """Look up :attr:`doi` and fill the form. Returns True on success."""
        if not self.doi.strip():
            return False
        self.error = None

        try:
            metadata = await resolve(self.doi)
        except (NotFoundError, ValidationError):
            self.error = LOOKUP_FAILED_MESSAGE
            return False
        except (TransientError, InternalError) as exc:
            logger.warning("DOI lookup for %r failed: %s", self.doi, exc)
            self.error = LOOKUP_UNAVAILABLE_MESSAGE
            return False

        self.apply(metadata)
        return True

    def apply(self, metadata: PaperMetadata) -> None:
        self.title = metadata.title
        self.authors = metadata.authors
        self.published_year = metadata.published_year
        self.abstract = metadata.abstract

    def to_fields(self) -> PaperFields:
        return PaperFields(
            title=self.title,
            abstract=self.abstract,
            authors=self.authors,
            published_year=self.published_year,
            doi=self.doi or None,
        )
