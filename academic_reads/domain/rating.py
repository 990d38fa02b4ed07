"""Rating aggregation over a paper's reviews."""

from typing import Iterable

from academic_reads.domain.entities import RatingSummary, Review


def aggregate_ratings(reviews: Iterable[Review]) -> RatingSummary:
    """Compute the mean rating of ``reviews``.

    Always recomputed from the reviews themselves; nothing is cached.
    """
    ratings = [r.rating for r in reviews]
    if not ratings:
        return RatingSummary(has_reviews=False)
    return RatingSummary(
        has_reviews=True,
        average=sum(ratings) / len(ratings),
        count=len(ratings),
    )
