"""
Unit Tests for CrossrefMetadataResolver
Registry responses are served by httpx.MockTransport.
"""
import httpx
import pytest

from academic_reads.domain.entities import PaperMetadata
from academic_reads.domain.exceptions import MetadataNotFoundError, TransientError, ValidationError
from academic_reads.infrastructure.metadata.crossref import CrossrefMetadataResolver

WORK = {
    "status": "ok",
    "message": {
        "DOI": "10.1000/xyz123",
        "title": ["Attention Is All You Need"],
        "author": [
            {"given": "Ashish", "family": "Vaswani"},
            {"given": "Noam", "family": "Shazeer"},
            {"name": "Google Brain"},
        ],
        "created": {"date-parts": [[2017, 6, 12]], "date-time": "2017-06-12T17:57:34Z"},
        "abstract": "<jats:p>The dominant sequence transduction models &amp; more.</jats:p>",
    },
}


def _resolver(handler) -> CrossrefMetadataResolver:
    return CrossrefMetadataResolver(
        base_url="https://api.crossref.test/works",
        transport=httpx.MockTransport(handler),
    )


def _serve(payload, status_code=200):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json=payload)

    return handler, requests


@pytest.mark.asyncio
async def test_normalizes_registry_document():
    handler, requests = _serve(WORK)

    metadata = await _resolver(handler).resolve("10.1000/xyz123")

    assert metadata == PaperMetadata(
        doi="10.1000/xyz123",
        title="Attention Is All You Need",
        authors="Ashish Vaswani, Noam Shazeer, Google Brain",
        published_year=2017,
        abstract="The dominant sequence transduction models & more.",
    )
    assert requests[0].url.path == "/works/10.1000/xyz123"


@pytest.mark.asyncio
async def test_resolution_is_repeatable():
    handler, _ = _serve(WORK)
    resolver = _resolver(handler)

    assert await resolver.resolve("10.1000/xyz123") == await resolver.resolve("10.1000/xyz123")


@pytest.mark.asyncio
async def test_accepts_doi_urls():
    handler, requests = _serve(WORK)

    await _resolver(handler).resolve("https://doi.org/10.1000/xyz123")

    assert requests[0].url.path == "/works/10.1000/xyz123"


@pytest.mark.asyncio
async def test_missing_abstract_is_empty_string():
    payload = {"message": {**WORK["message"]}}
    del payload["message"]["abstract"]
    handler, _ = _serve(payload)

    metadata = await _resolver(handler).resolve("10.1000/xyz123")

    assert metadata.abstract == ""


@pytest.mark.asyncio
async def test_year_falls_back_to_date_parts():
    payload = {"message": {**WORK["message"], "created": {"date-parts": [[2019, 1, 2]]}}}
    handler, _ = _serve(payload)

    metadata = await _resolver(handler).resolve("10.1000/xyz123")

    assert metadata.published_year == 2019


@pytest.mark.asyncio
async def test_missing_authors_is_empty_string():
    payload = {"message": {**WORK["message"]}}
    del payload["message"]["author"]
    handler, _ = _serve(payload)

    metadata = await _resolver(handler).resolve("10.1000/xyz123")

    assert metadata.authors == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [400, 404, 410])
async def test_client_errors_are_not_found(status_code):
    handler, _ = _serve({"message": "Resource not found."}, status_code)

    with pytest.raises(MetadataNotFoundError):
        await _resolver(handler).resolve("10.1000/missing")


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [500, 502, 503])
async def test_server_errors_are_transient(status_code):
    handler, _ = _serve({}, status_code)

    with pytest.raises(TransientError):
        await _resolver(handler).resolve("10.1000/xyz123")


@pytest.mark.asyncio
async def test_connection_failure_is_transient():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientError):
        await _resolver(handler).resolve("10.1000/xyz123")


@pytest.mark.asyncio
async def test_timeout_is_transient():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransientError):
        await _resolver(handler).resolve("10.1000/xyz123")


@pytest.mark.asyncio
async def test_undecodable_body_is_transient():
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(TransientError):
        await _resolver(handler).resolve("10.1000/xyz123")


@pytest.mark.asyncio
async def test_record_without_title_is_not_found():
    payload = {"message": {**WORK["message"], "title": []}}
    handler, _ = _serve(payload)

    with pytest.raises(MetadataNotFoundError):
        await _resolver(handler).resolve("10.1000/xyz123")


@pytest.mark.asyncio
async def test_non_doi_identifier_skips_network():
    handler, requests = _serve(WORK)

    with pytest.raises(MetadataNotFoundError):
        await _resolver(handler).resolve("definitely not a doi")

    assert requests == []


@pytest.mark.asyncio
async def test_blank_identifier_is_validation_error():
    handler, _ = _serve(WORK)

    with pytest.raises(ValidationError):
        await _resolver(handler).resolve("   ")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"author": ["Jane Doe"]},
        {"author": "Jane Doe"},
        {"title": [None]},
        {"title": {"en": "Attention"}},
        {"created": {"date-parts": [2020]}},
        {"created": {"date-parts": [["not-a-year"]]}},
        {"created": "2017-06-12"},
    ],
)
async def test_malformed_record_is_not_found(changes):
    handler, _ = _serve({"message": {**WORK["message"], **changes}})

    with pytest.raises(MetadataNotFoundError):
        await _resolver(handler).resolve("10.1000/xyz123")


@pytest.mark.asyncio
async def test_non_string_name_parts_are_skipped():
    payload = {"message": {**WORK["message"], "author": [{"given": 7, "family": "Vaswani"}]}}
    handler, _ = _serve(payload)

    metadata = await _resolver(handler).resolve("10.1000/xyz123")

    assert metadata.authors == "Vaswani"


@pytest.mark.asyncio
async def test_non_string_abstract_is_empty():
    payload = {"message": {**WORK["message"], "abstract": {"text": "nested"}}}
    handler, _ = _serve(payload)

    metadata = await _resolver(handler).resolve("10.1000/xyz123")

    assert metadata.abstract == ""
