"""
Regression tests for issues found during code review.

1. An Article service outage must surface as 502, never as a 400 "article
   does not exist"
2. Cache hits must not touch the store (X-Query-Count == 0)
3. A cached empty list must not outlive the next create
4. CORS must not set allow_credentials=true with allow_origins=*
"""
import asyncio

import httpx
import pytest
import respx
from httpx import AsyncClient

from article_review.clients.article_client import ArticleClient
from article_review.main import review_app

ARTICLE_ID = "65a1f0c2e4b0a1b2c3d4e5f6"
ARTICLE_SERVICE = "http://articles.test"


# ---------------------------------------------------------------------------
# 1. Dependency outage is not a referential violation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
@pytest.mark.parametrize("status", [500, 503])
async def test_article_service_5xx_returns_502(review_client: AsyncClient, status):
    """A failing Article service must not be read as a missing article."""
    async with httpx.AsyncClient() as http:
        review_app.state.article_client = ArticleClient(ARTICLE_SERVICE, http=http)
        with respx.mock(base_url=ARTICLE_SERVICE) as mock:
            mock.get(f"/api/v1/articles/{ARTICLE_ID}").mock(return_value=httpx.Response(status))
            resp = await review_client.post("/api/v1/reviews", json={
                "article_id": ARTICLE_ID, "reviewer": "R", "content": "C",
            })
    assert resp.status_code == 502
    assert "does not exist" not in resp.json()["detail"]


@pytest.mark.asyncio
async def test_article_service_unreachable_returns_502(review_client: AsyncClient):
    async with httpx.AsyncClient() as http:
        review_app.state.article_client = ArticleClient(ARTICLE_SERVICE, http=http)
        with respx.mock(base_url=ARTICLE_SERVICE) as mock:
            mock.get(f"/api/v1/articles/{ARTICLE_ID}").mock(
                side_effect=httpx.ConnectError("connection refused")
            )
            resp = await review_client.post("/api/v1/reviews", json={
                "article_id": ARTICLE_ID, "reviewer": "R", "content": "C",
            })
    assert resp.status_code == 502
    assert (await review_client.get("/api/v1/reviews")).json() == []


# ---------------------------------------------------------------------------
# 2. Cache hits skip the store
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_count_zero_on_cache_hit(article_client: AsyncClient):
    article = (await article_client.post("/api/v1/articles", json={"title": "QC"})).json()

    miss = await article_client.get(f"/api/v1/articles/{article['id']}")
    assert int(miss.headers["x-query-count"]) >= 1

    hit = await article_client.get(f"/api/v1/articles/{article['id']}")
    assert hit.json() == miss.json()
    assert int(hit.headers["x-query-count"]) == 0


@pytest.mark.asyncio
async def test_concurrent_reads_of_cached_article(article_client: AsyncClient):
    """Many concurrent reads of a warm entry all succeed without store access."""
    article = (await article_client.post("/api/v1/articles", json={"title": "Hot"})).json()
    await article_client.get(f"/api/v1/articles/{article['id']}")

    responses = await asyncio.gather(
        *(article_client.get(f"/api/v1/articles/{article['id']}") for _ in range(10))
    )
    assert all(r.status_code == 200 for r in responses)
    assert all(r.json() == article for r in responses)
    assert all(r.headers["x-query-count"] == "0" for r in responses)


# ---------------------------------------------------------------------------
# 3. Cached empty list is evicted by create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cached_empty_review_list_evicted_on_create(
    review_client: AsyncClient, article_checker
):
    assert (await review_client.get("/api/v1/reviews")).json() == []
    article_checker.known.add(ARTICLE_ID)
    resp = await review_client.post("/api/v1/reviews", json={
        "article_id": ARTICLE_ID, "reviewer": "R", "content": "C",
    })
    assert resp.status_code == 201
    assert len((await review_client.get("/api/v1/reviews")).json()) == 1


# ---------------------------------------------------------------------------
# 4. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(article_client: AsyncClient):
    """
    When allow_origins=["*"], the response must NOT include
    Access-Control-Allow-Credentials: true.
    """
    resp = await article_client.options(
        "/api/v1/articles",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true", (
        "CORS must not combine allow_origins=* with allow_credentials=true"
    )
