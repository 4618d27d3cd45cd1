"""
Regression tests for issues found during code review.

1. CORS must not set allow_credentials=true with allow_origins=*
2. Storage failures must surface as a 500 with a readable message
3. An expired access token must leave the request anonymous, not crash it
4. Cached list pages are dropped only once the write has committed
"""
import pytest
from botocore.exceptions import ClientError
from httpx import AsyncClient

from newsroom.cache import cache
from newsroom.security import IdentityClaim


# ---------------------------------------------------------------------------
# 1. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    resp = await async_client.options(
        "/api/v1/articles",
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true"


# ---------------------------------------------------------------------------
# 2. Storage failures -> 500
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_storage_failure_returns_500(async_client: AsyncClient, manager, storage, monkeypatch):
    _, headers = manager

    def failing_delete(Bucket, Key):
        raise ClientError({"Error": {"Code": "NoSuchBucket", "Message": "gone"}}, "DeleteObject")

    monkeypatch.setattr(storage.client, "delete_object", failing_delete)

    resp = await async_client.post("/api/v1/images", json={"paths": ["1-a.png"]}, headers=headers)
    assert resp.status_code == 500
    assert resp.json()["message"].startswith("Unable to remove object")


# ---------------------------------------------------------------------------
# 3. Expired access token
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_expired_token_is_anonymous(async_client: AsyncClient, codec, reader):
    user, _ = reader
    expired = codec.encode(IdentityClaim.from_user(user), codec.access_secret, -1)

    resp = await async_client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 403
    assert resp.json() == {"message": "User not authorized"}

    public = await async_client.get("/api/v1/articles", headers={"Authorization": f"Bearer {expired}"})
    assert public.status_code == 200


# ---------------------------------------------------------------------------
# 4. Cache invalidation after commit
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_article_write_invalidates_list_pages_once(
    async_client: AsyncClient, manager, category, article_payload, monkeypatch
):
    _, headers = manager
    calls = []

    async def record_invalidation():
        calls.append("articles")

    monkeypatch.setattr(cache, "invalidate_articles", record_invalidation)
    resp = await async_client.post(
        "/api/v1/articles", json=article_payload(category.id), headers=headers
    )
    assert resp.status_code == 201
    assert calls == ["articles"]
