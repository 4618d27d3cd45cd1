"""
Image endpoint tests.  ``ObjectStorage`` runs for real against a recording
stub of the boto3 client (see conftest).
"""
import pytest
from httpx import AsyncClient
from starlette.datastructures import UploadFile


@pytest.mark.asyncio
async def test_upload_returns_public_urls(async_client: AsyncClient, manager, storage):
    _, headers = manager
    resp = await async_client.post(
        "/api/v1/images/upload",
        files={
            "picture": ("face.png", b"png-bytes", "image/png"),
            "cover_image": ("cover.jpg", b"jpg-bytes", "image/jpeg"),
        },
        headers=headers,
    )
    assert resp.status_code == 201
    data = resp.json()
    assert set(data) == {"picture", "cover_image"}
    assert data["picture"].startswith("http://cdn.test/images/")
    assert data["picture"].endswith(".png")
    assert data["cover_image"].endswith(".jpg")
    assert sorted(storage.client.objects.values()) == [b"jpg-bytes", b"png-bytes"]


@pytest.mark.asyncio
async def test_upload_single_field(async_client: AsyncClient, manager, storage):
    _, headers = manager
    resp = await async_client.post(
        "/api/v1/images/upload",
        files={"picture": ("face.png", b"png-bytes", "image/png")},
        headers=headers,
    )
    assert resp.status_code == 201
    assert list(resp.json()) == ["picture"]


@pytest.mark.asyncio
async def test_upload_too_large_returns_413(async_client: AsyncClient, manager, storage):
    _, headers = manager
    resp = await async_client.post(
        "/api/v1/images/upload",
        files={"picture": ("huge.png", b"x" * (storage.max_size + 1), "image/png")},
        headers=headers,
    )
    assert resp.status_code == 413
    assert storage.client.objects == {}


@pytest.mark.asyncio
async def test_oversized_upload_is_read_only_up_to_the_limit(
    async_client: AsyncClient, manager, storage, monkeypatch
):
    _, headers = manager
    reads = []
    original_read = UploadFile.read

    async def recording_read(self, size=-1):
        data = await original_read(self, size)
        reads.append((size, len(data)))
        return data

    monkeypatch.setattr(UploadFile, "read", recording_read)
    resp = await async_client.post(
        "/api/v1/images/upload",
        files={"picture": ("huge.png", b"x" * (storage.max_size * 500), "image/png")},
        headers=headers,
    )
    assert resp.status_code == 413
    assert reads == [(storage.max_size + 1, storage.max_size + 1)]


@pytest.mark.asyncio
async def test_upload_requires_staff(async_client: AsyncClient, reader, storage):
    _, headers = reader
    resp = await async_client.post(
        "/api/v1/images/upload",
        files={"picture": ("face.png", b"png-bytes", "image/png")},
        headers=headers,
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_delete_by_path(async_client: AsyncClient, manager, storage):
    _, headers = manager
    resp = await async_client.post(
        "/api/v1/images",
        json={"paths": ["http://cdn.test/images/1-a.png", "2-b.jpg"]},
        headers=headers,
    )
    assert resp.status_code == 200
    assert sorted(storage.client.deleted) == ["1-a.png", "2-b.jpg"]


@pytest.mark.asyncio
async def test_delete_requires_paths(async_client: AsyncClient, manager, storage):
    _, headers = manager
    resp = await async_client.post("/api/v1/images", json={"paths": []}, headers=headers)
    assert resp.status_code == 422
