"""Tests for post create/get/delete and media handling through the API."""
import logging
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import ConflictError
from app.models.post import Post
from app.services.post_service import delete_post
from tests.conftest import auth_headers, create_post_row, create_user_row, signup

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 256


async def count_posts(db_session) -> int:
    return await db_session.scalar(select(func.count()).select_from(Post))


async def test_create_text_post(async_client):
    author = await signup(async_client, "author")
    response = await async_client.post(
        "/api/v1/posts", data={"content": "  First post!  "}, headers=auth_headers(author)
    )
    assert response.status_code == 201
    post = response.json()["data"]
    assert post["content"] == "First post!"
    assert post["username"] == author["username"]
    assert post["user_id"] == author["id"]
    assert post["image_url"] is None
    assert post["likes"] == [] and post["comments"] == []
    assert post["likes_count"] == 0
    assert post["comments_count"] == 0


async def test_create_image_post(async_client, storage):
    author = await signup(async_client, "author")
    files = {"image": ("photo.PNG", PNG_BYTES, "image/png")}
    response = await async_client.post("/api/v1/posts", files=files, headers=auth_headers(author))
    assert response.status_code == 201
    post = response.json()["data"]
    assert post["content"] == ""
    assert post["image_url"].startswith("/uploads/image-")
    assert post["image_url"].endswith(".png")
    assert storage.path_for(post["image_url"]).read_bytes() == PNG_BYTES


async def test_create_requires_content_or_image(async_client, db_session):
    author = await signup(async_client, "author")
    response = await async_client.post("/api/v1/posts", data={"content": "   "}, headers=auth_headers(author))
    assert response.status_code == 400
    assert response.json()["message"] == "Post must have either content or an image"
    assert await count_posts(db_session) == 0


async def test_create_rejects_long_content(async_client, db_session):
    author = await signup(async_client, "author")
    response = await async_client.post(
        "/api/v1/posts", data={"content": "x" * 2001}, headers=auth_headers(author)
    )
    assert response.status_code == 400
    assert await count_posts(db_session) == 0

    ok = await async_client.post("/api/v1/posts", data={"content": "x" * 2000}, headers=auth_headers(author))
    assert ok.status_code == 201


async def test_oversized_image_creates_nothing(async_client, db_session, storage):
    author = await signup(async_client, "author")
    files = {"image": ("big.jpg", b"\xff" * (6 * 1024 * 1024), "image/jpeg")}
    response = await async_client.post("/api/v1/posts", files=files, headers=auth_headers(author))
    assert response.status_code == 400
    body = response.json()
    assert body["kind"] == "InvalidMedia"
    assert await count_posts(db_session) == 0
    assert list(storage.base_dir.iterdir()) == []


async def test_image_extension_and_type_must_both_match(async_client, db_session, storage):
    author = await signup(async_client, "author")
    bad_uploads = [
        ("photo.txt", "image/png"),
        ("photo.png", "text/plain"),
        ("photo", "image/png"),
        ("photo.bmp", "image/bmp"),
    ]
    for filename, content_type in bad_uploads:
        files = {"image": (filename, PNG_BYTES, content_type)}
        response = await async_client.post(
            "/api/v1/posts", data={"content": "caption"}, files=files, headers=auth_headers(author)
        )
        assert response.status_code == 400, filename
        assert response.json()["kind"] == "InvalidMedia"
    assert await count_posts(db_session) == 0
    assert list(storage.base_dir.iterdir()) == []


async def test_get_post(async_client):
    author = await signup(async_client, "author")
    created = (
        await async_client.post("/api/v1/posts", data={"content": "hi"}, headers=auth_headers(author))
    ).json()["data"]
    response = await async_client.get(f"/api/v1/posts/{created['id']}", headers=auth_headers(author))
    assert response.status_code == 200
    assert response.json()["data"]["id"] == created["id"]


async def test_get_missing_post_is_404(async_client):
    user = await signup(async_client)
    response = await async_client.get(f"/api/v1/posts/{uuid4()}", headers=auth_headers(user))
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Post not found"}


async def test_malformed_post_id_is_400(async_client):
    user = await signup(async_client)
    response = await async_client.get("/api/v1/posts/not-a-uuid", headers=auth_headers(user))
    assert response.status_code == 400


async def test_post_routes_require_auth(async_client):
    post_id = uuid4()
    requests = [
        ("GET", "/api/v1/posts"),
        ("POST", "/api/v1/posts"),
        ("GET", f"/api/v1/posts/{post_id}"),
        ("PUT", f"/api/v1/posts/{post_id}/like"),
        ("POST", f"/api/v1/posts/{post_id}/comment"),
        ("DELETE", f"/api/v1/posts/{post_id}"),
    ]
    for method, url in requests:
        response = await async_client.request(method, url)
        assert response.status_code == 401, (method, url)


async def test_non_owner_cannot_delete(async_client, db_session, storage):
    author = await signup(async_client, "author")
    intruder = await signup(async_client, "intruder")
    files = {"image": ("photo.png", PNG_BYTES, "image/png")}
    created = (
        await async_client.post("/api/v1/posts", files=files, headers=auth_headers(author))
    ).json()["data"]

    response = await async_client.delete(f"/api/v1/posts/{created['id']}", headers=auth_headers(intruder))
    assert response.status_code == 403
    assert await count_posts(db_session) == 1
    assert storage.path_for(created["image_url"]).exists()

    still_there = await async_client.get(f"/api/v1/posts/{created['id']}", headers=auth_headers(author))
    assert still_there.json()["data"] == created


async def test_owner_delete_removes_post_and_media(async_client, db_session, storage):
    author = await signup(async_client, "author")
    files = {"image": ("photo.webp", PNG_BYTES, "image/webp")}
    created = (
        await async_client.post("/api/v1/posts", files=files, headers=auth_headers(author))
    ).json()["data"]
    await async_client.put(f"/api/v1/posts/{created['id']}/like", headers=auth_headers(author))
    await async_client.post(
        f"/api/v1/posts/{created['id']}/comment", json={"text": "mine"}, headers=auth_headers(author)
    )

    response = await async_client.delete(f"/api/v1/posts/{created['id']}", headers=auth_headers(author))
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert not storage.path_for(created["image_url"]).exists()
    assert await count_posts(db_session) == 0

    gone = await async_client.get(f"/api/v1/posts/{created['id']}", headers=auth_headers(author))
    assert gone.status_code == 404


async def test_delete_succeeds_when_media_already_gone(async_client, storage):
    author = await signup(async_client, "author")
    files = {"image": ("photo.gif", PNG_BYTES, "image/gif")}
    created = (
        await async_client.post("/api/v1/posts", files=files, headers=auth_headers(author))
    ).json()["data"]
    storage.path_for(created["image_url"]).unlink()

    response = await async_client.delete(f"/api/v1/posts/{created['id']}", headers=auth_headers(author))
    assert response.status_code == 200


async def test_delete_missing_post_is_404(async_client):
    user = await signup(async_client)
    response = await async_client.delete(f"/api/v1/posts/{uuid4()}", headers=auth_headers(user))
    assert response.status_code == 404


async def test_failed_delete_logs_orphaned_image(db_session, storage, monkeypatch, caplog):
    author = await create_user_row(db_session, "author")
    image_url = storage.save("image", PNG_BYTES, ".png")
    post = await create_post_row(db_session, author, content="", image_url=image_url)
    post_id = post.id

    async def stale_commit():
        raise StaleDataError("simulated concurrent update")

    # "app" does not propagate to the root logger caplog listens on
    app_logger = logging.getLogger("app")
    app_logger.addHandler(caplog.handler)
    monkeypatch.setattr(db_session, "commit", stale_commit)
    try:
        with pytest.raises(ConflictError):
            await delete_post(db_session, post_id, author)
    finally:
        app_logger.removeHandler(caplog.handler)
    monkeypatch.undo()

    orphaned = [r for r in caplog.records if r.levelno == logging.ERROR and image_url in r.getMessage()]
    assert len(orphaned) == 1
    assert str(post_id) in orphaned[0].getMessage()
    assert not storage.path_for(image_url).exists()
    assert await count_posts(db_session) == 1
