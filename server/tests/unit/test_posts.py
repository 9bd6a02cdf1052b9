"""Tests for scheduled posts and the publishing run."""

from datetime import datetime, timedelta

import pytest

from tramboory.models.post import PostStatus
from tramboory.schemas.post import PostCreate
from tramboory.services.post_service import PostPublisher, PostService


class FailingPublisher(PostPublisher):
    def __init__(self):
        self.calls = 0

    async def publish(self, post):
        self.calls += 1
        raise RuntimeError("Instagram no respondió")


class RecordingPublisher(PostPublisher):
    def __init__(self):
        self.published = []

    async def publish(self, post):
        self.published.append(post.title)


def post_payload(**overrides):
    payload = {
        "title": "Promo de verano",
        "content": "Reserva en julio y recibe un pastel gratis",
        "scheduledDate": (datetime.utcnow() - timedelta(minutes=5)).isoformat(),
        "platform": "social",
        "socialMediaSettings": {"instagram": True},
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_post_endpoint(test_client, admin_headers):
    response = await test_client.post("/api/admin/posts", json=post_payload(), headers=admin_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "scheduled"
    assert data["author"] == "Test admin"
    assert data["publishAttempts"] == 0
    assert data["socialMediaSettings"] == {"instagram": True, "facebook": False, "tiktok": False}


@pytest.mark.asyncio
async def test_posts_are_admin_only(test_client, manager_headers):
    response = await test_client.get("/api/admin/posts", headers=manager_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_publish_with_cron_secret(test_client, admin_headers):
    """The scheduler authenticates with the shared secret instead of a session."""
    await test_client.post("/api/admin/posts", json=post_payload(), headers=admin_headers)
    future = (datetime.utcnow() + timedelta(days=2)).isoformat()
    await test_client.post(
        "/api/admin/posts", json=post_payload(title="Después", scheduledDate=future), headers=admin_headers
    )

    response = await test_client.post("/api/admin/posts/publish", headers={"X-Cron-Secret": "cron-test-secret"})
    assert response.status_code == 200
    assert response.json()["data"] == {"published": 1, "failed": 0, "errors": []}

    response = await test_client.get("/api/admin/posts", params={"status": "published"}, headers=admin_headers)
    posts = response.json()["data"]
    assert [post["title"] for post in posts] == ["Promo de verano"]
    assert posts[0]["publishedDate"] is not None

    response = await test_client.post("/api/admin/posts/publish", headers=admin_headers)
    assert response.json()["data"]["published"] == 0


@pytest.mark.asyncio
async def test_publish_rejects_wrong_secret(test_client, manager_headers):
    response = await test_client.post("/api/admin/posts/publish", headers={"X-Cron-Secret": "nope"})
    assert response.status_code == 401

    response = await test_client.post("/api/admin/posts/publish", headers=manager_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_failed_post_is_retried_then_marked_failed(test_session):
    """A post keeps its place in the queue until its last attempt fails."""
    publisher = FailingPublisher()
    service = PostService(test_session, publisher=publisher)
    post = await service.create_post(
        PostCreate.model_validate(post_payload()), author="admin"
    )

    first = await service.publish_due_posts()
    assert first["failed"] == 1
    assert first["errors"] == ['Post "Promo de verano": Instagram no respondió']
    assert post.status == PostStatus.SCHEDULED
    assert post.publish_attempts == 1

    await service.publish_due_posts()
    await service.publish_due_posts()
    assert post.status == PostStatus.FAILED
    assert post.publish_attempts == 3
    assert post.last_error == "Instagram no respondió"

    summary = await service.publish_due_posts()
    assert summary == {"published": 0, "failed": 0, "errors": []}
    assert publisher.calls == 3


@pytest.mark.asyncio
async def test_rescheduling_resets_attempts(test_client, admin_headers, test_session):
    created = await test_client.post("/api/admin/posts", json=post_payload(), headers=admin_headers)
    post_id = created.json()["data"]["id"]

    service = PostService(test_session, publisher=FailingPublisher())
    for _ in range(3):
        await service.publish_due_posts()

    response = await test_client.get(f"/api/admin/posts/{post_id}", headers=admin_headers)
    assert response.json()["data"]["status"] == "failed"

    response = await test_client.put(
        f"/api/admin/posts/{post_id}", json={"status": "scheduled"}, headers=admin_headers
    )
    data = response.json()["data"]
    assert data["status"] == "scheduled"
    assert data["publishAttempts"] == 0
    assert data["lastError"] is None

    recorder = RecordingPublisher()
    summary = await PostService(test_session, publisher=recorder).publish_due_posts()
    assert summary["published"] == 1
    assert recorder.published == ["Promo de verano"]


@pytest.mark.asyncio
async def test_delete_post(test_client, admin_headers):
    created = await test_client.post("/api/admin/posts", json=post_payload(), headers=admin_headers)
    post_id = created.json()["data"]["id"]

    response = await test_client.delete(f"/api/admin/posts/{post_id}", headers=admin_headers)
    assert response.status_code == 200
    response = await test_client.get(f"/api/admin/posts/{post_id}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "Publicación no encontrada"
