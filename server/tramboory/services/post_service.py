"""Scheduled post service and the publishers that deliver posts."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import utcnow
from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..core.observability import metrics_collector
from ..models.post import PostPlatform, PostStatus, ScheduledPost
from ..schemas.common import naive_utc
from ..schemas.post import PostCreate, PostUpdate

logger = logging.getLogger(__name__)

CHANNELS = (PostPlatform.WEBSITE, PostPlatform.SOCIAL, PostPlatform.NEWSLETTER)


class PostPublisher(ABC):
    """Delivers a post to its platform; raising marks the attempt as failed."""

    @abstractmethod
    async def publish(self, post: ScheduledPost) -> None:
        ...


class LoggingPostPublisher(PostPublisher):
    """Publisher that records each delivery in the log."""

    async def publish(self, post: ScheduledPost) -> None:
        platform = PostPlatform(post.platform)
        channels = CHANNELS if platform == PostPlatform.ALL else (platform,)
        for channel in channels:
            extra = {"post_id": str(post.id), "title": post.title, "platform": channel.value}
            if channel == PostPlatform.SOCIAL:
                extra["networks"] = sorted(name for name, enabled in (post.social_media_settings or {}).items() if enabled)
            logger.info("Post published", extra=extra)


class PostService:
    """CRUD for scheduled posts and the publishing run."""

    def __init__(self, db: AsyncSession, publisher: Optional[PostPublisher] = None):
        self.db = db
        self.publisher = publisher or LoggingPostPublisher()

    async def get_post_or_raise(self, post_id: UUID) -> ScheduledPost:
        post = await self.db.get(ScheduledPost, post_id)
        if post is None:
            raise NotFoundError(resource_type="scheduled_post", resource_id=str(post_id), detail="Publicación no encontrada")
        return post

    async def list_posts(self, status: Optional[PostStatus] = None) -> list[ScheduledPost]:
        stmt = select(ScheduledPost)
        if status:
            stmt = stmt.where(ScheduledPost.status == status)
        result = await self.db.execute(stmt.order_by(ScheduledPost.scheduled_date))
        return list(result.scalars().all())

    async def create_post(self, request: PostCreate, author: str) -> ScheduledPost:
        data = request.model_dump()
        data["scheduled_date"] = naive_utc(request.scheduled_date)
        data["social_media_settings"] = request.social_media_settings.model_dump(by_alias=True)
        post = ScheduledPost(**data, author=author, status=PostStatus.SCHEDULED, publish_attempts=0)
        self.db.add(post)
        await self.db.commit()
        await self.db.refresh(post)
        logger.info(
            "Post scheduled",
            extra={"post_id": str(post.id), "scheduled_date": post.scheduled_date.isoformat(), "author": author},
        )
        return post

    async def update_post(self, post_id: UUID, request: PostUpdate) -> ScheduledPost:
        post = await self.get_post_or_raise(post_id)
        data = {key: value for key, value in request.model_dump(exclude_unset=True).items() if value is not None}
        if "scheduled_date" in data:
            data["scheduled_date"] = naive_utc(data["scheduled_date"])
        if request.social_media_settings is not None:
            data["social_media_settings"] = request.social_media_settings.model_dump(by_alias=True)
        # rescheduling gives the post a fresh set of attempts
        if data.get("status") == PostStatus.SCHEDULED and post.status != PostStatus.SCHEDULED:
            data["publish_attempts"] = 0
            data["last_error"] = None

        for key, value in data.items():
            setattr(post, key, value)
        await self.db.commit()
        await self.db.refresh(post)
        logger.info("Post updated", extra={"post_id": str(post_id), "fields": sorted(data)})
        return post

    async def delete_post(self, post_id: UUID) -> None:
        post = await self.get_post_or_raise(post_id)
        await self.db.delete(post)
        await self.db.commit()
        logger.info("Post deleted", extra={"post_id": str(post_id)})

    async def due_posts(self, now: datetime) -> list[ScheduledPost]:
        stmt = (
            select(ScheduledPost)
            .where(
                ScheduledPost.status == PostStatus.SCHEDULED,
                ScheduledPost.scheduled_date <= now,
                ScheduledPost.publish_attempts < settings.max_publish_attempts,
            )
            .order_by(ScheduledPost.scheduled_date)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def publish_due_posts(self, now: Optional[datetime] = None) -> dict:
        """
        Publish every post whose scheduled date has passed.

        A failed post goes back to ``scheduled`` until its last allowed attempt,
        after which it is marked ``failed``.

        Args:
            now: Reference time (naive UTC); defaults to the current time

        Returns:
            ``{"published", "failed", "errors"}`` for this run
        """
        now = naive_utc(now) if now else utcnow()
        summary = {"published": 0, "failed": 0, "errors": []}

        for post in await self.due_posts(now):
            attempts = post.publish_attempts or 0
            try:
                await self.publisher.publish(post)
            except Exception as e:
                post.status = PostStatus.FAILED if attempts >= settings.max_publish_attempts - 1 else PostStatus.SCHEDULED
                post.publish_attempts = attempts + 1
                post.last_error = str(e)
                await self.db.commit()

                summary["failed"] += 1
                summary["errors"].append(f'Post "{post.title}": {e}')
                metrics_collector.record_post_failed()
                logger.warning(
                    "Post publish attempt failed",
                    extra={
                        "post_id": str(post.id),
                        "attempts": post.publish_attempts,
                        "status": post.status,
                        "error": str(e),
                    },
                )
                continue

            post.status = PostStatus.PUBLISHED
            post.published_date = now
            post.publish_attempts = attempts + 1
            post.last_error = None
            await self.db.commit()

            summary["published"] += 1
            metrics_collector.record_post_published(PostPlatform(post.platform).value)

        if summary["published"] or summary["failed"]:
            logger.info(
                "Scheduled posts processed",
                extra={"published": summary["published"], "failed": summary["failed"]},
            )
        return summary
