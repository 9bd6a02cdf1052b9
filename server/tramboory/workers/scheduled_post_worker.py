"""Background worker that publishes scheduled posts."""

from ..core.database import async_session_factory
from ..services.post_service import PostPublisher, PostService
from .base import BaseWorker


class ScheduledPostWorker(BaseWorker):
    """
    Publishes posts whose scheduled date has passed.

    Failed posts are retried on later runs until they reach the maximum
    number of attempts.
    """

    def __init__(self, interval_seconds: int = 60, publisher: PostPublisher | None = None):
        super().__init__(name="ScheduledPosts", interval_seconds=interval_seconds)
        self.publisher = publisher

    async def process(self) -> None:
        async with async_session_factory() as db:
            try:
                result = await PostService(db, publisher=self.publisher).publish_due_posts()
            except Exception:
                await db.rollback()
                raise

        if result["published"] or result["failed"]:
            self.log.info(
                "Scheduled posts run finished",
                published=result["published"],
                failed=result["failed"],
                errors=result["errors"],
            )
