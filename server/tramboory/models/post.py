"""Scheduled post model definition."""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin


class PostStatus(str, Enum):
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    CANCELLED = "cancelled"
    FAILED = "failed"


class PostPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PostPlatform(str, Enum):
    WEBSITE = "website"
    SOCIAL = "social"
    NEWSLETTER = "newsletter"
    ALL = "all"


class ScheduledPost(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Content queued for publication at ``scheduled_date``."""

    __tablename__ = "scheduled_posts"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    scheduled_date: Mapped[datetime] = mapped_column(nullable=False, index=True)
    published_date: Mapped[datetime | None] = mapped_column(nullable=True)
    status: Mapped[PostStatus] = mapped_column(String(20), nullable=False, default=PostStatus.SCHEDULED, index=True)
    author: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    priority: Mapped[PostPriority] = mapped_column(String(10), nullable=False, default=PostPriority.MEDIUM)
    platform: Mapped[PostPlatform] = mapped_column(String(20), nullable=False, default=PostPlatform.WEBSITE)
    # {instagram, facebook, tiktok}
    social_media_settings: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    publish_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("publish_attempts >= 0", name="ck_scheduled_post_attempts_non_negative"),
        CheckConstraint(
            "status IN ('scheduled', 'published', 'cancelled', 'failed')",
            name="ck_scheduled_post_status_valid",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ScheduledPost(id={self.id}, title='{self.title}', status='{self.status}', "
            f"attempts={self.publish_attempts})>"
        )
