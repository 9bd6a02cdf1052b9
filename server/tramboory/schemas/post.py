"""Scheduled post schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from ..models.post import PostPlatform, PostPriority, PostStatus
from .common import CamelModel


class SocialMediaSettings(CamelModel):
    instagram: bool = False
    facebook: bool = False
    tiktok: bool = False


class PostCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    image_url: Optional[str] = Field(None, max_length=500)
    scheduled_date: datetime
    tags: List[str] = Field(default_factory=list)
    priority: PostPriority = PostPriority.MEDIUM
    platform: PostPlatform = PostPlatform.WEBSITE
    social_media_settings: SocialMediaSettings = Field(default_factory=SocialMediaSettings)


class PostUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    image_url: Optional[str] = Field(None, max_length=500)
    scheduled_date: Optional[datetime] = None
    status: Optional[PostStatus] = None
    tags: Optional[List[str]] = None
    priority: Optional[PostPriority] = None
    platform: Optional[PostPlatform] = None
    social_media_settings: Optional[SocialMediaSettings] = None


class PostOut(CamelModel):
    id: UUID
    title: str
    content: str
    image_url: Optional[str] = None
    scheduled_date: datetime
    published_date: Optional[datetime] = None
    status: PostStatus
    author: str
    tags: List[str]
    priority: PostPriority
    platform: PostPlatform
    social_media_settings: SocialMediaSettings
    publish_attempts: int
    last_error: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PublishResult(CamelModel):
    published: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
