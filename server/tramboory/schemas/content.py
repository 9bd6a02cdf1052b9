"""Site content schemas: hero, gallery, carousel, contact settings and messages."""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field

from ..models.content import (
    AspectRatio,
    ContactEventType,
    ContactMessageStatus,
    GalleryCategory,
    MediaType,
)
from .common import CamelModel


class PrimaryButton(CamelModel):
    text: str = Field(..., min_length=1)
    href: Optional[str] = None
    action: Literal["signup", "dashboard", "custom"] = "signup"


class SecondaryButton(CamelModel):
    text: str = Field(..., min_length=1)
    href: str = Field(..., min_length=1)


class BackgroundMedia(CamelModel):
    type: Literal["video", "image", "gradient"] = "gradient"
    url: Optional[str] = None
    fallback_image: Optional[str] = None
    alt: Optional[str] = None


class Promotion(CamelModel):
    show: bool = False
    text: str = ""
    highlight_color: Literal["yellow", "red", "green", "blue", "purple"] = "yellow"
    expiry_date: Optional[datetime] = None


class HeroCreate(CamelModel):
    main_title: str = Field(..., min_length=1, max_length=200)
    brand_title: str = Field("Tramboory", min_length=1, max_length=100)
    subtitle: str = Field(..., min_length=1)
    primary_button: PrimaryButton
    secondary_button: SecondaryButton
    background_media: BackgroundMedia = Field(default_factory=BackgroundMedia)
    show_glitter: bool = True
    promotion: Optional[Promotion] = None
    is_active: bool = False


class HeroUpdate(CamelModel):
    main_title: Optional[str] = Field(None, min_length=1, max_length=200)
    brand_title: Optional[str] = Field(None, min_length=1, max_length=100)
    subtitle: Optional[str] = Field(None, min_length=1)
    primary_button: Optional[PrimaryButton] = None
    secondary_button: Optional[SecondaryButton] = None
    background_media: Optional[BackgroundMedia] = None
    show_glitter: Optional[bool] = None
    promotion: Optional[Promotion] = None
    is_active: Optional[bool] = None


class HeroOut(CamelModel):
    id: Optional[UUID] = None
    main_title: str
    brand_title: str
    subtitle: str
    primary_button: dict
    secondary_button: dict
    background_media: dict
    show_glitter: bool
    promotion: Optional[dict] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GalleryItemCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    type: MediaType
    src: str = Field(..., min_length=1, max_length=500)
    alt: str = Field(..., min_length=1, max_length=300)
    category: GalleryCategory
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    featured: bool = False
    active: bool = True
    order: Optional[int] = None


class GalleryItemUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    type: Optional[MediaType] = None
    src: Optional[str] = Field(None, min_length=1, max_length=500)
    alt: Optional[str] = Field(None, min_length=1, max_length=300)
    category: Optional[GalleryCategory] = None
    aspect_ratio: Optional[AspectRatio] = None
    featured: Optional[bool] = None
    active: Optional[bool] = None
    order: Optional[int] = None


class GalleryItemOut(CamelModel):
    id: UUID
    title: str
    description: str
    type: MediaType
    src: str
    alt: str
    category: GalleryCategory
    aspect_ratio: AspectRatio
    featured: bool
    active: bool
    order: int
    created_at: datetime
    updated_at: datetime


class CarouselCardCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    icon: str = Field("GiPartyPopper", min_length=1, max_length=100)
    emoji: str = Field("🎉", min_length=1, max_length=16)
    background_media: BackgroundMedia = Field(default_factory=BackgroundMedia)
    gradient_colors: str = Field("from-purple-500 to-purple-600", min_length=1, max_length=100)
    is_active: bool = True
    order: int = 0


class CarouselCardUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    icon: Optional[str] = Field(None, min_length=1, max_length=100)
    emoji: Optional[str] = Field(None, min_length=1, max_length=16)
    background_media: Optional[BackgroundMedia] = None
    gradient_colors: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None
    order: Optional[int] = None


class CarouselCardOut(CamelModel):
    id: UUID
    title: str
    description: str
    icon: str
    emoji: str
    background_media: dict
    gradient_colors: str
    is_active: bool
    order: int
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ContactSettingsUpdate(CamelModel):
    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    tagline: Optional[str] = Field(None, max_length=300)
    phones: Optional[List[dict]] = None
    emails: Optional[List[dict]] = None
    whatsapp: Optional[dict] = None
    address: Optional[dict] = None
    business_hours: Optional[List[dict]] = None
    social_media: Optional[dict] = None


class ContactSettingsOut(CamelModel):
    id: Optional[UUID] = None
    business_name: str
    tagline: Optional[str] = None
    phones: List[dict]
    emails: List[dict]
    whatsapp: dict
    address: dict
    business_hours: List[dict]
    social_media: dict
    last_updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


class ContactMessageCreate(CamelModel):
    """Contact form; required fields are checked by the service."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    event_type: Optional[str] = None
    event_date: Optional[str] = Field(None, max_length=40)
    guest_count: Optional[str] = None
    message: Optional[str] = None


class ContactMessageStatusUpdate(CamelModel):
    status: ContactMessageStatus


class ContactMessageOut(CamelModel):
    id: UUID
    name: str
    email: str
    phone: str
    event_type: ContactEventType
    event_date: Optional[str] = None
    guest_count: Optional[str] = None
    message: str
    status: ContactMessageStatus
    source: str
    created_at: datetime
