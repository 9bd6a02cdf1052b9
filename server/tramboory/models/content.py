"""Public site content: hero, gallery, carousel, contact settings and messages."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base
from .base import TimestampMixin, UUIDPrimaryKeyMixin


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


class GalleryCategory(str, Enum):
    SUPERHEROES = "superheroes"
    PRINCESAS = "princesas"
    TEMATICA = "tematica"
    DEPORTES = "deportes"
    CUMPLEANOS = "cumpleanos"
    OTROS = "otros"


class AspectRatio(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    SQUARE = "square"


class ContactEventType(str, Enum):
    CUMPLEANOS = "cumpleanos"
    TEMATICA = "tematica"
    BAUTIZO = "bautizo"
    COMUNION = "comunion"
    GRADUACION = "graduacion"
    OTRO = "otro"


class ContactMessageStatus(str, Enum):
    NUEVO = "nuevo"
    CONTACTADO = "contactado"
    COTIZADO = "cotizado"
    CERRADO = "cerrado"


GUEST_COUNT_BUCKETS = ("1-20", "21-40", "41-60", "61-80", "81-100", "100+")


DEFAULT_HERO = {
    "mainTitle": "Celebra con",
    "brandTitle": "Tramboory",
    "subtitle": (
        "Experiencias mágicas diseñadas para crear recuerdos inolvidables "
        "en el cumpleaños de tus pequeños en Zapopan."
    ),
    "primaryButton": {"text": "Reserva tu fiesta", "action": "signup"},
    "secondaryButton": {"text": "Ver Galería", "href": "/galeria"},
    "backgroundMedia": {"type": "video", "url": "/assets/video/background.webm"},
    "showGlitter": True,
    "isActive": True,
    "promotion": {"show": False, "text": "", "highlightColor": "yellow"},
}

DEFAULT_CONTACT_SETTINGS = {
    "businessName": "Tramboory",
    "tagline": "El mejor salón de fiestas infantiles en Zapopan",
    "phones": [{"number": "33 1234 5678", "label": "Principal", "isPrimary": True}],
    "emails": [
        {"email": "hola@tramboory.com", "label": "General", "isPrimary": True},
        {"email": "eventos@tramboory.com", "label": "Eventos", "isPrimary": False},
    ],
    "whatsapp": {
        "number": "523312345678",
        "message": "Hola! Me gustaría información sobre los servicios de Tramboory para organizar una fiesta.",
        "enabled": True,
    },
    "address": {
        "street": "P.º Solares 1639",
        "neighborhood": "Solares Residencial",
        "city": "Zapopan",
        "state": "Jalisco",
        "zipCode": "45019",
        "references": ["En Solares Residencial", "Ubicado en Solares Lake"],
    },
    "businessHours": [
        {"day": "monday", "isOpen": True, "openTime": "09:00", "closeTime": "19:00"},
        {"day": "tuesday", "isOpen": True, "openTime": "09:00", "closeTime": "19:00"},
        {"day": "wednesday", "isOpen": True, "openTime": "09:00", "closeTime": "19:00"},
        {"day": "thursday", "isOpen": True, "openTime": "09:00", "closeTime": "19:00"},
        {"day": "friday", "isOpen": True, "openTime": "09:00", "closeTime": "19:00"},
        {"day": "saturday", "isOpen": True, "openTime": "09:00", "closeTime": "17:00"},
        {"day": "sunday", "isOpen": False, "notes": "Solo eventos programados"},
    ],
    "socialMedia": {
        "instagram": "https://instagram.com/tramboory",
        "facebook": "https://facebook.com/tramboory",
    },
}


class HeroContent(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Landing page hero; at most one is active."""

    __tablename__ = "hero_contents"

    main_title: Mapped[str] = mapped_column(String(200), nullable=False)
    brand_title: Mapped[str] = mapped_column(String(100), nullable=False, default="Tramboory")
    subtitle: Mapped[str] = mapped_column(Text, nullable=False)
    # {text, href, action: signup|dashboard|custom}
    primary_button: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # {text, href}
    secondary_button: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    # {type: video|image|gradient, url, fallbackImage, alt}
    background_media: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    show_glitter: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # {show, text, highlightColor, expiryDate}
    promotion: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<HeroContent(id={self.id}, main_title='{self.main_title}', active={self.is_active})>"


class GalleryItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "gallery_items"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[MediaType] = mapped_column(String(10), nullable=False)
    src: Mapped[str] = mapped_column(String(500), nullable=False)
    alt: Mapped[str] = mapped_column(String(300), nullable=False)
    category: Mapped[GalleryCategory] = mapped_column(String(20), nullable=False, index=True)
    aspect_ratio: Mapped[AspectRatio] = mapped_column(String(20), nullable=False, default=AspectRatio.LANDSCAPE)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<GalleryItem(id={self.id}, title='{self.title}', order={self.order})>"


class CarouselCard(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "carousel_cards"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(100), nullable=False, default="GiPartyPopper")
    emoji: Mapped[str] = mapped_column(String(16), nullable=False, default="🎉")
    background_media: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    gradient_colors: Mapped[str] = mapped_column(String(100), nullable=False, default="from-purple-500 to-purple-600")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<CarouselCard(id={self.id}, title='{self.title}', order={self.order})>"


class ContactSettings(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Contact page details; a single active row."""

    __tablename__ = "contact_settings"

    business_name: Mapped[str] = mapped_column(String(200), nullable=False, default="Tramboory")
    tagline: Mapped[str | None] = mapped_column(String(300), nullable=True)
    phones: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    emails: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    whatsapp: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    address: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    business_hours: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    social_media: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_updated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<ContactSettings(id={self.id}, business_name='{self.business_name}')>"


class ContactMessage(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Enquiry sent from the public contact form."""

    __tablename__ = "contact_messages"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    event_type: Mapped[ContactEventType] = mapped_column(String(20), nullable=False, index=True)
    event_date: Mapped[str | None] = mapped_column(String(40), nullable=True)
    guest_count: Mapped[str | None] = mapped_column(String(10), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ContactMessageStatus] = mapped_column(
        String(20), nullable=False, default=ContactMessageStatus.NUEVO, index=True
    )
    source: Mapped[str] = mapped_column(String(40), nullable=False, default="website")
    ip_address: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<ContactMessage(id={self.id}, email='{self.email}', status='{self.status}')>"
