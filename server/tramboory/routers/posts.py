"""Scheduled post router and the publishing trigger."""

import hmac
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..core.dependencies import get_optional_user, require_roles
from ..core.exceptions import AuthenticationError, AuthorizationError, InternalServerError, ProblemDetailsException
from ..core.responses import success_response
from ..core.roles import UserRole
from ..models.post import PostStatus
from ..schemas.post import PostCreate, PostOut, PostUpdate, PublishResult
from ..services.post_service import PostService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/posts", tags=["posts"])

DB_DEPENDENCY = Depends(get_db)
ADMIN_DEPENDENCY = Depends(require_roles(UserRole.ADMIN))


async def require_publisher(
    cron_secret: Optional[str] = Header(None, alias="X-Cron-Secret"),
    user: Optional[dict] = Depends(get_optional_user),
) -> str:
    """
    Allow the publish run for admins or for a scheduler presenting the cron secret.

    Returns:
        Who triggered the run: the admin's user id or ``"cron"``
    """
    if cron_secret and settings.cron_secret and hmac.compare_digest(cron_secret, settings.cron_secret):
        return "cron"
    if user is None:
        raise AuthenticationError()
    if user["role"] != UserRole.ADMIN:
        raise AuthorizationError(required_roles=[UserRole.ADMIN.value])
    return user["user_id"]


@router.post("/publish")
async def publish_due_posts(
    triggered_by: str = Depends(require_publisher),
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    """Publish every scheduled post whose date has passed."""
    try:
        result = await PostService(db).publish_due_posts()
        logger.info(
            "Publish run triggered",
            extra={"triggered_by": triggered_by, "published": result["published"], "failed": result["failed"]},
        )
        return success_response(
            PublishResult.model_validate(result),
            message=f"{result['published']} publicaciones publicadas, {result['failed']} fallidas",
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error("Unexpected error in publish run", extra={"error": str(e)}, exc_info=True)
        raise InternalServerError() from e


@router.get("")
async def list_posts(
    status: Optional[PostStatus] = Query(None),
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    posts = await PostService(db).list_posts(status)
    return success_response([PostOut.model_validate(post) for post in posts])


@router.post("", status_code=201)
async def create_post(
    request: PostCreate,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    author = user.get("name") or user.get("email") or user["user_id"]
    post = await PostService(db).create_post(request, author=author)
    return success_response(PostOut.model_validate(post), status_code=201, message="Publicación programada exitosamente")


@router.get("/{post_id}")
async def get_post(
    post_id: UUID,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    post = await PostService(db).get_post_or_raise(post_id)
    return success_response(PostOut.model_validate(post))


@router.put("/{post_id}")
async def update_post(
    post_id: UUID,
    request: PostUpdate,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    post = await PostService(db).update_post(post_id, request)
    return success_response(PostOut.model_validate(post), message="Publicación actualizada exitosamente")


@router.delete("/{post_id}")
async def delete_post(
    post_id: UUID,
    user: dict = ADMIN_DEPENDENCY,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    await PostService(db).delete_post(post_id)
    return success_response(message="Publicación eliminada exitosamente")
