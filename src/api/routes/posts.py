"""
Listing routes
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_post_service
from src.core.auth import get_current_user, optional_auth
from src.core.responses import paginated_response, success_response
from src.middleware.rate_limit import create_limit, get_real_client_ip, read_limit
from src.models import User
from src.models.engine import get_db
from src.models.enums import PostStatus
from src.schemas import CreatePostRequest, SchedulePostRequest, UpdatePostRequest
from src.service.post_service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", status_code=status.HTTP_201_CREATED)
@create_limit
async def create_post(
    request: Request,
    body: CreatePostRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    post = await post_service.create_post(db, current_user.id, body)
    return success_response(post, "Post created successfully")


@router.get("/feed")
@read_limit
async def get_feed(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category_id: Optional[int] = Query(None, alias="categoryId", gt=0),
    user_id: Optional[int] = Query(None, alias="userId", gt=0),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    """Active listings, newest first"""
    items, total = await post_service.get_feed(db, page, limit, category_id, user_id)
    return paginated_response(items, total, page, limit)


@router.get("/search")
@read_limit
async def search_posts(
    request: Request,
    q: str = Query(..., min_length=1, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category_id: Optional[int] = Query(None, alias="categoryId", gt=0),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    location: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    items, total = await post_service.search_posts(
        db, q, page, limit, category_id, min_price, max_price, location
    )
    return paginated_response(items, total, page, limit)


@router.get("/user/{user_id}")
async def get_user_posts(
    user_id: int,
    post_status: Optional[PostStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    return success_response(await post_service.get_user_posts(db, user_id, post_status))


@router.get("/{post_id}")
async def get_post(
    post_id: int,
    request: Request,
    viewer: Optional[User] = Depends(optional_auth),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    post = await post_service.get_post(
        db,
        post_id,
        viewer=viewer,
        ip_address=get_real_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    return success_response(post)


@router.put("/{post_id}")
async def update_post(
    post_id: int,
    body: UpdatePostRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    post = await post_service.update_post(db, post_id, current_user.id, body)
    return success_response(post, "Post updated successfully")


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    await post_service.delete_post(db, post_id, current_user.id)
    return success_response(None, "Post deleted successfully")


@router.post("/{post_id}/like")
async def toggle_like(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    result = await post_service.toggle_like(db, post_id, current_user.id)
    return success_response(result, "Post liked" if result["liked"] else "Post unliked")


@router.post("/{post_id}/schedule")
async def schedule_post(
    post_id: int,
    body: SchedulePostRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    post = await post_service.schedule_post(db, post_id, current_user.id, body.scheduled_time)
    return success_response(post, "Post scheduled successfully")


@router.post("/{post_id}/publish")
async def publish_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    post_service: PostService = Depends(get_post_service),
):
    post = await post_service.publish_post(db, post_id, current_user.id)
    return success_response(post, "Post published successfully")
