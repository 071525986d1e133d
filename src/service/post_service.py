"""
Listing service
Post CRUD, feed and search, likes, views, scheduling and publishing
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import BadRequestError, ForbiddenError, NotFoundError
from src.models import Category, Like, Message, Payment, Post, PostImage, User, View, utcnow
from src.models.enums import PostStatus
from src.schemas import CreatePostRequest, UpdatePostRequest
from src.service.dto import post_dto
from src.service.upload_service import UploadService

logger = logging.getLogger(__name__)

PUBLISHABLE_STATUSES = (PostStatus.DRAFT.value, PostStatus.SCHEDULED.value)


def escape_like(text: str) -> str:
    """Make % and _ match literally in a LIKE pattern"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


async def delete_post_rows(session: AsyncSession, post_ids: Sequence[int]) -> None:
    """
    Remove posts and the rows hanging off them; messages keep their text but lose the link

    The caller commits.
    """
    if not post_ids:
        return
    await session.execute(delete(Like).where(Like.post_id.in_(post_ids)))
    await session.execute(delete(View).where(View.post_id.in_(post_ids)))
    await session.execute(delete(Payment).where(Payment.post_id.in_(post_ids)))
    await session.execute(delete(PostImage).where(PostImage.post_id.in_(post_ids)))
    await session.execute(
        update(Message).where(Message.post_id.in_(post_ids)).values(post_id=None)
    )
    await session.execute(delete(Post).where(Post.id.in_(post_ids)))


class PostService:
    """
    Post service

    Image and profile picture URLs are stored as blob paths and signed on the way out
    """

    def __init__(self, config: Any, upload_service: UploadService):
        self.config = config
        self.upload_service = upload_service

    def present(self, post: Post, is_liked: Optional[bool] = None) -> Dict[str, Any]:
        data = post_dto(post, is_liked)
        data["images"] = self.upload_service.transform_image_urls(data["images"])
        data["user"] = self.upload_service.transform_user_profile_url(data["user"])
        return data

    async def _load_post(self, session: AsyncSession, post_id: int) -> Post:
        post = await session.scalar(
            select(Post)
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def _load_owned_post(self, session: AsyncSession, post_id: int, user_id: int, action: str) -> Post:
        post = await self._load_post(session, post_id)
        if post.user_id != user_id:
            raise ForbiddenError(f"You can only {action} your own posts")
        return post

    async def _ensure_category(self, session: AsyncSession, category_id: int) -> None:
        if await session.get(Category, category_id) is None:
            raise NotFoundError("Category not found")

    async def create_post(
        self, session: AsyncSession, user_id: int, data: CreatePostRequest
    ) -> Dict[str, Any]:
        """
        Create a draft post with its images

        Raises:
            NotFoundError: Unknown user or category
        """
        if await session.get(User, user_id) is None:
            raise NotFoundError("User not found")
        await self._ensure_category(session, data.category_id)

        post = Post(
            user_id=user_id,
            category_id=data.category_id,
            title=data.title,
            description=data.description,
            price=data.price,
            location=data.location,
            contact_number=data.contact_number,
            brand=data.brand,
            email_address=data.email_address,
            delivery_method=data.delivery_method,
            gps_location=data.gps_location,
            status=PostStatus.DRAFT.value,
        )
        post.images = [
            PostImage(image_url=image.image_url, display_order=image.display_order)
            for image in data.images
        ]
        session.add(post)
        await session.commit()

        logger.info(f"Post {post.id} created by user {user_id}")
        return self.present(await self._load_post(session, post.id))

    async def get_post(
        self,
        session: AsyncSession,
        post_id: int,
        viewer: Optional[User] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Post detail; every call records a view, anonymous when there is no viewer
        """
        await self._load_post(session, post_id)

        session.add(
            View(
                post_id=post_id,
                user_id=viewer.id if viewer else None,
                ip_address=ip_address,
                user_agent=(user_agent or "")[:500] or None,
            )
        )
        await session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(view_count=Post.view_count + 1)
            .execution_options(synchronize_session=False)
        )

        is_liked = None
        if viewer is not None:
            is_liked = (
                await session.scalar(
                    select(Like.id).where(Like.post_id == post_id, Like.user_id == viewer.id)
                )
                is not None
            )
        await session.commit()

        return self.present(await self._load_post(session, post_id), is_liked)

    async def update_post(
        self, session: AsyncSession, post_id: int, user_id: int, data: UpdatePostRequest
    ) -> Dict[str, Any]:
        post = await self._load_owned_post(session, post_id, user_id, "update")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "category_id" in changes:
            await self._ensure_category(session, changes["category_id"])
        for field, value in changes.items():
            setattr(post, field, value)

        await session.commit()
        return self.present(await self._load_post(session, post_id))

    async def delete_post(self, session: AsyncSession, post_id: int, user_id: int) -> None:
        await self._load_owned_post(session, post_id, user_id, "delete")
        await delete_post_rows(session, [post_id])
        await session.commit()
        logger.info(f"Post {post_id} deleted by user {user_id}")

    async def _page(self, session: AsyncSession, query, page: int, limit: int):
        total = await session.scalar(
            select(func.count()).select_from(query.order_by(None).subquery())
        )
        posts = (
            await session.scalars(query.offset((page - 1) * limit).limit(limit))
        ).all()
        return [self.present(post) for post in posts], total or 0

    async def get_feed(
        self,
        session: AsyncSession,
        page: int = 1,
        limit: int = 20,
        category_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ):
        """
        Active posts, most recently published first

        Returns:
            (items, total)
        """
        query = select(Post).where(Post.status == PostStatus.ACTIVE.value)
        if category_id is not None:
            query = query.where(Post.category_id == category_id)
        if user_id is not None:
            query = query.where(Post.user_id == user_id)
        query = query.order_by(Post.published_at.desc(), Post.id.desc())
        return await self._page(session, query, page, limit)

    async def search_posts(
        self,
        session: AsyncSession,
        query_text: str,
        page: int = 1,
        limit: int = 20,
        category_id: Optional[int] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        location: Optional[str] = None,
    ):
        """
        Case-insensitive match on title, description or brand of active posts

        Returns:
            (items, total)
        """
        pattern = f"%{escape_like(query_text)}%"
        query = select(Post).where(
            Post.status == PostStatus.ACTIVE.value,
            or_(
                Post.title.ilike(pattern, escape="\\"),
                Post.description.ilike(pattern, escape="\\"),
                Post.brand.ilike(pattern, escape="\\"),
            ),
        )
        if category_id is not None:
            query = query.where(Post.category_id == category_id)
        if min_price is not None:
            query = query.where(Post.price >= min_price)
        if max_price is not None:
            query = query.where(Post.price <= max_price)
        if location:
            query = query.where(Post.location.ilike(f"%{escape_like(location)}%", escape="\\"))
        query = query.order_by(Post.published_at.desc(), Post.id.desc())
        return await self._page(session, query, page, limit)

    async def get_user_posts(
        self, session: AsyncSession, user_id: int, status: Optional[PostStatus] = None
    ) -> List[Dict[str, Any]]:
        if await session.get(User, user_id) is None:
            raise NotFoundError("User not found")

        query = select(Post).where(Post.user_id == user_id)
        if status is not None:
            query = query.where(Post.status == status.value)
        posts = (await session.scalars(query.order_by(Post.created_at.desc(), Post.id.desc()))).all()
        return [self.present(post) for post in posts]

    async def toggle_like(self, session: AsyncSession, post_id: int, user_id: int) -> Dict[str, Any]:
        """
        Like the post, or remove an existing like

        Returns:
            {liked, likeCount}
        """
        await self._load_post(session, post_id)

        existing = await session.scalar(
            select(Like).where(Like.post_id == post_id, Like.user_id == user_id)
        )
        if existing is not None:
            await session.delete(existing)
            await session.execute(
                update(Post)
                .where(Post.id == post_id, Post.like_count > 0)
                .values(like_count=Post.like_count - 1)
                .execution_options(synchronize_session=False)
            )
            liked = False
        else:
            session.add(Like(post_id=post_id, user_id=user_id))
            try:
                await session.flush()
            except IntegrityError:
                # a concurrent request liked it first
                await session.rollback()
                liked = True
            else:
                await session.execute(
                    update(Post)
                    .where(Post.id == post_id)
                    .values(like_count=Post.like_count + 1)
                    .execution_options(synchronize_session=False)
                )
                liked = True
        await session.commit()

        like_count = await session.scalar(select(Post.like_count).where(Post.id == post_id))
        return {"liked": liked, "likeCount": like_count}

    async def schedule_post(
        self, session: AsyncSession, post_id: int, user_id: int, scheduled_time: datetime
    ) -> Dict[str, Any]:
        """
        Raises:
            BadRequestError: Time not in the future, or post already live
        """
        post = await self._load_owned_post(session, post_id, user_id, "schedule")

        scheduled_time = to_naive_utc(scheduled_time)
        if scheduled_time <= utcnow():
            raise BadRequestError("Scheduled time must be in the future")
        if post.status not in PUBLISHABLE_STATUSES:
            raise BadRequestError(f"Cannot schedule a post with status {post.status}")

        post.status = PostStatus.SCHEDULED.value
        post.scheduled_publish_time = scheduled_time
        await session.commit()
        return self.present(await self._load_post(session, post_id))

    def _activate(self, post: Post, visibility_days: int) -> None:
        now = utcnow()
        post.status = PostStatus.ACTIVE.value
        post.published_at = now
        post.expires_at = now + timedelta(days=visibility_days)

    async def publish_post(self, session: AsyncSession, post_id: int, user_id: int) -> Dict[str, Any]:
        post = await self._load_owned_post(session, post_id, user_id, "publish")
        if post.status not in PUBLISHABLE_STATUSES:
            raise BadRequestError("Only draft or scheduled posts can be published")

        self._activate(post, self.config.post_visibility_days)
        await session.commit()
        logger.info(f"Post {post_id} published, expires {post.expires_at.isoformat()}")
        return self.present(await self._load_post(session, post_id))

    async def publish_due_posts(self, session: AsyncSession) -> int:
        """Activate scheduled posts whose publish time has passed"""
        due = (
            await session.scalars(
                select(Post).where(
                    Post.status == PostStatus.SCHEDULED.value,
                    Post.scheduled_publish_time <= utcnow(),
                )
            )
        ).all()
        for post in due:
            self._activate(post, self.config.post_visibility_days)
        await session.commit()
        if due:
            logger.info(f"Published {len(due)} scheduled posts")
        return len(due)

    async def expire_posts(self, session: AsyncSession) -> int:
        """Move active posts past their expiry date to Expired"""
        result = await session.execute(
            update(Post)
            .where(Post.status == PostStatus.ACTIVE.value, Post.expires_at <= utcnow())
            .values(status=PostStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        if result.rowcount:
            logger.info(f"Expired {result.rowcount} posts")
        return result.rowcount
