"""BlogService — admin-authored posts with user comments."""

from __future__ import annotations

from bson import ObjectId

from config import MediaSettings
from errors import ForbiddenError, NotFoundError, ValidationError
from repositories.blog_repository import BlogRepository
from schemas.dto.requests.blog import CreateBlogRequest, UpdateBlogRequest
from schemas.models.blog import BlogDoc
from schemas.models.user import UserDoc
from shared.datetime_utils import Clock, utcnow
from shared.logging import get_logger

log = get_logger(__name__)

MAX_PAGE_SIZE = 100


class BlogService:
    def __init__(
        self,
        blogs: BlogRepository,
        media: MediaSettings,
        clock: Clock = utcnow,
    ) -> None:
        self._blogs = blogs
        self._media = media
        self._clock = clock

    async def list_blogs(self, page: int = 1, limit: int = 10) -> tuple[list[BlogDoc], int]:
        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")
        return await self._blogs.find_page(skip=(page - 1) * limit, limit=limit)

    async def get_blog(self, blog_id: ObjectId) -> BlogDoc:
        blog = await self._blogs.find_by_id(blog_id)
        if blog is None:
            raise NotFoundError("Blog post not found")
        return blog

    async def create_blog(self, author: UserDoc, data: CreateBlogRequest) -> BlogDoc:
        now = self._clock()
        fields = data.model_dump(mode="json", exclude_none=True)
        doc = {
            **fields,
            "thumbnail": fields.get("thumbnail") or self._media.default_blog_thumbnail or None,
            "author": author.id,
            "comments": [],
            "created_at": now,
            "updated_at": now,
        }
        blog = await self._blogs.create(doc)
        log.info("blog_created", blog_id=str(blog.id), user_id=str(author.id))
        return blog

    async def update_blog(self, blog_id: ObjectId, data: UpdateBlogRequest) -> BlogDoc:
        fields = data.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if not fields:
            raise ValidationError("Nothing to update")
        updated = await self._blogs.update_fields(blog_id, fields, self._clock())
        if updated is None:
            raise NotFoundError("Blog post not found")
        return updated

    async def delete_blog(self, blog_id: ObjectId) -> None:
        if not await self._blogs.delete(blog_id):
            raise NotFoundError("Blog post not found")
        log.info("blog_deleted", blog_id=str(blog_id))

    async def add_comment(self, user: UserDoc, blog_id: ObjectId, content: str) -> BlogDoc:
        content = content.strip()
        if not content:
            raise ValidationError("Comment must not be empty", field="content")
        blog = await self._blogs.add_comment(
            blog_id,
            {
                "_id": ObjectId(),
                "user": user.id,
                "content": content,
                "created_at": self._clock(),
            },
        )
        if blog is None:
            raise NotFoundError("Blog post not found")
        return blog

    async def delete_comment(
        self, user: UserDoc, blog_id: ObjectId, comment_id: ObjectId
    ) -> BlogDoc:
        """Comment author or admin."""
        blog = await self.get_blog(blog_id)
        target = next((c for c in blog.comments if c.id == comment_id), None)
        if target is None:
            raise NotFoundError("Comment not found")
        if not (user.is_admin or target.user == user.id):
            raise ForbiddenError("You are not allowed to delete this comment")
        if not await self._blogs.remove_comment(blog_id, comment_id):
            raise NotFoundError("Comment not found")
        return await self.get_blog(blog_id)
