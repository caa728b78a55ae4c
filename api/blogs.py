"""
Blog endpoints — /api/blogs.

Posts are written by admins; any signed-in user may comment.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_blog_service, get_current_user, object_id, require_admin
from schemas.dto.requests.blog import CreateBlogRequest, UpdateBlogRequest
from schemas.dto.requests.recipe import CommentRequest
from schemas.dto.responses.blog import BlogListResponse, BlogResponse
from schemas.dto.responses.common import MessageResponse, PaginationMeta
from schemas.models.user import UserDoc
from services.blog_service import BlogService

router = APIRouter(prefix="/blogs", tags=["blogs"])


@router.get("", response_model=BlogListResponse)
async def list_blogs(
    page: int = 1,
    limit: int = 10,
    blogs: BlogService = Depends(get_blog_service),
) -> BlogListResponse:
    items, total = await blogs.list_blogs(page=page, limit=limit)
    return BlogListResponse(
        items=[BlogResponse.from_doc(b) for b in items],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.get("/{blog_id}", response_model=BlogResponse)
async def get_blog(
    blog_id: str,
    blogs: BlogService = Depends(get_blog_service),
) -> BlogResponse:
    return BlogResponse.from_doc(await blogs.get_blog(object_id(blog_id)))


@router.post("", response_model=BlogResponse, status_code=201)
async def create_blog(
    body: CreateBlogRequest,
    admin: UserDoc = Depends(require_admin),
    blogs: BlogService = Depends(get_blog_service),
) -> BlogResponse:
    return BlogResponse.from_doc(await blogs.create_blog(admin, body))


@router.put("/{blog_id}", response_model=BlogResponse)
async def update_blog(
    blog_id: str,
    body: UpdateBlogRequest,
    admin: UserDoc = Depends(require_admin),
    blogs: BlogService = Depends(get_blog_service),
) -> BlogResponse:
    return BlogResponse.from_doc(await blogs.update_blog(object_id(blog_id), body))


@router.delete("/{blog_id}", response_model=MessageResponse)
async def delete_blog(
    blog_id: str,
    admin: UserDoc = Depends(require_admin),
    blogs: BlogService = Depends(get_blog_service),
) -> MessageResponse:
    await blogs.delete_blog(object_id(blog_id))
    return MessageResponse(message="Blog post deleted")


@router.post("/{blog_id}/comment", response_model=BlogResponse, status_code=201)
async def add_comment(
    blog_id: str,
    body: CommentRequest,
    user: UserDoc = Depends(get_current_user),
    blogs: BlogService = Depends(get_blog_service),
) -> BlogResponse:
    return BlogResponse.from_doc(await blogs.add_comment(user, object_id(blog_id), body.content))


@router.delete("/{blog_id}/comment/{comment_id}", response_model=BlogResponse)
async def delete_comment(
    blog_id: str,
    comment_id: str,
    user: UserDoc = Depends(get_current_user),
    blogs: BlogService = Depends(get_blog_service),
) -> BlogResponse:
    blog = await blogs.delete_comment(
        user, object_id(blog_id), object_id(comment_id, field="comment_id")
    )
    return BlogResponse.from_doc(blog)
