"""Post endpoints.

- GET    /api/posts/{post_id}        - Single post (cached)
- GET    /api/posts                  - All valid posts (cached listing)
- DELETE /api/posts/{post_id}/cache  - Evict a post after an upstream change
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from tiercache.api.deps import get_post_service
from tiercache.domain.models import Post
from tiercache.services.posts import PostService

router = APIRouter(prefix="/api/posts", tags=["posts"])


class PostResponse(BaseModel):
    """JSON shape returned to clients."""

    model_config = {"populate_by_name": True}

    user_id: int = Field(alias="userId")
    id: int
    title: str
    body: str

    @classmethod
    def from_post(cls, post: Post) -> PostResponse:
        return cls(user_id=post.user_id, id=post.id, title=post.title, body=post.body)


PostServiceDep = Annotated[PostService, Depends(get_post_service)]


@router.get("/{post_id}", response_model=PostResponse, response_model_by_alias=True)
async def get_post(post_id: int, service: PostServiceDep) -> PostResponse:
    post = await service.get_post(post_id)
    return PostResponse.from_post(post)


@router.get("", response_model=list[PostResponse], response_model_by_alias=True)
async def get_all_posts(service: PostServiceDep) -> list[PostResponse]:
    posts = await service.get_all_posts()
    return [PostResponse.from_post(post) for post in posts]


@router.delete("/{post_id}/cache", status_code=204)
async def invalidate_post(post_id: int, service: PostServiceDep) -> Response:
    await service.invalidate_post(post_id)
    return Response(status_code=204)
