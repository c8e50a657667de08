"""Post use cases.

The service only knows the two cached lookups it is given; whether they are
backed by memory, Redis or the upstream API is decided by the composition
root (``tiercache.factory``).
"""

from __future__ import annotations

import logging

from tiercache.domain.models import Post
from tiercache.errors import NotFoundError
from tiercache.orchestrator import TieredCache

logger = logging.getLogger(__name__)

# Key under which the full post listing is cached
ALL_POSTS_KEY = "all"


class PostService:
    """Get a post by ID or list all posts.

    Business rules:
    - A post must be valid (all fields present); invalid posts are reported
      as not found
    - Listings only contain valid posts
    """

    def __init__(self, posts: TieredCache, post_list: TieredCache):
        self.posts = posts
        self.post_list = post_list

    async def get_post(self, post_id: int) -> Post:
        post: Post = await self.posts.get(post_id)
        if not post.is_valid():
            logger.info(f"Post {post_id} failed validation")
            raise NotFoundError("Post", post_id)
        return post

    async def get_all_posts(self) -> list[Post]:
        posts: list[Post] = await self.post_list.get(ALL_POSTS_KEY)
        return [post for post in posts if post.is_valid()]

    async def invalidate_post(self, post_id: int) -> None:
        """Evict a post and the listing that contains it."""
        await self.posts.invalidate(post_id)
        await self.post_list.invalidate(ALL_POSTS_KEY)
