"""Application use cases built on tiered lookups."""

from tiercache.services.posts import ALL_POSTS_KEY, PostService
from tiercache.services.users import ALL_USERS_KEY, UserService

__all__ = ["ALL_POSTS_KEY", "ALL_USERS_KEY", "PostService", "UserService"]
