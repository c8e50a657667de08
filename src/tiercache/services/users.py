"""User use cases."""

from __future__ import annotations

from tiercache.domain.models import User
from tiercache.errors import NotFoundError
from tiercache.orchestrator import TieredCache

ALL_USERS_KEY = "all"


class UserService:
    """Get a user by ID or list all valid users."""

    def __init__(self, users: TieredCache, user_list: TieredCache):
        self.users = users
        self.user_list = user_list

    async def get_user(self, user_id: int) -> User:
        user: User = await self.users.get(user_id)
        if not user.is_valid():
            raise NotFoundError("User", user_id)
        return user

    async def get_all_users(self) -> list[User]:
        users: list[User] = await self.user_list.get(ALL_USERS_KEY)
        return [user for user in users if user.is_valid()]

    async def invalidate_user(self, user_id: int) -> None:
        await self.users.invalidate(user_id)
        await self.user_list.invalidate(ALL_USERS_KEY)
