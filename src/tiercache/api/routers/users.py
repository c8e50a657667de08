"""User endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from tiercache.api.deps import get_user_service
from tiercache.domain.models import User
from tiercache.services.users import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


class UserResponse(BaseModel):
    id: int
    name: str
    username: str
    email: str
    phone: str
    website: str

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls(
            id=user.user_id,
            name=user.full_name,
            username=user.username,
            email=user.email,
            phone=user.phone_number,
            website=user.website_url,
        )


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, service: UserServiceDep) -> UserResponse:
    user = await service.get_user(user_id)
    return UserResponse.from_user(user)


@router.get("", response_model=list[UserResponse])
async def get_all_users(service: UserServiceDep) -> list[UserResponse]:
    users = await service.get_all_users()
    return [UserResponse.from_user(user) for user in users]
