"""Shared FastAPI dependencies for tiercache routers."""

from __future__ import annotations

from fastapi import Request

from tiercache.factory import Services
from tiercache.services.posts import PostService
from tiercache.services.users import UserService


def get_services(request: Request) -> Services:
    """Services wired during application startup."""
    services: Services = request.app.state.services
    return services


def get_post_service(request: Request) -> PostService:
    return get_services(request).posts


def get_user_service(request: Request) -> UserService:
    return get_services(request).users
