"""Domain models."""

from tiercache.domain.models import Coordinates, Location, Organization, Post, User

__all__ = ["Coordinates", "Location", "Organization", "Post", "User"]
