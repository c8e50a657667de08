"""Domain models for the Post/User demo service.

The shapes follow what the service needs, not what the upstream API returns:
``User.from_api`` renames and regroups the JSONPlaceholder fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class DomainModel(BaseModel):
    """Immutable base model; instances are shared through the cache."""

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }


class Post(DomainModel):
    """A blog post."""

    user_id: int | None = Field(default=None, alias="userId")
    id: int | None = None
    title: str | None = None
    body: str | None = None

    def is_valid(self) -> bool:
        return (
            self.user_id is not None
            and self.id is not None
            and self.title is not None
            and self.body is not None
        )

    @classmethod
    def from_api(cls, data: Any) -> Post:
        """Build from an upstream ``/posts`` document."""
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return cls.model_validate(data)


class Coordinates(DomainModel):
    lat: str | None = None
    lng: str | None = None


class Location(DomainModel):
    """Postal location; ``full_address`` joins street, suite and city."""

    full_address: str | None = None
    postal_code: str | None = None
    coordinates: Coordinates | None = None

    @classmethod
    def from_api(cls, address: dict[str, Any]) -> Location:
        parts = [address.get(k) for k in ("street", "suite", "city")]
        full_address = ", ".join(p for p in parts if p) or None
        geo = address.get("geo")
        return cls(
            full_address=full_address,
            postal_code=address.get("zipcode"),
            coordinates=Coordinates.model_validate(geo) if isinstance(geo, dict) else None,
        )


class Organization(DomainModel):
    name: str | None = None
    catch_phrase: str | None = Field(default=None, alias="catchPhrase")
    business: str | None = Field(default=None, alias="bs")


class User(DomainModel):
    """A registered user.

    ``location`` and ``organization`` are optional and do not affect validity.
    """

    user_id: int | None = None
    full_name: str | None = None
    username: str | None = None
    email: str | None = None
    location: Location | None = None
    phone_number: str | None = None
    website_url: str | None = None
    organization: Organization | None = None

    def is_valid(self) -> bool:
        return (
            self.user_id is not None
            and self.full_name is not None
            and self.username is not None
            and self.email is not None
            and self.phone_number is not None
            and self.website_url is not None
        )

    @property
    def display_name(self) -> str:
        return f"{self.full_name} (@{self.username})"

    @classmethod
    def from_api(cls, data: Any) -> User:
        """Build from an upstream ``/users`` document."""
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        address = data.get("address")
        company = data.get("company")
        return cls(
            user_id=data.get("id"),
            full_name=data.get("name"),
            username=data.get("username"),
            email=data.get("email"),
            location=Location.from_api(address) if isinstance(address, dict) else None,
            phone_number=data.get("phone"),
            website_url=data.get("website"),
            organization=(
                Organization.model_validate(company) if isinstance(company, dict) else None
            ),
        )
