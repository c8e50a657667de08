"""Tests for the post and user domain models."""

from __future__ import annotations

import pydantic
import pytest

from tiercache.domain.models import Location, Organization, Post, User

USER_1 = {
    "id": 1,
    "name": "Leanne Graham",
    "username": "Bret",
    "email": "Sincere@april.biz",
    "address": {
        "street": "Kulas Light",
        "suite": "Apt. 556",
        "city": "Gwenborough",
        "zipcode": "92998-3874",
        "geo": {"lat": "-37.3159", "lng": "81.1496"},
    },
    "phone": "1-770-736-8031 x56442",
    "website": "hildegard.org",
    "company": {
        "name": "Romaguera-Crona",
        "catchPhrase": "Multi-layered client-server neural-net",
        "bs": "harness real-time e-markets",
    },
}


class TestPost:
    def test_from_api(self) -> None:
        post = Post.from_api({"userId": 1, "id": 2, "title": "T", "body": "B"})
        assert post.user_id == 1
        assert post.id == 2
        assert post.is_valid()

    def test_missing_field_is_invalid(self) -> None:
        post = Post.from_api({"userId": 1, "id": 2, "title": "T"})
        assert post.body is None
        assert not post.is_valid()

    def test_unknown_fields_ignored(self) -> None:
        post = Post.from_api({"userId": 1, "id": 2, "title": "T", "body": "B", "extra": 1})
        assert post.is_valid()

    def test_non_object_rejected(self) -> None:
        with pytest.raises(TypeError):
            Post.from_api([])

    def test_wrong_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            Post.from_api({"id": "not-a-number"})

    def test_frozen(self) -> None:
        post = Post(user_id=1, id=1, title="T", body="B")
        with pytest.raises(pydantic.ValidationError):
            post.title = "changed"  # type: ignore[misc]

    def test_json_round_trip_uses_aliases(self) -> None:
        post = Post(user_id=1, id=1, title="T", body="B")
        assert post.model_dump(by_alias=True)["userId"] == 1
        assert Post.model_validate(post.model_dump(mode="json")) == post


class TestUser:
    def test_from_api_renames_fields(self) -> None:
        user = User.from_api(USER_1)

        assert user.user_id == 1
        assert user.full_name == "Leanne Graham"
        assert user.phone_number == "1-770-736-8031 x56442"
        assert user.website_url == "hildegard.org"
        assert user.is_valid()

    def test_location(self) -> None:
        location = User.from_api(USER_1).location

        assert location is not None
        assert location.full_address == "Kulas Light, Apt. 556, Gwenborough"
        assert location.postal_code == "92998-3874"
        assert location.coordinates is not None
        assert location.coordinates.lat == "-37.3159"

    def test_organization(self) -> None:
        organization = User.from_api(USER_1).organization

        assert organization == Organization(
            name="Romaguera-Crona",
            catch_phrase="Multi-layered client-server neural-net",
            business="harness real-time e-markets",
        )

    def test_display_name(self) -> None:
        assert User.from_api(USER_1).display_name == "Leanne Graham (@Bret)"

    def test_optional_parts_do_not_affect_validity(self) -> None:
        data = {k: v for k, v in USER_1.items() if k not in ("address", "company")}
        user = User.from_api(data)
        assert user.location is None
        assert user.organization is None
        assert user.is_valid()

    def test_missing_email_is_invalid(self) -> None:
        data = {k: v for k, v in USER_1.items() if k != "email"}
        assert not User.from_api(data).is_valid()

    def test_partial_address(self) -> None:
        location = Location.from_api({"city": "Gwenborough"})
        assert location.full_address == "Gwenborough"
        assert location.coordinates is None

    def test_cache_round_trip(self) -> None:
        """The JSON dump stored in Redis validates back into an equal user."""
        user = User.from_api(USER_1)
        assert User.model_validate(user.model_dump(mode="json")) == user
