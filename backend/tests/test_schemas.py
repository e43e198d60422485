"""Unit tests validating Pydantic schema constraints."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.schemas import (
    ConfirmRequest,
    ContactStatusRead,
    JoinRoomRequest,
    ParsedCourseRead,
    UserProfileUpdate,
)


def test_profile_update_strips_whitespace():
    update = UserProfileUpdate(nickname="  Ada  ", wechat=" ada_wx ")
    assert (update.nickname, update.wechat) == ("Ada", "ada_wx")


def test_profile_update_rejects_blank_nickname():
    with pytest.raises(ValidationError):
        UserProfileUpdate(nickname="   ")


def test_schemas_accept_camel_case_and_field_names():
    by_alias = UserProfileUpdate.model_validate({"autoShareContact": True, "avatarUrl": "x"})
    by_name = UserProfileUpdate(auto_share_contact=True, avatar_url="x")
    assert by_alias == by_name


def test_parsed_course_day_must_be_iso_weekday():
    with pytest.raises(ValidationError):
        ParsedCourseRead(name="Chem", day_of_week=0, start_time="09:00", end_time="10:00")


def test_confirm_requires_at_least_one_course():
    with pytest.raises(ValidationError):
        ConfirmRequest(user_id="u", semester="2026-fall", school="Rutgers", courses=[])


def test_join_request_strips_index():
    assert JoinRoomRequest(index=" 09214 ", year=2026, term=9).index == "09214"


def test_contact_status_dumps_camel_case():
    dumped = ContactStatusRead(status="pending", is_sender=True, request_id=7).model_dump(
        by_alias=True, exclude_none=True
    )
    assert dumped == {"status": "pending", "isSender": True, "requestId": 7}
