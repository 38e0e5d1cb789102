"""Unit tests for core.wide_event module."""

import pytest

from core.wide_event import (
    clear_wide_event,
    get_wide_event,
    init_wide_event,
    set_wide_event_field,
    set_wide_event_fields,
)


@pytest.mark.unit
class TestWideEventLifecycle:
    def test_init_returns_empty_dict(self):
        assert init_wide_event() == {}

    def test_set_and_get_fields(self):
        init_wide_event()
        set_wide_event_fields(user_id="u1", checkin_status="checked-in")
        event = get_wide_event()
        assert event["user_id"] == "u1"
        assert event["checkin_status"] == "checked-in"

    def test_single_field(self):
        init_wide_event()
        set_wide_event_field("badge_count", 2)
        assert get_wide_event()["badge_count"] == 2

    def test_overwrites_existing_key(self):
        init_wide_event()
        set_wide_event_fields(key="old")
        set_wide_event_fields(key="new")
        assert get_wide_event()["key"] == "new"

    def test_clear_resets_to_empty(self):
        init_wide_event()
        set_wide_event_fields(user_id="u1")
        clear_wide_event()
        assert get_wide_event() == {}

    def test_direct_dict_mutation_reflected_in_get(self):
        event = init_wide_event()
        event["http_method"] = "POST"
        assert get_wide_event()["http_method"] == "POST"
