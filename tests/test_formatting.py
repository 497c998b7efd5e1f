"""Tests for display helpers."""

from datetime import UTC, datetime

import pytest

from conftest import NOW, iso
from heartbeat_tools.formatting import (
    paginate,
    parse_timestamp,
    percent,
    pick_fields,
    round_half_up,
    strip_html,
    summarize_user,
    time_ago,
    timestamp_key,
)
from heartbeat_tools.models import User


class TestStripHtml:
    def test_removes_tags(self):
        assert strip_html("<p>Hello <b>world</b></p>") == "Hello world"

    def test_truncates_with_ellipsis(self):
        result = strip_html("<p>" + "x" * 200 + "</p>")
        assert result == "x" * 150 + "..."

    def test_short_text_is_not_marked(self):
        assert strip_html("x" * 150) == "x" * 150

    def test_none(self):
        assert strip_html(None) == ""

    def test_unclosed_bracket_is_kept(self):
        assert strip_html("a < b") == "a < b"


class TestTimestamps:
    def test_z_suffix(self):
        assert parse_timestamp("2026-10-17T12:00:00Z") == NOW

    def test_naive_is_utc(self):
        assert parse_timestamp("2026-10-17T12:00:00") == NOW

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_unparseable_is_absent(self, value):
        assert parse_timestamp(value) is None

    def test_unparseable_sorts_oldest(self):
        assert timestamp_key("garbage") < timestamp_key(iso(days=10_000))

    @pytest.mark.parametrize(
        ("kwargs", "expected"),
        [
            ({"minutes": 5}, "5m ago"),
            ({"minutes": 59}, "59m ago"),
            ({"hours": 3}, "3h ago"),
            ({"hours": 23, "minutes": 59}, "23h ago"),
            ({"days": 2}, "2d ago"),
        ],
    )
    def test_time_ago(self, kwargs, expected):
        assert time_ago(iso(**kwargs), NOW) == expected

    def test_time_ago_unknown(self):
        assert time_ago(None, NOW) == "unknown"
        assert time_ago("not a date", NOW) == "unknown"

    def test_time_ago_defaults_to_wall_clock(self):
        assert time_ago(datetime.now(UTC).isoformat()) == "0m ago"


class TestNumbers:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(66.666) == 67
        assert round_half_up(33.3) == 33

    def test_percent(self):
        assert percent(1, 2) == 50
        assert percent(2, 3) == 67

    def test_percent_of_nothing_is_undefined(self):
        assert percent(3, 0) is None


class TestSummarizeUser:
    @pytest.fixture
    def ada(self):
        return User.model_validate(
            {
                "id": "u1",
                "name": "Ada",
                "email": "ada@example.com",
                "roleID": "member",
                "groupIDs": ["g1", "g2"],
                "completedLessons": [{"lessonID": "L1"}],
                "bio": "Engineer",
                "linkedin": "https://linkedin.com/in/ada",
            }
        )

    def test_summary(self, ada):
        assert summarize_user(ada) == {
            "id": "u1",
            "name": "Ada",
            "email": "ada@example.com",
            "roleID": "member",
            "status": "",
            "groups": 2,
            "lessons_completed": 1,
        }

    def test_full_adds_profile(self, ada):
        full = summarize_user(ada, "full")
        assert full["bio"] == "Engineer"
        assert full["groupIDs"] == ["g1", "g2"]
        assert full["linkedin"] == "https://linkedin.com/in/ada"
        assert full["twitter"] == ""

    def test_pick_fields(self, ada):
        assert pick_fields(summarize_user(ada), ["name", "groups", "missing"]) == {
            "name": "Ada",
            "groups": 2,
        }
        assert pick_fields({"a": 1}, None) == {"a": 1}


class TestPaginate:
    def test_middle_page(self):
        result = paginate(list(range(23)), offset=10, limit=5)
        assert result["page"] == [10, 11, 12, 13, 14]
        assert result["meta"] == {
            "total": 23,
            "count": 5,
            "offset": 10,
            "has_more": True,
            "next_offset": 15,
        }

    def test_last_page_has_no_next_offset(self):
        result = paginate(list(range(23)), offset=20, limit=5)
        assert result["meta"]["count"] == 3
        assert result["meta"]["has_more"] is False
        assert "next_offset" not in result["meta"]

    def test_offset_past_end(self):
        result = paginate([1, 2], offset=5, limit=5)
        assert result["page"] == []
        assert result["meta"]["has_more"] is False
