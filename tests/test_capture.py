"""Tests for capturing response values into variables."""

import pytest

from hrun.capture import capture, extract_value, stringify
from hrun.models import CaptureRule

# ── capture ───────────────────────────────────────────────────────────────


class TestCapture:
    def test_simple_paths(self):
        body = '{"token": "abc123", "userId": 42}'
        rules = [CaptureRule("token", "token"), CaptureRule("userId", "userId")]
        assert capture(body, rules) == {"token": "abc123", "userId": "42"}

    def test_nested_paths(self):
        body = '{"user": {"id": 1, "name": "John"}, "address": {"city": "NYC"}}'
        rules = [
            CaptureRule("userId", "user.id"),
            CaptureRule("userName", "user.name"),
            CaptureRule("city", "address.city"),
        ]
        assert capture(body, rules) == {"userId": "1", "userName": "John", "city": "NYC"}

    def test_indexed_paths(self):
        body = '{"items":[{"id":1},{"id":2}]}'
        rules = [CaptureRule("firstId", "items.0.id"), CaptureRule("secondId", "items[1].id")]
        assert capture(body, rules) == {"firstId": "1", "secondId": "2"}

    def test_missing_path_skipped_others_kept(self):
        body = '{"token": "abc123"}'
        rules = [CaptureRule("missing", "doesNotExist"), CaptureRule("token", "token")]
        assert capture(body, rules) == {"token": "abc123"}

    def test_invalid_json_returns_empty(self):
        assert capture("not json", [CaptureRule("token", "token")]) == {}

    def test_empty_body_returns_empty(self):
        assert capture("", [CaptureRule("token", "token")]) == {}

    def test_no_rules(self):
        assert capture('{"token": "abc"}', []) == {}

    def test_duplicate_names_last_wins(self):
        body = '{"a": "first", "b": "second"}'
        rules = [CaptureRule("v", "a"), CaptureRule("v", "b")]
        assert capture(body, rules) == {"v": "second"}

    def test_root_marker_ignored(self):
        body = '{"jwt_token": "t", "user": {"id": 9}}'
        rules = [CaptureRule("token", "$.jwt_token"), CaptureRule("id", "$.user.id")]
        assert capture(body, rules) == {"token": "t", "id": "9"}

    def test_top_level_array(self):
        assert capture('[{"id": 5}]', [CaptureRule("id", "0.id")]) == {"id": "5"}

    def test_keys_are_case_sensitive(self):
        assert capture('{"Token": "x"}', [CaptureRule("t", "token")]) == {}


# ── extract_value ─────────────────────────────────────────────────────────


class TestExtractValue:
    data = {"items": [{"id": 1}, {"id": 2}], "meta": {"0": "zero"}, "n": 3}

    def test_index_out_of_range(self):
        assert extract_value(self.data, "items.5.id") == (False, None)

    def test_key_on_list_fails(self):
        assert extract_value(self.data, "items.id") == (False, None)

    def test_descend_into_scalar_fails(self):
        assert extract_value(self.data, "n.value") == (False, None)

    def test_numeric_key_on_object(self):
        assert extract_value(self.data, "meta.0") == (True, "zero")

    def test_whole_container(self):
        assert extract_value(self.data, "items.1") == (True, {"id": 2})

    def test_empty_path(self):
        assert extract_value(self.data, "") == (False, None)

    def test_null_value_is_found(self):
        assert extract_value({"v": None}, "v") == (True, None)


# ── stringify ─────────────────────────────────────────────────────────────


class TestStringify:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("raw text", "raw text"),
            (7, "7"),
            (19.99, "19.99"),
            (1.0, "1"),
            (1e3, "1000"),
            (1e-7, "0.0000001"),
            (-2.5e-5, "-0.000025"),
            (True, "true"),
            (False, "false"),
            (None, ""),
            ({"a": [1, 2]}, '{"a":[1,2]}'),
            ([1, "x"], '[1,"x"]'),
        ],
    )
    def test_rendering(self, value, expected):
        assert stringify(value) == expected

    def test_numbers_through_capture(self):
        body = '{"a": 1.0, "b": 1e3, "c": 1e-7}'
        rules = [CaptureRule("a", "a"), CaptureRule("b", "b"), CaptureRule("c", "c")]
        assert capture(body, rules) == {"a": "1", "b": "1000", "c": "0.0000001"}

    def test_boolean_through_capture(self):
        assert capture('{"active": true}', [CaptureRule("a", "active")]) == {"a": "true"}
