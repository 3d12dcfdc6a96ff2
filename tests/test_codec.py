"""Tests for preference blob serialization."""

import pytest

from mailprefs.codec import decode_mapping, encode_mapping, load_mapping
from mailprefs.exceptions import PrefDecodeError


class TestEncode:
    def test_one_line_flow_mapping(self):
        blob = encode_mapping({"INBOX": {"b": 2}})
        assert "\n" not in blob
        assert decode_mapping(blob) == {"INBOX": {"b": 2}}

    def test_empty(self):
        assert decode_mapping(encode_mapping({})) == {}

    def test_keeps_insertion_order(self):
        data = {"Zeta": {"b": 1}, "Alpha": {"d": 0}}
        assert list(decode_mapping(encode_mapping(data))) == ["Zeta", "Alpha"]

    def test_awkward_mailbox_names(self):
        data = {
            "INBOX.Sent Items": {"b": 1},
            "a: b": {"d": 1},
            "#shared/x": {},
            "123": {"b": 3},
            "yes": {"b": 4},
            "Ünïcode/Ordner": {"b": 5},
        }
        assert decode_mapping(encode_mapping(data)) == data


class TestDecode:
    @pytest.mark.parametrize("blob", [
        "just a string",
        "3.14",
        "- a\n- b",
        "{a: [1, 2}",
        "!!python/name:os.system",
        "{a: !!binary aGVsbG8=}",
        "{a: 2020-01-01 10:00:00}",
    ])
    def test_rejects(self, blob):
        with pytest.raises(PrefDecodeError):
            decode_mapping(blob)

    def test_nested_lists_allowed(self):
        assert decode_mapping("{a: [1, x, null, true]}") == {"a": [1, "x", None, True]}


class TestLoadMapping:
    @pytest.mark.parametrize("value", [None, "", 0, ["a"], {"a": 1}, "oops", "{x: !!set {a}}"])
    def test_unusable_is_empty(self, value):
        assert load_mapping(value) == {}

    def test_valid(self):
        assert load_mapping("{A: {b: 1}}") == {"A": {"b": 1}}
