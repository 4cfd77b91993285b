"""Tests for the field-group transforms and sanitize utilities."""

from __future__ import annotations

import pytest

from avert import transforms
from avert.utils.sanitize import WHITESPACE_RE, escape_regexp, sanitize_html


# ══════════════════════════════════════════════════════════════════════
# Sanitize utilities
# ══════════════════════════════════════════════════════════════════════


class TestSanitizeHtml:
    def test_strips_script_keeps_benign_tags(self):
        dirty = "<b>hello <i>world</i><script src=foo.js></script></b>"
        assert sanitize_html(dirty) == "<b>hello <i>world</i></b>"

    def test_script_content_dropped(self):
        assert sanitize_html("<b>hi</b><script>alert(document.cookie)</script>") == "<b>hi</b>"

    def test_style_content_dropped(self):
        assert sanitize_html("<style>body { display: none }</style>ok") == "ok"

    def test_unclosed_script_runs_to_end(self):
        assert sanitize_html("<p>ok</p><script>alert(1)") == "<p>ok</p>"

    def test_script_tag_case_and_spacing(self):
        assert sanitize_html('<SCRIPT type="text/javascript">x()</SCRIPT >y') == "y"

    def test_spliced_script_tags_dropped(self):
        assert sanitize_html("<scr<script></script>ipt>alert(1)</script>z") == "z"

    def test_other_disallowed_tags_keep_text(self):
        assert sanitize_html("<blink>look</blink>") == "look"

    def test_strips_event_handler_attributes(self):
        assert sanitize_html('<p onclick="steal()">hi</p>') == "<p>hi</p>"

    def test_drops_javascript_links(self):
        assert "javascript" not in sanitize_html('<a href="javascript:alert(1)">x</a>')

    def test_plain_text_untouched(self):
        assert sanitize_html("just text") == "just text"

    def test_strips_comments(self):
        assert sanitize_html("a<!-- hidden -->b") == "ab"


class TestWhitespacePattern:
    @pytest.mark.parametrize("value", [
        " ",
        "   ",
        "\t\n\r",
        "\x0b\x0c",
        "\xa0",
        "\u1680",
        "\u2000\u2005\u200a",
        "\u2028\u2029",
        "\u202f\u205f\u3000",
        "\ufeff",
    ])
    def test_whitespace_only_matches(self, value):
        assert WHITESPACE_RE.match(value)

    @pytest.mark.parametrize("value", ["", "a", " a ", "\u200b"])
    def test_other_values_do_not_match(self, value):
        assert not WHITESPACE_RE.match(value)


class TestEscapeRegexp:
    def test_dollar_sign(self):
        assert escape_regexp("$aad") == "\\$aad"

    def test_curly_brackets(self):
        assert escape_regexp("{a}") == "\\{a\\}"

    def test_all_metacharacters(self):
        assert escape_regexp("\\^$.*+?()[]{}|") == "\\\\\\^\\$\\.\\*\\+\\?\\(\\)\\[\\]\\{\\}\\|"

    def test_other_punctuation_left_alone(self):
        assert escape_regexp("a-b c#d&e") == "a-b c#d&e"


# ══════════════════════════════════════════════════════════════════════
# Field transforms
# ══════════════════════════════════════════════════════════════════════


def test_original_is_identity():
    fields = {"a": "<b>x</b>", "b": "$"}
    assert transforms.original(fields) is fields
    assert fields == {"a": "<b>x</b>", "b": "$"}


class TestSanitizeHtmlTransform:
    def test_sanitizes_every_string_value(self):
        fields = {"a": "<script></script>ok", "b": "<i>fine</i>"}
        assert transforms.sanitize_html(fields) == {"a": "ok", "b": "<i>fine</i>"}

    def test_non_string_values_untouched(self):
        fields = {"n": 5, "none": None}
        assert transforms.sanitize_html(fields) == {"n": 5, "none": None}

    def test_mutates_in_place(self):
        fields = {"a": "<script></script>"}
        result = transforms.sanitize_html(fields)
        assert result is fields


class TestRemoveWhitespace:
    def test_scenario_body(self):
        fields = {"a": "   ", "b": "    ", "c": "c"}
        assert transforms.remove_whitespace(fields) == {"c": "c"}

    def test_unicode_spaces_removed(self):
        fields = {"a": "\u3000\u2003", "b": "\t\n"}
        assert transforms.remove_whitespace(fields) == {}

    def test_empty_and_none_are_kept(self):
        fields = {"a": "", "b": None, "c": " c "}
        assert transforms.remove_whitespace(fields) == {"a": "", "b": None, "c": " c "}


class TestRemoveNonExistent:
    def test_scenario_query(self):
        fields = {"a": "", "b": "", "c": "c"}
        assert transforms.remove_non_existent(fields) == {"c": "c"}

    def test_none_removed(self):
        assert transforms.remove_non_existent({"a": None, "b": "b"}) == {"b": "b"}

    def test_falsy_non_empty_values_kept(self):
        fields = {"zero": "0", "int": 0, "false": False, "space": " "}
        assert transforms.remove_non_existent(fields) == fields


class TestDollarSign:
    def test_escape_scenario(self):
        fields = {"a": "$aad", "b": "$", "c": "BTC"}
        assert transforms.escape_dollar_sign(fields) == {"a": "\\$aad", "b": "\\$", "c": "BTC"}

    def test_escape_only_when_prefixed(self):
        fields = {"a": "price$", "b": "a$b"}
        assert transforms.escape_dollar_sign(fields) == {"a": "price$", "b": "a$b"}

    def test_escape_escapes_whole_value(self):
        assert transforms.escape_dollar_sign({"a": "$gt.1"}) == {"a": "\\$gt\\.1"}

    def test_remove(self):
        fields = {"a": "$ne", "b": "$", "c": "BTC"}
        assert transforms.remove_dollar_sign(fields) == {"c": "BTC"}

    def test_non_string_ignored(self):
        assert transforms.remove_dollar_sign({"a": 1, "b": None}) == {"a": 1, "b": None}


class TestCurlyBracket:
    def test_escape_leading_and_trailing(self):
        fields = {"a": "{a", "b": "b}", "c": "{c}", "d": "d{d}d"}
        assert transforms.escape_curly_bracket(fields) == {
            "a": "\\{a",
            "b": "b\\}",
            "c": "\\{c\\}",
            "d": "d{d}d",
        }

    def test_remove(self):
        fields = {"a": '{"$gt": ""}', "b": "x}", "c": "c"}
        assert transforms.remove_curly_bracket(fields) == {"c": "c"}


class TestRemoveIdempotence:
    @pytest.mark.parametrize("transform", [
        transforms.remove_whitespace,
        transforms.remove_non_existent,
        transforms.remove_dollar_sign,
        transforms.remove_curly_bracket,
    ])
    def test_second_application_changes_nothing(self, transform):
        fields = {
            "blank": "  ",
            "empty": "",
            "none": None,
            "dollar": "$where",
            "curly": "{x}",
            "plain": "value",
        }
        once = dict(transform(fields))
        twice = transform(dict(once))
        assert twice == once
