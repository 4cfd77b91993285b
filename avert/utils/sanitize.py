"""Shared sanitization utilities used by the field transforms."""

from __future__ import annotations

import re

import bleach

# Whitespace-only values. Covers:
# ASCII whitespace (\t \n \v \f \r, space), no-break space (\xa0),
# Ogham space mark (\u1680), Mongolian vowel separator (\u180e),
# en quad through hair space (\u2000-\u200a),
# line/paragraph separators (\u2028-\u2029),
# narrow no-break space (\u202f), medium mathematical space (\u205f),
# ideographic space (\u3000), BOM / zero-width no-break space (\ufeff).
WHITESPACE_RE = re.compile(
    r"^[\t\n\x0b\x0c\r \xa0\u1680\u180e\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+$"
)

_REGEX_SPECIAL_CHARS_RE = re.compile(r"[\\^$.*+?()\[\]{}|]")

# script/style elements with their content; an unclosed element runs to the end
_SCRIPT_STYLE_RE = re.compile(
    r"<(script|style)\b[^>]*>.*?(?:</\1\s*>|\Z)", re.IGNORECASE | re.DOTALL
)

_ALLOWED_TAGS: frozenset[str] = frozenset({
    "a", "abbr", "acronym", "address", "b", "bdo", "big", "blockquote", "br",
    "caption", "center", "cite", "code", "col", "colgroup", "dd", "del", "dfn",
    "div", "dl", "dt", "em", "font", "h1", "h2", "h3", "h4", "h5", "h6", "hr",
    "i", "ins", "kbd", "li", "ol", "p", "pre", "q", "s", "samp", "small",
    "span", "strike", "strong", "sub", "sup", "table", "tbody", "td", "tfoot",
    "th", "thead", "tr", "tt", "u", "ul", "var",
})
_ALLOWED_ATTRIBUTES: dict[str, list[str]] = {
    "*": ["title", "lang", "dir"],
    "a": ["href", "title"],
    "td": ["colspan", "rowspan"],
    "th": ["colspan", "rowspan", "scope"],
}
_ALLOWED_PROTOCOLS: frozenset[str] = frozenset({"http", "https", "mailto"})


def sanitize_html(value: str) -> str:
    """Strip scripts, event handlers and unknown tags, keep benign markup.

    ``script`` and ``style`` elements are dropped together with their content.
    Other disallowed tags are removed rather than escaped; any text they
    wrapped is kept as inert, entity-escaped text.
    """
    # Repeat until stable so removing one element cannot splice together another
    previous = None
    while previous != value:
        previous = value
        value = _SCRIPT_STYLE_RE.sub("", value)
    return bleach.clean(
        value,
        tags=_ALLOWED_TAGS,
        attributes=_ALLOWED_ATTRIBUTES,
        protocols=_ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )


def escape_regexp(value: str) -> str:
    r"""Backslash-escape regex metacharacters (``\ ^ $ . * + ? ( ) [ ] { } |``)."""
    return _REGEX_SPECIAL_CHARS_RE.sub(r"\\\g<0>", value)
