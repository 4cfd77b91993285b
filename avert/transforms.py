"""Field-group transforms applied by the avert pipeline.

Every transform takes a field group (field name -> value), mutates it in place
and returns it. Keys are snapshotted before iteration so deleting a field never
disturbs the loop. Values that are not strings are left alone; the only
exception is ``remove_non_existent``, which also drops ``None``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from avert.utils.sanitize import WHITESPACE_RE, escape_regexp, sanitize_html as _sanitize_value

FieldGroup = dict[str, Any]
Transform = Callable[[FieldGroup], FieldGroup]


def _is_dollar_prefixed(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("$")


def _is_curly_bracketed(value: Any) -> bool:
    return isinstance(value, str) and (value.startswith("{") or value.endswith("}"))


def original(fields: FieldGroup) -> FieldGroup:
    """Identity transform; default for every custom sanitizer slot."""
    return fields


def sanitize_html(fields: FieldGroup) -> FieldGroup:
    """Run every string value through the HTML sanitizer."""
    for key in list(fields):
        value = fields[key]
        if isinstance(value, str):
            fields[key] = _sanitize_value(value)
    return fields


def remove_whitespace(fields: FieldGroup) -> FieldGroup:
    """Drop fields whose value is made only of whitespace."""
    for key in list(fields):
        value = fields[key]
        if isinstance(value, str) and WHITESPACE_RE.match(value):
            del fields[key]
    return fields


def remove_non_existent(fields: FieldGroup) -> FieldGroup:
    """Drop empty-string and ``None`` fields."""
    for key in list(fields):
        if fields[key] == "" or fields[key] is None:
            del fields[key]
    return fields


def escape_dollar_sign(fields: FieldGroup) -> FieldGroup:
    """Regex-escape values starting with ``$`` (query operator injection)."""
    for key in list(fields):
        if _is_dollar_prefixed(fields[key]):
            fields[key] = escape_regexp(fields[key])
    return fields


def remove_dollar_sign(fields: FieldGroup) -> FieldGroup:
    """Drop fields whose value starts with ``$``."""
    for key in list(fields):
        if _is_dollar_prefixed(fields[key]):
            del fields[key]
    return fields


def escape_curly_bracket(fields: FieldGroup) -> FieldGroup:
    """Regex-escape values starting with ``{`` or ending with ``}``."""
    for key in list(fields):
        if _is_curly_bracketed(fields[key]):
            fields[key] = escape_regexp(fields[key])
    return fields


def remove_curly_bracket(fields: FieldGroup) -> FieldGroup:
    """Drop fields whose value starts with ``{`` or ends with ``}``."""
    for key in list(fields):
        if _is_curly_bracketed(fields[key]):
            del fields[key]
    return fields
