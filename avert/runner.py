"""The avert pipeline: ordered transform passes over one field group."""

from __future__ import annotations

from typing import NamedTuple

from avert import transforms
from avert.config.options import AvertOptions, SpecialCharPolicy
from avert.transforms import FieldGroup


class FieldGroupKind(NamedTuple):
    """Option names that apply to one kind of field group."""

    enable_flag: str
    custom_sanitizer: str


QUERY = FieldGroupKind("avert_query", "query_custom_sanitizer")
PARAMS = FieldGroupKind("avert_params", "param_custom_sanitizer")
PAYLOAD = FieldGroupKind("avert_payload", "payload_custom_sanitizer")

_DOLLAR_SIGN_PASSES = {
    SpecialCharPolicy.REMOVE: transforms.remove_dollar_sign,
    SpecialCharPolicy.ESCAPE: transforms.escape_dollar_sign,
}
_CURLY_BRACKET_PASSES = {
    SpecialCharPolicy.REMOVE: transforms.remove_curly_bracket,
    SpecialCharPolicy.ESCAPE: transforms.escape_curly_bracket,
}


def avert(
    fields: FieldGroup | None,
    options: AvertOptions,
    enable_flag: str,
    custom_sanitizer: str,
) -> FieldGroup | None:
    """Cleanse one field group according to resolved options.

    Passes run in a fixed order:

    1. HTML sanitization, if ``options.<enable_flag>`` is set
    2. ``generic_custom_sanitizer``
    3. ``options.<custom_sanitizer>``
    4. whitespace-only removal
    5. empty/None removal
    6. dollar-sign policy (remove beats escape)
    7. curly-bracket policy (remove beats escape)

    Empty or missing groups are returned as-is. The group is mutated in place;
    the caller hands over ownership for the duration of the call.
    """
    if not fields:
        return fields

    cleansed = fields
    if getattr(options, enable_flag):
        cleansed = transforms.sanitize_html(cleansed)

    cleansed = options.generic_custom_sanitizer(cleansed)
    cleansed = getattr(options, custom_sanitizer)(cleansed)

    if options.remove_whitespace:
        cleansed = transforms.remove_whitespace(cleansed)
    if options.remove_non_existent:
        cleansed = transforms.remove_non_existent(cleansed)

    dollar_pass = _DOLLAR_SIGN_PASSES.get(options.dollar_sign_policy)
    if dollar_pass is not None:
        cleansed = dollar_pass(cleansed)

    curly_pass = _CURLY_BRACKET_PASSES.get(options.curly_bracket_policy)
    if curly_pass is not None:
        cleansed = curly_pass(cleansed)

    return cleansed
