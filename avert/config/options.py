"""Avert option schema, defaults and per-route resolution."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Final, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, model_validator
from pydantic.alias_generators import to_camel

from avert.transforms import Transform, original

# Route configuration value that bypasses avert for that route entirely.
# ``False`` is accepted as the same sentinel.
DISABLED: Final = "disabled"

# Accepted spellings of the payload options, camelCase first
_AVERT_PAYLOAD_KEYS = ("avertPayload", "avertBody", "avert_payload")
_PAYLOAD_SANITIZER_KEYS = ("payloadCustomSanitizer", "bodyCustomSanitizer", "payload_custom_sanitizer")


class SpecialCharPolicy(str, Enum):
    """What to do with ``$``-prefixed or ``{...}``-shaped values.

    Ordered REMOVE > ESCAPE > NONE: when both the remove and the escape flag are
    set, the value is removed.
    """

    NONE = "none"
    ESCAPE = "escape"
    REMOVE = "remove"

    @classmethod
    def from_flags(cls, remove: bool, escape: bool) -> SpecialCharPolicy:
        if remove:
            return cls.REMOVE
        if escape:
            return cls.ESCAPE
        return cls.NONE


class AvertOptions(BaseModel):
    """Avert configuration.

    Accepts snake_case field names and their camelCase aliases
    (``removeWhitespace``...). Unknown keys are rejected, flags must be real
    booleans, and ``avertBody``/``bodyCustomSanitizer`` may stand in for the
    payload options but not alongside another spelling of the same option.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Field-level passes, applied to query, params and body alike
    remove_whitespace: StrictBool = False
    remove_non_existent: StrictBool = False
    remove_dollar_sign: StrictBool = False
    escape_dollar_sign: StrictBool = False
    remove_curly_bracket: StrictBool = False
    escape_curly_bracket: StrictBool = False

    # HTML sanitization per field group
    avert_query: StrictBool = False
    avert_params: StrictBool = False
    avert_payload: StrictBool = Field(default=False, validation_alias=AliasChoices(*_AVERT_PAYLOAD_KEYS))

    # Custom sanitizers: dict -> dict
    generic_custom_sanitizer: Transform = Field(default=original)
    query_custom_sanitizer: Transform = Field(default=original)
    param_custom_sanitizer: Transform = Field(default=original)
    payload_custom_sanitizer: Transform = Field(
        default=original,
        validation_alias=AliasChoices(*_PAYLOAD_SANITIZER_KEYS),
    )

    @model_validator(mode="before")
    @classmethod
    def _single_payload_spelling(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            for keys in (_AVERT_PAYLOAD_KEYS, _PAYLOAD_SANITIZER_KEYS):
                given = [key for key in keys if key in data]
                if len(given) > 1:
                    raise ValueError(f"{' and '.join(given)} set the same option; use one")
        return data

    @property
    def dollar_sign_policy(self) -> SpecialCharPolicy:
        return SpecialCharPolicy.from_flags(self.remove_dollar_sign, self.escape_dollar_sign)

    @property
    def curly_bracket_policy(self) -> SpecialCharPolicy:
        return SpecialCharPolicy.from_flags(self.remove_curly_bracket, self.escape_curly_bracket)

    def flags(self) -> dict[str, bool]:
        """Boolean options only, keyed by field name."""
        return {
            name: value
            for name, value in self
            if isinstance(value, bool)
        }


RouteConfig = Union[AvertOptions, Mapping[str, Any], str, bool, None]


def load_options(data: AvertOptions | Mapping[str, Any] | None = None) -> AvertOptions:
    """Validate a mapping of options. Raises ``pydantic.ValidationError``."""
    if isinstance(data, AvertOptions):
        return data
    return AvertOptions.model_validate(dict(data or {}))


def is_disabled(route_config: RouteConfig) -> bool:
    return route_config is False or (isinstance(route_config, str) and route_config == DISABLED)


def resolve_options(global_options: AvertOptions, route_config: RouteConfig = None) -> AvertOptions | None:
    """Merge a route's override over the global options.

    Returns None when the route is disabled. Only the keys the route set
    explicitly take precedence; neither input is modified.
    """
    if is_disabled(route_config):
        return None
    if route_config is None or route_config is True:
        return global_options.model_copy()
    if isinstance(route_config, str):
        raise ValueError(f"Unknown route configuration {route_config!r}")

    override = load_options(route_config)
    update = {name: getattr(override, name) for name in override.model_fields_set}
    return global_options.model_copy(update=update)
