"""Shared validation helpers for service settings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, get_args, get_origin

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def _require_items(items: list[str], *, allow_empty: bool) -> list[str]:
    if not allow_empty and not items:
        raise ValueError("String list value must not be empty")
    # Drop duplicates, keep first occurrence order.
    return list(dict.fromkeys(items))


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a string list from an environment variable or config value.

    Accepts a list of strings, a JSON array string ('["a","b"]') or a
    comma-separated string ('a,b'). Items are stripped and deduplicated.

    Raises ValueError for blank strings and malformed JSON, and for empty
    lists unless allow_empty is set.
    """
    if isinstance(value, list):
        return _require_items([item.strip() for item in value if item.strip()], allow_empty=allow_empty)

    stripped = value.strip()
    if not stripped:
        raise ValueError("String list value must not be empty")

    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
            raise ValueError("JSON value must be an array of strings")
        return _require_items([item.strip() for item in parsed if item.strip()], allow_empty=allow_empty)

    return _require_items([item.strip() for item in stripped.split(",") if item.strip()], allow_empty=allow_empty)


def _is_string_list(field: FieldInfo) -> bool:
    return get_origin(field.annotation) is list and get_args(field.annotation) == (str,)


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that hands ``list[str]`` fields to validators as raw strings.

    pydantic-settings JSON-decodes list-typed env values before validators
    run, which rejects the comma-separated form. Skipping that step lets
    parse_string_list accept both formats.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if isinstance(value, str) and _is_string_list(field):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
