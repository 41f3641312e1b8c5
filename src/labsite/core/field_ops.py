"""Field schema, coercion, validation, and change tracking for content records.

Per-kind schemas live in ``labsite.core.schemas``. The operations here work on
a working copy of a record dict; the caller hands the edited copy to the
store's ``update`` to commit it.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from labsite.core.colors import is_hex_color

if TYPE_CHECKING:
    from rich.console import Console


class FieldType(Enum):
    """Supported field types for record fields."""

    STRING = "string"
    INT = "int"
    BOOL = "bool"
    STRING_LIST = "string_list"
    COLOR = "color"
    URL = "url"


@dataclass
class FieldDef:
    """Schema definition for a single field."""

    field_type: FieldType
    description: str
    choices: list[str] | None = None
    min_val: int | None = None
    max_val: int | None = None
    required: bool = False
    derived: bool = False  # maintained by the store; not settable from the CLI


@dataclass
class ChangeResult:
    """Result of a field change operation."""

    record_id: str
    field: str
    old_value: Any
    new_value: Any
    action: str  # "set", "unset", "add", "remove", "replace", "modify"


# Site-relative paths ("/assets/x.jpg") and mailto links are accepted too
_URL_SCHEMES = ("http", "https", "mailto")
_GRADIENT_PATTERN = re.compile(r"^linear-gradient\(.+\)$")


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def coerce_value(value_str: str, field_def: FieldDef) -> Any:
    """Coerce a string value to the field's expected type.

    Args:
        value_str: Raw string from CLI input.
        field_def: Schema definition for the target field.

    Returns:
        Coerced value.

    Raises:
        ValueError: If the value cannot be coerced.
    """
    ft = field_def.field_type

    if ft == FieldType.STRING:
        return value_str

    if ft in (FieldType.COLOR, FieldType.URL):
        return value_str.strip()

    if ft == FieldType.INT:
        try:
            return int(value_str)
        except ValueError as e:
            raise ValueError(f"Expected integer, got: {value_str!r}") from e

    if ft == FieldType.BOOL:
        lower = value_str.lower()
        if lower in ("true", "yes", "1", "on"):
            return True
        if lower in ("false", "no", "0", "off"):
            return False
        raise ValueError(f"Expected boolean (true/false/yes/no/1/0/on/off), got: {value_str!r}")

    if ft == FieldType.STRING_LIST:
        # JSON array first, so items may contain commas
        stripped = value_str.strip()
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
                if isinstance(parsed, list):
                    return [str(item) for item in parsed]
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in value_str.split(",") if item.strip()]

    raise ValueError(f"Unknown field type: {ft}")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def is_url(value: str) -> bool:
    """Whether *value* looks like an absolute http(s)/mailto URL or a site path."""
    if value.startswith("/"):
        return True
    parsed = urlparse(value)
    if parsed.scheme == "mailto":
        return bool(parsed.path)
    return parsed.scheme in _URL_SCHEMES and bool(parsed.netloc)


def validate_field(field: str, value: Any, schema: dict[str, FieldDef]) -> list[str]:
    """Validate a field value against a schema.

    Args:
        field: Field name.
        value: Already-coerced value.
        schema: Field schema of the record's kind.

    Returns:
        List of error messages (empty if valid).
    """
    field_def = schema.get(field)
    if field_def is None:
        return [f"Unknown field: {field!r}"]

    errors: list[str] = []
    ft = field_def.field_type

    if field_def.required and value in (None, "", []):
        errors.append(f"{field}: a value is required.")
        return errors

    if ft == FieldType.INT and isinstance(value, int) and not isinstance(value, bool):
        if field_def.min_val is not None and value < field_def.min_val:
            errors.append(f"{field}: value {value} is below minimum {field_def.min_val}.")
        if field_def.max_val is not None and value > field_def.max_val:
            errors.append(f"{field}: value {value} is above maximum {field_def.max_val}.")

    if ft == FieldType.COLOR and isinstance(value, str) and value:
        if not (is_hex_color(value) or _GRADIENT_PATTERN.match(value)):
            errors.append(f"{field}: {value!r} is not a hex color or linear-gradient().")

    if ft == FieldType.URL and isinstance(value, str) and value and not is_url(value):
        errors.append(f"{field}: {value!r} is not a valid URL.")

    if field_def.choices is not None:
        values = value if isinstance(value, list) else [value]
        for item in values:
            if isinstance(item, str) and item not in field_def.choices:
                errors.append(f"{field}: {item!r} is not a valid choice. Options: {', '.join(field_def.choices)}.")

    return errors


def validate_record(record: dict[str, Any], schema: dict[str, FieldDef]) -> list[str]:
    """Validate a whole record: required fields present, known fields valid.

    Fields the schema does not know are left alone so older data passes.
    """
    errors: list[str] = []
    for name, field_def in schema.items():
        if field_def.required and record.get(name) in (None, "", []):
            errors.append(f"{name}: a value is required.")
    for name, value in record.items():
        if name in schema and value not in (None, "", []):
            errors.extend(validate_field(name, value, schema))
    return errors


# ---------------------------------------------------------------------------
# Field operations on a record copy
# ---------------------------------------------------------------------------


def set_field(
    record: dict[str, Any],
    field: str,
    value: Any,
    schema: dict[str, FieldDef] | None = None,
) -> ChangeResult:
    """Set a field on *record* in place.

    Args:
        record: Working copy of a record.
        field: Field name.
        value: Already-coerced value.
        schema: Optional schema for validation before the change.

    Raises:
        ValueError: If schema is provided and validation fails.
    """
    if schema is not None:
        errors = validate_field(field, value, schema)
        if errors:
            raise ValueError("; ".join(errors))
    old_value = record.get(field)
    record[field] = value
    return ChangeResult(record_id=str(record.get("id", "")), field=field, old_value=old_value, new_value=value, action="set")


def unset_field(
    record: dict[str, Any],
    field: str,
    schema: dict[str, FieldDef] | None = None,
) -> ChangeResult:
    """Remove a field from *record* in place.

    Raises:
        ValueError: If the schema marks the field as required.
    """
    if schema is not None and field in schema and schema[field].required:
        raise ValueError(f"{field}: a value is required and cannot be removed.")
    old_value = record.pop(field, None)
    return ChangeResult(record_id=str(record.get("id", "")), field=field, old_value=old_value, new_value=None, action="unset")


def modify_list_field(
    record: dict[str, Any],
    field: str,
    *,
    add: list[str] | None = None,
    remove: list[str] | None = None,
    replace: list[str] | None = None,
    schema: dict[str, FieldDef],
) -> ChangeResult:
    """Add, remove, or replace items in a list field.

    Args:
        record: Working copy of a record.
        field: Field name (must be a STRING_LIST field).
        add: Items to add (appended, deduped).
        remove: Items to remove.
        replace: Complete replacement list (ignores add/remove).
        schema: Field schema of the record's kind.

    Raises:
        ValueError: If field is not a list type or an item is not a valid choice.
    """
    field_def = schema.get(field)
    if field_def is None:
        raise ValueError(f"Unknown field: {field!r}")
    if field_def.field_type != FieldType.STRING_LIST:
        raise ValueError(f"Field {field!r} is {field_def.field_type.value}, not a list.")

    old_value = list(record.get(field) or [])

    if replace is not None:
        new_value = list(dict.fromkeys(replace))
    else:
        new_value = list(old_value)
        if add:
            seen = set(new_value)
            for item in add:
                if item not in seen:
                    new_value.append(item)
                    seen.add(item)
        if remove:
            remove_set = set(remove)
            new_value = [item for item in new_value if item not in remove_set]

    errors = validate_field(field, new_value, schema)
    if errors:
        raise ValueError("; ".join(errors))
    record[field] = new_value

    if replace is not None:
        action = "replace"
    elif add and not remove:
        action = "add"
    elif remove and not add:
        action = "remove"
    else:
        action = "modify"
    return ChangeResult(record_id=str(record.get("id", "")), field=field, old_value=old_value, new_value=new_value, action=action)


# ---------------------------------------------------------------------------
# CLI helpers
# ---------------------------------------------------------------------------


def print_change(result: ChangeResult, console: Console) -> None:
    """Print a ChangeResult as a formatted diff."""
    console.print(f"[cyan]{result.record_id}[/cyan]: {result.field}")
    if result.old_value is not None:
        console.print(f"  old: {result.old_value}")
    if result.new_value is not None:
        console.print(f"  new: {result.new_value}")
    elif result.action == "unset":
        console.print("  [dim](removed)[/dim]")
