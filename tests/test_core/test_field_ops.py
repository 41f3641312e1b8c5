"""Tests for labsite.core.field_ops and the record schemas."""

import pytest
from rich.console import Console

from labsite.core.field_ops import (
    ChangeResult,
    FieldDef,
    FieldType,
    coerce_value,
    is_url,
    modify_list_field,
    print_change,
    set_field,
    unset_field,
    validate_field,
    validate_record,
)
from labsite.core.schemas import SCHEMAS, schema_for
from labsite.seed import load_seed

# ---------------------------------------------------------------------------
# Mock schema for testing (independent of any record kind)
# ---------------------------------------------------------------------------

MOCK_SCHEMA: dict[str, FieldDef] = {
    "title": FieldDef(FieldType.STRING, "Title", required=True),
    "year": FieldDef(FieldType.INT, "Year", min_val=1900, max_val=2100),
    "open": FieldDef(FieldType.BOOL, "Open"),
    "tags": FieldDef(FieldType.STRING_LIST, "Tags"),
    "color": FieldDef(FieldType.COLOR, "Color"),
    "link": FieldDef(FieldType.URL, "Link"),
    "status": FieldDef(FieldType.STRING, "Status", choices=["ongoing", "completed"]),
    "labels": FieldDef(FieldType.STRING_LIST, "Labels", choices=["a", "b"]),
}


# ---------------------------------------------------------------------------
# coerce_value
# ---------------------------------------------------------------------------


class TestCoerceValue:
    def test_string(self):
        assert coerce_value("  spaced  ", MOCK_SCHEMA["title"]) == "  spaced  "

    def test_color_and_url_are_stripped(self):
        assert coerce_value(" #a8f0a8 ", MOCK_SCHEMA["color"]) == "#a8f0a8"
        assert coerce_value(" /assets/x.png", MOCK_SCHEMA["link"]) == "/assets/x.png"

    def test_int(self):
        assert coerce_value("2024", MOCK_SCHEMA["year"]) == 2024

    def test_int_invalid(self):
        with pytest.raises(ValueError, match="Expected integer"):
            coerce_value("soon", MOCK_SCHEMA["year"])

    @pytest.mark.parametrize("raw,expected", [("true", True), ("Yes", True), ("1", True), ("off", False), ("NO", False)])
    def test_bool(self, raw, expected):
        assert coerce_value(raw, MOCK_SCHEMA["open"]) is expected

    def test_bool_invalid(self):
        with pytest.raises(ValueError, match="Expected boolean"):
            coerce_value("maybe", MOCK_SCHEMA["open"])

    def test_list_comma_separated(self):
        assert coerce_value("a, b,,c ", MOCK_SCHEMA["tags"]) == ["a", "b", "c"]

    def test_list_json(self):
        assert coerce_value('["Reyes, A.", "Berg, J."]', MOCK_SCHEMA["tags"]) == ["Reyes, A.", "Berg, J."]

    def test_list_bad_json_falls_back(self):
        assert coerce_value("[a, b", MOCK_SCHEMA["tags"]) == ["[a", "b"]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestIsUrl:
    @pytest.mark.parametrize(
        "value", ["https://example.org", "http://lab.example.org/x", "/assets/team.jpeg", "mailto:lab@example.org"]
    )
    def test_valid(self, value):
        assert is_url(value)

    @pytest.mark.parametrize("value", ["example.org", "ftp://example.org", "https://", "mailto:"])
    def test_invalid(self, value):
        assert not is_url(value)


class TestValidateField:
    def test_unknown_field(self):
        assert validate_field("nope", "x", MOCK_SCHEMA) == ["Unknown field: 'nope'"]

    def test_required(self):
        assert validate_field("title", "", MOCK_SCHEMA) == ["title: a value is required."]

    def test_int_range(self):
        assert validate_field("year", 2024, MOCK_SCHEMA) == []
        assert "below minimum" in validate_field("year", 1800, MOCK_SCHEMA)[0]
        assert "above maximum" in validate_field("year", 3000, MOCK_SCHEMA)[0]

    def test_color(self):
        assert validate_field("color", "#00AAFF", MOCK_SCHEMA) == []
        assert validate_field("color", "linear-gradient(to right, #fff 0%, #000 100%)", MOCK_SCHEMA) == []
        assert validate_field("color", "blue", MOCK_SCHEMA)

    def test_url(self):
        assert validate_field("link", "https://example.org", MOCK_SCHEMA) == []
        assert "not a valid URL" in validate_field("link", "example.org", MOCK_SCHEMA)[0]

    def test_choices(self):
        assert validate_field("status", "ongoing", MOCK_SCHEMA) == []
        assert "not a valid choice" in validate_field("status", "paused", MOCK_SCHEMA)[0]

    def test_list_choices_checked_per_item(self):
        errors = validate_field("labels", ["a", "z", "y"], MOCK_SCHEMA)
        assert len(errors) == 2


class TestValidateRecord:
    def test_missing_required(self):
        assert validate_record({"year": 2024}, MOCK_SCHEMA) == ["title: a value is required."]

    def test_unknown_fields_are_ignored(self):
        assert validate_record({"title": "x", "legacy_field": 1}, MOCK_SCHEMA) == []

    def test_collects_all_errors(self):
        errors = validate_record({"title": "x", "year": 1, "link": "nowhere"}, MOCK_SCHEMA)
        assert len(errors) == 2

    @pytest.mark.parametrize("key", sorted(SCHEMAS))
    def test_seed_data_is_valid(self, key):
        schema = schema_for(key)
        for record in load_seed(key):
            assert validate_record(record, schema) == [], record["id"]


# ---------------------------------------------------------------------------
# Field operations
# ---------------------------------------------------------------------------


class TestSetField:
    def test_set(self):
        record = {"id": "pub-1", "year": 2023}

        result = set_field(record, "year", 2024, MOCK_SCHEMA)

        assert record["year"] == 2024
        assert result == ChangeResult("pub-1", "year", 2023, 2024, "set")

    def test_validation_blocks_change(self):
        record = {"id": "pub-1", "year": 2023}

        with pytest.raises(ValueError, match="below minimum"):
            set_field(record, "year", 12, MOCK_SCHEMA)
        assert record["year"] == 2023

    def test_without_schema(self):
        record = {}
        set_field(record, "anything", 1)
        assert record == {"anything": 1}


class TestUnsetField:
    def test_unset(self):
        record = {"id": "job-1", "link": "https://example.org"}

        result = unset_field(record, "link", MOCK_SCHEMA)

        assert "link" not in record
        assert result.old_value == "https://example.org"
        assert result.action == "unset"

    def test_unset_missing_field(self):
        assert unset_field({"id": "x"}, "link").old_value is None

    def test_required_field(self):
        with pytest.raises(ValueError, match="cannot be removed"):
            unset_field({"title": "x"}, "title", MOCK_SCHEMA)


class TestModifyListField:
    def test_add_dedupes(self):
        record = {"id": "p1", "tags": ["a"]}

        result = modify_list_field(record, "tags", add=["b", "a", "b"], schema=MOCK_SCHEMA)

        assert record["tags"] == ["a", "b"]
        assert result.action == "add"
        assert result.old_value == ["a"]

    def test_remove(self):
        record = {"tags": ["a", "b", "c"]}
        result = modify_list_field(record, "tags", remove=["b", "zzz"], schema=MOCK_SCHEMA)
        assert record["tags"] == ["a", "c"]
        assert result.action == "remove"

    def test_add_and_remove(self):
        record = {"tags": ["a", "b"]}
        result = modify_list_field(record, "tags", add=["c"], remove=["a"], schema=MOCK_SCHEMA)
        assert record["tags"] == ["b", "c"]
        assert result.action == "modify"

    def test_replace(self):
        record = {"tags": ["a"]}
        result = modify_list_field(record, "tags", replace=["x", "y", "x"], add=["ignored"], schema=MOCK_SCHEMA)
        assert record["tags"] == ["x", "y"]
        assert result.action == "replace"

    def test_missing_field_starts_empty(self):
        record = {}
        modify_list_field(record, "tags", add=["a"], schema=MOCK_SCHEMA)
        assert record["tags"] == ["a"]

    def test_not_a_list_field(self):
        with pytest.raises(ValueError, match="not a list"):
            modify_list_field({}, "year", add=["1"], schema=MOCK_SCHEMA)

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown field"):
            modify_list_field({}, "nope", add=["1"], schema=MOCK_SCHEMA)

    def test_invalid_choice_leaves_record(self):
        record = {"labels": ["a"]}
        with pytest.raises(ValueError, match="not a valid choice"):
            modify_list_field(record, "labels", add=["q"], schema=MOCK_SCHEMA)
        assert record["labels"] == ["a"]


def test_print_change():
    console = Console(record=True, width=120)

    print_change(ChangeResult("job-1", "link", "https://old.example.org", None, "unset"), console)

    text = console.export_text()
    assert "job-1: link" in text
    assert "old: https://old.example.org" in text
    assert "(removed)" in text
