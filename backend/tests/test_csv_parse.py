"""Tests for CSV parsing, header mapping, and required-field validation."""
import pytest

from sdg_portal.services.csv_import import (
    EmptyInputError,
    FieldDefinition,
    build_template_csv,
    map_headers,
    parse_csv,
    parse_import,
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

YEAR = FieldDefinition(name="year", label="Year", type="number", required=True, order=0, is_primary_column=True)
VALUE = FieldDefinition(name="value", label="Value", type="number", required=True, order=1)
NOTES = FieldDefinition(name="notes", label="Notes", type="textarea", order=2)


# ─── Input shape ──────────────────────────────────────────────────────────────

def test_header_only_input_is_rejected():
    """A CSV with only a header line has nothing to import."""
    with pytest.raises(EmptyInputError) as exc_info:
        parse_csv("Year,Value\n", [YEAR, VALUE])
    assert str(exc_info.value) == "CSV must have at least 2 lines (headers + data)"


def test_empty_input_is_rejected():
    with pytest.raises(EmptyInputError):
        parse_import("   \n  ", [YEAR, VALUE])


def test_surrounding_whitespace_and_crlf_are_tolerated():
    """Leading/trailing blank text is stripped and CR characters are trimmed off values."""
    rows = parse_csv("\n\nYear,Value\r\n2020,10\r\n", [YEAR, VALUE])
    assert rows == [(2, {"year": "2020", "value": "10"})]


# ─── Header mapping ───────────────────────────────────────────────────────────

def test_header_matches_label_case_insensitively_and_trimmed():
    """' Overall Value ' matches a field labelled 'Overall Value'."""
    overall = FieldDefinition(name="overall_value", label="Overall Value")
    rows = parse_csv(" OVERALL value ,Year\n12.5,2020", [YEAR, overall])
    assert rows == [(2, {"overall_value": "12.5", "year": "2020"})]


def test_header_matches_field_name():
    assert map_headers(["YEAR", "value"], [YEAR, VALUE]) == {"YEAR": "year", "value": "value"}


def test_unknown_headers_are_dropped():
    rows = parse_csv("Year,Comment,Value\n2020,ignored,10", [YEAR, VALUE])
    assert rows == [(2, {"year": "2020", "value": "10"})]


def test_field_claims_first_matching_header():
    """When two headers match one field, only the first is mapped to it."""
    assert map_headers(["Year", "year"], [YEAR]) == {"Year": "year"}


def test_fields_without_header_never_populate():
    rows = parse_csv("Year,Value\n2020,10", [YEAR, VALUE, NOTES])
    assert rows == [(2, {"year": "2020", "value": "10"})]


# ─── Row parsing ──────────────────────────────────────────────────────────────

def test_missing_trailing_values_read_as_empty():
    rows = parse_csv("Year,Value,Notes\n2020", [YEAR, VALUE, NOTES])
    assert rows == [(2, {"year": "2020", "value": "", "notes": ""})]


def test_embedded_commas_are_not_supported():
    """Quoted values are split on their commas like any other text."""
    rows = parse_csv('Year,Notes,Value\n2020,"a, b",10', [YEAR, VALUE, NOTES])
    assert rows == [(2, {"year": "2020", "notes": '"a', "value": "b\""})]


def test_blank_lines_are_kept_as_empty_rows():
    """A blank line still maps every header, so it reaches required-field validation."""
    rows = parse_csv("Year,Value\n2020,10\n\n ,  \n2021,20", [YEAR, VALUE])
    assert rows == [
        (2, {"year": "2020", "value": "10"}),
        (3, {"year": "", "value": ""}),
        (4, {"year": "", "value": ""}),
        (5, {"year": "2021", "value": "20"}),
    ]


def test_blank_line_between_rows_fails_required_check():
    result = parse_import("Year,Value\n2020,10\n,", [YEAR, VALUE])

    assert [e.message for e in result.validation_errors] == [
        "Row 3: Missing required fields: Year, Value",
    ]
    assert result.entries == [{"year": "2020", "value": "10"}]


def test_rows_skipped_when_no_header_maps():
    rows = parse_csv("Foo,Bar\n1,2\n3,4", [YEAR, VALUE])
    assert rows == []


def test_entries_never_exceed_data_lines():
    csv_text = "Year,Value\n2020,10\n2020,10\n,5\n2021,\n2022,30"
    result = parse_import(csv_text, [YEAR, VALUE])
    data_lines = len(csv_text.strip().split("\n")) - 1
    assert len(result.entries) <= data_lines


# ─── Required fields ──────────────────────────────────────────────────────────

def test_missing_required_fields_reported_with_line_and_labels():
    result = parse_import("Year,Value,Notes\n2020,10,ok\n,,x", [YEAR, VALUE, NOTES])

    assert result.entries == [{"year": "2020", "value": "10", "notes": "ok"}]
    assert [e.message for e in result.validation_errors] == [
        "Row 3: Missing required fields: Year, Value",
    ]
    assert result.validation_errors[0].line == 3
    assert result.validation_errors[0].labels == ("Year", "Value")


def test_required_field_without_column_fails_every_row():
    result = parse_import("Year,Notes\n2020,a\n2021,b", [YEAR, VALUE, NOTES])
    assert result.entries == []
    assert [e.message for e in result.validation_errors] == [
        "Row 2: Missing required fields: Value",
        "Row 3: Missing required fields: Value",
    ]


def test_fields_are_applied_in_order():
    """Field order drives label order in messages regardless of input order."""
    result = parse_import("Value,Year\n,", [VALUE, YEAR, NOTES])
    assert [e.message for e in result.validation_errors] == [
        "Row 2: Missing required fields: Year, Value",
    ]

    result = parse_import("Value,Year,Notes\n,,x", [VALUE, YEAR, NOTES])
    assert result.validation_errors[0].labels == ("Year", "Value")


# ─── Template ─────────────────────────────────────────────────────────────────

def test_template_lists_labels_in_field_order():
    assert build_template_csv([NOTES, YEAR, VALUE]) == "Year,Value,Notes\n"
