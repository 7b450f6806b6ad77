"""Unit tests for env file line parsing and rewriting."""

import logging

import pytest

from stagecrypt.core.env_file import (
    EnvironmentVariableRecord,
    extract_variables,
    find_variable,
    parse_line,
    update_lines,
)

ENVELOPE = "ENC2:YQ==:YQ==:YQ==:YQ=="


# --- parse_line ---


@pytest.mark.parametrize("line", ["", "   ", "# comment", "  # KEY=value", "no_equals_here"])
def test_parse_line_ignores_non_assignments(line):
    assert parse_line(line) is None


def test_parse_line_splits_on_first_equals():
    record = parse_line("DATABASE_URL=postgres://u:p@h/db?x=1", 3)
    assert record.key == "DATABASE_URL"
    assert record.value == "postgres://u:p@h/db?x=1"
    assert record.line_number == 3


def test_parse_line_keeps_raw_line_and_trims_key():
    record = parse_line("  PORTAL_USERNAME = admin")
    assert record.key == "PORTAL_USERNAME"
    assert record.value == " admin"
    assert record.raw_line == "  PORTAL_USERNAME = admin"


def test_parse_line_rejects_invalid_key(caplog):
    with caplog.at_level(logging.WARNING):
        assert parse_line("1BAD=value", 7) is None
    assert "Invalid environment variable key format: '1BAD' at line 7" in caplog.text


def test_parse_line_empty_value():
    record = parse_line("FOO=")
    assert record.value == ""
    assert record.is_empty
    assert not record.is_encrypted


def test_record_detects_envelope():
    assert parse_line(f"TOKEN={ENVELOPE}").is_encrypted


def test_record_repr_hides_value():
    record = parse_line("PORTAL_PASSWORD=secret123")
    assert "secret123" not in repr(record)


# --- extract_variables ---


def test_extract_variables_in_file_order():
    lines = ["# header", "A=1", "", "B=2", "C="]
    variables = extract_variables(lines)
    assert list(variables) == ["A", "B", "C"]
    assert isinstance(variables["A"], EnvironmentVariableRecord)


def test_extract_variables_duplicate_last_value_wins(caplog):
    lines = ["A=first", "B=2", "A=second"]
    with caplog.at_level(logging.WARNING):
        variables = extract_variables(lines)

    assert variables["A"].value == "second"
    assert variables["A"].line_number == 3
    assert list(variables) == ["A", "B"]
    assert "Duplicate environment variable 'A' found at line 3" in caplog.text


# --- find_variable ---


def test_find_variable_by_key_first():
    variables = extract_variables(["USER=PASS", "PASS=admin"])
    assert find_variable(variables, "PASS").key == "PASS"


def test_find_variable_by_value():
    variables = extract_variables(["PORTAL_USERNAME=admin", "OTHER=admin"])
    assert find_variable(variables, "admin").key == "PORTAL_USERNAME"


def test_find_variable_missing():
    assert find_variable(extract_variables(["A=1"]), "MISSING") is None


# --- update_lines ---


def test_update_lines_replaces_every_duplicate():
    lines = ["# c", "A=old", "B=x", " A=dup"]
    updated = update_lines(lines, "A", "new")
    assert updated == ["# c", "A=new", "B=x", "A=new"]
    assert lines == ["# c", "A=old", "B=x", " A=dup"]


def test_update_lines_matches_indented_assignment():
    assert update_lines(["  A=old"], "A", "new") == ["A=new"]


def test_update_lines_does_not_match_prefix_keys():
    lines = ["AB=1"]
    assert update_lines(lines, "A", "2") == ["AB=1", "A=2"]


def test_update_lines_ignores_commented_assignment():
    assert update_lines(["#A=old"], "A", "new") == ["#A=old", "A=new"]


def test_update_lines_appends_before_trailing_newline():
    # "X=1\n" splits to ["X=1", ""]
    assert update_lines(["X=1", ""], "A", "v") == ["X=1", "A=v", ""]


def test_update_lines_appends_to_empty():
    assert update_lines([], "A", "v") == ["A=v"]
