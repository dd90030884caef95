from datetime import date

import pytest

from enrollment_app.utils.payload import (
    PayloadError,
    build_insert_payload,
    escape_literal,
    render_tuple,
    split_payload,
)

COLUMNS = ("first_name", "last_name", "enrollment_date")

ROWS = [
    ["Carson", "Alexander", date(2019, 9, 1)],
    ["Meredith", "Alonso", date(2017, 9, 1)],
    ["Arturo", "Anand", date(2018, 9, 1)],
    ["Gytis", "Barzdukas", date(2017, 9, 1)],
]


@pytest.mark.parametrize("count", [0, 1, 4])
def test_payload_reads_back_as_the_same_records(count):
    rows = ROWS[:count]
    payload = build_insert_payload(rows, COLUMNS)
    parsed = split_payload(payload)
    assert len(parsed) == count
    for source, fields in zip(rows, parsed):
        assert fields == [source[0], source[1], source[2].isoformat()]


def test_empty_input_gives_empty_payload():
    assert build_insert_payload([], COLUMNS) == ""
    assert build_insert_payload(None, COLUMNS) == ""


def test_single_record_has_no_trailing_separator():
    payload = build_insert_payload(ROWS[:1], COLUMNS)
    assert payload == "('Carson','Alexander','2019-09-01')"


def test_four_records_give_four_tuples():
    payload = build_insert_payload(ROWS, COLUMNS)
    assert payload.count("),(") == 3
    assert not payload.endswith(",")
    assert len(split_payload(payload)) == 4


def test_quotes_are_doubled_and_stay_one_field():
    payload = build_insert_payload([["Peggy", "O'Brien", date(2016, 9, 1)]], COLUMNS)
    assert "'O''Brien'" in payload
    parsed = split_payload(payload)
    assert parsed == [["Peggy", "O'Brien", "2016-09-01"]]


def test_injection_attempt_is_neutralized():
    hostile = "x'); DROP TABLE student; --"
    parsed = split_payload(render_tuple([hostile, "y", None]))
    assert parsed == [[hostile, "y", None]]


def test_mapping_records_follow_column_order():
    rec = {"last_name": "Li", "enrollment_date": date(2017, 9, 1), "first_name": "Yan"}
    assert build_insert_payload([rec], COLUMNS) == "('Yan','Li','2017-09-01')"
    with pytest.raises(PayloadError):
        build_insert_payload([rec])


def test_record_length_must_match_columns():
    with pytest.raises(PayloadError):
        build_insert_payload([["only", "two"]], COLUMNS)


def test_escape_literal_types():
    assert escape_literal(None) == "NULL"
    assert escape_literal(3) == "3"
    assert escape_literal(True) == "1"
    assert escape_literal(date(2024, 1, 2)) == "'2024-01-02'"
    with pytest.raises(PayloadError):
        escape_literal("bad\x00value")


@pytest.mark.parametrize("bad", ["('a','b'),", "('a','b'", "('unterminated)", "'a','b'", "('a')('b')", "('a',)"])
def test_split_payload_rejects_malformed(bad):
    with pytest.raises(PayloadError):
        split_payload(bad)


@pytest.mark.parametrize("value", [float('nan'), float('inf'), float('-inf')])
def test_escape_literal_rejects_non_finite_numbers(value):
    with pytest.raises(PayloadError):
        escape_literal(value)


@pytest.mark.parametrize("bad", ["((SELECT 1),'a')", "(1 OR 1,'a')", "(abs(1),'a')", "('a'||'b')"])
def test_split_payload_rejects_unquoted_expressions(bad):
    with pytest.raises(PayloadError):
        split_payload(bad)


def test_split_payload_keeps_numbers_and_nulls():
    assert split_payload("(1,-2.5,1e3,NULL,'x')") == [["1", "-2.5", "1e3", None, "x"]]
