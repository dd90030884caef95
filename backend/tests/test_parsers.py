from datetime import date

import pytest

from enrollment_app.utils.parsers import parse_file_to_students


def test_parse_csv_pascal_case_headers():
    csv = b'FirstName,LastName,EnrollmentDate\nCarson,Alexander,2019-09-01\nMeredith,Alonso,2017-09-01\n'
    res = parse_file_to_students(csv, 'students.csv')
    assert res == [
        {'first_name': 'Carson', 'last_name': 'Alexander', 'enrollment_date': date(2019, 9, 1)},
        {'first_name': 'Meredith', 'last_name': 'Alonso', 'enrollment_date': date(2017, 9, 1)},
    ]


def test_parse_csv_with_bom_blank_lines_and_us_dates():
    csv = '\ufefffirst_name,last_name,enrollment_date\n\nYan,Li,09/01/2017\n,,\n'.encode('utf-8')
    res = parse_file_to_students(csv, 'students.CSV')
    assert len(res) == 1
    assert res[0]['enrollment_date'] == date(2017, 9, 1)


def test_parse_csv_keeps_quoted_commas_and_apostrophes():
    csv = b'FirstName,LastName,EnrollmentDate\n"Anne, Marie",O\'Brien,2020-01-15\n'
    res = parse_file_to_students(csv, 'students.csv')
    assert res[0]['first_name'] == 'Anne, Marie'
    assert res[0]['last_name'] == "O'Brien"


def test_parse_csv_unreadable_date_becomes_none():
    csv = b'FirstName,LastName,EnrollmentDate\nNino,Olivetto,someday\n'
    res = parse_file_to_students(csv, 'students.csv')
    assert res[0]['enrollment_date'] is None


def test_parse_csv_header_only():
    assert parse_file_to_students(b'FirstName,LastName,EnrollmentDate\n', 'students.csv') == []
    assert parse_file_to_students(b'', 'students.csv') == []


def test_parse_json():
    data = b'[{"first_name":"Peggy","last_name":"Justice","enrollment_date":"2016-09-01"}]'
    res = parse_file_to_students(data, 'students.json')
    assert res[0]['last_name'] == 'Justice'
    assert res[0]['enrollment_date'] == date(2016, 9, 1)


def test_parse_json_must_be_array():
    with pytest.raises(ValueError):
        parse_file_to_students(b'{"first_name":"x"}', 'students.json')


def test_unsupported_extension():
    with pytest.raises(ValueError):
        parse_file_to_students(b'whatever', 'students.xlsx')
