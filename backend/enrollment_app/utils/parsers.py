"""File parsing utilities that convert student upload files into a
normalized record list.

Supported input types: CSV and JSON. Parsers return a list of
dictionaries with keys: `first_name`, `last_name` and
`enrollment_date` (a `date`, or `None` when the value is unreadable).
"""

import io
import json
import csv
from datetime import date, datetime
from typing import List, Dict, Optional

FIRST_NAME_KEYS = ('first_name', 'firstname', 'first name', 'firstmidname')
LAST_NAME_KEYS = ('last_name', 'lastname', 'last name')
DATE_KEYS = ('enrollment_date', 'enrollmentdate', 'enrollment date', 'date')
DATE_FORMATS = ('%Y-%m-%d', '%m/%d/%Y', '%d.%m.%Y')


def parse_file_to_students(file_bytes: bytes, filename: str) -> List[Dict]:
    """Dispatch to the appropriate parser based on file extension."""
    name = filename.lower()
    if name.endswith('.csv'):
        return parse_csv(file_bytes)
    if name.endswith('.json'):
        return parse_json(file_bytes)
    raise ValueError('Unsupported file type')


def parse_csv(b: bytes):
    """Parse a CSV with a header row naming the student columns.

    Header names are matched case-insensitively, so `FirstName`,
    `first_name` and `First Name` all work. Blank lines are skipped.
    """
    out = []
    try:
        text = b.decode('utf-8-sig')
    except UnicodeDecodeError:
        raise ValueError('CSV must be UTF-8 encoded')
    reader = csv.DictReader(io.StringIO(text))
    if not reader.fieldnames:
        return out
    for row in reader:
        row = {(k or '').strip().lower(): v for k, v in row.items()}
        if not any((v or '').strip() for v in row.values() if isinstance(v, str)):
            continue
        out.append(normalize_student(row))
    return out


def parse_json(b: bytes):
    """Parse a JSON array of student objects and normalize them."""
    data = json.loads(b.decode('utf-8'))
    if not isinstance(data, list):
        raise ValueError('JSON upload must be an array of student objects')
    out = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError('each student must be an object')
        out.append(normalize_student({str(k).lower(): v for k, v in item.items()}))
    return out


def normalize_student(row: dict) -> dict:
    """Map alternative keys to the canonical record shape."""
    return {
        'first_name': _first(row, FIRST_NAME_KEYS).strip(),
        'last_name': _first(row, LAST_NAME_KEYS).strip(),
        'enrollment_date': _coerce_date(_first(row, DATE_KEYS)),
    }


def _first(row: dict, keys) -> str:
    for k in keys:
        val = row.get(k)
        if val is not None and str(val).strip() != '':
            return str(val)
    return ''


def _coerce_date(val) -> Optional[date]:
    if not val:
        return None
    text = str(val).strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None
