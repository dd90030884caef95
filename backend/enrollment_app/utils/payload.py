"""Build and read back the VALUES payload of a multi-row INSERT.

A payload is a comma separated list of parenthesized tuples, e.g.

    ('Ada','Lovelace','2024-09-01'),('Alan','Turing','2024-09-01')

String values are single-quoted with embedded quotes doubled, which is
the standard SQL literal escape, so a name like O'Brien cannot close
the literal early.
"""

import math
import re
from datetime import date, datetime
from typing import Iterable, List, Mapping, Optional, Sequence, Union

from .accumulate import fold

Record = Union[Mapping[str, object], Sequence[object]]
_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class PayloadError(ValueError):
    """Raised for values that cannot be rendered or payloads that cannot be read."""


def escape_literal(value) -> str:
    """Render `value` as a SQL literal.

    `None` becomes NULL, numbers are unquoted, dates use ISO format and
    everything else is quoted as a string with `'` doubled.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float) and not math.isfinite(value):
        raise PayloadError(f"non-finite number {value!r} has no SQL literal")
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, datetime):
        value = value.isoformat(sep=" ")
    elif isinstance(value, date):
        value = value.isoformat()
    text = str(value)
    if "\x00" in text:
        raise PayloadError("NUL character not allowed in a string value")
    return "'" + text.replace("'", "''") + "'"


def render_tuple(values: Iterable[object]) -> str:
    """Render one record as `(v1,v2,...)`."""
    return "(" + ",".join(escape_literal(v) for v in values) + ")"


def _record_values(record: Record, columns: Optional[Sequence[str]]) -> List[object]:
    if isinstance(record, Mapping):
        if not columns:
            raise PayloadError("columns are required when records are mappings")
        return [record.get(c) for c in columns]
    values = list(record)
    if columns and len(values) != len(columns):
        raise PayloadError(f"record has {len(values)} values, expected {len(columns)}")
    return values


def build_insert_payload(records: Optional[Iterable[Record]], columns: Optional[Sequence[str]] = None) -> str:
    """Join every record's tuple into one payload string.

    Zero records give an empty string; otherwise the result has no
    trailing separator.
    """
    payload = fold(
        records,
        "",
        lambda acc, rec: acc + render_tuple(_record_values(rec, columns)) + ",",
    )
    if payload:
        payload = payload[:-1]
    return payload


def split_payload(payload: str) -> List[List[Optional[str]]]:
    """Parse a payload back into tuples of raw field values.

    Quoted strings are unescaped, NULL becomes `None` and numeric
    literals are returned as text. Any other unquoted token (an
    expression, keyword or subquery) raises `PayloadError`.
    """
    tuples = []
    i = 0
    n = len(payload)

    def skip_ws(pos):
        while pos < n and payload[pos].isspace():
            pos += 1
        return pos

    i = skip_ws(i)
    while i < n:
        if payload[i] != "(":
            raise PayloadError(f"expected '(' at offset {i}")
        i += 1
        fields = []
        while True:
            i = skip_ws(i)
            if i >= n:
                raise PayloadError("unterminated tuple")
            if payload[i] == "'":
                i += 1
                chunks = []
                while True:
                    end = payload.find("'", i)
                    if end == -1:
                        raise PayloadError("unterminated string literal")
                    chunks.append(payload[i:end])
                    if end + 1 < n and payload[end + 1] == "'":
                        chunks.append("'")
                        i = end + 2
                        continue
                    i = end + 1
                    break
                fields.append("".join(chunks))
            else:
                start = i
                while i < n and payload[i] not in ",)":
                    i += 1
                token = payload[start:i].strip()
                if not token:
                    raise PayloadError(f"empty value at offset {start}")
                if token.upper() == "NULL":
                    fields.append(None)
                elif _NUMBER.match(token):
                    fields.append(token)
                else:
                    raise PayloadError(f"unquoted value {token!r} at offset {start}")
            i = skip_ws(i)
            if i >= n:
                raise PayloadError("unterminated tuple")
            if payload[i] == ",":
                i += 1
                continue
            if payload[i] == ")":
                i += 1
                break
            raise PayloadError(f"unexpected {payload[i]!r} at offset {i}")
        tuples.append(fields)
        i = skip_ws(i)
        if i < n:
            if payload[i] != ",":
                raise PayloadError(f"expected ',' between tuples at offset {i}")
            i = skip_ws(i + 1)
            if i >= n:
                raise PayloadError("trailing separator after last tuple")
    return tuples
