"""
Positional mapping from a canonical row to a ``CashbackRecord``.

Rows with fewer than 25 columns are dropped. For accepted rows every field is
mapped independently: empty numeric cells become ``"0"``, empty date cells
become a sentinel that cannot parse, and any parse failure is logged while the
field keeps its zero value. A bad cell never rejects the row.
"""
import logging
import math
import re
from datetime import datetime
from typing import Callable, Dict, Optional, Sequence

from cashback_ingest.domain.cashback.record import CashbackRecord
from cashback_ingest.domain.cashback.schema import DATA_COLUMNS, EXPECTED_COLUMN_COUNT

logger = logging.getLogger(__name__)

EMPTY_NUMBER = "0"
EMPTY_DATE = "0000-00-00"

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:inf|infinity)|nan|[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?",
    re.IGNORECASE,
)
_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_DATETIME_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}")


def parse_int64(value: str) -> int:
    """Parse a base-10 signed 64-bit integer; no whitespace, no separators."""
    if not _INTEGER_PATTERN.fullmatch(value):
        raise ValueError(f"invalid integer literal {value!r}")
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValueError(f"integer {value!r} out of 64-bit range")
    return number


def parse_float64(value: str) -> float:
    """Parse a decimal float literal; no whitespace, no digit grouping."""
    if not _FLOAT_PATTERN.fullmatch(value):
        raise ValueError(f"invalid float literal {value!r}")
    number = float(value)
    if math.isinf(number) and "inf" not in value.lower():
        raise ValueError(f"float {value!r} out of range")
    return number


# strptime alone would accept unpadded parts such as "2023-5-1".
def parse_date(value: str) -> datetime:
    if not _DATE_PATTERN.fullmatch(value):
        raise ValueError(f"date {value!r} does not match YYYY-MM-DD")
    return datetime.strptime(value, DATE_FORMAT)


def parse_datetime(value: str) -> datetime:
    if not _DATETIME_PATTERN.fullmatch(value):
        raise ValueError(f"timestamp {value!r} does not match YYYY-MM-DD HH:MM:SS")
    return datetime.strptime(value, DATETIME_FORMAT)


# Typed columns: parser plus the stand-in used when the cell is empty.
# Everything not listed here is free text and copied verbatim.
TYPED_FIELDS: Dict[str, tuple] = {
    "tgl_pengiriman": (parse_date, EMPTY_DATE),
    "berat_yang_ditagih": (parse_float64, EMPTY_NUMBER),
    "cod": (parse_int64, EMPTY_NUMBER),
    "biaya_asuransi": (parse_float64, EMPTY_NUMBER),
    "biaya_kirim": (parse_int64, EMPTY_NUMBER),
    "biaya_lainnya": (parse_int64, EMPTY_NUMBER),
    "total_biaya": (parse_float64, EMPTY_NUMBER),
    "waktu_ttd": (parse_datetime, EMPTY_DATE),
    "diskon": (parse_int64, EMPTY_NUMBER),
    "total_biaya_setelah_diskon": (parse_int64, EMPTY_NUMBER),
}


def _coerce_field(
    record: CashbackRecord,
    column: str,
    raw: str,
    parser: Callable[[str], object],
    empty_value: str,
    line_number: Optional[int],
) -> None:
    value = raw if raw != "" else empty_value
    try:
        setattr(record, column, parser(value))
    except (ValueError, OverflowError) as e:
        logger.warning(
            "Error parsing %s at line %s (value=%r): %s",
            column,
            line_number if line_number is not None else "?",
            value,
            e,
        )


def map_row(row: Sequence[str], line_number: Optional[int] = None) -> Optional[CashbackRecord]:
    """
    Map a canonical row to a record, or return None if it is too short.

    Only the first 25 columns are read; trailing columns are ignored.
    """
    if len(row) < EXPECTED_COLUMN_COUNT:
        return None

    record = CashbackRecord()
    for column, raw in zip(DATA_COLUMNS, row):
        typed = TYPED_FIELDS.get(column)
        if typed is None:
            setattr(record, column, raw)
            continue
        parser, empty_value = typed
        _coerce_field(record, column, raw, parser, empty_value, line_number)

    return record
