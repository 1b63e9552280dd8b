"""
Destination naming for cashback uploads.

Every upload lands in ``cashback_<month>_<year>.domain``. The column list below
is the contract between a record and its insert: values are always produced
and bound in this order.
"""
from typing import List

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from cashback_ingest.core.errors import InvalidDateParams

DESTINATION_TABLE = "domain"
SCHEMA_PREFIX = "cashback"

DATA_COLUMNS: List[str] = [
    "no_waybill",
    "tgl_pengiriman",
    "drop_point_outgoing",
    "sprinter_pickup",
    "tempat_tujuan",
    "keterangan",
    "berat_yang_ditagih",
    "cod",
    "biaya_asuransi",
    "biaya_kirim",
    "biaya_lainnya",
    "total_biaya",
    "klien_pengiriman",
    "metode_pembayaran",
    "nama_pengirim",
    "sumber_waybill",
    "paket_retur",
    "waktu_ttd",
    "layanan",
    "diskon",
    "total_biaya_setelah_diskon",
    "agen_tujuan",
    "nik",
    "kode_promo",
    "kat",
]

EXPECTED_COLUMN_COUNT = len(DATA_COLUMNS)


def _normalize_part(value, label: str, month, year) -> str:
    if value is None:
        raise InvalidDateParams(month, year, f"{label} is required")
    part = str(value).strip().lower()
    if not part:
        raise InvalidDateParams(month, year, f"{label} is required")
    # The schema name is interpolated into SQL, so only plain ASCII alphanumerics pass.
    if not (part.isascii() and part.isalnum()):
        raise InvalidDateParams(month, year, f"{label} must contain only letters and digits")
    return part


def build_schema_name(month, year) -> str:
    """
    Return the destination schema for a month/year pair.

    >>> build_schema_name("May", "2023")
    'cashback_may_2023'
    """
    month_part = _normalize_part(month, "month", month, year)
    year_part = _normalize_part(year, "year", month, year)
    return f"{SCHEMA_PREFIX}_{month_part}_{year_part}"


def build_insert_statement(schema_name: str) -> TextClause:
    """Render the single-row insert for ``schema_name``, one bind per column."""
    columns_sql = ", ".join(DATA_COLUMNS)
    placeholders = ", ".join(f":{col}" for col in DATA_COLUMNS)
    return text(
        f"INSERT INTO {schema_name}.{DESTINATION_TABLE} ({columns_sql}) VALUES ({placeholders})"
    )
