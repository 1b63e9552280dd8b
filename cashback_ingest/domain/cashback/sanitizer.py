"""
Cell-level text normalization for cashback exports.

The exports arrive from spreadsheet tools in an Indonesian locale: commas are
decimal separators, semicolons separate fields, and cells routinely carry
zero-width spaces, stray BOMs and quotes. Every cell goes through the same
fixed chain of rewrites; later steps rely on the output of earlier ones, so the
order in ``SANITIZER_CHAIN`` must not change.
"""
from typing import Callable, List, Sequence, Tuple

RAW_DELIMITER = ";"
FIELD_DELIMITER = ","

ZERO_WIDTH_SPACE = "\u200b"
BYTE_ORDER_MARK = "\ufeff"

_PRINTABLE_MIN = 0x20
_PRINTABLE_MAX = 0x7E


def remove_invisible_markers(value: str) -> str:
    return value.replace(ZERO_WIDTH_SPACE, "").replace(BYTE_ORDER_MARK, "")


def keep_printable_ascii(value: str) -> str:
    """Drop every character outside 0x20-0x7E."""
    if value.isascii() and value.isprintable():
        return value
    return "".join(ch for ch in value if _PRINTABLE_MIN <= ord(ch) <= _PRINTABLE_MAX)


def remove_line_breaks(value: str) -> str:
    return value.replace("\r\n", "").replace('\n";', '";')


def remove_quotes(value: str) -> str:
    return value.replace('"', "")


def normalize_decimal_separator(value: str) -> str:
    return value.replace(",", ".")


def fill_empty_fields(value: str) -> str:
    # An empty field between two delimiters is a literal zero.
    return value.replace(RAW_DELIMITER * 2, f"{RAW_DELIMITER}0{RAW_DELIMITER}")


def remap_delimiter(value: str) -> str:
    return value.replace(RAW_DELIMITER, FIELD_DELIMITER)


SANITIZER_CHAIN: Tuple[Callable[[str], str], ...] = (
    remove_invisible_markers,
    keep_printable_ascii,
    remove_line_breaks,
    remove_quotes,
    normalize_decimal_separator,
    fill_empty_fields,
    remap_delimiter,
)


def sanitize_field(value: str) -> str:
    """
    Apply the sanitizer chain to one raw cell.

    Never raises: a cell made only of non-ASCII characters, or an empty cell,
    comes back as an empty string and is defaulted by the record mapper.
    """
    if not value:
        return ""
    for step in SANITIZER_CHAIN:
        value = step(value)
    return value


def sanitize_row(cells: Sequence[str]) -> List[str]:
    return [sanitize_field(cell) for cell in cells]


def is_blank_row(cells: Sequence[str]) -> bool:
    """True when every sanitized cell is empty or whitespace."""
    return all(not cell.strip() for cell in cells)
