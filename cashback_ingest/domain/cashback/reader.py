"""
Streaming reader for cashback exports.

Turns the uploaded byte stream into canonical rows: decode (dropping an
optional BOM), tokenize on ``;``, skip the header, sanitize every cell,
reassemble, and stop at the first blank row.
"""
import csv
import io
import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterator, List, TextIO, Tuple

from cashback_ingest.domain.cashback.reassembler import reassemble_row
from cashback_ingest.domain.cashback.sanitizer import RAW_DELIMITER, is_blank_row, sanitize_row

logger = logging.getLogger(__name__)

INPUT_ENCODING = "utf-8-sig"


@dataclass
class ReaderStats:
    rows_read: int = 0
    stopped_at_sentinel: bool = False
    stopped_at_error: bool = False


def open_text_stream(binary_stream: BinaryIO) -> TextIO:
    """
    Wrap an uploaded byte stream for the tokenizer.

    ``utf-8-sig`` strips a leading BOM. Undecodable bytes become U+FFFD and
    are removed later by the printable-ASCII filter.
    """
    return io.TextIOWrapper(binary_stream, encoding=INPUT_ENCODING, errors="replace", newline="")


def iter_canonical_rows(
    text_stream: TextIO,
    stats: ReaderStats = None,
) -> Iterator[Tuple[int, List[str]]]:
    """
    Yield ``(line_number, canonical_row)`` for every data row.

    The first record is the header and is always skipped without validation.
    A row whose cells all sanitize to blank ends the input: nothing after it
    is read, even if more data follows.
    """
    stats = stats if stats is not None else ReaderStats()
    reader = csv.reader(text_stream, delimiter=RAW_DELIMITER)
    is_header = True

    while True:
        try:
            cells = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            logger.error("Stopped reading at line %d: %s", reader.line_num, e)
            stats.stopped_at_error = True
            return

        if is_header:
            is_header = False
            continue

        if not cells:
            continue

        sanitized = sanitize_row(cells)
        if is_blank_row(sanitized):
            logger.info("Blank row at line %d; treating it as end of data", reader.line_num)
            stats.stopped_at_sentinel = True
            return

        stats.rows_read += 1
        yield reader.line_num, reassemble_row(sanitized)
