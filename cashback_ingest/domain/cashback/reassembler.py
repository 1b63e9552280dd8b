from typing import List, Sequence

from cashback_ingest.domain.cashback.sanitizer import (
    FIELD_DELIMITER,
    RAW_DELIMITER,
    remap_delimiter,
)


def reassemble_row(sanitized_cells: Sequence[str]) -> List[str]:
    """
    Rebuild a row that the tokenizer may have split on the wrong delimiter.

    Multi-cell rows are joined back on the raw delimiter and then split on the
    field delimiter, so the sanitizer's delimiter remap decides where fields
    end. A cell that held ``a;b`` before sanitizing therefore contributes two
    fields. Free text that contains a comma after sanitizing is split as well;
    downstream consumers rely on this, so it is kept as is.

    Single-cell rows pass through untouched.
    """
    if len(sanitized_cells) <= 1:
        return list(sanitized_cells)
    joined = RAW_DELIMITER.join(sanitized_cells)
    return remap_delimiter(joined).split(FIELD_DELIMITER)
