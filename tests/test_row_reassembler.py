from cashback_ingest.domain.cashback.reassembler import reassemble_row
from cashback_ingest.domain.cashback.sanitizer import sanitize_field, sanitize_row
from tests.utils.cashback_rows import SAMPLE_ROW, cells


def test_well_formed_row_keeps_twenty_five_columns():
    row = reassemble_row(sanitize_row(cells(SAMPLE_ROW)))
    assert len(row) == 25
    assert row[0] == "100"
    assert row[6] == "1.5"


def test_cell_with_embedded_delimiter_expands_into_fields():
    # "C;D" was quoted upstream, so the tokenizer kept it as one cell.
    raw = ["1", "2", "C;D", "4"]
    assert reassemble_row(sanitize_row(raw)) == ["1", "2", "C", "D", "4"]


def test_doubled_delimiter_inside_cell_contributes_a_zero_field():
    raw = ["x", "a;;b", "y"]
    assert reassemble_row(sanitize_row(raw)) == ["x", "a", "0", "b", "y"]


def test_empty_cells_survive_as_empty_fields():
    assert reassemble_row(["a", "", "b"]) == ["a", "", "b"]


def test_single_cell_row_is_not_split():
    single = [sanitize_field("only;one;cell")]
    assert reassemble_row(single) == ["only,one,cell"]


def test_empty_row():
    assert reassemble_row([]) == []
