import pytest

from epic_app.core.csv_loader import format_csv_error, read_csv_table
from epic_app.core.errors import CsvDecodeError


def test_read_csv_keeps_text_and_blanks():
    data = b"Issue key,Story Points,Sprint\nABC-1,3,\nABC-2,,Sprint 1\n"
    table = read_csv_table(data, file_name="main.csv")
    assert table.headers == ["Issue key", "Story Points", "Sprint"]
    assert table.records[0] == {"Issue key": "ABC-1", "Story Points": "3", "Sprint": ""}
    assert table.records[1]["Story Points"] == ""


def test_read_csv_from_path(tmp_path):
    path = tmp_path / "time.csv"
    path.write_text("Key,In Progress\nABC-1,2w 3d\n")
    table = read_csv_table(path)
    assert table.records == [{"Key": "ABC-1", "In Progress": "2w 3d"}]


def test_quoted_fields_with_commas():
    table = read_csv_table(b'Key,Summary\nA-1,"Hello, world"\n')
    assert table.records[0]["Summary"] == "Hello, world"


def test_empty_file_raises():
    with pytest.raises(CsvDecodeError, match="empty"):
        read_csv_table(b"", file_name="main.csv")


def test_ragged_rows_raise_with_row_hint():
    with pytest.raises(CsvDecodeError) as excinfo:
        read_csv_table(b"a,b\n1,2\n3,4,5,6\n", file_name="main.csv")
    assert "main.csv" in str(excinfo.value)


def test_format_csv_error_messages():
    assert "at row 7" in format_csv_error(ValueError("Error tokenizing data. Expected 2 fields in line 7, saw 4"))
    generic = format_csv_error(ValueError("boom"), "time.csv")
    assert generic.startswith("Could not process time.csv: boom")
