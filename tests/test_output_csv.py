"""Tests for CSV rendering."""

import csv
import io

from timecard_engine.transformers.output import records_to_rows, to_csv


class StubRecord:
    def __init__(self, **row):
        self.row = row

    def to_row(self):
        return dict(self.row)


class TestToCsv:
    """Test CSV text output."""

    def test_header_and_column_order(self):
        """Test the header follows the requested columns."""
        text = to_csv([{"B": "2", "A": "1"}], ["A", "B"])
        assert text.splitlines() == ["A,B", "1,2"]

    def test_special_characters_survive_parsing(self):
        """Test commas, quotes and newlines are quoted."""
        rows = [{"Name": 'Reyes, Dana "DJ"', "Memo": "line one\nline two"}]
        text = to_csv(rows, ["Name", "Memo"])

        parsed = list(csv.DictReader(io.StringIO(text)))
        assert parsed == [{"Name": 'Reyes, Dana "DJ"', "Memo": "line one\nline two"}]
        assert '"Reyes, Dana ""DJ"""' in text

    def test_missing_and_none_values_are_empty(self):
        text = to_csv([{"A": None}], ["A", "B"])
        assert text.splitlines() == ["A,B", ","]

    def test_blank_cells_keep_their_space(self):
        """Test single-space placeholders are written as-is."""
        text = to_csv([{"A": " ", "B": "x"}], ["A", "B"])
        assert text.splitlines()[1] == " ,x"

    def test_no_rows(self):
        assert to_csv([], ["A"]).splitlines() == ["A"]


class TestRecordsToRows:
    def test_renders_each_record(self):
        rows = records_to_rows([StubRecord(A="1"), StubRecord(A="2")])
        assert rows == [{"A": "1"}, {"A": "2"}]
