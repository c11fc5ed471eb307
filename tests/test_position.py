"""Tests for offset <-> line/column conversion."""

from jsonkit._position import line_column_to_offset, offset_to_line_column


class TestOffsetToLineColumn:
    """Absolute offsets to 1-based positions."""

    def test_start_of_text(self):
        assert offset_to_line_column("ab\ncd", 0) == (1, 1)

    def test_same_line(self):
        assert offset_to_line_column("ab\ncd", 1) == (1, 2)

    def test_after_newline(self):
        assert offset_to_line_column("ab\ncd", 3) == (2, 1)
        assert offset_to_line_column("ab\ncd", 4) == (2, 2)

    def test_offset_past_end_uses_whole_text(self):
        assert offset_to_line_column("ab\ncd", 100) == (2, 3)

    def test_negative_offset_is_start(self):
        assert offset_to_line_column("ab\ncd", -5) == (1, 1)

    def test_empty_text(self):
        assert offset_to_line_column("", 0) == (1, 1)


class TestLineColumnToOffset:
    """1-based positions back to absolute offsets."""

    def test_first_line(self):
        assert line_column_to_offset("ab\ncd", 1, 2) == 1

    def test_second_line(self):
        assert line_column_to_offset("ab\ncd", 2, 2) == 4

    def test_line_out_of_range(self):
        assert line_column_to_offset("ab\ncd", 0, 1) == -1
        assert line_column_to_offset("ab\ncd", 3, 1) == -1

    def test_column_clamped_to_line(self):
        assert line_column_to_offset("ab\ncd", 1, 10) == 2
        assert line_column_to_offset("ab\ncd", 2, 0) == 3

    def test_round_trip(self):
        text = '{\n  "a": 1,\n\n  "b": [true]\n}'
        for offset in range(len(text) + 1):
            line, column = offset_to_line_column(text, offset)
            assert line_column_to_offset(text, line, column) == offset
