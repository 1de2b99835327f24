"""Tests for text accumulation and summary rendering."""

from src.linebatch.core.models import RecordErrorSample, Summary
from src.linebatch.utils.text import TextBuffer, render_summary


class TestTextBuffer:
    """Test TextBuffer."""

    def test_append_and_getvalue(self):
        buffer = TextBuffer()
        buffer.append("a").append("b").append("c")
        assert buffer.getvalue() == "abc"
        assert len(buffer) == 3

    def test_separator(self):
        buffer = TextBuffer(separator=", ")
        buffer.extend(["x", "y", "z"])
        assert buffer.getvalue() == "x, y, z"
        assert len(buffer) == len("x, y, z")

    def test_getvalue_is_repeatable(self):
        buffer = TextBuffer(separator="-")
        buffer.extend(["1", "2"])
        assert buffer.getvalue() == "1-2"
        assert buffer.getvalue() == "1-2"
        buffer.append("3")
        assert buffer.getvalue() == "1-2-3"
        assert str(buffer) == "1-2-3"

    def test_separator_after_empty_parts(self):
        buffer = TextBuffer(separator="-")
        buffer.append("")
        assert buffer.getvalue() == ""
        buffer.append("x")
        assert buffer.getvalue() == "-x"
        assert len(buffer) == 2

    def test_line(self):
        buffer = TextBuffer()
        buffer.line("first").line()
        assert buffer.getvalue() == "first\n\n"

    def test_clear(self):
        buffer = TextBuffer()
        buffer.append("abc")
        buffer.clear()
        assert buffer.getvalue() == ""
        assert len(buffer) == 0

    def test_matches_concatenation(self):
        buffer = TextBuffer()
        expected = ""
        for i in range(200):
            chunk = f"{7}-{i}"
            buffer.append(chunk)
            expected += chunk
        assert buffer.getvalue() == expected


class TestRenderSummary:
    """Test the text report."""

    def test_counts_rendered(self):
        summary = Summary(total=4, normal=2, error_markers=1, malformed=1, characters=12)

        report = render_summary(summary, source="input.txt")

        assert "Source: input.txt" in report
        assert "Total records: 4" in report
        assert "Normal: 2" in report
        assert "Error markers: 1" in report
        assert "Malformed: 1 (25.0%)" in report
        assert "Characters: 12" in report
        assert "Stopped early" not in report
        assert report.endswith("\n")

    def test_error_samples_rendered(self):
        summary = Summary(
            total=1,
            malformed=1,
            error_samples=[
                RecordErrorSample(index=2, error_type="RecordTooLongError", reason="too long")
            ],
        )

        report = render_summary(summary)

        assert "Source:" not in report
        assert "line 3: RecordTooLongError: too long" in report

    def test_stopped_early_rendered(self):
        report = render_summary(Summary(stopped_early=True))
        assert "Stopped early" in report
