"""Tests for records and summaries."""

import threading

import pytest
from pydantic import ValidationError

from src.linebatch.batch.processor import combine_summaries
from src.linebatch.core.exceptions import ControlCharacterError, RecordTooLongError
from src.linebatch.core.models import Record, RecordErrorSample, RecordKind, Summary


class TestRecord:
    """Test Record model."""

    def test_record_creation(self):
        record = Record(index=3, text="hello")
        assert record.index == 3
        assert record.text == "hello"

    def test_record_is_immutable(self):
        record = Record(index=0, text="hello")
        with pytest.raises(ValidationError):
            record.text = "changed"
        assert record.text == "hello"

    def test_negative_index_rejected(self):
        with pytest.raises(ValidationError):
            Record(index=-1, text="x")

    def test_records_compare_by_value(self):
        """Equal content with different identity compares equal."""
        left = Record(index=1, text="".join(["err", "or"]))
        right = Record(index=1, text="error")
        assert left.text is not right.text
        assert left == right


class TestSummary:
    """Test Summary accumulation and merging."""

    def test_empty_summary(self):
        summary = Summary()
        assert summary.total == 0
        assert summary.error_rate == 0.0
        assert summary.error_samples == []
        assert summary.stopped_early is False

    def test_record_outcome(self):
        summary = Summary()
        summary.record_outcome(Record(index=0, text="abc"), RecordKind.NORMAL)
        summary.record_outcome(Record(index=1, text="error"), RecordKind.ERROR_MARKER)

        assert summary.total == 2
        assert summary.normal == 1
        assert summary.error_markers == 1
        assert summary.malformed == 0
        assert summary.characters == 8
        assert summary.well_formed == 2

    def test_record_malformed_keeps_bounded_samples(self):
        summary = Summary()
        for i in range(5):
            summary.record_malformed(Record(index=i, text="x"), RecordTooLongError(1, 0), 3)

        assert summary.total == 5
        assert summary.malformed == 5
        assert [s.index for s in summary.error_samples] == [0, 1, 2]
        assert summary.error_samples[0].error_type == "RecordTooLongError"
        assert summary.error_rate == 100.0

    def test_record_malformed_returns_sample(self):
        summary = Summary()
        sample = summary.record_malformed(
            Record(index=4, text="a\x01"), ControlCharacterError(1, "\x01"), 0
        )
        assert sample == RecordErrorSample(
            index=4, error_type="ControlCharacterError", reason=sample.reason
        )
        assert summary.error_samples == []

    def test_merge_sums_counters(self):
        left = Summary(total=3, normal=2, error_markers=1, characters=10)
        right = Summary(total=2, normal=1, malformed=1, characters=4, stopped_early=True)

        merged = left.merge(right, max_samples=10)

        assert merged.total == 5
        assert merged.normal == 3
        assert merged.error_markers == 1
        assert merged.malformed == 1
        assert merged.characters == 14
        assert merged.stopped_early is True
        # Inputs are left untouched
        assert left.total == 3
        assert right.total == 2

    def test_merge_keeps_lowest_indexed_samples(self):
        def sample(index):
            return RecordErrorSample(index=index, error_type="ValidationError", reason="bad")

        left = Summary(total=2, malformed=2, error_samples=[sample(4), sample(9)])
        right = Summary(total=2, malformed=2, error_samples=[sample(1), sample(7)])

        merged = left.merge(right, max_samples=3)

        assert [s.index for s in merged.error_samples] == [1, 4, 7]

    def test_to_dict(self):
        summary = Summary(total=1, normal=1, characters=2)
        data = summary.to_dict()
        assert data["total"] == 1
        assert data["normal"] == 1
        assert data["error_samples"] == []
        assert data["stopped_early"] is False


class TestCombine:
    """Test combining partial summaries."""

    def test_combine_empty(self):
        assert combine_summaries([]) == Summary()

    def test_combine_is_commutative_and_associative(self):
        a = Summary(total=1, normal=1, characters=1)
        b = Summary(total=2, error_markers=2, characters=10)
        c = Summary(
            total=1,
            malformed=1,
            error_samples=[RecordErrorSample(index=5, error_type="ValidationError", reason="x")],
        )

        assert combine_summaries([a, b, c]) == combine_summaries([c, a, b])
        assert a.merge(b, 10).merge(c, 10) == a.merge(b.merge(c, 10), 10)

    def test_two_workers_thousand_increments(self):
        """Two workers counting 1000 records each combine to exactly 2000."""
        partials = [Summary(), Summary()]

        def work(partial):
            for i in range(1000):
                partial.record_outcome(Record(index=i, text="x"), RecordKind.NORMAL)

        threads = [threading.Thread(target=work, args=(p,)) for p in partials]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        combined = combine_summaries(partials)

        assert combined.total == 2000
        assert combined.normal == 2000
