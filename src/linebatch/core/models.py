"""Pydantic models for records and run summaries."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecordKind(str, Enum):
    """Classification of a well-formed record."""

    NORMAL = "normal"
    ERROR_MARKER = "error_marker"


class Record(BaseModel):
    """One line of input text."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="0-based line number in the source")
    text: str = Field(..., description="Line content without the line terminator")
    full_length: int | None = Field(
        None, ge=0, description="Length of the original line when text holds only its start"
    )

    @property
    def length(self) -> int:
        """Length of the line as it appeared in the source."""
        return self.full_length if self.full_length is not None else len(self.text)


class RecordErrorSample(BaseModel):
    """A malformed record kept for reporting."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Line number of the malformed record")
    error_type: str = Field(..., description="Validation error class name")
    reason: str = Field(..., description="Validation error message")


class Summary(BaseModel):
    """Counters accumulated over a run.

    A summary is owned by a single worker while it is being updated;
    partial summaries from several workers are joined with :meth:`merge`
    or :func:`~src.linebatch.batch.processor.combine_summaries`.
    """

    total: int = Field(0, ge=0, description="Records processed")
    normal: int = Field(0, ge=0, description="Well-formed records that are not error markers")
    error_markers: int = Field(0, ge=0, description="Records equal to the error marker")
    malformed: int = Field(0, ge=0, description="Records that failed validation")
    characters: int = Field(0, ge=0, description="Characters across all records")
    error_samples: list[RecordErrorSample] = Field(default_factory=list)
    stopped_early: bool = Field(False, description="Run stopped before the source was exhausted")

    def record_outcome(self, record: Record, kind: RecordKind) -> None:
        """Count a well-formed record."""
        self.total += 1
        self.characters += record.length
        if kind == RecordKind.ERROR_MARKER:
            self.error_markers += 1
        else:
            self.normal += 1

    def record_malformed(
        self, record: Record, error: Exception, max_samples: int
    ) -> RecordErrorSample:
        """Count a malformed record and keep a sample while there is room."""
        self.total += 1
        self.malformed += 1
        self.characters += record.length
        sample = RecordErrorSample(
            index=record.index, error_type=type(error).__name__, reason=str(error)
        )
        # Records reach a worker in increasing index order, so the first
        # samples seen are the lowest-indexed ones.
        if len(self.error_samples) < max_samples:
            self.error_samples.append(sample)
        return sample

    def merge(self, other: "Summary", max_samples: int) -> "Summary":
        """Return a new summary holding both sets of counts."""
        samples = sorted(self.error_samples + other.error_samples, key=lambda s: s.index)
        return Summary(
            total=self.total + other.total,
            normal=self.normal + other.normal,
            error_markers=self.error_markers + other.error_markers,
            malformed=self.malformed + other.malformed,
            characters=self.characters + other.characters,
            error_samples=samples[:max_samples],
            stopped_early=self.stopped_early or other.stopped_early,
        )

    @property
    def well_formed(self) -> int:
        return self.normal + self.error_markers

    @property
    def error_rate(self) -> float:
        """Malformed records as a percentage of all records."""
        if self.total == 0:
            return 0.0
        return (self.malformed / self.total) * 100.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return self.model_dump(mode="json")
