"""Line Batch Processor
====================

A bounded, concurrent batch job over newline-delimited text:
- Lazy, single-pass loading with guaranteed release of the input
- Per-worker partial summaries combined once at the end
- Malformed records counted and sampled, never silently dropped
"""

__version__ = "1.0.0"
__author__ = "Line Batch Team"

from .batch import BatchProcessor, combine_summaries, load_records, process_records
from .core.config import BatchConfig
from .core.exceptions import LineBatchError, SourceError, ValidationError
from .core.models import Record, RecordKind, Summary

__all__ = [
    "BatchConfig",
    "BatchProcessor",
    "LineBatchError",
    "Record",
    "RecordKind",
    "SourceError",
    "Summary",
    "ValidationError",
    "combine_summaries",
    "load_records",
    "process_records",
]
