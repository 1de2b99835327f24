"""Batch Processing Module
=======================

Loading, processing and combining line records.
"""

from .processor import (
    BatchProcessor,
    BatchProgressCallback,
    ConsoleProgressCallback,
    classify_record,
    combine_summaries,
    process_records,
)
from .source import RecordSource, load_records

__all__ = [
    "BatchProcessor",
    "BatchProgressCallback",
    "ConsoleProgressCallback",
    "RecordSource",
    "classify_record",
    "combine_summaries",
    "load_records",
    "process_records",
]
