"""Core components for line batch processing."""

from .config import BatchConfig
from .exceptions import (
    ConfigurationError,
    ErrorThresholdExceededError,
    LineBatchError,
    ProcessingError,
    SourceError,
    ValidationError,
)
from .models import Record, RecordErrorSample, RecordKind, Summary

__all__ = [
    "BatchConfig",
    "ConfigurationError",
    "ErrorThresholdExceededError",
    "LineBatchError",
    "ProcessingError",
    "Record",
    "RecordErrorSample",
    "RecordKind",
    "SourceError",
    "Summary",
    "ValidationError",
]
