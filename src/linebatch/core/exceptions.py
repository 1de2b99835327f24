"""Custom exceptions for the line batch processor."""

from typing import Any


class LineBatchError(Exception):
    """Base exception for all line batch errors."""

    def __init__(self, message: str, details: Any | None = None):
        super().__init__(message)
        self.details = details


class SourceError(LineBatchError):
    """Exception raised when the input source cannot be opened or read.

    Always fatal: the run aborts and the source is named in the message.
    """

    def __init__(self, source: str, reason: str):
        super().__init__(f"Cannot read input source {source}: {reason}")
        self.source = source


class InputFileNotFoundError(SourceError):
    """Exception raised when the input file does not exist."""

    def __init__(self, source: str):
        super().__init__(source, "file not found")


class ValidationError(LineBatchError):
    """Exception raised when a record fails a format check."""


class RecordTooLongError(ValidationError):
    """Exception raised when a record exceeds the configured length."""

    def __init__(self, length: int, limit: int):
        super().__init__(f"Record length {length} exceeds limit {limit}")


class ControlCharacterError(ValidationError):
    """Exception raised when a record contains a control character."""

    def __init__(self, position: int, char: str):
        super().__init__(f"Control character {char!r} at position {position}")


class RecordEncodingError(ValidationError):
    """Exception raised when a record contains undecodable bytes."""

    def __init__(self, position: int, encoding: str):
        super().__init__(f"Undecodable byte at position {position} for encoding {encoding}")


class ErrorThresholdExceededError(ValidationError):
    """Exception raised when malformed records exceed the error threshold.

    ``details`` holds the final summary of the run.
    """

    def __init__(self, malformed: int, threshold: int, summary: Any | None = None):
        super().__init__(
            f"{malformed} malformed records exceed error threshold {threshold}", details=summary
        )
        self.malformed = malformed
        self.threshold = threshold


class ProcessingError(LineBatchError):
    """Exception raised when record classification fails unexpectedly."""

    def __init__(self, index: int, error: Exception):
        super().__init__(
            f"Processing failed at record {index}: {type(error).__name__}: {error}",
            details={"index": index},
        )
        self.index = index


class ConfigurationError(LineBatchError):
    """Exception raised for configuration errors."""


class ConfigFileNotFoundError(ConfigurationError):
    """Exception raised when configuration file is not found."""

    def __init__(self, config_path: str):
        super().__init__(f"Configuration file not found: {config_path}")


class EmptyConfigFileError(ConfigurationError):
    """Exception raised when configuration file is empty."""

    def __init__(self, config_path: str):
        super().__init__(f"Empty configuration file: {config_path}")


class InvalidYamlError(ConfigurationError):
    """Exception raised for invalid YAML content."""

    def __init__(self, config_path: str, error: str):
        super().__init__(f"Invalid YAML in {config_path}: {error}")


class ConfigLoadError(ConfigurationError):
    """Exception raised when configuration loading fails."""

    def __init__(self, error: str):
        super().__init__(f"Failed to load configuration: {error}")


class UnknownEncodingError(ValueError):
    """Exception raised for an encoding name Python does not know."""

    def __init__(self, encoding: str):
        super().__init__(f"Unknown encoding: {encoding}")


class InvalidLogLevelError(ValueError):
    """Exception raised for an unrecognised log level name."""

    def __init__(self, level: str):
        super().__init__(f"Invalid log level: {level}")
