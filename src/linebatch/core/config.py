"""Configuration management for the line batch processor."""

import codecs
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import (
    ConfigFileNotFoundError,
    ConfigLoadError,
    EmptyConfigFileError,
    InvalidLogLevelError,
    InvalidYamlError,
    UnknownEncodingError,
)

STDIN_SOURCE = "-"


class BatchConfig(BaseSettings):
    """Run parameters for a batch job.

    Loaded once at start from ``BATCH_`` environment variables, a ``.env``
    file or a YAML file, and read-only afterwards.
    """

    model_config = SettingsConfigDict(
        env_prefix="BATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    input_path: Path | None = Field(None, description="Input file path, or '-' for stdin")
    concurrency: int = Field(1, ge=1, le=64, description="Number of parallel workers")
    error_threshold: int | None = Field(
        None, ge=0, description="Maximum malformed records before the run fails"
    )
    error_marker: str = Field("error", min_length=1, description="Text of an error marker record")
    max_record_length: int = Field(65536, ge=1, description="Maximum characters per record")
    max_error_samples: int = Field(10, ge=0, description="Malformed records kept in the summary")
    encoding: str = Field("utf-8", description="Input text encoding")
    deadline_seconds: float | None = Field(
        None, gt=0.0, description="Stop pulling new records after this many seconds"
    )
    log_level: str = Field("INFO", description="Application log level")

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError:
            raise UnknownEncodingError(v) from None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise InvalidLogLevelError(v)
        return level

    @property
    def reads_stdin(self) -> bool:
        return self.input_path is not None and str(self.input_path) == STDIN_SOURCE

    def with_overrides(self, **overrides: Any) -> "BatchConfig":
        """Return a validated copy with the non-None overrides applied."""
        data = self.model_dump()
        data.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return _validate_without_environment(type(self), data)
        except PydanticValidationError as e:
            raise ConfigLoadError(str(e)) from e

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "BatchConfig":
        """Load configuration from YAML file."""
        return load_config_from_yaml(config_path, cls)

    @classmethod
    def from_env_and_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path = ".env"
    ) -> "BatchConfig":
        """Load configuration from environment variables and optionally override with YAML."""
        if yaml_path:
            return cls.from_yaml(yaml_path)
        try:
            return cls(_env_file=env_file if Path(env_file).exists() else None)
        except PydanticValidationError as e:
            raise ConfigLoadError(str(e)) from e


def load_config_from_yaml(config_path: str | Path, config_class: type[BatchConfig]) -> BatchConfig:
    """Load configuration from YAML file.

    YAML values are validated on their own; environment variables and
    ``.env`` files are not consulted.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(str(config_path))

    try:
        with config_path.open(encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidYamlError(str(config_path), str(e)) from e
    except OSError as e:
        raise ConfigLoadError(str(e)) from e

    if config_data is None:
        raise EmptyConfigFileError(str(config_path))
    if not isinstance(config_data, dict):
        raise InvalidYamlError(str(config_path), "top level must be a mapping")

    try:
        return _validate_without_environment(config_class, config_data)
    except PydanticValidationError as e:
        raise ConfigLoadError(str(e)) from e


def _validate_without_environment(config_class: type[BatchConfig], data: dict) -> BatchConfig:
    """Validate ``data`` as ``config_class`` with no env or ``.env`` lookups."""

    class TempConfig(config_class):
        model_config = SettingsConfigDict(
            env_file=None,  # Don't load .env for explicit values
            case_sensitive=False,
            extra="ignore",
        )

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls,
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        ):
            return (init_settings,)

    validated = TempConfig(**data)
    return config_class.model_construct(_fields_set=validated.model_fields_set, **dict(validated))
