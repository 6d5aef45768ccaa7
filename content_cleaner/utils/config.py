"""
Configuration Management Module
Handles loading and validation of environment variables and settings
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


EMAIL_FORMATS = ("clean", "original")
LOG_FORMATS = ("text", "json", "color")


class ConfigurationError(ValueError):
    """Raised when a setting is missing, malformed or out of range"""


@dataclass
class CleaningConfig:
    """Limits applied by the cleaning commands"""
    max_content_length: int
    summary_max_length: int
    max_input_chars: int
    email_format: str


@dataclass
class SystemConfig:
    """Configuration for system settings"""
    log_level: str
    log_file: Optional[str]
    log_format: str


class Config:
    """Main configuration class"""

    def __init__(self, env_file: str = ".env"):
        """
        Initialize configuration from environment file

        Variables already present in the process environment win over the
        file, which is python-dotenv's default behaviour.

        Args:
            env_file: Path to environment file (default: .env). A missing file
                is not an error; defaults apply.
        """
        load_dotenv(env_file)

        self.cleaning = self._load_cleaning_config()
        self.system = self._load_system_config()

    def _load_cleaning_config(self) -> CleaningConfig:
        """Load cleaning limits"""
        return CleaningConfig(
            max_content_length=self._get_int("CLEANER_MAX_CONTENT_LENGTH", 500),
            summary_max_length=self._get_int("CLEANER_SUMMARY_LENGTH", 150),
            max_input_chars=self._get_int("CLEANER_MAX_INPUT_CHARS", 100_000),
            email_format=os.getenv("EMAIL_FORMAT", "clean").strip().lower(),
        )

    def _load_system_config(self) -> SystemConfig:
        """Load system configuration"""
        return SystemConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_format=os.getenv("LOG_FORMAT", "text").strip().lower(),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Read an integer variable, reporting the offending key on bad input"""
        raw = os.getenv(key)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw.strip())
        except ValueError:
            raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None

    def validate(self) -> bool:
        """
        Validate configuration

        Returns:
            True if configuration is valid

        Raises:
            ConfigurationError: If configuration is invalid
        """
        cleaning = self.cleaning

        if cleaning.max_content_length <= 0:
            raise ConfigurationError("CLEANER_MAX_CONTENT_LENGTH must be positive")

        if cleaning.summary_max_length <= 0:
            raise ConfigurationError("CLEANER_SUMMARY_LENGTH must be positive")

        if cleaning.max_input_chars <= 0:
            raise ConfigurationError("CLEANER_MAX_INPUT_CHARS must be positive")

        if cleaning.email_format not in EMAIL_FORMATS:
            raise ConfigurationError(
                f"EMAIL_FORMAT must be one of {', '.join(EMAIL_FORMATS)}, "
                f"got {cleaning.email_format!r}"
            )

        if self.system.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"LOG_FORMAT must be one of {', '.join(LOG_FORMATS)}, "
                f"got {self.system.log_format!r}"
            )

        return True
