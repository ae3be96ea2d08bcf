"""
Unified configuration for schemata.

Holds the generation defaults a request builder starts from, the output-mode
override, and logging settings. Values can also be read from the
environment (``SCHEMATA_*``), with a ``.env`` file honoured via python-dotenv.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from ..schemas.base import OutputMode
from .exceptions import ConfigurationError

ENV_PREFIX = "SCHEMATA_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


@dataclass(frozen=True)
class StructuredConfig:
    """
    Defaults applied to every structured request built from this config.

    Per-request builder calls (``using_temperature``, ``with_max_tokens``,
    ``with_output_mode``) always take precedence over these values.
    """

    # === Generation defaults ===
    temperature: Optional[float] = None
    """Sampling temperature (0.0-2.0); ``None`` leaves the provider default"""

    max_tokens: int = 2048
    """Maximum tokens for the completion"""

    # === Output mode ===
    output_mode: Optional[OutputMode] = None
    """Explicit output mode override; ``None`` lets the provider/model decide"""

    strip_code_fences: bool = True
    """Strip a Markdown code fence around best-effort JSON before parsing"""

    # === Logging ===
    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"""

    # === Validation ===
    def __post_init__(self):
        """Validate configuration values after initialization."""
        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(f"temperature must be between 0.0 and 2.0, got {self.temperature}")

        if self.max_tokens <= 0:
            raise ConfigurationError(f"max_tokens must be positive, got {self.max_tokens}")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigurationError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level}")

    def configure_logging(self) -> None:
        """Apply ``log_level`` to the library logger."""
        from ..utils.logger import configure_logging

        configure_logging(self.log_level)

    @classmethod
    def for_development(cls) -> 'StructuredConfig':
        """Create configuration optimized for development."""
        return cls(
            temperature=0.0,    # Reproducible outputs while iterating
            max_tokens=1024,
            log_level="DEBUG"
        )

    @classmethod
    def for_production(cls) -> 'StructuredConfig':
        """Create configuration optimized for production."""
        return cls(
            max_tokens=4096,
            log_level="WARNING"
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> 'StructuredConfig':
        """Build a config from ``SCHEMATA_*`` environment variables.

        A ``.env`` file is loaded first; variables already set in the
        process environment win over the file.

        Recognised variables: ``SCHEMATA_TEMPERATURE``, ``SCHEMATA_MAX_TOKENS``,
        ``SCHEMATA_OUTPUT_MODE``, ``SCHEMATA_STRIP_CODE_FENCES``,
        ``SCHEMATA_LOG_LEVEL``.
        """
        load_dotenv(dotenv_path, override=False)

        kwargs = {}
        raw = os.environ.get(f"{ENV_PREFIX}TEMPERATURE")
        if raw:
            kwargs["temperature"] = _parse_number(raw, "TEMPERATURE", float)

        raw = os.environ.get(f"{ENV_PREFIX}MAX_TOKENS")
        if raw:
            kwargs["max_tokens"] = _parse_number(raw, "MAX_TOKENS", int)

        raw = os.environ.get(f"{ENV_PREFIX}OUTPUT_MODE")
        if raw:
            try:
                kwargs["output_mode"] = OutputMode(raw.strip().lower())
            except ValueError:
                raise ConfigurationError(
                    f"{ENV_PREFIX}OUTPUT_MODE must be one of "
                    f"{', '.join(m.value for m in OutputMode)}, got {raw!r}"
                )

        raw = os.environ.get(f"{ENV_PREFIX}STRIP_CODE_FENCES")
        if raw:
            value = raw.strip().lower()
            if value not in _TRUTHY + _FALSY:
                raise ConfigurationError(f"{ENV_PREFIX}STRIP_CODE_FENCES must be a boolean, got {raw!r}")
            kwargs["strip_code_fences"] = value in _TRUTHY

        raw = os.environ.get(f"{ENV_PREFIX}LOG_LEVEL")
        if raw:
            kwargs["log_level"] = raw.strip().upper()

        return cls(**kwargs)


def _parse_number(raw: str, name: str, kind):
    try:
        return kind(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a {kind.__name__}, got {raw!r}")
