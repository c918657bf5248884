"""Conversion options and logging setup."""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from loguru import logger

DEFAULT_LOG_LEVEL = 'INFO'

_TRUTHY = {'1', 'true', 'yes', 'on'}
_FALSY = {'0', 'false', 'no', 'off'}


class ConversionMode(str, Enum):
    SPEC_TO_DOC = 'SPEC_TO_DOC'
    DOC_TO_SPEC = 'DOC_TO_SPEC'


class SpecFormat(str, Enum):
    YAML = 'YAML'
    JSON = 'JSON'

    @property
    def extension(self) -> str:
        return 'json' if self is SpecFormat.JSON else 'yaml'


@dataclass(frozen=True)
class ConversionOptions:
    include_examples: bool = True
    include_authentication: bool = True
    # Only relevant for document -> spec.
    output_format: SpecFormat = SpecFormat.YAML

    def with_format(self, output_format: SpecFormat) -> 'ConversionOptions':
        return ConversionOptions(
            include_examples=self.include_examples,
            include_authentication=self.include_authentication,
            output_format=output_format,
        )


def parse_spec_format(value, default: SpecFormat = SpecFormat.YAML) -> SpecFormat:
    if isinstance(value, SpecFormat):
        return value
    if not value:
        return default
    try:
        return SpecFormat(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"Unsupported output format: {value}") from None


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def options_from_env(environ: Optional[Mapping[str, str]] = None) -> ConversionOptions:
    """Read default conversion options from SPEC_DOC_* environment variables."""
    env = os.environ if environ is None else environ
    return ConversionOptions(
        include_examples=_env_flag(env, 'SPEC_DOC_INCLUDE_EXAMPLES', True),
        include_authentication=_env_flag(env, 'SPEC_DOC_INCLUDE_AUTH', True),
        output_format=parse_spec_format(env.get('SPEC_DOC_OUTPUT_FORMAT')),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Route loguru output to stderr at SPEC_DOC_LOG_LEVEL (default INFO)."""
    resolved = (level or os.getenv('SPEC_DOC_LOG_LEVEL') or DEFAULT_LOG_LEVEL).upper()
    logger.remove()
    logger.add(sys.stderr, level=resolved)
    logger.debug("Logging configured at {}", resolved)
