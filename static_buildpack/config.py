"""Build-time settings for the static buildpack.

Values come from the process environment, overlaid by the files the
platform places under ``<platform>/env/`` (one file per variable, the file
name is the variable name). Everything else in the package receives a
``Settings`` object explicitly instead of reading ``os.environ``.
"""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, Mapping, Optional, Self

from .errors import ConfigValidationError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_LOG_LEVEL = 'INFO'


class Settings:
    """Typed, validated view over the build environment."""

    # Configuration schema for validation
    CONFIG_SCHEMA = {
        'PORT': {'type': int, 'min': 1, 'max': 65535, 'default': DEFAULT_PORT},
        'BP_STATIC_OUTPUT_DIR': {'type': str, 'validator': 'validate_output_dir', 'default': None},
        'BP_LOG_LEVEL': {'type': str, 'choices': ['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                         'default': DEFAULT_LOG_LEVEL},
    }

    def __init__(self: Self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Initialize settings.

        Args:
            environ: Raw variable mapping. Defaults to an empty mapping so
                that tests never pick up the caller's environment.
        """
        self._environ: Dict[str, str] = dict(environ or {})

    @classmethod
    def from_environment(
        cls,
        platform_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> 'Settings':
        """Build settings from the process environment and platform env files.

        Args:
            platform_dir: CNB platform directory, if any.
            environ: Process environment. Defaults to ``os.environ``.

        Returns:
            Settings instance.
        """
        merged = dict(os.environ if environ is None else environ)

        if platform_dir is not None:
            merged.update(read_platform_env(Path(platform_dir), cls.CONFIG_SCHEMA))

        return cls(merged)

    def raw(self: Self, key: str) -> Optional[str]:
        """Return the unparsed value of a variable, or None."""
        value = self._environ.get(key)
        if value is None or value.strip() == '':
            return None
        return value.strip()

    def get(self: Self, key: str) -> Any:
        """Get a parsed and validated setting.

        Args:
            key: Variable name, must be part of ``CONFIG_SCHEMA``.

        Returns:
            The parsed value, or the schema default when unset.

        Raises:
            ConfigValidationError: If the value is malformed.
        """
        schema = self.CONFIG_SCHEMA[key]
        value = self.raw(key)

        if value is None:
            return schema['default']

        if schema['type'] is int:
            try:
                value = int(value, 10)
            except ValueError:
                raise ConfigValidationError(f"{key} must be an integer, got {value!r}")
        elif key == 'BP_LOG_LEVEL':
            value = value.upper()

        if 'choices' in schema and value not in schema['choices']:
            raise ConfigValidationError(
                f"{key} must be one of: {', '.join(schema['choices'])}, got {value!r}"
            )
        if 'min' in schema and value < schema['min']:
            raise ConfigValidationError(f"{key} must be >= {schema['min']}, got {value}")
        if 'max' in schema and value > schema['max']:
            raise ConfigValidationError(f"{key} must be <= {schema['max']}, got {value}")

        if 'validator' in schema:
            validator = getattr(self, schema['validator'])
            if not validator(value):
                raise ConfigValidationError(f"{key} has an invalid value: {value!r}")

        return value

    def validate_output_dir(self: Self, value: str) -> bool:
        """Check that an output directory is relative and stays inside the app."""
        return is_contained_relative_path(value)

    @property
    def port(self: Self) -> int:
        return self.get('PORT')

    @property
    def output_dir(self: Self) -> Optional[str]:
        return self.get('BP_STATIC_OUTPUT_DIR')

    @property
    def log_level(self: Self) -> str:
        return self.get('BP_LOG_LEVEL')

    def validate(self: Self) -> None:
        """Validate every known setting at once.

        Raises:
            ConfigValidationError: Listing all malformed values.
        """
        errors = []
        for key in self.CONFIG_SCHEMA:
            try:
                self.get(key)
            except ConfigValidationError as e:
                errors.append(str(e))

        if errors:
            raise ConfigValidationError(f"Configuration validation failed: {'; '.join(errors)}")


def read_platform_env(platform_dir: Path, keys: Iterable[str]) -> Dict[str, str]:
    """Read the ``<platform>/env/<KEY>`` files for the given keys.

    Files for other variables belong to other buildpacks and are never
    opened.

    Args:
        platform_dir: CNB platform directory.
        keys: Variable names to read.

    Returns:
        Variable name to value. Empty if the directory does not exist.

    Raises:
        ConfigValidationError: If a file for one of the keys is unreadable.
    """
    env_dir = platform_dir / 'env'
    if not env_dir.is_dir():
        return {}

    values = {}
    for key in sorted(keys):
        entry = env_dir / key
        if not entry.is_file():
            continue
        try:
            values[key] = entry.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigValidationError(f"Cannot read {key} from {entry}: {e}")
        logger.debug(f"Read platform env {key}")

    return values


def is_contained_relative_path(value: str) -> bool:
    """Return True if ``value`` is a non-empty relative path without ``..``."""
    if not value:
        return False
    path = PurePosixPath(value)
    if path.is_absolute() or '..' in path.parts:
        return False
    return path != PurePosixPath('.')
