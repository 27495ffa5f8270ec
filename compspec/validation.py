"""Configuration validation with schema definitions.

Provides declarative schema definitions (ConfigField, ConfigItems) used to
check the configuration file: types, choices, and unknown keys with a
close-match hint for typos.
"""

import difflib
from dataclasses import dataclass
from typing import Any

# Accepted spellings for boolean fields
BOOL_STRINGS = frozenset({"true", "yes", "on", "1", "false", "no", "off", "0"})

__all__ = [
    "ConfigField",
    "ConfigItems",
    "ConfigValidator",
    "format_config_error",
]


@dataclass
class ConfigField:
    """Describes an expected configuration field for validation.

    Attributes:
        name: The configuration key name
        field_type: Expected type (str, float, bool, list) or tuple of types for union
        default: Default value if not provided
        description: Human-readable description for error messages
        choices: List of valid values for enum-like fields
    """

    name: str
    field_type: type | tuple[type, ...] = str
    default: Any = None
    description: str = ""
    choices: list | None = None

    @property
    def type_name(self) -> str:
        """Return human-readable type name (e.g., 'str', 'float or int')."""
        if isinstance(self.field_type, tuple):
            return " or ".join(typ.__name__ for typ in self.field_type)
        return self.field_type.__name__


class ConfigItems(list):
    """A list of ConfigField items with cached lookup by name."""

    def __init__(self, *args: ConfigField) -> None:
        super().__init__(args)
        self._cache: dict[str, ConfigField] = {}

    def get(self, name: str) -> ConfigField | None:
        """Get a ConfigField by name, with caching for repeated lookups."""
        v = self._cache.get(name)
        if not v:
            for prop in self:
                if prop.name == name:
                    v = prop
                    self._cache[name] = v
                    break
        return v


def _find_similar_key(unknown_key: str, known_keys: list[str]) -> str | None:
    """Find a similar key using fuzzy matching."""
    matches = difflib.get_close_matches(unknown_key, known_keys, n=1)
    if matches:
        return matches[0]
    return None


def format_config_error(section: str, field: str, message: str, suggestion: str = "") -> str:
    """Format a configuration error message.

    Args:
        section: Section name
        field: Field name that has the error
        message: Error description
        suggestion: Optional suggestion for fixing the error

    Returns:
        Formatted error message
    """
    msg = f"[{section}] Config error for '{field}': {message}"
    if suggestion:
        msg += f" -> {suggestion}"
    return msg


def _matches_type(expected: type, value: Any) -> bool:  # noqa: ANN401
    if expected is bool:
        return isinstance(value, bool) or (isinstance(value, str) and value.lower() in BOOL_STRINGS)
    if expected in (int, float):
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, expected)


class ConfigValidator:
    """Validates one configuration section against a schema."""

    def __init__(self, config: dict, section: str) -> None:
        """Initialize the validator.

        Args:
            config: The section dictionary to validate
            section: Name of the section for error messages
        """
        self.config = config
        self.section = section

    def validate(self, schema: ConfigItems) -> list[str]:
        """Validate the section against the schema.

        Returns:
            List of error messages (empty if validation passed)
        """
        errors = []
        for field_def in schema:
            value = self.config.get(field_def.name)
            if value is None:
                continue
            expected = field_def.field_type if isinstance(field_def.field_type, tuple) else (field_def.field_type,)
            if not any(_matches_type(typ, value) for typ in expected):
                errors.append(
                    format_config_error(
                        self.section,
                        field_def.name,
                        f"Expected {field_def.type_name}, got {type(value).__name__}",
                    )
                )
                continue
            if field_def.choices is not None and value not in field_def.choices:
                choices_str = ", ".join(repr(c) for c in field_def.choices)
                errors.append(
                    format_config_error(self.section, field_def.name, f"Invalid value {value!r}", f"Valid options: {choices_str}")
                )
        errors.extend(self.unknown_keys(schema))
        return errors

    def unknown_keys(self, schema: ConfigItems) -> list[str]:
        """Report keys which are not part of the schema."""
        known = [field_def.name for field_def in schema]
        errors = []
        for key in self.config:
            if key in known:
                continue
            similar = _find_similar_key(key, known)
            errors.append(
                format_config_error(self.section, key, "Unknown option", f"Did you mean '{similar}'?" if similar else "")
            )
        return errors
