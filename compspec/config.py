"""Configuration wrapper providing typed access and schema defaults."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import logging

    from .validation import ConfigItems

__all__ = ["Configuration"]

# Type alias for config values
ConfigValueType = float | bool | str | list | dict


class Configuration(dict):
    """One configuration section, with typed getters.

    Values missing from the file fall back to the schema defaults.
    """

    def __init__(
        self,
        *args: Any,  # noqa: ANN401
        logger: logging.Logger,
        schema: ConfigItems | None = None,
        **kwargs: Any,  # noqa: ANN401
    ):
        """Initialize the configuration object.

        Args:
            *args: Arguments for dict
            logger: Logger instance to use for warnings
            schema: Optional list of ConfigField definitions for automatic defaults
            **kwargs: Keyword arguments for dict
        """
        super().__init__(*args, **kwargs)
        self.log = logger
        self._schema_defaults: dict[str, ConfigValueType] = {}
        if schema:
            self.set_schema(schema)

    def set_schema(self, schema: ConfigItems) -> None:
        """Set or update the schema for default value lookups."""
        self._schema_defaults = {field.name: field.default for field in schema if field.default is not None}

    def get(self, name: str, default: ConfigValueType | None = None) -> ConfigValueType | None:  # type: ignore[override]
        """Get a value with schema-aware defaults.

        Args:
            name: The configuration key
            default: Fallback if key is missing and not in schema defaults

        Returns:
            The value, schema default, or provided default
        """
        if name in self:
            return dict.get(self, name)  # type: ignore[return-value]
        return self._schema_defaults.get(name, default)

    def get_float(self, name: str, default: float = 0.0) -> float:
        """Get a float value.

        Args:
            name: The key name
            default: Default value if key is missing or invalid

        Returns:
            The float value
        """
        value = self.get(name)
        if value is None:
            return default
        try:
            return float(value)  # type: ignore[arg-type]
        except (ValueError, TypeError):
            self.log.warning("Invalid float value for %s: %s", name, value)
            return default

    def get_str(self, name: str, default: str = "") -> str:
        """Get a string value."""
        value = self.get(name)
        if value is None:
            return default
        return str(value)

    def get_list(self, name: str, default: list[str] | None = None) -> list[str]:
        """Get a list of strings, a single string being a one item list."""
        value = self.get(name)
        if value is None:
            return list(default or [])
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(v) for v in value]
        self.log.warning("Invalid list value for %s: %s", name, value)
        return list(default or [])
