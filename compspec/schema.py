"""Schema of the [compspec] configuration section."""

from .constants import DEFAULT_RESOLVER_TIMEOUT
from .validation import ConfigField, ConfigItems

CORE_SECTION = "compspec"

CORE_SCHEMA = ConfigItems(
    ConfigField("timeout", (int, float), DEFAULT_RESOLVER_TIMEOUT, "Seconds an external resolver may run"),
    ConfigField("disabled", list, [], "Commands for which no completion is produced"),
    ConfigField("debug_log", str, "", "File to write logs to"),
)
