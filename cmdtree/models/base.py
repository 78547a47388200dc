"""
Base model for the cmdtree configuration.

Every configuration node is immutable once loaded and rejects unknown keys,
so typos in the configuration file surface as validation errors.
"""
from typing import Any, Dict, List

from pydantic import AliasChoices, BaseModel, ConfigDict


class ConfigModel(BaseModel):
    """Common base for all configuration nodes."""
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


def aliases(*names: str) -> AliasChoices:
    """Accepted input keys for a field (canonical name first)."""
    return AliasChoices(*names)


def as_list(value: Any) -> List[Any]:
    """Normalize a scalar-or-list configuration value to a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def as_mapping(value: Any) -> Dict[str, Any]:
    """Normalize an empty (null) mapping section to an empty dict."""
    if value is None:
        return {}
    return value
