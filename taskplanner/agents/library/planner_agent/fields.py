"""
Lenient field types for schemas filled from language-model JSON.

Every coercer here turns a malformed value into a safe default instead of
failing validation, so a partially wrong payload still yields a usable
structure.
"""

import math
from enum import Enum
from typing import Annotated, Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

DEFAULT_CONFIDENCE = 0.7


class SchemaModel(BaseModel):
    """Base for LLM-facing schemas: camelCase JSON, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class FrozenSchemaModel(SchemaModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


def coerce_str_list(value: Any) -> List[str]:
    """Normalize a value into a list of non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple, set)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [str(value)]


def coerce_confidence(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if math.isnan(confidence) or not 0.0 <= confidence <= 1.0:
        return DEFAULT_CONFIDENCE
    return confidence


def coerce_unit_interval(value: Any) -> float:
    """Clamp a probability-like value into [0, 1]; garbage becomes 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return min(max(number, 0.0), 1.0)


def coerce_number(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def coerce_records(value: Any, key: str = "name") -> List[Any]:
    """Accept a list of objects where the model sometimes emits bare strings."""
    if value is None:
        return []
    if isinstance(value, (dict, BaseModel)):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    records = []
    for item in value:
        if isinstance(item, str):
            records.append({key: item})
        elif isinstance(item, (dict, BaseModel)):
            records.append(item)
    return records


def lenient_enum(
    enum_cls: Type[Enum],
    default: Enum,
    synonyms: Optional[Mapping[str, Enum]] = None,
) -> BeforeValidator:
    """Build a validator mapping unknown enum values to ``default``."""

    def _coerce(value: Any) -> Enum:
        if isinstance(value, enum_cls):
            return value
        key = str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
        if synonyms and key in synonyms:
            return synonyms[key]
        try:
            return enum_cls(key)
        except ValueError:
            return default

    return BeforeValidator(_coerce)


Text = Annotated[str, BeforeValidator(coerce_text)]
StrList = Annotated[List[str], BeforeValidator(coerce_str_list)]
Confidence = Annotated[float, BeforeValidator(coerce_confidence)]
UnitInterval = Annotated[float, BeforeValidator(coerce_unit_interval)]
Number = Annotated[float, BeforeValidator(coerce_number)]
