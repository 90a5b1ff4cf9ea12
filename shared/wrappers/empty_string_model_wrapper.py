from datetime import date, datetime
import re
from typing import Any, List, Union, get_args, get_origin
from pydantic import BaseModel, model_validator

INVISIBLE_CHARS_PATTERN = re.compile(
    r'[\u200e\u200f\u202a-\u202e\u2066-\u2069\ufeff]')


def deep_clean(value: Any):
    """Recursively strip strings, drop invisible chars and turn blank strings into None."""

    if isinstance(value, BaseModel):
        return type(value)(**deep_clean(value.model_dump()))

    if isinstance(value, dict):
        return {k: deep_clean(v) for k, v in value.items()}

    if isinstance(value, list):
        return [deep_clean(v) for v in value]

    if isinstance(value, str):
        cleaned = INVISIBLE_CHARS_PATTERN.sub("", value).strip()
        return None if cleaned == "" else cleaned

    return value


def safe_parse_date(value: Any):
    """Convert date strings to date/datetime, return None if invalid."""
    if value is None or value == "":
        return None

    if isinstance(value, (date, datetime)):
        return value

    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def _is_date_annotation(annotation) -> bool:
    origin = get_origin(annotation)
    args = get_args(annotation)
    return (
        annotation in (date, datetime)
        or (origin is Union and any(a in (date, datetime) for a in args))
    )


class EmptyStringModel(BaseModel):
    """Input model that tolerates form-style payloads.

    Blank strings arrive as ``None`` so "required" checks only have to look
    for ``None``; unparseable dates are dropped instead of failing the whole
    request; missing list fields come back as ``[]``.
    """
    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @model_validator(mode="before")
    @classmethod
    def clean_input(cls, values):
        if not isinstance(values, dict):
            return values

        values = deep_clean(values)
        for field_name, field in cls.model_fields.items():
            if field_name in values and _is_date_annotation(field.annotation):
                values[field_name] = safe_parse_date(values[field_name])
        return values

    @model_validator(mode="after")
    def finalize_lists(self):
        for field_name, field in type(self).model_fields.items():
            annotation = field.annotation
            origin = get_origin(annotation)
            args = get_args(annotation)
            is_list = (
                origin in (list, List)
                or (origin is Union and any(get_origin(a) in (list, List) for a in args))
            )
            if is_list and getattr(self, field_name) is None:
                object.__setattr__(self, field_name, [])
        return self
