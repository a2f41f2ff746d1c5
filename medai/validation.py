# -*- coding: utf-8 -*-
"""Run pydantic schemas over raw request dicts and collect every violation."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import ValidationFailed, field_errors

T = TypeVar("T")

READ_ONLY_KEYS = frozenset({"id", "user_id", "patient_id", "created_at"})


def drop_nulls(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def merge_for_update(stored: Mapping[str, Any], changes: Mapping[str, Any], *, read_only: Iterable[str] = READ_ONLY_KEYS) -> Dict[str, Any]:
    """Overlay an update body onto the stored document; read-only keys keep their stored value."""
    skip = set(read_only)
    merged = {k: v for k, v in stored.items() if k not in skip}
    for key, value in changes.items():
        if key in skip:
            continue
        merged[key] = value
    return merged


def validate_payload(schema: Union[Type[T], TypeAdapter], data: Any, *, tagged: bool = False) -> T:
    """Validate `data` against a model or TypeAdapter.

    Raises ValidationFailed carrying one (field, message) pair per violation. With
    `tagged=True` the union tag that pydantic prepends to each location is dropped.
    """
    if not isinstance(data, Mapping):
        raise ValidationFailed([{"field": "body", "message": "Request body must be a JSON object."}])
    try:
        if isinstance(schema, TypeAdapter):
            return schema.validate_python(dict(data))
        if isinstance(schema, type) and issubclass(schema, BaseModel):
            return schema.model_validate(dict(data))
        return TypeAdapter(schema).validate_python(dict(data))
    except ValidationError as exc:
        raise ValidationFailed(field_errors(exc.errors(), strip=1 if tagged else 0)) from exc


def not_in_future(value: Union[date, datetime], label: str) -> Union[date, datetime]:
    if isinstance(value, datetime):
        aware = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        try:
            as_utc = aware.astimezone(timezone.utc)
        except OverflowError:
            raise ValueError(f"{label} is out of range.") from None
        if as_utc > datetime.now(timezone.utc):
            raise ValueError(f"{label} cannot be in the future.")
    elif value > date.today():
        raise ValueError(f"{label} cannot be in the future.")
    return value


def patient_id_from(
    body: Mapping[str, Any],
    patient_id: Optional[str],
    *,
    validate_rest: Callable[[], Any],
) -> str:
    """Resolve the parent profile id from the route or the body.

    When it is missing from both, the rest of the body is validated too so that every
    violation is reported together.
    """
    if patient_id:
        return patient_id
    value = body.get("patient_id")
    if isinstance(value, str) and value.strip():
        return value.strip()
    errors = [{"field": "patient_id", "message": "'patient_id' is required."}]
    try:
        validate_rest()
    except ValidationFailed as exc:
        errors.extend(exc.errors)
    raise ValidationFailed(errors)
