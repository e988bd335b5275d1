"""
JSON Event Serializer

Domain event (attrs) <-> envelope body (orjson bytes).

Wire format:
- Field names in camelCase (todo_id -> todoId)
- UUID as string, datetime as ISO-8601, enums by value

Reading is lenient on naming: body keys are matched to attrs fields case-insensitively with
underscores ignored, so both `todoId` and `TodoId` resolve to `todo_id`. Unknown keys are
ignored. Type coercion is done by the attrs converters declared on each event class.
"""

from datetime import datetime
from enum import Enum
from functools import singledispatch
from typing import Any, TypeVar
import uuid

import attrs
import orjson

from src.platform.exception.exceptions import MalformedEventError


_E = TypeVar('_E')


# ============================================================================
# Value Converters (singledispatch)
# ============================================================================


@singledispatch
def _to_json_value(value: Any) -> Any:
    return value


@_to_json_value.register(uuid.UUID)
def _(value: uuid.UUID) -> str:
    return str(value)


@_to_json_value.register(datetime)
def _(value: datetime) -> str:
    return value.isoformat()


@_to_json_value.register(Enum)
def _(value: Enum) -> Any:
    return value.value


# ============================================================================
# Public API
# ============================================================================


def to_camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def _normalize_key(name: str) -> str:
    return name.replace('_', '').lower()


def domain_event_to_dict(event: object) -> dict[str, Any]:
    return {
        to_camel_case(field.name): _to_json_value(getattr(event, field.name))
        for field in attrs.fields(event.__class__)
    }


def serialize_domain_event(event: object) -> bytes:
    return orjson.dumps(domain_event_to_dict(event))


def deserialize_domain_event(event_class: type[_E], body: bytes | str) -> _E:
    """
    Parse an envelope body into `event_class`.

    Raises:
        MalformedEventError: invalid JSON, not an object, missing required field,
            or a field value the converter rejects
    """
    try:
        payload = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise MalformedEventError(f'{event_class.__name__}: body is not valid JSON ({e})') from e

    if not isinstance(payload, dict):
        raise MalformedEventError(
            f'{event_class.__name__}: body must be a JSON object, got {type(payload).__name__}'
        )

    by_key = {_normalize_key(str(key)): value for key, value in payload.items()}

    kwargs: dict[str, Any] = {}
    for field in attrs.fields(event_class):
        if not field.init:
            continue
        key = _normalize_key(field.name)
        if key in by_key:
            kwargs[field.name] = by_key[key]
        elif field.default is attrs.NOTHING:
            raise MalformedEventError(
                f'{event_class.__name__}: missing required field "{to_camel_case(field.name)}"'
            )

    try:
        return event_class(**kwargs)
    except (TypeError, ValueError, KeyError) as e:
        raise MalformedEventError(f'{event_class.__name__}: invalid field value ({e})') from e
