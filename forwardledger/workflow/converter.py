"""Temporal DataConverter for forwardledger frozen-dataclass types.

Dataclasses are tagged with their qualified name on the way out and
rebuilt field by field on the way in. Decimals travel as strings so no
precision is lost in JSON.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, get_type_hints

from temporalio.converter import (
    CompositePayloadConverter,
    DataConverter,
    DefaultPayloadConverter,
    JSONPlainPayloadConverter,
    JSONTypeConverter,
)

_TYPE_TAG = "__type__"
_DECIMAL_TAG = "__decimal__"
_FROZENSET_TAG = "__frozenset__"


def _to_json(obj: Any) -> Any:
    """Recursively convert domain objects to JSON-compatible values."""
    if obj is None or isinstance(obj, bool | int | float | str):
        return obj
    if isinstance(obj, Decimal):
        return {_DECIMAL_TAG: str(obj)}
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, frozenset):
        return {_FROZENSET_TAG: [_to_json(x) for x in sorted(obj)]}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        d: dict[str, Any] = {_TYPE_TAG: f"{type(obj).__module__}.{type(obj).__qualname__}"}
        for field in dataclasses.fields(obj):
            d[field.name] = _to_json(getattr(obj, field.name))
        return d
    if isinstance(obj, tuple | list):
        return [_to_json(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): _to_json(v) for k, v in obj.items()}
    raise TypeError(f"Cannot encode {type(obj).__name__} for Temporal")


class ForwardJSONEncoder(json.JSONEncoder):
    def default(self, o: Any) -> Any:
        return _to_json(o)


# Only classes from these modules are ever instantiated from a payload.
_ALLOWED_MODULES: frozenset[str] = frozenset({
    "forwardledger.contract.states",
    "forwardledger.core.money",
    "forwardledger.core.types",
    "forwardledger.workflow.types",
})

_CLASS_CACHE: dict[str, type] = {}


def _resolve_class(fqn: str) -> type | None:
    if fqn in _CLASS_CACHE:
        return _CLASS_CACHE[fqn]
    module_name, _, class_name = fqn.rpartition(".")
    if module_name not in _ALLOWED_MODULES:
        return None
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    cls = getattr(module, class_name, None)
    if isinstance(cls, type):
        _CLASS_CACHE[fqn] = cls
        return cls
    return None


def _from_json(hint: Any, value: Any) -> Any:  # noqa: PLR0911
    """Recursively convert JSON values back to domain types."""
    if value is None:
        return None
    if isinstance(value, dict) and _TYPE_TAG in value:
        cls = _resolve_class(value[_TYPE_TAG])
        if cls is None or not dataclasses.is_dataclass(cls):
            raise TypeError(f"Refusing to decode {value[_TYPE_TAG]!r}")
        hints = get_type_hints(cls)
        kwargs = {
            f.name: _from_json(hints.get(f.name, Any), value[f.name])
            for f in dataclasses.fields(cls)
            if f.name in value
        }
        return cls(**kwargs)
    if isinstance(value, dict) and _DECIMAL_TAG in value:
        return Decimal(value[_DECIMAL_TAG])
    if isinstance(value, dict) and _FROZENSET_TAG in value:
        return frozenset(_from_json(Any, x) for x in value[_FROZENSET_TAG])
    if hint is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)
    if isinstance(hint, type) and issubclass(hint, Enum) and not isinstance(value, Enum):
        return hint(value)
    if isinstance(value, list):
        return tuple(_from_json(Any, x) for x in value)
    return value


class ForwardJSONTypeConverter(JSONTypeConverter):
    """Decode tagged JSON back into forwardledger types."""

    def to_typed_value(self, hint: type, value: Any) -> Any:
        if isinstance(value, dict) and (
            _TYPE_TAG in value or _DECIMAL_TAG in value or _FROZENSET_TAG in value
        ):
            return _from_json(hint, value)
        if hasattr(hint, "__value__"):
            # PEP 695 type alias
            return _from_json(hint.__value__, value)
        return JSONTypeConverter.Unhandled


class ForwardPayloadConverter(CompositePayloadConverter):
    def __init__(self) -> None:
        json_converter = JSONPlainPayloadConverter(
            encoder=ForwardJSONEncoder,
            custom_type_converters=[ForwardJSONTypeConverter()],
        )
        super().__init__(
            *(
                c
                for c in DefaultPayloadConverter.default_encoding_payload_converters
                if not isinstance(c, JSONPlainPayloadConverter)
            ),
            json_converter,
        )


FORWARD_DATA_CONVERTER = DataConverter(
    payload_converter_class=ForwardPayloadConverter,
)
