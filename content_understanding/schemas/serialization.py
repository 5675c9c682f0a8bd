"""
Wire (de)serialization settings.

The models declare camelCase aliases; whether aliases are used and whether
unset fields are dropped is decided by a ``SerializerOptions`` value passed to
every encode/decode call instead of process-wide state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

M = TypeVar("M", bound=BaseModel)


class WireModel(BaseModel):
    """Base for every model that crosses the wire (camelCase aliases)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenWireModel(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


@dataclass(frozen=True)
class SerializerOptions:
    by_alias: bool = True
    exclude_none: bool = True
    strict: bool = False


WIRE = SerializerOptions()


def encode(model: BaseModel, options: SerializerOptions = WIRE) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=options.by_alias, exclude_none=options.exclude_none)


def encode_json(model: BaseModel, options: SerializerOptions = WIRE) -> bytes:
    return json.dumps(encode(model, options), separators=(",", ":")).encode("utf-8")


def decode(model_cls: Type[M], data: Any, options: SerializerOptions = WIRE) -> M:
    return model_cls.model_validate(data, strict=options.strict)
