from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import orjson
import yaml

from .exceptions import ConfigurationError


class DocumentCodec(ABC):
    """Abstract interface for translating between stored bytes and document payloads."""

    name: str

    @abstractmethod
    def encode(self, payload: Mapping[str, Any]) -> bytes:
        """Serialize a ``{"data": ..., "id": ...}`` payload."""

    @abstractmethod
    def decode(self, raw: bytes) -> dict[str, Any]:
        """Deserialize bytes back into a payload mapping."""


class JsonCodec(DocumentCodec):
    name = "json"

    def __init__(self, *, indent: bool = False) -> None:
        self._options = orjson.OPT_INDENT_2 if indent else 0

    def encode(self, payload: Mapping[str, Any]) -> bytes:
        return orjson.dumps(dict(payload), option=self._options)

    def decode(self, raw: bytes) -> dict[str, Any]:
        payload = orjson.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("JSON document did not produce a mapping")
        return payload


class YamlCodec(DocumentCodec):
    name = "yaml"

    def encode(self, payload: Mapping[str, Any]) -> bytes:
        text = yaml.safe_dump(dict(payload), allow_unicode=True, sort_keys=False)
        return text.encode("utf-8")

    def decode(self, raw: bytes) -> dict[str, Any]:
        try:
            payload = yaml.safe_load(raw.decode("utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML document: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValueError("YAML document did not produce a mapping")
        return payload


FORMAT_REGISTRY: Mapping[str, type[DocumentCodec]] = {
    "json": JsonCodec,
    ".json": JsonCodec,
    "yaml": YamlCodec,
    "yml": YamlCodec,
    ".yaml": YamlCodec,
    ".yml": YamlCodec,
}


def resolve_codec(format: str | DocumentCodec) -> DocumentCodec:
    if isinstance(format, DocumentCodec):
        return format
    try:
        codec_cls = FORMAT_REGISTRY[format.lower()]
    except KeyError as exc:
        raise ConfigurationError(f"Unsupported format '{format}'") from exc
    return codec_cls()
