from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from jsonschema import Draft7Validator

from cargo_txt.errors import (
    CorruptMetadataError,
    DocsNotBuiltError,
    InvalidItemPathError,
    ItemNotFoundError,
    OutputWriteError,
)
from cargo_txt.item_map import PATH_SEPARATOR

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"

METADATA_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["crate_name", "lib_name", "item_map"],
    "properties": {
        "crate_name": {"type": "string", "minLength": 1},
        "lib_name": {"type": "string", "minLength": 1, "pattern": "^[^:]+$"},
        "item_map": {
            "type": "object",
            "additionalProperties": {"type": "string", "minLength": 1},
        },
    },
}

_SEPARATOR_RE = re.compile(r"[-_]")


def namespace_for(registry_name: str) -> str:
    """Identifier-safe library name rustdoc uses for a Cargo.toml dependency name."""
    return registry_name.replace("-", "_")


def same_package(registry_name: str, namespace_name: str) -> bool:
    return _SEPARATOR_RE.sub("_", registry_name) == _SEPARATOR_RE.sub("_", namespace_name)


@dataclass(frozen=True)
class ItemPath:
    segments: tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> "ItemPath":
        segments = tuple(text.strip().split(PATH_SEPARATOR))
        if not text.strip() or any(not s for s in segments):
            raise InvalidItemPathError(text)
        return cls(segments)

    @property
    def namespace(self) -> str:
        return self.segments[0]

    @property
    def item(self) -> str | None:
        if len(self.segments) == 1:
            return None
        return PATH_SEPARATOR.join(self.segments[1:])

    def __str__(self) -> str:
        return PATH_SEPARATOR.join(self.segments)


@dataclass(frozen=True)
class PackageDocMetadata:
    """What a build knows about one crate's documentation.

    ``registry_name`` is the dependency name from Cargo.toml (``rustdoc-types``),
    ``namespace_name`` the library name rustdoc uses (``rustdoc_types``). Every
    ``item_map`` key is a full item path rooted at ``namespace_name``.
    """

    registry_name: str
    namespace_name: str
    item_map: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.registry_name or not self.namespace_name:
            raise ValueError("registry_name and namespace_name must be non-empty")
        if not same_package(self.registry_name, self.namespace_name):
            raise ValueError(
                f"{self.registry_name!r} and {self.namespace_name!r} do not name the same package"
            )
        prefix = self.namespace_name + PATH_SEPARATOR
        for key in self.item_map:
            if not key.startswith(prefix) or len(key) == len(prefix):
                raise ValueError(f"item path {key!r} is not rooted at {self.namespace_name!r}")
        object.__setattr__(self, "item_map", MappingProxyType(dict(self.item_map)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageDocMetadata):
            return NotImplemented
        return (
            self.registry_name == other.registry_name
            and self.namespace_name == other.namespace_name
            and dict(self.item_map) == dict(other.item_map)
        )

    def __hash__(self) -> int:
        return hash((self.registry_name, self.namespace_name, frozenset(self.item_map.items())))

    def to_dict(self) -> dict[str, Any]:
        return {
            "crate_name": self.registry_name,
            "lib_name": self.namespace_name,
            "item_map": dict(sorted(self.item_map.items())),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackageDocMetadata":
        return cls(
            registry_name=data["crate_name"],
            namespace_name=data["lib_name"],
            item_map=data["item_map"],
        )


def save(metadata: PackageDocMetadata, path: Path) -> None:
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            json.dumps(metadata.to_dict(), ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise OutputWriteError(target, exc) from exc
    logger.debug("Saved metadata for %s to %s", metadata.namespace_name, target)


def load(path: Path) -> PackageDocMetadata:
    source = Path(path)
    if not source.exists():
        raise DocsNotBuiltError(source.parent.name, source)

    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CorruptMetadataError(source, str(exc)) from exc

    errors = sorted(Draft7Validator(METADATA_SCHEMA).iter_errors(data), key=str)
    if errors:
        raise CorruptMetadataError(source, errors[0].message)

    try:
        return PackageDocMetadata.from_dict(data)
    except ValueError as exc:
        raise CorruptMetadataError(source, str(exc)) from exc


def resolve_item(metadata: PackageDocMetadata, item_path: ItemPath | str) -> str:
    """Relative file documenting ``item_path``; exact match on the full path."""
    key = str(item_path)
    try:
        return metadata.item_map[key]
    except KeyError:
        raise ItemNotFoundError(key, metadata.namespace_name) from None
