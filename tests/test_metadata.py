from __future__ import annotations

import json
from pathlib import Path

import pytest

from cargo_txt.errors import CorruptMetadataError, DocsNotBuiltError, InvalidItemPathError, ItemNotFoundError
from cargo_txt.metadata import ItemPath, PackageDocMetadata, load, namespace_for, resolve_item, save


def _metadata(**item_map: str) -> PackageDocMetadata:
    return PackageDocMetadata(
        registry_name="rustdoc-types",
        namespace_name="rustdoc_types",
        item_map={f"rustdoc_types::{k}": v for k, v in item_map.items()} or {"rustdoc_types::Crate": "struct.Crate.md"},
    )


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "docmd" / "rustdoc_types" / "metadata.json"
    metadata = _metadata(Crate="struct.Crate.md", Item="struct.Item.md")

    save(metadata, path)

    assert load(path) == metadata
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["crate_name"] == "rustdoc-types"
    assert data["lib_name"] == "rustdoc_types"
    assert data["item_map"]["rustdoc_types::Item"] == "struct.Item.md"


def test_save_replaces_previous_record(tmp_path: Path) -> None:
    path = tmp_path / "metadata.json"
    save(_metadata(Old="struct.Old.md"), path)
    save(_metadata(New="struct.New.md"), path)

    loaded = load(path)
    assert "rustdoc_types::Old" not in loaded.item_map
    assert loaded.item_map["rustdoc_types::New"] == "struct.New.md"


def test_load_missing_file_means_not_built(tmp_path: Path) -> None:
    with pytest.raises(DocsNotBuiltError) as exc_info:
        load(tmp_path / "serde" / "metadata.json")
    assert exc_info.value.exit_code == 3
    assert "cargo txt build serde" in str(exc_info.value)


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        '{"crate_name": "serde"}',
        '{"crate_name": "serde", "lib_name": "serde", "item_map": {"serde::Error": 3}}',
        '{"crate_name": "serde", "lib_name": "serde", "item_map": {"tokio::Error": "a.md"}}',
        '{"crate_name": "serde", "lib_name": "tokio", "item_map": {}}',
        "[]",
    ],
)
def test_load_rejects_corrupt_metadata(tmp_path: Path, content: str) -> None:
    path = tmp_path / "metadata.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(CorruptMetadataError) as exc_info:
        load(path)
    assert exc_info.value.path == path


def test_metadata_invariants() -> None:
    with pytest.raises(ValueError):
        PackageDocMetadata("serde", "tokio", {})
    with pytest.raises(ValueError):
        PackageDocMetadata("serde", "serde", {"other::Error": "a.md"})
    with pytest.raises(ValueError):
        PackageDocMetadata("serde", "serde", {"serde::": "a.md"})
    with pytest.raises(ValueError):
        PackageDocMetadata("", "serde", {})


def test_registry_and_namespace_names_may_differ_in_separator() -> None:
    metadata = PackageDocMetadata("rustdoc-types", "rustdoc_types", {})
    assert metadata.item_map == {}
    assert namespace_for("rustdoc-types") == "rustdoc_types"
    assert namespace_for("serde") == "serde"


def test_item_map_is_read_only() -> None:
    metadata = _metadata()
    with pytest.raises(TypeError):
        metadata.item_map["rustdoc_types::Other"] = "x.md"  # type: ignore[index]


@pytest.mark.parametrize(
    ("text", "namespace", "item"),
    [
        ("serde", "serde", None),
        ("serde::Error", "serde", "Error"),
        ("serde::de::value::Error", "serde", "de::value::Error"),
        ("  serde::Error \n", "serde", "Error"),
    ],
)
def test_item_path_parse(text: str, namespace: str, item: str | None) -> None:
    parsed = ItemPath.parse(text)
    assert parsed.namespace == namespace
    assert parsed.item == item


@pytest.mark.parametrize("text", ["", "   ", "::", "::serde", "serde::", "serde::::Error"])
def test_item_path_parse_rejects_empty_segments(text: str) -> None:
    with pytest.raises(InvalidItemPathError) as exc_info:
        ItemPath.parse(text)
    assert exc_info.value.exit_code == 2


def test_resolve_item_exact_match() -> None:
    metadata = _metadata(Crate="struct.Crate.md")
    assert resolve_item(metadata, ItemPath.parse("rustdoc_types::Crate")) == "struct.Crate.md"
    assert resolve_item(metadata, "rustdoc_types::Crate") == "struct.Crate.md"


def test_resolve_item_miss_names_recovery_commands() -> None:
    metadata = _metadata(Crate="struct.Crate.md")
    with pytest.raises(ItemNotFoundError) as exc_info:
        resolve_item(metadata, "rustdoc_types::crate")
    message = str(exc_info.value)
    assert "cargo txt list rustdoc_types" in message
    assert "cargo txt build rustdoc_types" in message
