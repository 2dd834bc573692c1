from __future__ import annotations

import logging
import re
from pathlib import Path

from cargo_txt.errors import DocsNotBuiltError, InputReadError, InvalidItemPathError, WrongNameFormError
from cargo_txt.item_map import PATH_SEPARATOR
from cargo_txt.metadata import METADATA_FILENAME, ItemPath, PackageDocMetadata, load, namespace_for, resolve_item

logger = logging.getLogger(__name__)

ALL_ITEMS_FILENAME = "all.md"

# crate and library names as Cargo accepts them
_CRATE_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_-]*$")


def load_package(docmd_dir: Path, name: str) -> PackageDocMetadata:
    """Load the metadata of ``name``, telling a registry name apart from a missing build."""
    if not _CRATE_NAME_RE.match(name):
        raise InvalidItemPathError(
            name,
            f"invalid crate name '{name}'. Crate names contain only letters, digits, '_' and '-'.",
        )
    try:
        return load(Path(docmd_dir) / name / METADATA_FILENAME)
    except DocsNotBuiltError:
        alternate = namespace_for(name)
        if alternate != name and (Path(docmd_dir) / alternate / METADATA_FILENAME).exists():
            raise WrongNameFormError(name, alternate) from None
        raise


def _read_markdown(path: Path, namespace_name: str) -> str:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise DocsNotBuiltError(namespace_name, path) from None
    except (OSError, UnicodeDecodeError) as exc:
        raise InputReadError(path, exc) from exc
    logger.debug("Read markdown file %s (%d bytes)", path, len(content))
    return content


def list_items(docmd_dir: Path, crate_name: str) -> str:
    """Contents of ``all.md``, the master index of a built crate."""
    name = crate_name.strip()
    if not name:
        raise InvalidItemPathError(crate_name, "crate name cannot be empty")
    if PATH_SEPARATOR in name:
        raise InvalidItemPathError(
            crate_name,
            "the list command only accepts crate names. "
            f"Use 'cargo txt show {name}' to view specific items.",
        )

    metadata = load_package(docmd_dir, name)
    return _read_markdown(Path(docmd_dir) / metadata.namespace_name / ALL_ITEMS_FILENAME, metadata.namespace_name)


def show(docmd_dir: Path, item_path: str) -> str:
    """Markdown for ``<crate>`` (the item index) or ``<crate>::<item>`` (one page)."""
    parsed = ItemPath.parse(item_path)
    metadata = load_package(docmd_dir, parsed.namespace)
    package_dir = Path(docmd_dir) / metadata.namespace_name

    if parsed.item is None:
        return _read_markdown(package_dir / ALL_ITEMS_FILENAME, metadata.namespace_name)

    relative = resolve_item(metadata, parsed)
    logger.debug("Resolved %s to %s", parsed, relative)
    return _read_markdown(package_dir / relative, metadata.namespace_name)
