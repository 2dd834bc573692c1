from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Any

from bs4 import BeautifulSoup

from cargo_txt import cargo
from cargo_txt.errors import (
    DocNotGeneratedError,
    ExtractError,
    HtmlParseError,
    InputReadError,
    MalformedEntry,
    OutputDirError,
    OutputWriteError,
    SelectorNotFound,
)
from cargo_txt.html2md import convert_node
from cargo_txt.item_map import PATH_SEPARATOR, extract_item_map
from cargo_txt.metadata import METADATA_FILENAME, PackageDocMetadata, save
from cargo_txt.skip_filter import DEFAULT_SKIP_RULES, SkipRules

logger = logging.getLogger(__name__)

DOCMD_DIRNAME = "docmd"
ALL_ITEMS_HEADING = "# List of all items"


def docmd_root(target_directory: Path) -> Path:
    return Path(target_directory) / DOCMD_DIRNAME


def _read_page(path: Path) -> BeautifulSoup:
    try:
        html = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputReadError(path, exc) from exc
    return BeautifulSoup(html, "html.parser")


def _convert_page(path: Path, soup: BeautifulSoup, rules: SkipRules) -> str:
    main = soup.find("main")
    if main is None:
        raise HtmlParseError(path, SelectorNotFound("main"))
    return convert_node(main, rules)


def _item_page(doc_root: Path, href: str) -> Path:
    relative = PurePosixPath(href.split("#", 1)[0])
    page = (doc_root / relative).resolve()
    if relative.is_absolute() or not page.is_relative_to(doc_root):
        raise MalformedEntry(f"link target {href!r} points outside the documentation directory")
    return page


def format_all_md(namespace_name: str, content: str) -> str:
    """Turn the converted ``all.html`` into the crate's item index.

    The page title becomes the crate name, every listed item is written as a
    full item path, and a usage section with ``show`` examples (the first item
    of each section, at most three) is appended.
    """
    lines = content.splitlines()
    result = [f"# {namespace_name}", ""]
    if not lines:
        return "\n".join(result) + "\n"

    first, rest = lines[0], lines[1:]
    result.append(first[2:] if first.startswith(ALL_ITEMS_HEADING) else first)

    examples: list[str] = []
    in_section = False
    for line in rest:
        if line.startswith("### "):
            in_section = True
            result.append(line)
        elif line.startswith("- "):
            item_path = f"{namespace_name}{PATH_SEPARATOR}{line[2:]}"
            result.append(f"- {item_path}")
            if in_section:
                examples.append(item_path)
                in_section = False
        else:
            result.append(line)

    while result and not result[-1]:
        result.pop()

    result += [
        "",
        "## Usage",
        "",
        "To view documentation for a specific item, use the `show` command:",
        "",
        "```shell",
        "cargo txt show <ITEM_PATH>",
        "```",
        "",
        "Examples:",
        "",
        "```shell",
    ]
    if examples:
        result += [f"cargo txt show {item}" for item in examples[:3]]
    else:
        result.append(f"cargo txt show {namespace_name}{PATH_SEPARATOR}SomeItem")
    result.append("```")
    return "\n".join(result) + "\n"


def _check_output_dir(doc_root: Path, out_root: Path) -> None:
    """Only an empty directory or an earlier build's output may be replaced."""
    if out_root.is_relative_to(doc_root) or doc_root.is_relative_to(out_root):
        raise OutputDirError(out_root, f"overlaps the rustdoc input directory '{doc_root}'")
    if not out_root.exists():
        return
    if not out_root.is_dir():
        raise OutputDirError(out_root, "is not a directory")
    if any(out_root.iterdir()) and not (out_root / METADATA_FILENAME).is_file():
        raise OutputDirError(out_root, f"is not empty and holds no {METADATA_FILENAME} from an earlier build")


def _write_files(output_dir: Path, files: dict[str, str]) -> None:
    if output_dir.exists():
        shutil.rmtree(output_dir)
    for relative, content in files.items():
        path = output_dir / relative
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(path, exc) from exc
        logger.debug("Generated markdown: %s", path)


def convert_doc_dir(
    doc_dir: Path,
    crate_name: str,
    output_dir: Path,
    *,
    rules: SkipRules = DEFAULT_SKIP_RULES,
) -> dict[str, Any]:
    """Convert one rustdoc output directory into Markdown plus ``metadata.json``.

    The namespace is the name of ``doc_dir`` (``target/doc/<namespace>``).
    ``output_dir`` is replaced wholesale; metadata is written last. It must not
    overlap ``doc_dir`` and must be empty, missing, or a previous build's output.
    """
    doc_root = Path(doc_dir).expanduser().resolve()
    out_root = Path(output_dir).expanduser().resolve()
    namespace_name = doc_root.name
    _check_output_dir(doc_root, out_root)
    logger.debug("Reading cargo doc output from %s", doc_root)

    index_path = doc_root / "index.html"
    all_path = doc_root / "all.html"
    for required in (index_path, all_path):
        if not required.is_file():
            raise DocNotGeneratedError(crate_name, required)

    all_soup = _read_page(all_path)
    try:
        item_map = extract_item_map(all_soup, namespace_name)
    except ExtractError as exc:
        raise HtmlParseError(all_path, exc) from exc

    files: dict[str, str] = {
        "index.md": _convert_page(index_path, _read_page(index_path), rules),
        "all.md": format_all_md(namespace_name, _convert_page(all_path, all_soup, rules)),
    }

    markdown_map: dict[str, str] = {}
    for item_path, href in sorted(item_map.items()):
        try:
            page = _item_page(doc_root, href)
        except ExtractError as exc:
            raise HtmlParseError(all_path, exc) from exc
        markdown_path = page.relative_to(doc_root).with_suffix(".md").as_posix()
        if markdown_path not in files:
            logger.debug("Converting item: %s", item_path)
            files[markdown_path] = _convert_page(page, _read_page(page), rules)
        markdown_map[item_path] = markdown_path

    logger.info("Converted %d items to markdown", len(markdown_map))
    _write_files(out_root, files)

    metadata = PackageDocMetadata(
        registry_name=crate_name,
        namespace_name=namespace_name,
        item_map=markdown_map,
    )
    save(metadata, out_root / METADATA_FILENAME)

    return {
        "status": "ok",
        "crate": crate_name,
        "namespace": namespace_name,
        "output_dir": str(out_root),
        "item_count": len(markdown_map),
        "file_count": len(files),
    }


def build(
    crate_name: str,
    *,
    target_directory: Path | None = None,
    rules: SkipRules = DEFAULT_SKIP_RULES,
    cargo_metadata: cargo.CargoMetadata | None = None,
) -> dict[str, Any]:
    """Generate rustdoc HTML for ``crate_name`` and convert it under ``<target>/docmd``."""
    logger.debug("Building documentation for crate: %s", crate_name)
    meta = cargo_metadata or cargo.metadata()
    cargo.validate_dependency(crate_name, meta)

    logger.info("Running cargo doc --package %s --no-deps", crate_name)
    doc_dir = cargo.doc(crate_name)

    root = docmd_root(target_directory or meta.target_directory)
    summary = convert_doc_dir(doc_dir, crate_name, root / doc_dir.name, rules=rules)
    logger.info("Successfully saved documentation to %s", summary["output_dir"])
    return summary
