from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag

from cargo_txt.errors import MalformedEntry, SelectorNotFound

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "::"
LISTING_SELECTOR = "ul.all-items"


def _check_namespace(namespace_name: str) -> None:
    if not namespace_name or PATH_SEPARATOR in namespace_name:
        raise ValueError(f"invalid namespace name: {namespace_name!r}")


def _entry(li: Tag) -> tuple[str, str]:
    anchor = li.find("a")
    if anchor is None:
        raise MalformedEntry(f"listing entry without a link: {li.get_text(' ', strip=True)!r}")

    href = (anchor.get("href") or "").strip()
    name = "".join(anchor.get_text().split())
    if not href:
        raise MalformedEntry(f"item link {name!r} has no href attribute")
    if not name:
        raise MalformedEntry(f"item link to {href!r} has no displayed name")
    return name, href


def extract_item_map(index_page: Tag, namespace_name: str) -> dict[str, str]:
    """Map ``<namespace>::<item>`` to the page documenting it, from rustdoc's ``all.html``.

    Every ``li`` under a ``ul.all-items`` listing is one item. A page with no
    listing at all raises ``SelectorNotFound``; an empty listing is a valid,
    empty map. Any entry missing its link target or name aborts the whole
    extraction with ``MalformedEntry``.
    """
    _check_namespace(namespace_name)

    containers = index_page.select(LISTING_SELECTOR)
    if not containers:
        raise SelectorNotFound(LISTING_SELECTOR)

    item_map: dict[str, str] = {}
    for container in containers:
        for li in container.find_all("li"):
            name, href = _entry(li)
            key = f"{namespace_name}{PATH_SEPARATOR}{name}"
            previous = item_map.get(key)
            if previous is not None and previous != href:
                raise MalformedEntry(f"{key} is listed with two targets: {previous!r} and {href!r}")
            item_map[key] = href

    logger.debug("Extracted %d item mappings for %s", len(item_map), namespace_name)
    return item_map


def extract_item_map_from_html(html: str, namespace_name: str) -> dict[str, str]:
    return extract_item_map(BeautifulSoup(html, "html.parser"), namespace_name)
