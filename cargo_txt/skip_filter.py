from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import yaml
from bs4 import Tag

from cargo_txt.errors import ConfigError


@dataclass(frozen=True)
class SkipRules:
    """Denylist of rustdoc UI chrome that never reaches the Markdown output.

    Rustdoc changes its page chrome between releases. When stray text such as
    "Copy item path" or "§" shows up in converted pages, extend these lists
    (or pass a YAML file to ``load_skip_rules``) rather than the converter.
    """

    tags: frozenset[str]
    ids: frozenset[str]
    class_substrings: tuple[str, ...]

    def extended(
        self,
        *,
        tags: Iterable[str] = (),
        ids: Iterable[str] = (),
        class_substrings: Iterable[str] = (),
    ) -> "SkipRules":
        extra_classes = [c for c in class_substrings if c not in self.class_substrings]
        return SkipRules(
            tags=self.tags | {t.lower() for t in tags},
            ids=self.ids | set(ids),
            class_substrings=self.class_substrings + tuple(dict.fromkeys(extra_classes)),
        )


DEFAULT_SKIP_RULES = SkipRules(
    tags=frozenset({"wbr", "rustdoc-toolbar", "script", "style", "noscript"}),
    ids=frozenset({"copy-path", "implementors", "implementors-list"}),
    class_substrings=("src", "hideme", "anchor", "rustdoc-breadcrumbs", "tooltip"),
)


def _class_string(node: Tag) -> str:
    value = node.get("class")
    if not value:
        return ""
    if isinstance(value, str):
        return value
    return " ".join(value)


def should_skip(node: Tag, rules: SkipRules = DEFAULT_SKIP_RULES) -> bool:
    if (node.name or "").lower() in rules.tags:
        return True

    if node.get("id") in rules.ids:
        return True

    classes = _class_string(node)
    return any(marker in classes for marker in rules.class_substrings)


def _string_list(data: dict, key: str, path: Path) -> list[str]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{path}: `{key}` must be a list of strings")
    return value


def load_skip_rules(path: Path, base: SkipRules = DEFAULT_SKIP_RULES) -> SkipRules:
    """Return ``base`` extended with the ``tags``/``ids``/``class_substrings`` of a YAML file."""
    rules_path = Path(path).expanduser().resolve()
    if not rules_path.exists():
        raise ConfigError(f"skip rules file not found: {rules_path}")

    try:
        data = yaml.safe_load(rules_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{rules_path}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{rules_path}: expected a mapping at the top level")

    return base.extended(
        tags=_string_list(data, "tags", rules_path),
        ids=_string_list(data, "ids", rules_path),
        class_substrings=_string_list(data, "class_substrings", rules_path),
    )
