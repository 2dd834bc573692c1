from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from cargo_txt import cargo
from cargo_txt.build import build, docmd_root
from cargo_txt.errors import CargoTxtError
from cargo_txt.lookup import list_items, show
from cargo_txt.skip_filter import DEFAULT_SKIP_RULES, SkipRules, load_skip_rules

logger = logging.getLogger(__name__)

SKIP_RULES_ENV = "CARGO_TXT_SKIP_RULES"
TARGET_DIR_ENV = "CARGO_TXT_TARGET_DIR"


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _target_override(args: argparse.Namespace) -> Path | None:
    override = args.target_dir or os.getenv(TARGET_DIR_ENV)
    if not override:
        return None
    return Path(override).expanduser().resolve()


def _target_directory(args: argparse.Namespace) -> Path:
    return _target_override(args) or cargo.metadata().target_directory


def _skip_rules(args: argparse.Namespace) -> SkipRules:
    path = args.skip_rules or os.getenv(SKIP_RULES_ENV)
    if not path:
        return DEFAULT_SKIP_RULES
    return load_skip_rules(Path(path))


def _print_markdown(content: str) -> None:
    print(content.rstrip("\n"))


def _cmd_build(args: argparse.Namespace) -> int:
    summary = build(args.crate, target_directory=_target_override(args), rules=_skip_rules(args))
    print(f"✓ Built documentation for {summary['namespace']} ({summary['item_count']} items)")
    print(f"  Run `cargo txt list {summary['namespace']}` to see all items")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    _print_markdown(list_items(docmd_root(_target_directory(args)), args.crate))
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    _print_markdown(show(docmd_root(_target_directory(args)), args.item_path))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cargo txt",
        description="Convert rustdoc HTML into Markdown for coding agents",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logs")
    parser.add_argument(
        "--target-dir",
        help=f"Cargo target directory override (default: from cargo metadata, or ${TARGET_DIR_ENV})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    build_cmd = sub.add_parser("build", help="Generate Markdown documentation for a dependency")
    build_cmd.add_argument("crate", metavar="CRATE", help="Dependency name from Cargo.toml")
    build_cmd.add_argument(
        "--skip-rules",
        help=f"YAML file extending the UI-chrome denylist (default: ${SKIP_RULES_ENV})",
    )
    build_cmd.set_defaults(handler=_cmd_build)

    list_cmd = sub.add_parser("list", help="Print the index of all items in a built crate")
    list_cmd.add_argument("crate", metavar="CRATE")
    list_cmd.set_defaults(handler=_cmd_list)

    show_cmd = sub.add_parser("show", help="Print the documentation of a crate or an item")
    show_cmd.add_argument("item_path", metavar="ITEM_PATH", help="<crate> or <crate>::<item>")
    show_cmd.set_defaults(handler=_cmd_show)
    return parser


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    # `cargo txt ...` runs `cargo-txt txt ...`
    if argv[:1] == ["txt"]:
        argv = argv[1:]
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        return args.handler(args)
    except CargoTxtError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
