from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cargo_txt.build import convert_doc_dir
from cargo_txt.errors import CargoTxtError
from cargo_txt.skip_filter import DEFAULT_SKIP_RULES, load_skip_rules


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Convert an existing rustdoc output directory (target/doc/<crate>) to Markdown"
    )
    parser.add_argument("--input", required=True, help="rustdoc HTML directory, e.g. target/doc/serde")
    parser.add_argument("--out", required=True, help="Markdown output directory")
    parser.add_argument("--crate", help="Dependency name from Cargo.toml (default: input directory name)")
    parser.add_argument("--skip-rules", help="YAML file extending the UI-chrome denylist")
    args = parser.parse_args()

    input_root = Path(args.input).expanduser().resolve()
    out_root = Path(args.out).expanduser().resolve()
    crate_name = args.crate or input_root.name

    try:
        rules = load_skip_rules(Path(args.skip_rules)) if args.skip_rules else DEFAULT_SKIP_RULES
        summary = convert_doc_dir(input_root, crate_name, out_root, rules=rules)
    except CargoTxtError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code

    print(f"Converted {summary['item_count']} items ({summary['file_count']} files) to {out_root}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
