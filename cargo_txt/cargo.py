from __future__ import annotations

import json
import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cargo_txt.errors import CargoExecutionError, CargoOutputError, DependencyNotFoundError

logger = logging.getLogger(__name__)

# cargo >= 1.80 may append "and N other files" to the Generated line
_GENERATED_SUFFIX_RE = re.compile(r"\s+and\s+\d+\s+other\s+files?\s*$")


@dataclass(frozen=True)
class CargoMetadata:
    target_directory: Path
    dependencies: tuple[str, ...]


def _cargo_executable() -> str:
    return os.getenv("CARGO") or "cargo"


def _run_cargo(args: list[str]) -> subprocess.CompletedProcess[str]:
    cmd = [_cargo_executable(), *args]
    logger.debug("Executing: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        raise CargoExecutionError(cmd, f"{cmd[0]} not found. Install the Rust toolchain first.") from exc

    logger.debug("Exit code: %s", result.returncode)
    if result.returncode != 0:
        details = "\n".join([result.stdout.strip(), result.stderr.strip()]).strip()
        raise CargoExecutionError(cmd, details)
    return result


def parse_metadata(data: dict[str, Any]) -> CargoMetadata:
    packages = data.get("packages") or []
    target = data.get("target_directory")
    if not packages or not target:
        raise CargoOutputError("unexpected cargo metadata output: missing packages or target_directory")

    dependencies = tuple(
        dep["name"] for dep in packages[0].get("dependencies", []) if isinstance(dep, dict) and dep.get("name")
    )
    return CargoMetadata(target_directory=Path(target), dependencies=dependencies)


def metadata() -> CargoMetadata:
    result = _run_cargo(["metadata", "--no-deps", "--format-version", "1"])
    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise CargoOutputError(f"failed to parse cargo metadata JSON: {exc}", result.stdout) from exc
    meta = parse_metadata(data)
    logger.debug("Target directory: %s", meta.target_directory)
    return meta


def validate_dependency(crate_name: str, meta: CargoMetadata) -> None:
    if crate_name not in meta.dependencies:
        raise DependencyNotFoundError(crate_name, list(meta.dependencies))


def doc_output_dir(output: str) -> Path:
    """Directory of the generated docs, from the ``Generated .../index.html`` line cargo prints."""
    for line in output.splitlines():
        line = line.strip()
        if not line.startswith("Generated "):
            continue
        generated = _GENERATED_SUFFIX_RE.sub("", line[len("Generated "):].strip())
        html_path = Path(generated)
        if html_path.parent == html_path:
            raise CargoOutputError(
                "failed to parse cargo doc output - Generated line has no parent directory",
                generated,
            )
        return html_path.parent

    raise CargoOutputError("failed to parse cargo doc output - could not find 'Generated' line", output)


def doc(crate_name: str) -> Path:
    result = _run_cargo(["doc", "--package", crate_name, "--no-deps"])
    # cargo reports progress on stderr
    output_dir = doc_output_dir("\n".join([result.stderr, result.stdout]))
    logger.debug("Cargo doc output directory: %s", output_dir)
    return output_dir
