from __future__ import annotations

from pathlib import Path

import pytest

from cargo_txt import cargo
from cargo_txt.cli import main

from conftest import seed_rustdoc


def test_show_prints_markdown(built_target: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--target-dir", str(built_target), "show", "my_lib::de::Beta"])
    assert code == 0
    assert capsys.readouterr().out == "# Struct Beta\n\nDeserialisation helper.\n"


def test_leading_txt_argument_is_ignored(built_target: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["txt", "--target-dir", str(built_target), "list", "my_lib"])
    assert code == 0
    assert capsys.readouterr().out.startswith("# my_lib\n")


def test_target_dir_from_environment(
    built_target: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("CARGO_TXT_TARGET_DIR", str(built_target))
    assert main(["show", "my_lib"]) == 0
    assert "cargo txt show my_lib::Alpha" in capsys.readouterr().out


def test_target_dir_from_cargo_metadata(
    built_target: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv("CARGO_TXT_TARGET_DIR", raising=False)
    monkeypatch.setattr(cargo, "metadata", lambda: cargo.CargoMetadata(built_target, ("my-lib",)))
    assert main(["show", "my_lib::Alpha"]) == 0
    assert capsys.readouterr().out.startswith("# Struct Alpha\n")


@pytest.mark.parametrize(
    ("argv", "exit_code"),
    [
        (["show", "serde::Error"], 3),
        (["show", "my_lib::Missing"], 4),
        (["show", "my-lib::Alpha"], 4),
        (["list", "my_lib::Alpha"], 2),
        (["show", "my_lib::"], 2),
    ],
)
def test_errors_map_to_exit_codes(
    built_target: Path, capsys: pytest.CaptureFixture[str], argv: list[str], exit_code: int
) -> None:
    assert main(["--target-dir", str(built_target), *argv]) == exit_code
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("error: ")


def test_build_command(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    target = tmp_path / "target"
    doc_dir = seed_rustdoc(target / "doc" / "my_lib")
    monkeypatch.delenv("CARGO_TXT_TARGET_DIR", raising=False)
    monkeypatch.delenv("CARGO_TXT_SKIP_RULES", raising=False)
    monkeypatch.setattr(cargo, "metadata", lambda: cargo.CargoMetadata(target, ("my-lib",)))
    monkeypatch.setattr(cargo, "doc", lambda crate_name: doc_dir)

    assert main(["build", "my-lib"]) == 0

    out = capsys.readouterr().out
    assert "✓ Built documentation for my_lib (3 items)" in out
    assert "Run `cargo txt list my_lib` to see all items" in out
    assert (target / "docmd" / "my_lib" / "metadata.json").exists()


def test_build_with_skip_rules_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    target = tmp_path / "target"
    doc_dir = seed_rustdoc(target / "doc" / "my_lib")
    rules = tmp_path / "skip.yaml"
    rules.write_text("tags: [pre]\n", encoding="utf-8")
    monkeypatch.setattr(cargo, "metadata", lambda: cargo.CargoMetadata(target, ("my-lib",)))
    monkeypatch.setattr(cargo, "doc", lambda crate_name: doc_dir)

    assert main(["--target-dir", str(target), "build", "my-lib", "--skip-rules", str(rules)]) == 0
    capsys.readouterr()

    page = (target / "docmd" / "my_lib" / "fn.gamma.md").read_text(encoding="utf-8")
    assert page == "# Function gamma\n\n"


def test_invalid_skip_rules_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--target-dir", str(tmp_path), "build", "my-lib", "--skip-rules", str(tmp_path / "missing.yaml")])
    assert code == 2
    assert "skip rules file not found" in capsys.readouterr().err


def test_build_unknown_dependency(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cargo, "metadata", lambda: cargo.CargoMetadata(tmp_path, ("serde",)))
    assert main(["build", "rand"]) == 1
    assert "Available crates: serde" in capsys.readouterr().err


def test_missing_subcommand_is_a_usage_error() -> None:
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 2


def test_relative_crate_path_is_a_usage_error(built_target: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--target-dir", str(built_target), "show", "../docmd/my_lib::Alpha"]) == 2
    assert "invalid crate name" in capsys.readouterr().err
