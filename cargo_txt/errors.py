from __future__ import annotations

from pathlib import Path


class CargoTxtError(RuntimeError):
    """Base class for every failure the tool reports to the user."""

    exit_code = 1


# Input-structure errors. These carry no file path; the build adds it.


class ExtractError(CargoTxtError):
    pass


class SelectorNotFound(ExtractError):
    def __init__(self, selector: str):
        self.selector = selector
        super().__init__(
            f"Element not found with selector '{selector}'. "
            "The rustdoc HTML layout may have changed."
        )


class MalformedEntry(ExtractError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Malformed item listing entry: {detail}")


class HtmlParseError(CargoTxtError):
    def __init__(self, path: Path, cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to parse HTML file '{self.path}': {cause}")


# Lookup errors. Messages always name the recovery action.


class InvalidItemPathError(CargoTxtError):
    exit_code = 2

    def __init__(self, text: str, hint: str | None = None):
        self.text = text
        message = (
            f"invalid item path '{text}'. Expected format: <crate> or "
            "<crate>::<item> (e.g., 'serde' or 'serde::Error')."
        )
        if hint:
            message = hint
        super().__init__(message)


class DocsNotBuiltError(CargoTxtError):
    exit_code = 3

    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = Path(path)
        super().__init__(
            f"Documentation for '{name}' has not been built (missing {self.path}). "
            f"Run `cargo txt build {name}` first."
        )


class CorruptMetadataError(CargoTxtError):
    exit_code = 4

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(
            f"Documentation metadata '{self.path}' is unreadable: {reason}. "
            "Rebuild the documentation with `cargo txt build <crate>`."
        )


class ItemNotFoundError(CargoTxtError):
    exit_code = 4

    def __init__(self, item_path: str, namespace: str):
        self.item_path = item_path
        self.namespace = namespace
        super().__init__(
            f"could not resolve item path '{item_path}'. "
            f"Run `cargo txt list {namespace}` to see the available items, "
            f"or `cargo txt build {namespace}` if the crate changed."
        )


class WrongNameFormError(CargoTxtError):
    exit_code = 4

    def __init__(self, given: str, expected: str):
        self.given = given
        self.expected = expected
        super().__init__(
            f"'{given}' is the dependency name; documentation paths use the "
            f"library name '{expected}'. Retry with '{expected}'."
        )


# Build and process errors.


class CargoExecutionError(CargoTxtError):
    def __init__(self, command: list[str], output: str):
        self.command = list(command)
        self.output = output
        super().__init__(f"Failed to execute `{' '.join(self.command)}`:\n{output}")


class DocNotGeneratedError(CargoTxtError):
    def __init__(self, crate_name: str, expected_path: Path):
        self.crate_name = crate_name
        self.expected_path = Path(expected_path)
        super().__init__(
            f"Documentation was not generated for crate '{crate_name}'. "
            f"Expected file at '{self.expected_path}'"
        )


class DependencyNotFoundError(CargoTxtError):
    def __init__(self, crate_name: str, available: list[str]):
        self.crate_name = crate_name
        self.available = list(available)
        super().__init__(
            f"Crate '{crate_name}' is not an installed dependency.\n\n"
            f"Available crates: {', '.join(self.available)}\n\n"
            "Only installed dependencies can be built. "
            "Add the crate to Cargo.toml as a dependency first."
        )


class OutputWriteError(CargoTxtError):
    def __init__(self, path: Path, cause: OSError):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to write file '{self.path}': {cause}")


class OutputDirError(CargoTxtError):
    exit_code = 2

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Refusing to write documentation to '{self.path}': it {reason}.")


class CargoOutputError(CargoTxtError):
    def __init__(self, message: str, output: str = ""):
        self.output = output
        if output:
            preview = output if len(output) <= 500 else output[:500] + "..."
            message = f"{message}. Output preview:\n{preview}"
        super().__init__(message)


class InputReadError(CargoTxtError):
    def __init__(self, path: Path, cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to read file '{self.path}': {cause}")


class ConfigError(CargoTxtError):
    exit_code = 2
