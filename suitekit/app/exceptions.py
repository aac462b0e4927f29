#
# Error taxonomy for suite files.
#
from __future__ import annotations

from pathlib import Path
from typing import Sequence


class SuiteFileError(Exception):
    """Base class; `code` is a stable machine-readable identifier."""

    code = "suite_file_error"


class NoFileError(SuiteFileError):
    code = "no_file"

    def __init__(self, tried_paths: Sequence[str], display: str):
        self.tried_paths = tuple(tried_paths)
        self.display = display
        super().__init__(f"No test suite file: {display}")


class DifferentTypesOfSuitesError(SuiteFileError):
    code = "different_types_of_suites"

    def __init__(self) -> None:
        super().__init__("Different types of suites")


class UnsubmittableError(SuiteFileError):
    code = "unsubmittable"

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"{target} is unsubmittable")


class SuiteIsNotSimpleError(SuiteFileError):
    code = "suite_is_not_simple"

    def __init__(self) -> None:
        super().__init__("Target suite is not a batch suite")


class RegexGroupOutOfBoundsError(SuiteFileError):
    code = "regex_group_out_of_bounds"

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Regex group out of bounds: {index}")


class LanguageNotSpecifiedError(SuiteFileError):
    code = "language_not_specified"

    def __init__(self) -> None:
        super().__init__("Language not specified")


class NoSuchLanguageError(SuiteFileError):
    code = "no_such_language"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'No such language: "{name}"')


class DeserializeError(SuiteFileError):
    code = "deserialize"

    def __init__(self, path: Path | str, cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to deserialize {path}: {cause}")


class ArchiveReadError(SuiteFileError):
    code = "archive_read"

    def __init__(self, path: Path | str, cause: Exception | str):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to read {path}: {cause}")


class FileIoError(SuiteFileError):
    code = "file_io"

    def __init__(self, action: str, path: Path | str, cause: Exception):
        self.action = action
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to {action} {path}: {cause}")


class ExpandTemplateError(SuiteFileError):
    code = "expand_template"

    def __init__(self, template: str, name: str):
        self.template = template
        self.name = name
        super().__init__(f"Undefined variable {name!r} in {template!r}")
