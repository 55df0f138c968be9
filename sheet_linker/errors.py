"""Error taxonomy shared by the library, the CLI and the review UI."""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PRECONDITION_FAILED = 2
EXIT_WORKBOOK_UNREADABLE = 3
EXIT_ERRATA_WRITTEN = 4


class LinkerError(Exception):
    code = EXIT_COMMAND_ERROR

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class DiscoveryError(LinkerError):
    code = EXIT_PRECONDITION_FAILED


class ConfigError(LinkerError):
    code = EXIT_PRECONDITION_FAILED


class DuplicateKeyError(LinkerError):
    code = EXIT_PRECONDITION_FAILED

    def __init__(self, key: str, first_name: str, second_name: str) -> None:
        super().__init__(
            f"Duplicate document key '{key}': '{first_name}' and '{second_name}' "
            "cannot both be linked. Rename or remove one of them."
        )
        self.key = key
        self.first_name = first_name
        self.second_name = second_name


class WorkbookError(LinkerError):
    code = EXIT_WORKBOOK_UNREADABLE
