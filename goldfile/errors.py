"""Exceptions raised while comparing data against golden files."""

from __future__ import annotations


class GoldieError(Exception):
    """Base class for every golden file error."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class FixtureNotFoundError(GoldieError):
    """Raised when the golden fixture file does not exist."""

    def __init__(self) -> None:
        super().__init__("Golden fixture not found. Try running with -update flag.")


class FixtureMismatchError(GoldieError):
    """Raised when the actual data does not match the golden fixture."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class FixtureDirectoryIsFileError(GoldieError):
    """Raised when the location meant for fixtures is a regular file."""

    def __init__(self, file: str) -> None:
        super().__init__(f"fixture folder is a file: {file}")
        self.file = file


class MissingKeyError(GoldieError):
    """Raised when a template refers to a value that was not supplied."""

    def __init__(self, message: str) -> None:
        super().__init__(message)