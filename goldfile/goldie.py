"""Compare test output with golden files and rewrite them on request."""

from __future__ import annotations

import copy
import functools
import json
import os
import shutil
import xml.etree.ElementTree as ET
from collections.abc import Callable
from typing import Any, TypeVar

from .diff import DiffEngine, diff
from .errors import (
    FixtureDirectoryIsFileError,
    FixtureMismatchError,
    FixtureNotFoundError,
    GoldieError,
    MissingKeyError,
)
from .flags import RunFlags
from .meta import templatize
from .template import Template, TemplateExecError, TemplateSyntaxError

DEFAULT_FIXTURE_DIR = "testdata"
DEFAULT_NAME_SUFFIX = ".golden"
DEFAULT_FILE_PERMS = 0o644
DEFAULT_DIR_PERMS = 0o755
DEFAULT_DIFF_ENGINE = DiffEngine.CLASSIC

EqualFn = Callable[[bytes, bytes], bool]
DiffFn = Callable[[str, str], str]

_Text = TypeVar("_Text", str, bytes)

_MISMATCH_HEADER = "Result did not match the golden fixture. Diff is below:\n\n"
_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@functools.lru_cache(maxsize=None)
def _run_flags() -> RunFlags:
    """Flags for the whole process, read once from the environment."""
    return RunFlags.from_env()


def normalize_lf(data: _Text | None) -> _Text | None:
    """Turn CR LF and lone CR line endings into LF."""
    if not data:
        return data
    if isinstance(data, bytes):
        return data.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
    return data.replace("\r\n", "\n").replace("\r", "\n")


def _to_bytes(data: bytes | bytearray | str | None) -> bytes:
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _to_json(value: Any) -> str:
    text = json.dumps(value, indent=2, ensure_ascii=False, default=_json_default)
    for char, escape in _JSON_ESCAPES.items():
        text = text.replace(char, escape)
    return text


def _json_default(value: Any) -> Any:
    import dataclasses

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _to_xml(value: Any) -> str:
    if isinstance(value, ET.ElementTree):
        value = value.getroot()
    if not isinstance(value, ET.Element):
        raise TypeError(f"cannot encode {type(value).__name__} as XML")
    element = copy.deepcopy(value)
    ET.indent(element, space="  ")
    return ET.tostring(element, encoding="unicode")


class Goldie:
    """Golden file tester bound to one test.

    ``test_name`` is the name of the running test, with sub-test names
    separated by ``/``; it is only used when the options ask for the test
    or sub-test names to become directories.
    """

    def __init__(
        self,
        test_name: str = "",
        *,
        fixture_dir: str | os.PathLike[str] = DEFAULT_FIXTURE_DIR,
        name_suffix: str = DEFAULT_NAME_SUFFIX,
        file_perms: int = DEFAULT_FILE_PERMS,
        dir_perms: int = DEFAULT_DIR_PERMS,
        equal_fn: EqualFn | None = None,
        diff_engine: DiffEngine | int = DEFAULT_DIFF_ENGINE,
        diff_fn: DiffFn | None = None,
        ignore_template_errors: bool = False,
        use_test_name_for_dir: bool = False,
        use_sub_test_name_for_dir: bool = False,
        flags: RunFlags | None = None,
    ) -> None:
        self.test_name = test_name
        self.fixture_dir = os.fspath(fixture_dir)
        self.name_suffix = name_suffix
        self.file_perms = file_perms
        self.dir_perms = dir_perms
        self.equal_fn = equal_fn
        self.diff_engine = diff_engine
        self.diff_fn = diff_fn
        self.ignore_template_errors = ignore_template_errors
        self.use_test_name_for_dir = use_test_name_for_dir
        self.use_sub_test_name_for_dir = use_sub_test_name_for_dir
        self.flags = _run_flags() if flags is None else flags

    # --- file locations -------------------------------------------------

    def golden_file_name(self, name: str) -> str:
        """Return the path of the golden file for ``name``."""
        parts = self.test_name.split("/")
        directory = self.fixture_dir
        if self.use_test_name_for_dir:
            directory = os.path.join(directory, parts[0])
        if self.use_sub_test_name_for_dir and len(parts) > 1:
            directory = os.path.join(directory, *parts[1:])
        return os.path.join(directory, f"{name}{self.name_suffix}")

    def _ensure_dir(self, location: str) -> None:
        try:
            info = os.stat(location)
        except FileNotFoundError:
            os.makedirs(location, mode=self.dir_perms, exist_ok=True)
            return
        if not os.path.isdir(location):
            raise FixtureDirectoryIsFileError(location)
        if self.flags.clean and info.st_mtime_ns < self.flags.timestamp_ns:
            shutil.rmtree(location)
            os.makedirs(location, mode=self.dir_perms, exist_ok=True)

    # --- writing --------------------------------------------------------

    def update(self, name: str, actual_data: bytes | str | None) -> None:
        """Write ``actual_data`` to the golden file for ``name``."""
        golden_file = self.golden_file_name(name)
        golden_dir = os.path.dirname(golden_file) or "."
        self._ensure_dir(golden_dir)

        fd = os.open(golden_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, self.file_perms)
        with os.fdopen(fd, "wb") as handle:
            handle.write(_to_bytes(actual_data))

        stamp = self.flags.timestamp_ns
        os.utime(golden_dir, ns=(stamp, stamp))

    def update_with_template(self, name: str, data: Any, actual_data: bytes | str | None) -> None:
        """Write ``actual_data`` with the values of ``data`` turned into template references."""
        self.update(name, templatize(data, _to_bytes(actual_data)))

    # --- comparing ------------------------------------------------------

    def _read_golden(self, name: str) -> bytes:
        path = self.golden_file_name(name)
        try:
            with open(path, "rb") as handle:
                return handle.read()
        except FileNotFoundError:
            raise FixtureNotFoundError() from None
        except OSError as exc:
            raise GoldieError(f"could not read golden file {path}: {exc}") from exc

    def _equal(self, actual: bytes, expected: bytes) -> bool:
        if self.equal_fn is not None:
            return self.equal_fn(actual, expected)
        return actual == expected

    def _check(self, actual: bytes, expected: bytes) -> None:
        if self._equal(actual, expected):
            return
        actual_text = actual.decode("utf-8", "replace")
        expected_text = expected.decode("utf-8", "replace")
        if self.diff_fn is not None:
            description = self.diff_fn(actual_text, expected_text)
        else:
            description = diff(self.diff_engine, actual_text, expected_text)
        raise FixtureMismatchError(_MISMATCH_HEADER + description)

    def compare(self, name: str, actual_data: bytes | str | None) -> None:
        """Raise unless ``actual_data`` matches the golden file for ``name``."""
        expected = self._read_golden(name)
        self._check(_to_bytes(actual_data), expected)

    def compare_template(self, name: str, data: Any, actual_data: bytes | str | None) -> None:
        """Render the golden file as a template with ``data`` and compare the result."""
        source = self._read_golden(name)
        missing_key = "default" if self.ignore_template_errors else "error"
        try:
            template = Template(source.decode("utf-8"), missing_key)
        except (TemplateSyntaxError, UnicodeDecodeError) as exc:
            raise GoldieError(f"could not parse golden template: {exc}") from exc
        try:
            expected = template.render(data)
        except TemplateExecError as exc:
            raise MissingKeyError(f"Template error: {exc}") from exc
        self._check(_to_bytes(actual_data), expected.encode("utf-8"))

    # --- assertions -----------------------------------------------------

    def assert_matches(self, name: str, actual_data: bytes | str | None) -> None:
        """Compare with the golden file, rewriting it first when updating."""
        if self.flags.update:
            self.update(name, actual_data)
        self.compare(name, actual_data)

    def assert_json(self, name: str, actual_json_data: Any) -> None:
        """Encode the value as indented JSON and compare it with the golden file."""
        encoded = normalize_lf(_to_json(actual_json_data).encode("utf-8"))
        self.assert_matches(name, encoded)

    def assert_xml(self, name: str, actual_xml_data: Any) -> None:
        """Encode an element as indented XML and compare it with the golden file."""
        encoded = normalize_lf(_to_xml(actual_xml_data).encode("utf-8"))
        self.assert_matches(name, encoded)

    def assert_with_template(self, name: str, data: Any, actual_data: bytes | str | None) -> None:
        """Compare with the golden file rendered as a template with ``data``."""
        if self.flags.update:
            if self.flags.template:
                self.update_with_template(name, data, actual_data)
            else:
                self.update(name, actual_data)
        self.compare_template(name, data, actual_data)