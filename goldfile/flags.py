"""Run-wide switches that control whether golden files are rewritten."""

from __future__ import annotations

import dataclasses
import os
import time
from collections.abc import Mapping

UPDATE_ENV = "GOLDIE_UPDATE"
TEMPLATE_ENV = "GOLDIE_TEMPLATE"
CLEAN_ENV = "GOLDIE_CLEAN"

_TRUE_VALUES = frozenset({"1", "true", "t"})


def truthy(value: str | None) -> bool:
    """Return whether an environment value switches a flag on."""
    if value is None:
        return False
    return value.lower() in _TRUE_VALUES


@dataclasses.dataclass(frozen=True)
class RunFlags:
    """Switches for one test run.

    ``update`` rewrites golden files with the actual data, ``template`` turns
    the values of the template data into template references while updating,
    and ``clean`` removes fixture directories left from earlier runs before
    writing into them.  ``timestamp_ns`` marks the start of the run; fixture
    directories written during the run carry it as their modification time,
    so that cleaning only removes what older runs left behind.
    """

    update: bool = False
    template: bool = False
    clean: bool = False
    timestamp_ns: int = dataclasses.field(default_factory=time.time_ns)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RunFlags:
        """Read the switches from ``environ``, or from the process environment."""
        env = os.environ if environ is None else environ
        return cls(
            update=truthy(env.get(UPDATE_ENV)),
            template=truthy(env.get(TEMPLATE_ENV)),
            clean=truthy(env.get(CLEAN_ENV)),
        )