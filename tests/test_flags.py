import dataclasses
import time

import pytest

from goldfile.flags import RunFlags, truthy


@pytest.mark.parametrize("value", ["1", "true", "t", "TRUE", "True", "T"])
def test_truthy_accepts_true_spellings(value):
    assert truthy(value) is True


@pytest.mark.parametrize("value", ["", "0", "false", "f", "yes", "on", "truthy", None])
def test_truthy_rejects_other_values(value):
    assert truthy(value) is False


def test_defaults_are_all_off():
    flags = RunFlags()
    assert (flags.update, flags.template, flags.clean) == (False, False, False)


def test_from_env_empty_mapping():
    flags = RunFlags.from_env({})
    assert (flags.update, flags.template, flags.clean) == (False, False, False)


def test_from_env_reads_each_variable():
    flags = RunFlags.from_env(
        {"GOLDIE_UPDATE": "true", "GOLDIE_TEMPLATE": "1", "GOLDIE_CLEAN": "T"}
    )
    assert (flags.update, flags.template, flags.clean) == (True, True, True)


def test_from_env_only_update():
    flags = RunFlags.from_env({"GOLDIE_UPDATE": "t", "GOLDIE_CLEAN": "false"})
    assert flags.update is True
    assert flags.template is False
    assert flags.clean is False


def test_from_env_defaults_to_process_environment(monkeypatch):
    monkeypatch.setenv("GOLDIE_UPDATE", "1")
    monkeypatch.delenv("GOLDIE_TEMPLATE", raising=False)
    monkeypatch.setenv("GOLDIE_CLEAN", "true")
    flags = RunFlags.from_env()
    assert (flags.update, flags.template, flags.clean) == (True, False, True)


def test_timestamp_is_taken_at_creation():
    before = time.time_ns()
    flags = RunFlags.from_env({})
    after = time.time_ns()
    assert before <= flags.timestamp_ns <= after


def test_flags_are_immutable_and_replaceable():
    flags = RunFlags.from_env({})
    with pytest.raises(dataclasses.FrozenInstanceError):
        flags.update = True  # type: ignore[misc]
    changed = dataclasses.replace(flags, update=True, clean=True)
    assert changed.update is True
    assert changed.clean is True
    assert changed.timestamp_ns == flags.timestamp_ns
    assert flags.update is False