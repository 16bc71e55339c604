"""Diff engines used to describe how actual data differs from a golden file."""

from __future__ import annotations

import difflib
import enum
import time
from typing import Callable

_DELETE = -1
_EQUAL = 0
_INSERT = 1

_TIMEOUT_SECONDS = 1.0

_Edit = tuple[int, str]


class DiffEngine(enum.IntEnum):
    """The available diff engines."""

    UNDEFINED = 0
    CLASSIC = 1
    COLORED = 2
    SIMPLE = 3


def simple_diff(actual: str, expected: str) -> str:
    """Show both values one after the other."""
    return f"Expected: {expected}\nGot: {actual}"


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    result = [line + "\n" for line in lines[:-1]]
    result.append(lines[-1] + "\n")
    return result


def classic_diff(actual: str, expected: str) -> str:
    """Produce a unified diff with one line of context."""
    return "".join(
        difflib.unified_diff(
            _split_lines(expected),
            _split_lines(actual),
            fromfile="Expected",
            tofile="Actual",
            n=1,
        )
    )


def _common_prefix(a: str, b: str) -> int:
    n = 0
    for ca, cb in zip(a, b):
        if ca != cb:
            break
        n += 1
    return n


def _common_suffix(a: str, b: str) -> int:
    n = 0
    for ca, cb in zip(reversed(a), reversed(b)):
        if ca != cb:
            break
        n += 1
    return n


class _Differ:
    """Character level diff in the diff-match-patch style."""

    def __init__(self, timeout: float = _TIMEOUT_SECONDS) -> None:
        self.deadline = time.monotonic() + timeout

    def main(self, text1: str, text2: str) -> list[_Edit]:
        if text1 == text2:
            return [(_EQUAL, text1)] if text1 else []

        prefix_len = _common_prefix(text1, text2)
        prefix = text1[:prefix_len]
        text1, text2 = text1[prefix_len:], text2[prefix_len:]

        suffix_len = _common_suffix(text1, text2)
        suffix = text1[len(text1) - suffix_len:] if suffix_len else ""
        if suffix_len:
            text1, text2 = text1[:-suffix_len], text2[:-suffix_len]

        diffs = self._compute(text1, text2)
        if prefix:
            diffs.insert(0, (_EQUAL, prefix))
        if suffix:
            diffs.append((_EQUAL, suffix))
        _cleanup_merge(diffs)
        return diffs

    def _compute(self, text1: str, text2: str) -> list[_Edit]:
        if not text1:
            return [(_INSERT, text2)]
        if not text2:
            return [(_DELETE, text1)]

        longtext, shorttext = (text1, text2) if len(text1) > len(text2) else (text2, text1)
        i = longtext.find(shorttext)
        if i != -1:
            op = _DELETE if len(text1) > len(text2) else _INSERT
            return [
                (op, longtext[:i]),
                (_EQUAL, shorttext),
                (op, longtext[i + len(shorttext):]),
            ]

        if len(shorttext) == 1:
            return [(_DELETE, text1), (_INSERT, text2)]

        half = _half_match(text1, text2)
        if half is not None:
            text1_a, text1_b, text2_a, text2_b, mid_common = half
            return (
                self.main(text1_a, text2_a)
                + [(_EQUAL, mid_common)]
                + self.main(text1_b, text2_b)
            )

        return self._bisect(text1, text2)

    def _bisect(self, text1: str, text2: str) -> list[_Edit]:
        len1, len2 = len(text1), len(text2)
        max_d = (len1 + len2 + 1) // 2
        v_offset = max_d
        v_length = 2 * max_d
        v1 = [-1] * v_length
        v1[v_offset + 1] = 0
        v2 = list(v1)
        delta = len1 - len2
        front = delta % 2 != 0
        k1start = k1end = k2start = k2end = 0

        for d in range(max_d):
            if time.monotonic() > self.deadline:
                break

            for k1 in range(-d + k1start, d + 1 - k1end, 2):
                k1_offset = v_offset + k1
                if k1 == -d or (k1 != d and v1[k1_offset - 1] < v1[k1_offset + 1]):
                    x1 = v1[k1_offset + 1]
                else:
                    x1 = v1[k1_offset - 1] + 1
                y1 = x1 - k1
                while x1 < len1 and y1 < len2 and text1[x1] == text2[y1]:
                    x1 += 1
                    y1 += 1
                v1[k1_offset] = x1
                if x1 > len1:
                    k1end += 2
                elif y1 > len2:
                    k1start += 2
                elif front:
                    k2_offset = v_offset + delta - k1
                    if 0 <= k2_offset < v_length and v2[k2_offset] != -1:
                        x2 = len1 - v2[k2_offset]
                        if x1 >= x2:
                            return self._bisect_split(text1, text2, x1, y1)

            for k2 in range(-d + k2start, d + 1 - k2end, 2):
                k2_offset = v_offset + k2
                if k2 == -d or (k2 != d and v2[k2_offset - 1] < v2[k2_offset + 1]):
                    x2 = v2[k2_offset + 1]
                else:
                    x2 = v2[k2_offset - 1] + 1
                y2 = x2 - k2
                while x2 < len1 and y2 < len2 and text1[-x2 - 1] == text2[-y2 - 1]:
                    x2 += 1
                    y2 += 1
                v2[k2_offset] = x2
                if x2 > len1:
                    k2end += 2
                elif y2 > len2:
                    k2start += 2
                elif not front:
                    k1_offset = v_offset + delta - k2
                    if 0 <= k1_offset < v_length and v1[k1_offset] != -1:
                        x1 = v1[k1_offset]
                        y1 = v_offset + x1 - k1_offset
                        if x1 >= len1 - x2:
                            return self._bisect_split(text1, text2, x1, y1)

        return [(_DELETE, text1), (_INSERT, text2)]

    def _bisect_split(self, text1: str, text2: str, x: int, y: int) -> list[_Edit]:
        return self.main(text1[:x], text2[:y]) + self.main(text1[x:], text2[y:])


def _half_match_at(
    longtext: str, shorttext: str, i: int
) -> tuple[str, str, str, str, str] | None:
    seed = longtext[i:i + len(longtext) // 4]
    best_common = ""
    best = ("", "", "", "")
    j = shorttext.find(seed)
    while j != -1:
        prefix_len = _common_prefix(longtext[i:], shorttext[j:])
        suffix_len = _common_suffix(longtext[:i], shorttext[:j])
        if len(best_common) < suffix_len + prefix_len:
            best_common = shorttext[j - suffix_len:j] + shorttext[j:j + prefix_len]
            best = (
                longtext[:i - suffix_len],
                longtext[i + prefix_len:],
                shorttext[:j - suffix_len],
                shorttext[j + prefix_len:],
            )
        j = shorttext.find(seed, j + 1)
    if len(best_common) * 2 >= len(longtext):
        return (*best, best_common)
    return None


def _half_match(text1: str, text2: str) -> tuple[str, str, str, str, str] | None:
    longtext, shorttext = (text1, text2) if len(text1) > len(text2) else (text2, text1)
    if len(longtext) < 4 or len(shorttext) * 2 < len(longtext):
        return None

    hm1 = _half_match_at(longtext, shorttext, (len(longtext) + 3) // 4)
    hm2 = _half_match_at(longtext, shorttext, (len(longtext) + 1) // 2)
    if hm1 is None and hm2 is None:
        return None
    if hm2 is None:
        hm = hm1
    elif hm1 is None:
        hm = hm2
    else:
        hm = hm1 if len(hm1[4]) > len(hm2[4]) else hm2
    assert hm is not None

    if len(text1) > len(text2):
        return hm
    return hm[2], hm[3], hm[0], hm[1], hm[4]


def _cleanup_merge(diffs: list[_Edit]) -> None:
    """Merge adjacent edits of the same kind and factor out common text."""
    diffs.append((_EQUAL, ""))
    pointer = 0
    count_delete = count_insert = 0
    text_delete = text_insert = ""
    while pointer < len(diffs):
        op, text = diffs[pointer]
        if op == _INSERT:
            count_insert += 1
            text_insert += text
            pointer += 1
        elif op == _DELETE:
            count_delete += 1
            text_delete += text
            pointer += 1
        else:
            if count_delete + count_insert > 1:
                if count_delete and count_insert:
                    common = _common_prefix(text_insert, text_delete)
                    if common:
                        x = pointer - count_delete - count_insert - 1
                        if x >= 0 and diffs[x][0] == _EQUAL:
                            diffs[x] = (_EQUAL, diffs[x][1] + text_insert[:common])
                        else:
                            diffs.insert(0, (_EQUAL, text_insert[:common]))
                            pointer += 1
                        text_insert = text_insert[common:]
                        text_delete = text_delete[common:]
                    common = _common_suffix(text_insert, text_delete)
                    if common:
                        diffs[pointer] = (
                            diffs[pointer][0],
                            text_insert[-common:] + diffs[pointer][1],
                        )
                        text_insert = text_insert[:-common]
                        text_delete = text_delete[:-common]
                new_ops: list[_Edit] = []
                if text_delete:
                    new_ops.append((_DELETE, text_delete))
                if text_insert:
                    new_ops.append((_INSERT, text_insert))
                pointer -= count_delete + count_insert
                diffs[pointer:pointer + count_delete + count_insert] = new_ops
                pointer += len(new_ops) + 1
            elif pointer != 0 and diffs[pointer - 1][0] == _EQUAL:
                diffs[pointer - 1] = (_EQUAL, diffs[pointer - 1][1] + diffs[pointer][1])
                del diffs[pointer]
            else:
                pointer += 1
            count_delete = count_insert = 0
            text_delete = text_insert = ""

    if diffs and diffs[-1][1] == "":
        diffs.pop()

    changes = False
    pointer = 1
    while pointer < len(diffs) - 1:
        prev_op, prev_text = diffs[pointer - 1]
        op, text = diffs[pointer]
        next_op, next_text = diffs[pointer + 1]
        if prev_op == _EQUAL and next_op == _EQUAL:
            if text.endswith(prev_text):
                if prev_text:
                    diffs[pointer] = (op, prev_text + text[:-len(prev_text)])
                    diffs[pointer + 1] = (next_op, prev_text + next_text)
                del diffs[pointer - 1]
                changes = True
            elif text.startswith(next_text):
                diffs[pointer - 1] = (prev_op, prev_text + next_text)
                diffs[pointer] = (op, text[len(next_text):] + next_text)
                del diffs[pointer + 1]
                changes = True
        pointer += 1
    if changes:
        _cleanup_merge(diffs)


_COLORS = {_INSERT: "\x1b[32m", _DELETE: "\x1b[31m"}
_RESET = "\x1b[0m"


def colored_diff(actual: str, expected: str) -> str:
    """Mark text only in the actual value red and text only in the expected value green."""
    return "".join(
        text if op == _EQUAL else f"{_COLORS[op]}{text}{_RESET}"
        for op, text in _Differ().main(actual, expected)
    )


_ENGINES: dict[int, Callable[[str, str], str]] = {
    DiffEngine.SIMPLE: simple_diff,
    DiffEngine.CLASSIC: classic_diff,
    DiffEngine.COLORED: colored_diff,
}


def diff(engine: DiffEngine | int, actual: str, expected: str) -> str:
    """Describe the difference using the given engine; unknown engines fall back to simple."""
    return _ENGINES.get(engine, simple_diff)(actual, expected)