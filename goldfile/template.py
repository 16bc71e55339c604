"""A small engine for the template language used in golden files.

Templates mix plain text with actions in double braces.  An action holds a
pipeline built from field chains (``.Name.Inner``), the data itself (``.`` or
``$``), literals, parenthesised pipelines and the functions ``index``,
``len``, ``print`` and ``println``.  Comments (``{{/* ... */}}``) and the
whitespace trim markers ``{{- `` and `` -}}`` are understood as well.
Control structures and variable declarations are rejected when parsing.
"""

from __future__ import annotations

import dataclasses
import inspect
import math
import re
from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal
from typing import Any, NamedTuple, Union

_MISSING_KEY_MODES = frozenset({"default", "invalid", "zero", "error"})
_NO_VALUE = "<no value>"
_SPACE = " \t\r\n"
_KEYWORDS = frozenset(
    {"if", "else", "end", "range", "with", "define", "template", "block", "break", "continue"}
)


class TemplateSyntaxError(ValueError):
    """Raised when template text cannot be parsed."""


class TemplateExecError(Exception):
    """Raised when a parsed template cannot be executed with the given data."""


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    number = Decimal(repr(value))
    if number.is_zero():
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    exponent = number.adjusted()
    if exponent < -4 or exponent >= 21:
        sign, digits, _ = number.normalize().as_tuple()
        mantissa = str(digits[0])
        if len(digits) > 1:
            mantissa += "." + "".join(str(d) for d in digits[1:])
        exp_sign = "+" if exponent >= 0 else "-"
        return f"{'-' if sign else ''}{mantissa}e{exp_sign}{abs(exponent):02d}"
    return format(number.normalize(), "f")


def _sorted_keys(mapping: Mapping[Any, Any]) -> list[Any]:
    try:
        return sorted(mapping)
    except TypeError:
        return sorted(mapping, key=_format_value)


def _format_value(value: Any) -> str:
    """Format a value the way the default verb of a printf-style formatter does."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return "[" + " ".join(str(b) for b in value) + "]"
    if isinstance(value, Mapping):
        items = (f"{_format_value(k)}:{_format_value(value[k])}" for k in _sorted_keys(value))
        return "map[" + " ".join(items) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(_format_value(item) for item in value) + "]"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = dataclasses.fields(value)
        return "{" + " ".join(_format_value(getattr(value, f.name)) for f in fields) + "}"
    return str(value)


class _Unset:
    pass


_UNSET = _Unset()


@dataclasses.dataclass(frozen=True)
class _State:
    dot: Any
    missing_key: str

    def lookup(self, receiver: Any, name: str) -> Any:
        if receiver is None:
            if self.missing_key == "error":
                raise TemplateExecError(f'nil data; no entry for key "{name}"')
            return None
        if isinstance(receiver, Mapping):
            try:
                return receiver[name]
            except KeyError:
                if self.missing_key == "error":
                    raise TemplateExecError(f'map has no entry for key "{name}"') from None
                return None
        try:
            value = getattr(receiver, name)
        except AttributeError:
            raise TemplateExecError(
                f"can't evaluate field {name} in type {type(receiver).__name__}"
            ) from None
        if inspect.ismethod(value):
            value = value()
        return value


def _index(item: Any, *indices: Any) -> Any:
    for idx in indices:
        if item is None:
            raise TemplateExecError("index of untyped nil")
        if isinstance(item, Mapping):
            item = item.get(idx)
            continue
        if isinstance(item, str):
            item = item.encode()
        if isinstance(item, (Sequence, bytes, bytearray)):
            if isinstance(idx, bool) or not isinstance(idx, int):
                raise TemplateExecError(
                    f"cannot index slice/array with type {type(idx).__name__}"
                )
            if not 0 <= idx < len(item):
                raise TemplateExecError(f"index out of range: {idx}")
            item = item[idx]
            continue
        raise TemplateExecError(f"can't index item of type {type(item).__name__}")
    return item


def _len(item: Any) -> int:
    try:
        return len(item)
    except TypeError:
        raise TemplateExecError(f"len of type {type(item).__name__}") from None


def _print(*args: Any) -> str:
    parts: list[str] = []
    previous_is_str = True
    for position, arg in enumerate(args):
        is_str = isinstance(arg, str)
        if position and not is_str and not previous_is_str:
            parts.append(" ")
        parts.append(_format_value(arg))
        previous_is_str = is_str
    return "".join(parts)


def _println(*args: Any) -> str:
    return " ".join(_format_value(arg) for arg in args) + "\n"


class _Function(NamedTuple):
    call: Callable[..., Any]
    min_args: int
    max_args: int | None


_FUNCTIONS: dict[str, _Function] = {
    "index": _Function(_index, 1, None),
    "len": _Function(_len, 1, 1),
    "print": _Function(_print, 0, None),
    "println": _Function(_println, 0, None),
}


@dataclasses.dataclass(frozen=True)
class _Literal:
    value: Any

    def evaluate(self, state: _State) -> Any:
        return self.value


@dataclasses.dataclass(frozen=True)
class _Nil(_Literal):
    """The ``nil`` keyword: a literal whose value is always None."""

    value: Any = None


@dataclasses.dataclass(frozen=True)
class _FuncRef:
    name: str

    def call(self, args: list[Any]) -> Any:
        function = _FUNCTIONS[self.name]
        too_few = len(args) < function.min_args
        too_many = function.max_args is not None and len(args) > function.max_args
        if too_few or too_many:
            raise TemplateExecError(f"wrong number of args for {self.name}: got {len(args)}")
        return function.call(*args)

    def evaluate(self, state: _State) -> Any:
        return self.call([])


@dataclasses.dataclass(frozen=True)
class _Field:
    base: Any
    names: tuple[str, ...]

    def evaluate(self, state: _State) -> Any:
        value = state.dot if self.base is None else self.base.evaluate(state)
        for name in self.names:
            value = state.lookup(value, name)
        return value


@dataclasses.dataclass(frozen=True)
class _Command:
    operands: tuple[Any, ...]

    def evaluate(self, state: _State, final: Any = _UNSET) -> Any:
        head, *args = self.operands
        if isinstance(head, _FuncRef):
            values = [arg.evaluate(state) for arg in args]
            if final is not _UNSET:
                values.append(final)
            return head.call(values)
        if isinstance(head, _Nil):
            raise TemplateExecError("nil is not a command")
        if args or final is not _UNSET:
            raise TemplateExecError("can't give argument to non-function")
        return head.evaluate(state)


@dataclasses.dataclass(frozen=True)
class _Pipeline:
    commands: tuple[_Command, ...]

    def evaluate(self, state: _State) -> Any:
        value: Any = _UNSET
        for command in self.commands:
            value = command.evaluate(state, value)
        return value


@dataclasses.dataclass(frozen=True)
class _Action:
    pipeline: _Pipeline
    line: int

    def execute(self, state: _State) -> str:
        try:
            value = self.pipeline.evaluate(state)
        except TemplateExecError as exc:
            raise TemplateExecError(f"line {self.line}: {exc}") from None
        return _NO_VALUE if value is None else _format_value(value)


_Node = Union[str, _Action]


class _Token(NamedTuple):
    kind: str
    text: str
    spaced: bool


_TOKEN_RE = re.compile(
    r"""
      (?P<string>"(?:[^"\\\n]|\\.)*")
    | (?P<raw>`[^`]*`)
    | (?P<var>\$[A-Za-z_0-9]*)
    | (?P<field>(?:\.[A-Za-z_][A-Za-z_0-9]*)+)
    | (?P<number>[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    | (?P<dot>\.)
    | (?P<ident>[A-Za-z_][A-Za-z_0-9]*)
    | (?P<lparen>\()
    | (?P<rparen>\))
    | (?P<pipe>\|)
    | (?P<assign>:?=)
    """,
    re.VERBOSE,
)

_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r",
    "t": "\t", "v": "\v", "\\": "\\", '"': '"', "'": "'",
}
_ESCAPE_RE = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-7]{3}|.)", re.DOTALL)


def _unquote(literal: str) -> str:
    def replace(match: re.Match[str]) -> str:
        seq = match.group(1)
        if seq[0] in "xuU" and len(seq) > 1:
            return chr(int(seq[1:], 16))
        if len(seq) == 3 and seq.isdigit():
            return chr(int(seq, 8))
        if seq in _ESCAPES:
            return _ESCAPES[seq]
        raise ValueError(f"unknown escape sequence \\{seq}")

    return _ESCAPE_RE.sub(replace, literal[1:-1])


def _parse_number(text: str) -> int | float:
    if re.fullmatch(r"[+-]?\d+", text):
        return int(text)
    return float(text)


class _Parser:
    def __init__(self, tokens: list[_Token], line: int) -> None:
        self._tokens = tokens
        self._pos = 0
        self._line = line

    def _error(self, message: str) -> TemplateSyntaxError:
        return TemplateSyntaxError(f"line {self._line}: {message}")

    def _peek(self) -> _Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> _Token | None:
        token = self._peek()
        self._pos += 1
        return token

    def parse_action(self) -> _Pipeline:
        first = self._peek()
        if first is None:
            raise self._error("missing value for command")
        if first.kind == "ident" and first.text in _KEYWORDS:
            raise self._error(f'unsupported action "{first.text}"')
        pipeline = self._pipeline()
        leftover = self._peek()
        if leftover is not None:
            raise self._error(f"unexpected {leftover.text!r} in action")
        return pipeline

    def _pipeline(self) -> _Pipeline:
        commands = [self._command()]
        while (token := self._peek()) is not None and token.kind == "pipe":
            self._next()
            commands.append(self._command())
        return _Pipeline(tuple(commands))

    def _command(self) -> _Command:
        operands = []
        while (token := self._peek()) is not None and token.kind not in ("pipe", "rparen"):
            operands.append(self._operand())
        if not operands:
            raise self._error("missing value for command")
        return _Command(tuple(operands))

    def _operand(self) -> Any:
        token = self._next()
        assert token is not None
        kind = token.kind
        node: Any
        if kind == "dot":
            node = _Field(None, ())
        elif kind == "field":
            node = _Field(None, tuple(token.text[1:].split(".")))
        elif kind == "var":
            if token.text != "$":
                raise self._error(f'undefined variable "{token.text}"')
            node = _Field(None, ())
        elif kind == "string":
            try:
                node = _Literal(_unquote(token.text))
            except ValueError as exc:
                raise self._error(str(exc)) from None
        elif kind == "raw":
            node = _Literal(token.text[1:-1])
        elif kind == "number":
            node = _Literal(_parse_number(token.text))
        elif kind == "ident":
            node = self._identifier(token.text)
        elif kind == "lparen":
            node = self._pipeline()
            closing = self._next()
            if closing is None or closing.kind != "rparen":
                raise self._error("unclosed left paren")
        elif kind == "assign":
            raise self._error("variable declarations are not supported")
        else:
            raise self._error(f"unexpected {token.text!r}")

        if kind in ("var", "lparen"):
            following = self._peek()
            if following is not None and following.kind == "field" and not following.spaced:
                self._next()
                names = tuple(following.text[1:].split("."))
                node = _Field(None, names) if kind == "var" else _Field(node, names)
        return node

    def _identifier(self, name: str) -> Any:
        if name == "true":
            return _Literal(True)
        if name == "false":
            return _Literal(False)
        if name == "nil":
            return _Nil()
        if name in _KEYWORDS:
            raise self._error(f'unexpected keyword "{name}"')
        if name not in _FUNCTIONS:
            raise self._error(f'function "{name}" not defined')
        return _FuncRef(name)


def _lex_action(text: str, start: int, line: int) -> tuple[list[_Token], int, bool]:
    """Read the tokens of one action; return them, the end offset and whether to trim after."""
    tokens: list[_Token] = []
    pos = start
    while True:
        cursor = pos
        while cursor < len(text) and text[cursor] in _SPACE:
            cursor += 1
        spaced = cursor > pos
        if cursor >= len(text):
            raise TemplateSyntaxError(f"line {line}: unclosed action")
        if spaced and text.startswith("-}}", cursor):
            return tokens, cursor + 3, True
        if text.startswith("}}", cursor):
            return tokens, cursor + 2, False
        match = _TOKEN_RE.match(text, cursor)
        if match is None:
            raise TemplateSyntaxError(f"line {line}: unexpected character {text[cursor]!r}")
        assert match.lastgroup is not None
        tokens.append(_Token(match.lastgroup, match.group(), spaced))
        pos = match.end()


def _skip_comment(text: str, start: int, line: int) -> tuple[int, bool]:
    end = text.find("*/", start + 2)
    if end == -1:
        raise TemplateSyntaxError(f"line {line}: unclosed comment")
    pos = end + 2
    if pos < len(text) and text[pos] in _SPACE and text.startswith("-}}", pos + 1):
        return pos + 4, True
    if text.startswith("}}", pos):
        return pos + 2, False
    raise TemplateSyntaxError(f"line {line}: comment ends before closing delimiter")


def _parse(text: str) -> list[_Node]:
    nodes: list[_Node] = []
    pos = 0
    trim_next = False
    while True:
        start = text.find("{{", pos)
        chunk = text[pos:] if start == -1 else text[pos:start]
        if trim_next:
            chunk = chunk.lstrip(_SPACE)
        if start == -1:
            if chunk:
                nodes.append(chunk)
            return nodes

        inner = start + 2
        if text.startswith("-", inner) and inner + 1 < len(text) and text[inner + 1] in _SPACE:
            chunk = chunk.rstrip(_SPACE)
            inner += 2
        if chunk:
            nodes.append(chunk)

        line = text.count("\n", 0, start) + 1
        if text.startswith("/*", inner):
            pos, trim_next = _skip_comment(text, inner, line)
            continue
        tokens, pos, trim_next = _lex_action(text, inner, line)
        nodes.append(_Action(_Parser(tokens, line).parse_action(), line))


class Template:
    """A parsed template that can be rendered with different data."""

    def __init__(self, text: str, missing_key: str = "error") -> None:
        if missing_key not in _MISSING_KEY_MODES:
            raise ValueError(f"unrecognized missing key mode: {missing_key!r}")
        self.text = text
        self.missing_key = missing_key
        self._nodes = _parse(text)

    def render(self, data: Any = None) -> str:
        """Execute the template with ``data`` as the value of ``.``."""
        state = _State(data, self.missing_key)
        return "".join(
            node if isinstance(node, str) else node.execute(state) for node in self._nodes
        )


def render(text: str, data: Any = None, missing_key: str = "error") -> str:
    """Parse ``text`` and render it with ``data`` in one step."""
    return Template(text, missing_key).render(data)