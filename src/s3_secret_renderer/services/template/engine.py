"""Evaluator for the subset of Helm template syntax accepted by ``tpl``.

Values such as credentials may reference other parts of the render context,
for example ``accessKeyId: "{{ .Values.global.awsKeyId }}"``. This module
evaluates such strings against the ``{"Values", "Release", "Chart"}`` root.

Lookups are strict: a reference to a key that does not exist evaluates to
``MISSING``, and a missing value is only accepted by ``default`` and
``required``. Anywhere else it fails the evaluation with ``TemplateError``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable

from ... import metrics
from ...utils.encoding import b64decode_str, b64encode_str
from ...utils.errors import TemplateError


class _Missing:
    """Marker for a field reference that resolved to nothing."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<no value>"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

ACTION_OPEN = "{{"
ACTION_CLOSE = "}}"

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<string>"(?:[^"\\]|\\.)*")
    | (?P<raw>`[^`]*`)
    | (?P<number>-?\d+)
    | (?P<field>\$(?:\.[A-Za-z_][A-Za-z0-9_]*)*|(?:\.[A-Za-z_][A-Za-z0-9_]*)+|\.)
    | (?P<pipe>\|)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    """,
    re.VERBOSE,
)

_PRINTF_VERB_RE = re.compile(r"%(.)")

_STRING_ESCAPE_RE = re.compile(
    r"\\(x[0-9A-Fa-f]{2}|u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|[0-7]{3}|.?)", re.DOTALL
)

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}

_KEYWORD_LITERALS = {"true": True, "false": False, "nil": None}


@dataclass(frozen=True)
class Token:
    """A lexical element of an action body."""

    kind: str
    text: str


@dataclass(frozen=True)
class TemplateFunction:
    """A callable exposed to templates with its accepted argument count."""

    fn: Callable[..., Any]
    min_args: int
    max_args: int | None
    accepts_missing: bool = False


def _is_absent(value: Any) -> bool:
    return value is MISSING or value is None


def _is_empty(value: Any) -> bool:
    if _is_absent(value):
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, list, dict)):
        return len(value) == 0
    return False


def to_template_string(value: Any) -> str:
    """Format a resolved value the way Go templates print it.

    Raises:
        TemplateError: If the value is missing or is a map/list
    """
    if _is_absent(value):
        raise TemplateError("value is missing or nil")
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        raise TemplateError(f"cannot render a {type(value).__name__} value as text")
    return str(value)


def _fn_quote(*args: Any) -> str:
    return " ".join(json.dumps(to_template_string(arg), ensure_ascii=False) for arg in args)


def _fn_squote(*args: Any) -> str:
    return " ".join(f"'{to_template_string(arg)}'" for arg in args)


def _fn_default(default: Any, value: Any = MISSING) -> Any:
    return default if _is_empty(value) else value


def _fn_required(message: Any, value: Any = MISSING) -> Any:
    if _is_absent(value) or value == "":
        raise TemplateError(to_template_string(message))
    return value


def _fn_trunc(length: Any, value: Any) -> str:
    if not isinstance(length, int) or isinstance(length, bool):
        raise TemplateError("trunc: length must be an integer")
    text = to_template_string(value)
    if length < 0:
        return text[length:] if -length < len(text) else text
    return text[:length]


def _fn_printf(fmt: Any, *args: Any) -> str:
    pending = list(args)

    def substitute(match: re.Match[str]) -> str:
        verb = match.group(1)
        if verb == "%":
            return "%"
        if verb not in ("s", "d", "v"):
            raise TemplateError(f"printf: unsupported verb %{verb}")
        if not pending:
            raise TemplateError(f"printf: missing argument for %{verb}")
        arg = pending.pop(0)
        if verb == "d" and (not isinstance(arg, int) or isinstance(arg, bool)):
            raise TemplateError(f"printf: %d expects an integer, got {type(arg).__name__}")
        return to_template_string(arg)

    result = _PRINTF_VERB_RE.sub(substitute, to_template_string(fmt))
    if pending:
        raise TemplateError(f"printf: {len(pending)} extra argument(s)")
    return result


DEFAULT_FUNCTIONS: dict[str, TemplateFunction] = {
    "quote": TemplateFunction(_fn_quote, 1, None),
    "squote": TemplateFunction(_fn_squote, 1, None),
    "default": TemplateFunction(_fn_default, 1, 2, accepts_missing=True),
    "required": TemplateFunction(_fn_required, 1, 2, accepts_missing=True),
    "b64enc": TemplateFunction(lambda v: b64encode_str(to_template_string(v)), 1, 1),
    "b64dec": TemplateFunction(lambda v: b64decode_str(to_template_string(v)), 1, 1),
    "lower": TemplateFunction(lambda v: to_template_string(v).lower(), 1, 1),
    "upper": TemplateFunction(lambda v: to_template_string(v).upper(), 1, 1),
    "trim": TemplateFunction(lambda v: to_template_string(v).strip(), 1, 1),
    "trimSuffix": TemplateFunction(
        lambda suffix, v: to_template_string(v).removesuffix(to_template_string(suffix)), 2, 2
    ),
    "trimPrefix": TemplateFunction(
        lambda prefix, v: to_template_string(v).removeprefix(to_template_string(prefix)), 2, 2
    ),
    "trunc": TemplateFunction(_fn_trunc, 2, 2),
    "replace": TemplateFunction(
        lambda old, new, v: to_template_string(v).replace(
            to_template_string(old), to_template_string(new)
        ),
        3,
        3,
    ),
    "toString": TemplateFunction(to_template_string, 1, 1),
    "printf": TemplateFunction(_fn_printf, 1, None),
}


class TemplateEngine:
    """Evaluates ``{{ ... }}`` actions embedded in a string."""

    def __init__(self, functions: dict[str, TemplateFunction] | None = None) -> None:
        """Initialize the engine.

        Args:
            functions: Function table, defaults to DEFAULT_FUNCTIONS
        """
        self.functions = dict(DEFAULT_FUNCTIONS if functions is None else functions)

    def render(self, text: str, root: dict[str, Any], name: str = "tpl") -> str:
        """Evaluate every action in ``text`` against ``root``.

        Args:
            text: Template text
            root: Template root (``.``)
            name: Template name used in error messages

        Returns:
            Rendered text

        Raises:
            TemplateError: If any action fails to parse or evaluate
        """
        try:
            rendered = self._render(text, root)
        except TemplateError as e:
            metrics.template_evaluations_total.labels(result="failure").inc()
            raise TemplateError(f"template: {name!r}: {e}") from e
        metrics.template_evaluations_total.labels(result="success").inc()
        return rendered

    def _render(self, text: str, root: dict[str, Any]) -> str:
        output: list[str] = []
        pos = 0
        while True:
            start = text.find(ACTION_OPEN, pos)
            if start < 0:
                output.append(text[pos:])
                break

            body_start = start + len(ACTION_OPEN)
            literal = text[pos:start]
            if text.startswith("-", body_start) and text[body_start + 1 : body_start + 2].isspace():
                literal = literal.rstrip()
                body_start += 1
            output.append(literal)

            end = _find_action_end(text, body_start)
            body = text[body_start:end]
            pos = end + len(ACTION_CLOSE)
            if len(body) >= 2 and body.endswith("-") and body[-2].isspace():
                body = body[:-1]
                while pos < len(text) and text[pos].isspace():
                    pos += 1

            body = body.strip()
            if body.startswith("/*"):
                if not body.endswith("*/"):
                    raise TemplateError("unclosed comment")
                continue
            if not body:
                raise TemplateError("missing value for command")

            value = self._eval_pipeline(tokenize(body), root)
            output.append(to_template_string(value))

        return "".join(output)

    def _eval_pipeline(self, tokens: list[Token], root: dict[str, Any]) -> Any:
        commands: list[list[Token]] = [[]]
        for token in tokens:
            if token.kind == "pipe":
                commands.append([])
            else:
                commands[-1].append(token)
        if any(not command for command in commands):
            raise TemplateError("missing command in pipeline")

        value: Any = MISSING
        for index, command in enumerate(commands):
            piped = () if index == 0 else (value,)
            value = self._eval_command(command, root, piped)
        return value

    def _eval_command(self, command: list[Token], root: dict[str, Any], piped: tuple[Any, ...]) -> Any:
        head = command[0]
        if head.kind == "ident" and head.text not in _KEYWORD_LITERALS:
            args = [self._eval_operand(token, root) for token in command[1:]]
            return self._call(head.text, [*args, *piped])

        if len(command) > 1 or piped:
            raise TemplateError(f"can't give argument to non-function {head.text}")
        return self._eval_operand(head, root)

    def _eval_operand(self, token: Token, root: dict[str, Any]) -> Any:
        if token.kind == "string":
            return unquote_string(token.text)
        if token.kind == "raw":
            return token.text[1:-1]
        if token.kind == "number":
            return int(token.text)
        if token.kind == "field":
            return lookup_field(root, token.text)
        if token.kind == "ident":
            if token.text in _KEYWORD_LITERALS:
                return _KEYWORD_LITERALS[token.text]
            raise TemplateError(f"function {token.text} used as an argument")
        raise TemplateError(f"unexpected {token.kind} {token.text!r}")

    def _call(self, name: str, args: list[Any]) -> Any:
        function = self.functions.get(name)
        if function is None:
            raise TemplateError(f'function "{name}" not defined')
        if len(args) < function.min_args or (
            function.max_args is not None and len(args) > function.max_args
        ):
            raise TemplateError(f"wrong number of args for {name}: got {len(args)}")
        if not function.accepts_missing and any(_is_absent(arg) for arg in args):
            raise TemplateError(f"{name}: argument is missing or nil")
        return function.fn(*args)


def _find_action_end(text: str, pos: int) -> int:
    """Return the index of the ``}}`` closing the action starting at ``pos``."""
    quote: str | None = None
    i = pos
    while i < len(text):
        char = text[i]
        if quote:
            if char == "\\" and quote == '"':
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in ('"', "`"):
            quote = char
        elif text.startswith(ACTION_CLOSE, i):
            return i
        i += 1
    raise TemplateError("unclosed action")


def unquote_string(text: str) -> str:
    """Decode a double-quoted literal, including Go escape sequences.

    ``\\xHH`` and octal ``\\NNN`` escapes produce raw bytes; the decoded
    literal must be valid UTF-8.

    Raises:
        TemplateError: If the literal holds an invalid escape. The literal
            itself is left out of the message, it may hold a credential.
    """
    body = text[1:-1]
    decoded = bytearray()
    pos = 0
    for match in _STRING_ESCAPE_RE.finditer(body):
        decoded += body[pos:match.start()].encode("utf-8")
        pos = match.end()
        escape = match.group(1)
        if escape in _SIMPLE_ESCAPES:
            decoded += _SIMPLE_ESCAPES[escape].encode("utf-8")
        elif len(escape) == 3 and escape[0] == "x":
            decoded.append(int(escape[1:], 16))
        elif escape[:1] in ("u", "U"):
            try:
                decoded += chr(int(escape[1:], 16)).encode("utf-8")
            except (ValueError, UnicodeEncodeError) as e:
                raise TemplateError("invalid unicode escape in string literal") from e
        elif len(escape) == 3 and int(escape, 8) <= 0xFF:
            decoded.append(int(escape, 8))
        else:
            raise TemplateError("invalid escape sequence in string literal")
    decoded += body[pos:].encode("utf-8")
    try:
        return decoded.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TemplateError("string literal is not valid UTF-8") from e


def tokenize(body: str) -> list[Token]:
    """Split an action body into tokens.

    Raises:
        TemplateError: On characters outside the supported syntax
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(body):
        match = _TOKEN_RE.match(body, pos)
        if match is None:
            raise TemplateError(f"unexpected {body[pos]!r} in command")
        kind = match.lastgroup or ""
        if kind != "ws":
            tokens.append(Token(kind, match.group()))
        pos = match.end()
    return tokens


def lookup_field(root: dict[str, Any], reference: str) -> Any:
    """Resolve a field chain such as ``.Values.a.b`` or ``$.Release.Name``.

    Returns:
        The value, or MISSING when a key along the chain does not exist

    Raises:
        TemplateError: If a segment is applied to a non-mapping value
    """
    segments = [segment for segment in reference.lstrip("$").split(".") if segment]
    current: Any = root
    walked = ""
    for segment in segments:
        if _is_absent(current):
            return MISSING
        if not isinstance(current, dict):
            raise TemplateError(
                f"can't evaluate field {segment} in type {type(current).__name__} at {walked or '.'}"
            )
        current = current.get(segment, MISSING)
        walked = f"{walked}.{segment}"
    return current


_default_engine = TemplateEngine()


def tpl(text: str, root: dict[str, Any], name: str = "tpl") -> str:
    """Evaluate ``text`` with the default engine, like Helm's ``tpl`` function."""
    return _default_engine.render(text, root, name)
