"""Encode tool parameters into PowerShell command-line tokens.

Parameters arrive as an ordered sequence of ``(flag, value)`` pairs and are
turned into the tokens a PowerShell script receives:

- ``None`` omits the flag entirely.
- ``True`` emits a bare switch (``-Detailed``); ``False`` emits nothing.
- Scalars emit the flag followed by one value token.
- Lists are joined with :data:`LIST_DELIMITER` into one value token. An empty
  list still emits the flag with an empty value. Elements that contain the
  delimiter cannot be recovered by the script, which splits on the same
  character.

In quoted mode (used when the script body is passed through ``-Command``)
each value is a PowerShell single-quoted literal, so whitespace, ``$``,
``;`` and quotes are never interpreted. In unquoted mode (``-File``) each
token is its own process argument and is passed verbatim. PowerShell still
binds an unquoted token that starts with ``-`` as a parameter name, so a
value such as ``-foo`` does not reach the script as a literal in that mode.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Union

Scalar = Union[str, int, float, bool]
ParamValue = Union[Scalar, Sequence[Union[str, int, float]], None]

LIST_DELIMITER = ","

UTF8_OUTPUT_PRELUDE = "[Console]::OutputEncoding = [System.Text.UTF8Encoding]::new($false);"

# PowerShell treats the typographic single quotes as quote characters too.
_SINGLE_QUOTES = ("'", "‘", "’", "‚", "‛")


@dataclass(frozen=True)
class EncodedCommand:
    """Interpreter path plus the arguments that follow it."""

    interpreter_path: str
    argument_vector: tuple[str, ...]

    @property
    def argv(self) -> list[str]:
        return [self.interpreter_path, *self.argument_vector]


def quote_literal(value: str) -> str:
    """Return ``value`` as a PowerShell single-quoted string literal."""
    escaped = value
    for quote in _SINGLE_QUOTES:
        escaped = escaped.replace(quote, quote * 2)
    return f"'{escaped}'"


def format_scalar(value: str | int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


def join_list(values: Iterable[str | int | float]) -> str:
    """Join list elements with the delimiter the scripts split on."""
    return LIST_DELIMITER.join(format_scalar(item) for item in values)


def encode_parameters(
    params: Iterable[tuple[str, ParamValue]],
    *,
    quoted: bool,
) -> list[str]:
    """Encode ``(flag, value)`` pairs into tokens, preserving their order."""
    tokens: list[str] = []
    for flag, value in params:
        if value is None:
            continue
        switch = f"-{flag}"
        if isinstance(value, bool):
            if value:
                tokens.append(switch)
            continue
        if isinstance(value, (list, tuple)):
            text = join_list(value)
        else:
            text = format_scalar(value)  # type: ignore[arg-type]
        tokens.append(switch)
        tokens.append(quote_literal(text) if quoted else text)
    return tokens


def command_fragment(script_body: str, tokens: Sequence[str]) -> str:
    """Wrap a script body in a script block invocation for ``-Command``.

    Console output is switched to BOM-less UTF-8 first; redirected Windows
    PowerShell otherwise writes in the console code page.
    """
    fragment = f"{UTF8_OUTPUT_PRELUDE} & {{ {script_body} }}"
    if tokens:
        fragment = f"{fragment} {' '.join(tokens)}"
    return fragment


__all__ = [
    "LIST_DELIMITER",
    "UTF8_OUTPUT_PRELUDE",
    "EncodedCommand",
    "ParamValue",
    "command_fragment",
    "encode_parameters",
    "format_scalar",
    "join_list",
    "quote_literal",
]
