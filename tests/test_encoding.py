"""Tests for diagbridge.encoding."""

import pytest

from diagbridge.encoding import (
    UTF8_OUTPUT_PRELUDE,
    EncodedCommand,
    command_fragment,
    encode_parameters,
    format_scalar,
    join_list,
    quote_literal,
)

_QUOTES = "'‘’‚‛"


def split_single_quoted(text: str) -> list[str]:
    """Split tokens the way PowerShell reads single-quoted literals and bare words."""
    tokens: list[str] = []
    index = 0
    while index < len(text):
        char = text[index]
        if char == " ":
            index += 1
            continue
        if char in _QUOTES:
            value = []
            index += 1
            while index < len(text):
                if text[index] in _QUOTES:
                    if index + 1 < len(text) and text[index + 1] in _QUOTES:
                        value.append(text[index])
                        index += 2
                        continue
                    index += 1
                    break
                value.append(text[index])
                index += 1
            tokens.append("".join(value))
            continue
        end = text.find(" ", index)
        end = len(text) if end == -1 else end
        tokens.append(text[index:end])
        index = end
    return tokens


class TestQuoteLiteral:
    def test_plain_value(self) -> None:
        assert quote_literal("System") == "'System'"

    def test_doubles_embedded_single_quotes(self) -> None:
        assert quote_literal("O'Brien") == "'O''Brien'"

    def test_doubles_typographic_quotes(self) -> None:
        assert quote_literal("it’s") == "'it’’s'"

    def test_leaves_metacharacters_inert(self) -> None:
        assert quote_literal("$env:PATH; rm -rf /") == "'$env:PATH; rm -rf /'"


class TestFormatScalar:
    def test_integral_float_has_no_decimal(self) -> None:
        assert format_scalar(7.0) == "7"

    def test_fractional_float_uses_repr(self) -> None:
        assert format_scalar(0.1) == "0.1"

    def test_int_and_str(self) -> None:
        assert format_scalar(42) == "42"
        assert format_scalar("x") == "x"


def test_join_list_uses_comma() -> None:
    assert join_list(["Application", "System"]) == "Application,System"
    assert join_list([4624, 4625.0]) == "4624,4625"


class TestEncodeParameters:
    def test_none_is_omitted(self) -> None:
        assert encode_parameters([("Name", None)], quoted=True) == []

    def test_true_is_bare_switch_and_false_is_omitted(self) -> None:
        tokens = encode_parameters([("Detailed", True), ("JsonOutput", False)], quoted=True)
        assert tokens == ["-Detailed"]

    def test_scalar_quoted_and_unquoted(self) -> None:
        assert encode_parameters([("DaysBack", 7)], quoted=True) == ["-DaysBack", "'7'"]
        assert encode_parameters([("DaysBack", 7)], quoted=False) == ["-DaysBack", "7"]

    def test_empty_list_keeps_flag(self) -> None:
        assert encode_parameters([("LogNames", [])], quoted=True) == ["-LogNames", "''"]
        assert encode_parameters([("LogNames", ())], quoted=False) == ["-LogNames", ""]

    def test_preserves_order(self) -> None:
        tokens = encode_parameters(
            [("B", 1), ("A", True), ("C", ["x", "y"])],
            quoted=False,
        )
        assert tokens == ["-B", "1", "-A", "-C", "x,y"]

    def test_unquoted_dash_value_is_passed_verbatim(self) -> None:
        tokens = encode_parameters([("SearchTerm", "-foo")], quoted=False)
        assert tokens == ["-SearchTerm", "-foo"]

    def test_quoted_dash_value_is_a_literal(self) -> None:
        tokens = encode_parameters([("SearchTerm", "-foo")], quoted=True)
        assert tokens == ["-SearchTerm", "'-foo'"]

    def test_element_containing_delimiter_is_lossy(self) -> None:
        tokens = encode_parameters([("Hosts", ["a,b", "c"])], quoted=False)
        assert tokens[1].split(",") == ["a", "b", "c"]

    def test_quoted_tokens_round_trip(self) -> None:
        values = ["O'Brien", "C:\\Program Files\\App", "it’s $HOME; echo hi", "", "ünïcödé"]
        params = [(f"P{i}", value) for i, value in enumerate(values)]

        line = " ".join(encode_parameters(params, quoted=True))
        tokens = split_single_quoted(line)

        assert tokens[1::2] == values
        assert tokens[0::2] == [f"-P{i}" for i in range(len(values))]


def test_command_fragment_wraps_script_block() -> None:
    body = "param($Name) Write-Output $Name"
    prelude = UTF8_OUTPUT_PRELUDE
    assert command_fragment(body, ["-Name", "'x'"]) == f"{prelude} & {{ {body} }} -Name 'x'"
    assert command_fragment(body, []) == f"{prelude} & {{ {body} }}"


def test_command_fragment_switches_output_to_utf8() -> None:
    fragment = command_fragment("Write-Output 1", [])

    assert fragment.startswith("[Console]::OutputEncoding = [System.Text.UTF8Encoding]::new($false);")
    assert fragment.index("OutputEncoding") < fragment.index("& {")


def test_encoded_command_argv() -> None:
    command = EncodedCommand("pwsh", ("-NoProfile", "-Command", "& { 1 }"))
    assert command.argv == ["pwsh", "-NoProfile", "-Command", "& { 1 }"]


@pytest.mark.parametrize("value", [True, False])
def test_boolean_never_emits_value_token(value: bool) -> None:
    tokens = encode_parameters([("Switch", value)], quoted=True)
    assert all(not token.startswith("'") for token in tokens)
