"""Failure values returned by the bridge instead of raised exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    SPAWN_FAILURE = "spawn_failure"
    TIMEOUT = "timeout"
    NONZERO_EXIT = "nonzero_exit"
    MALFORMED_OUTPUT = "malformed_output"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class ToolFailure:
    """A reported tool failure.

    ``message`` is the one-line cause, ``detail`` carries diagnostic text
    (stderr, output preview) and ``hint`` an actionable suggestion for the
    caller.
    """

    kind: FailureKind
    message: str
    detail: str | None = None
    hint: str | None = None

    def render(self, tool_name: str) -> str:
        if self.kind is FailureKind.UNKNOWN_TOOL:
            return self.message
        text = f"Error executing {tool_name}: {self.message}"
        if self.hint:
            text += f"\n\nHint: {self.hint}"
        if self.detail:
            text += f"\n\nDetails:\n{self.detail}"
        return text


class MalformedOutputError(ValueError):
    """Script output is not exactly one JSON object of the expected shape."""

    def __init__(self, reason: str, preview: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.preview = preview

    def to_failure(self) -> ToolFailure:
        return ToolFailure(
            kind=FailureKind.MALFORMED_OUTPUT,
            message=f"Malformed output from script: {self.reason}",
            detail=f"Output: {self.preview}" if self.preview else "Output was empty",
            hint="Scripts must write exactly one JSON document to stdout.",
        )


__all__ = ["FailureKind", "MalformedOutputError", "ToolFailure"]
