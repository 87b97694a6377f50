"""Decode the JSON document a diagnostic script writes to stdout."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from diagbridge.errors import MalformedOutputError

logger = logging.getLogger("diagbridge")

PREVIEW_CHARS = 500


def _preview(text: str) -> str:
    if len(text) <= PREVIEW_CHARS:
        return text
    return text[:PREVIEW_CHARS] + f"... [{len(text) - PREVIEW_CHARS} more chars]"


def decode_output(
    stdout: bytes,
    required_fields: Sequence[str] = (),
) -> dict[str, Any]:
    """Parse ``stdout`` as a single JSON object.

    Args:
        stdout: Raw bytes captured from the script.
        required_fields: Top-level keys the caller's formatter depends on.

    Raises:
        MalformedOutputError: If the output is empty, not exactly one JSON
            document, not an object, or lacks a required field. Bytes that
            are not UTF-8 are replaced rather than rejected.
    """
    try:
        # utf-8-sig: Windows PowerShell 5.1 may prefix a BOM.
        text = stdout.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        # Console code page output; undecodable bytes become U+FFFD.
        logger.warning(
            "Script output is not valid UTF-8 (%s at byte %d); decoding with replacement",
            exc.reason,
            exc.start,
        )
        text = stdout.decode("utf-8-sig", errors="replace")

    if not text.strip():
        raise MalformedOutputError("script produced no output", "")

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(
            f"invalid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            _preview(text),
        ) from exc

    if not isinstance(document, dict):
        raise MalformedOutputError(
            f"expected a JSON object, got {type(document).__name__}",
            _preview(text),
        )

    missing = [field for field in required_fields if field not in document]
    if missing:
        raise MalformedOutputError(
            f"missing required field(s): {', '.join(missing)}",
            _preview(text),
        )
    return document


__all__ = ["PREVIEW_CHARS", "decode_output"]
