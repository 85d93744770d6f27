"""Prompt construction and reply decoding for LLM-backed normalization.

The model receives the raw statement text verbatim and must answer with a bare
JSON array. Replies occasionally arrive wrapped in a Markdown code fence; the
decoder strips one fence before parsing.
"""

from __future__ import annotations

import json
import re
from typing import Any

BEGIN = "BEGIN_STATEMENT_CSV\n"
END = "\nEND_STATEMENT_CSV"

_FENCE = re.compile(r"^```(?:json)?\s*\n(?P<body>.*)\n```$", re.DOTALL)


def build_user_content(csv_text: str) -> str:
    """Build the single user message for the conversion request.

    The CSV is embedded between ``BEGIN_``/``END_`` markers so the boundary is
    unambiguous even when the statement itself contains blank lines.
    """

    return (
        "I have the following CSV data exported from a bank statement:\n\n"
        f"{BEGIN}{csv_text}{END}\n\n"
        "Convert this data into a JSON array of objects. Each object must have "
        "exactly these fields:\n"
        "- date: string (formatted as YYYY-MM-DD)\n"
        "- description: string\n"
        "- category: string (infer the category from the description)\n"
        '- type: string (either "income" or "expense", inferred from the context)\n'
        "- value: number (positive number)\n\n"
        "Only return the valid JSON array, nothing else. Make sure to handle all "
        "entries in the CSV."
    )


def strip_code_fence(text: str) -> str:
    s = text.strip()
    m = _FENCE.match(s)
    return m.group("body").strip() if m else s


def decode_json_array(text: str) -> list[Any]:
    """Parse ``text`` as a JSON array.

    Raises ``json.JSONDecodeError`` for invalid JSON and ``TypeError`` when
    the top-level value is not an array.
    """

    decoded = json.loads(strip_code_fence(text))
    if not isinstance(decoded, list):
        raise TypeError(f"expected a JSON array, got {type(decoded).__name__}")
    return decoded


__all__ = ["BEGIN", "END", "build_user_content", "decode_json_array", "strip_code_fence"]
