"""
Cleanup of JSON-like arrays embedded in terminal output.

Config dumps and log lines often carry arrays that were serialized twice,
e.g. ``"[\\".html\\", \\".js\\"]"``. This module finds such arrays line by
line, unwraps one layer of quoting and pretty-prints them when they parse as
JSON. Matching is heuristic: text that only looks like an array gets a
cosmetic quote cleanup instead of a reformat.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Key names that may precede an array on the same line.
ARRAY_LABELS = ("template_suffixes",)

JSON_INDENT = 2

# Label padding is horizontal whitespace only; a newline-crossing \s* would
# rescan every blank-line run from each line start.
ARRAY_LINE_PATTERN = re.compile(
    r'^([^\S\n]*(?:' + '|'.join(re.escape(label) for label in ARRAY_LABELS) + r')[^\S\n]*)?'
    r'(\[?"?\[.*?\]"?\]?)$',
    re.MULTILINE
)


@dataclass(frozen=True)
class ArrayParseResult:
    """Outcome of parsing an unwrapped array candidate."""
    parsed: bool
    value: Any = None
    formatted: Optional[str] = None


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant: {name}")


def unwrap_array(candidate: str) -> str:
    """Strip one layer of wrapping quotes and un-escape inner quotes."""
    if candidate.startswith('"'):
        candidate = candidate[1:]
    if candidate.endswith('"'):
        candidate = candidate[:-1]
    return candidate.replace('\\"', '"').replace('""', '"')


def parse_array(candidate: str) -> ArrayParseResult:
    """
    Parse and pretty-print an unwrapped array candidate.

    Failure to parse is an expected outcome and is reported through the
    result rather than raised.

    Args:
        candidate: Text produced by ``unwrap_array``

    Returns:
        ArrayParseResult with the parsed value and its 2-space formatting,
        or ``parsed=False``
    """
    try:
        value = json.loads(candidate, parse_constant=_reject_constant)
        formatted = json.dumps(value, indent=JSON_INDENT, ensure_ascii=False)
    except (ValueError, RecursionError):
        return ArrayParseResult(parsed=False)
    return ArrayParseResult(parsed=True, value=value, formatted=formatted)


def cosmetic_cleanup(text: str) -> str:
    """Best-effort quote cleanup for array-like text that is not valid JSON."""
    return (
        text.replace('\\"', '"')
        .replace('""', '"')
        .replace('"[', '[')
        .replace(']"', ']')
    )


def _replace_array(match: "re.Match") -> str:
    label, array_text = match.group(1), match.group(2)
    result = parse_array(unwrap_array(array_text))

    if not result.parsed:
        logger.debug("Array candidate is not valid JSON, applying cosmetic cleanup: %.60r", match.group(0))
        return cosmetic_cleanup(match.group(0))

    if label:
        return f"{label.strip()}: {result.formatted}"
    return result.formatted


def clean_json_arrays(text: str) -> str:
    """Reformat JSON-like arrays found at the start of lines."""
    return ARRAY_LINE_PATTERN.sub(_replace_array, text)
