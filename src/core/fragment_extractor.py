"""
Recover a JSON fragment from a free-form model response.

Models wrap their JSON in acknowledgements, markdown fences and trailing
commentary. The default heuristic takes the earliest opening bracket and the
latest closing bracket of either kind, removes trailing commas and line
breaks, and returns the slice. It does not repair the interior; json parsing
downstream still fails on genuine corruption.

Known limitation: a stray bracket in the preamble (e.g. "[citation]" before
the real payload) moves the start index. ``strict=True`` switches to a
balanced-bracket scan from the chosen start instead of the last closing
bracket.
"""

import re
from typing import Optional

from src.core.errors import NoStructureFound
from src.utils.logger import setup_logger

logger = setup_logger(__name__)

TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
LINE_BREAK_RE = re.compile(r"(\r\n|\n|\r)")

_CLOSERS = {"{": "}", "[": "]"}


def extract_structured_fragment(raw: str, strict: bool = False) -> str:
    """
    Extract the structured-data fragment from a model response.

    Args:
        raw: Full response text
        strict: Use a balanced-bracket scan to find the end of the fragment

    Returns:
        Cleaned fragment, trimmed of surrounding whitespace

    Raises:
        NoStructureFound: No opening bracket, or no closing bracket after it
    """
    if not raw:
        raise NoStructureFound("Empty response from AI backend")

    starts = [i for i in (raw.find("{"), raw.find("[")) if i != -1]
    if not starts:
        logger.error("No valid JSON structure found in AI response")
        raise NoStructureFound("No opening bracket in AI response")
    start = min(starts)

    if strict:
        end = _balanced_end(raw, start)
        if end is None:
            raise NoStructureFound("Unbalanced brackets in AI response")
    else:
        # Latest closing bracket of either kind, regardless of the opener's type
        end = max(raw.rfind("}"), raw.rfind("]"))

    if end <= start:
        logger.error("No valid JSON structure found in AI response")
        raise NoStructureFound("No closing bracket after the opening bracket")

    fragment = raw[start:end + 1]
    fragment = TRAILING_COMMA_RE.sub(r"\1", fragment)

    trailing = raw[end + 1:].strip()
    if trailing:
        logger.warning(
            f"Discarding trailing non-JSON content ({len(trailing)} chars)",
            extra={"trailing": trailing[:500]}
        )

    fragment = LINE_BREAK_RE.sub("", fragment)
    return fragment.strip()


def _balanced_end(raw: str, start: int) -> Optional[int]:
    """Index of the bracket closing the one at ``start``, skipping string literals."""
    stack = [_CLOSERS[raw[start]]]
    in_string = False
    escaped = False

    for index in range(start + 1, len(raw)):
        char = raw[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]"):
            if char != stack[-1]:
                return None
            stack.pop()
            if not stack:
                return index
    return None
