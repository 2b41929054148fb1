"""Text processing utilities."""

from __future__ import annotations

import math
from typing import List


# CJK 统一表意文字及其扩展区、兼容区
CJK_RANGES = (
    (0x4E00, 0x9FFF),
    (0x3400, 0x4DBF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2B73F),
    (0x2B740, 0x2B81F),
    (0x2B820, 0x2CEAF),
    (0xF900, 0xFAFF),
    (0x2F800, 0x2FA1F),
)

CJK_TOKENS_PER_CHAR = 1.5
OTHER_TOKENS_PER_CHAR = 0.25
CHARS_PER_TOKEN = 4


def is_cjk_character(ch: str) -> bool:
    """Return True if ``ch`` falls in one of the CJK ideograph blocks."""
    code = ord(ch)
    return any(lo <= code <= hi for lo, hi in CJK_RANGES)


def estimate_tokens(text: str) -> int:
    """
    Estimate how many backend tokens ``text`` will consume.

    Text containing any CJK character is costed at a blended rate
    (1.5 per CJK character, 0.25 per other character); plain text at one
    token per four characters. Both round up.

    Args:
        text: Text to estimate

    Returns:
        Non-negative token estimate
    """
    if not text:
        return 0

    cjk_count = sum(1 for ch in text if is_cjk_character(ch))
    if cjk_count:
        other_count = len(text) - cjk_count
        return math.ceil(
            cjk_count * CJK_TOKENS_PER_CHAR + other_count * OTHER_TOKENS_PER_CHAR
        )

    return math.ceil(len(text) / CHARS_PER_TOKEN)


def mask_secret(secret: str) -> str:
    """Show only the first and last four characters of a secret."""
    if len(secret) > 8:
        return f"{secret[:4]}...{secret[-4:]}"
    return "***"


def split_lines(text: str) -> List[str]:
    """
    Split text into lines on ``\\n`` only.

    A trailing newline does not produce an extra empty line and a ``\\r``
    before the newline is dropped. Other Unicode line separators are kept as
    part of the line, since game text may legitimately contain them.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]
