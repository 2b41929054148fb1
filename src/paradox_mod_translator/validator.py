"""Marker preservation checks between source and translated text."""

from __future__ import annotations

import re
from typing import List, Tuple


class FormatValidator:
    """
    Compare game markup markers before and after translation.

    Three marker families are checked, each delimited by its own character:
    icons ``£energy£``, variables ``$NAME$`` and color codes ``§Y...§``.
    A family passes when both texts contain the same markers in the same order.

    Issues are advisory. They are meant for human review and never stop a
    translated file from being written.
    """

    def __init__(self):
        self.families: List[Tuple[str, re.Pattern]] = [
            ("Icon", re.compile(r"£[^£]+£")),
            ("Variable", re.compile(r"\$[^$]+\$")),
            ("Color", re.compile(r"§[^§]+§")),
        ]

    def validate(self, original: str, translated: str) -> List[str]:
        """
        Returns:
            One issue per mismatching family; empty list means all passed
        """
        issues: List[str] = []
        for name, pattern in self.families:
            original_markers = pattern.findall(original)
            translated_markers = pattern.findall(translated)
            if original_markers != translated_markers:
                issues.append(
                    f"{name} markers mismatch. "
                    f"Original: {original_markers}, Translated: {translated_markers}"
                )
        return issues

    def extract_markers(self, text: str) -> List[str]:
        """All markers in ``text``, grouped by family."""
        markers: List[str] = []
        for _, pattern in self.families:
            markers.extend(pattern.findall(text))
        return markers

    def contains_markers(self, text: str) -> bool:
        return any(pattern.search(text) for _, pattern in self.families)
