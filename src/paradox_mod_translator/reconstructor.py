"""Reassembling translated slices into a complete file."""

from __future__ import annotations

import logging
import re
from typing import List, Sequence

from .errors import EmptyInputError, NonContiguousError
from .models import TranslationSlice

logger = logging.getLogger(__name__)


class Reconstructor:
    """Merge slices back in line order and restore the language header."""

    def __init__(self):
        # 形如 "l_simp_chinese:" 的语言标记行
        self.language_tag = re.compile(r"^\s*l_\w+:\s*$", re.MULTILINE)

    def merge(self, slices: Sequence[TranslationSlice]) -> str:
        """
        Join slices ordered by ``start_line``.

        Raises:
            EmptyInputError: if ``slices`` is empty
            NonContiguousError: if the sorted ranges leave a gap or overlap
        """
        if not slices:
            raise EmptyInputError()

        ordered = sorted(slices, key=lambda s: s.start_line)

        for prev, cur in zip(ordered, ordered[1:]):
            if cur.start_line != prev.end_line + 1:
                raise NonContiguousError(prev.end_line, cur.start_line)

        lines: List[str] = []
        for s in ordered:
            lines.extend(self._slice_lines(s))

        return "\n".join(lines)

    @staticmethod
    def _slice_lines(s: TranslationSlice) -> List[str]:
        """
        Lines of one slice, inverting the chunker's ``"\\n".join``.

        Empty lines at the end are real content when the slice range covers
        them; only surplus trailing empties (a newline the backend appended)
        are dropped.
        """
        lines = [line[:-1] if line.endswith("\r") else line for line in s.content.split("\n")]
        expected = s.end_line - s.start_line + 1
        while len(lines) > expected and lines[-1] == "":
            lines.pop()
        return lines

    def has_language_tag(self, text: str) -> bool:
        return self.language_tag.search(text) is not None

    def reconstruct(self, slices: Sequence[TranslationSlice], header: str) -> str:
        """
        Merge slices and put ``header`` on top.

        The header is skipped when the merged body already carries a language
        tag, which happens when the backend echoes one back.
        """
        merged = self.merge(slices)

        if header and not self.has_language_tag(merged):
            return f"{header}\n{merged}"

        if header:
            logger.debug("Translated body already has a language tag, header not added")
        return merged
