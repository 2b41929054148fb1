"""Data models for chunks and translated slices."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class FileChunk:
    """A line-aligned piece of a localisation file, sized for one request."""

    content: str
    start_line: int
    end_line: int
    target_filename: str

    def __post_init__(self):
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(
                f"Invalid line range {self.start_line}..{self.end_line}"
            )

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def label(self) -> str:
        """Identifier used in log messages, e.g. ``l_english_x.yml(1->40)``."""
        return f"{self.target_filename}({self.start_line}->{self.end_line})"


@dataclass(frozen=True)
class TranslationSlice:
    """Translated counterpart of a FileChunk, keeping its line range."""

    content: str
    start_line: int
    end_line: int

    # 格式校验结果，仅作提示
    issues: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def from_chunk(cls, chunk: FileChunk, content: str, issues=()) -> "TranslationSlice":
        return cls(
            content=content,
            start_line=chunk.start_line,
            end_line=chunk.end_line,
            issues=tuple(issues),
        )
