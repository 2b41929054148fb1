"""Token-budgeted, line-aligned splitting of localisation content."""

from __future__ import annotations

import logging
from typing import Callable, List

from .models import FileChunk
from .text_utils import estimate_tokens, split_lines

logger = logging.getLogger(__name__)


class Chunker:
    """
    Split file content into chunks that fit a token budget.

    Lines are accumulated greedily: a chunk is closed only when adding the
    next line would push it over the budget, so the number of requests is kept
    as small as possible. The budget is advisory; a single line that is larger
    than the budget becomes a chunk of its own and is never split.
    """

    def __init__(self, estimator: Callable[[str], int] = estimate_tokens):
        self._estimate = estimator

    def split(
        self,
        filename: str,
        content: str,
        max_chunk_tokens: int,
    ) -> List[FileChunk]:
        lines = split_lines(content)
        if not lines:
            return []

        chunks: List[FileChunk] = []
        buffer: List[str] = []
        token_count = 0
        start_line = 1

        for line_number, line in enumerate(lines, 1):
            line_tokens = self._estimate(line)

            if buffer and token_count + line_tokens > max_chunk_tokens:
                chunks.append(FileChunk(
                    content="\n".join(buffer),
                    start_line=start_line,
                    end_line=line_number - 1,
                    target_filename=filename,
                ))
                buffer = [line]
                token_count = line_tokens
                start_line = line_number
            else:
                buffer.append(line)
                token_count += line_tokens

        # 最后一个切片
        chunks.append(FileChunk(
            content="\n".join(buffer),
            start_line=start_line,
            end_line=len(lines),
            target_filename=filename,
        ))

        logger.debug(
            f"Split {filename} ({len(lines)} lines) into {len(chunks)} chunks "
            f"(budget {max_chunk_tokens} tokens)"
        )
        return chunks


def split_content(filename: str, content: str, max_chunk_tokens: int) -> List[FileChunk]:
    """Split ``content`` with the default token estimator."""
    return Chunker().split(filename, content, max_chunk_tokens)
