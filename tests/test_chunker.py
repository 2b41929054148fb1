"""Tests for line-aligned chunking."""

from paradox_mod_translator.chunker import Chunker, split_content
from paradox_mod_translator.text_utils import estimate_tokens, split_lines


def make_content(n: int) -> str:
    return "\n".join(f' key_{i}:0 "Some localised text number {i}"' for i in range(1, n + 1))


class TestChunker:

    def test_empty_content(self):
        assert split_content("x.yml", "", 1000) == []

    def test_single_chunk(self):
        chunks = split_content("x.yml", make_content(3), 10_000)
        assert len(chunks) == 1
        assert (chunks[0].start_line, chunks[0].end_line) == (1, 3)
        assert chunks[0].target_filename == "x.yml"

    def test_ranges_are_contiguous(self):
        content = make_content(50)
        chunks = split_content("x.yml", content, 100)
        assert len(chunks) > 1
        assert chunks[0].start_line == 1
        for prev, cur in zip(chunks, chunks[1:]):
            assert cur.start_line == prev.end_line + 1
        assert chunks[-1].end_line == len(split_lines(content))

    def test_round_trip_is_lossless(self):
        content = "a\n\n  b: \"c\"\n# comment\n\nlast"
        chunks = split_content("x.yml", content, 1)
        joined = "\n".join(c.content for c in chunks)
        assert joined == content

    def test_respects_budget_except_oversized_lines(self):
        content = make_content(40)
        budget = 40
        for chunk in split_content("x.yml", content, budget):
            lines = chunk.content.split("\n")
            if len(lines) > 1:
                assert sum(estimate_tokens(line) for line in lines) <= budget

    def test_oversized_line_is_own_chunk(self):
        long_line = "x" * 2000
        content = f"short\n{long_line}\nshort"
        chunks = split_content("x.yml", content, 100)
        assert [c.content for c in chunks] == ["short", long_line, "short"]
        assert [(c.start_line, c.end_line) for c in chunks] == [(1, 1), (2, 2), (3, 3)]

    def test_trailing_newline_not_a_line(self):
        chunks = split_content("x.yml", "a\nb\n", 1000)
        assert chunks[-1].end_line == 2

    def test_custom_estimator(self):
        chunker = Chunker(estimator=lambda line: 1)
        chunks = chunker.split("x.yml", "a\nb\nc\nd\ne", 2)
        assert [c.content for c in chunks] == ["a\nb", "c\nd", "e"]
