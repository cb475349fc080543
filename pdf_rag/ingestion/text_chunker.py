"""Deterministic splitting of extracted document text into bounded segments."""

import re
from dataclasses import dataclass
from typing import Iterator, List

DEFAULT_MAX_CHARS = 1000

PARAGRAPH_SEPARATOR = "\n\n"
INLINE_SEPARATOR = " "

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class _Unit:
    """A piece of text that fits the budget, with the separator placed before it."""

    text: str
    separator: str


class TextChunker:
    """Split text into segments of at most ``max_chars`` characters.

    Paragraph boundaries are preferred, then sentence boundaries, then
    whitespace; a single word longer than the budget is cut hard. Units are
    packed greedily in their original order. Whitespace-only segments never
    appear in the output.
    """

    def __init__(self, max_chars: int = DEFAULT_MAX_CHARS):
        if max_chars < 1:
            raise ValueError(f"max_chars must be positive, got {max_chars}")
        self.max_chars = max_chars

    def split(self, text: str) -> List[str]:
        segments: List[str] = []
        current = ""

        for unit in self._units(text):
            if not current:
                current = unit.text
            elif len(current) + len(unit.separator) + len(unit.text) <= self.max_chars:
                current = f"{current}{unit.separator}{unit.text}"
            else:
                segments.append(current)
                current = unit.text

        if current:
            segments.append(current)

        return [segment for segment in segments if segment.strip()]

    def _units(self, text: str) -> Iterator[_Unit]:
        for paragraph in _PARAGRAPH_BREAK.split(text.replace("\r\n", "\n")):
            paragraph = _WHITESPACE.sub(" ", paragraph).strip()
            if not paragraph:
                continue

            separator = PARAGRAPH_SEPARATOR
            for piece in self._fit(paragraph):
                yield _Unit(piece, separator)
                separator = INLINE_SEPARATOR

    def _fit(self, paragraph: str) -> Iterator[str]:
        if len(paragraph) <= self.max_chars:
            yield paragraph
            return

        for sentence in _SENTENCE_END.split(paragraph):
            if len(sentence) <= self.max_chars:
                yield sentence
                continue
            for word in sentence.split(" "):
                if len(word) <= self.max_chars:
                    yield word
                    continue
                for start in range(0, len(word), self.max_chars):
                    yield word[start:start + self.max_chars]


def chunk_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> List[str]:
    """Split ``text`` into ordered segments of at most ``max_chars`` characters."""
    return TextChunker(max_chars).split(text)
