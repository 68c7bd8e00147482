"""Byte-bounded text chunking at paragraph boundaries.

The translation wire API rejects payloads over a fixed byte size, so long
text is split into chunks before translation. Paragraphs (separated by one
or more blank lines) are packed greedily into chunks below the byte margin.
Each chunk remembers the separator that followed it, so joining
``chunk.text + chunk.separator`` for all chunks gives back the input exactly.

A single paragraph larger than the margin is split at sentence ends, and a
single sentence larger than the margin is split at character boundaries.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple

PARAGRAPH_BREAK = re.compile(r"(\n\n+)")
SENTENCE_BREAK = re.compile(r"(?<=[.!?।])(\s+)")
CODE_FENCE = re.compile(r"(```[\s\S]*?```)")


@dataclass
class TextChunk:
    text: str
    separator: str = ""


def byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


def _split_by_bytes(text: str, max_bytes: int) -> Iterator[str]:
    piece: List[str] = []
    size = 0
    for char in text:
        char_size = byte_length(char)
        if piece and size + char_size > max_bytes:
            yield "".join(piece)
            piece, size = [], 0
        piece.append(char)
        size += char_size
    if piece:
        yield "".join(piece)


def _split_oversized(paragraph: str, separator: str, max_bytes: int) -> Iterator[Tuple[str, str]]:
    """Yield (piece, separator) pairs, each piece within max_bytes."""
    if byte_length(paragraph) <= max_bytes:
        yield paragraph, separator
        return

    parts = SENTENCE_BREAK.split(paragraph)
    sentences = parts[0::2]
    gaps = parts[1::2] + [separator]
    for sentence, gap in zip(sentences, gaps):
        if byte_length(sentence) <= max_bytes:
            yield sentence, gap
            continue
        pieces = list(_split_by_bytes(sentence, max_bytes))
        for piece in pieces[:-1]:
            yield piece, ""
        yield pieces[-1], gap


def split_into_chunks(text: str, max_bytes: int) -> List[TextChunk]:
    """Pack paragraphs into chunks whose UTF-8 size stays within max_bytes."""
    parts = PARAGRAPH_BREAK.split(text)
    paragraphs = parts[0::2]
    separators = parts[1::2] + [""]

    chunks: List[TextChunk] = []
    current = None
    current_sep = ""

    for paragraph, separator in zip(paragraphs, separators):
        for piece, piece_sep in _split_oversized(paragraph, separator, max_bytes):
            if current is None:
                current, current_sep = piece, piece_sep
                continue
            candidate = current + current_sep + piece
            if byte_length(candidate) > max_bytes:
                chunks.append(TextChunk(current, current_sep))
                current, current_sep = piece, piece_sep
            else:
                current, current_sep = candidate, piece_sep

    if current is not None:
        chunks.append(TextChunk(current, current_sep))
    return chunks


def join_chunks(chunks: List[TextChunk]) -> str:
    return "".join(chunk.text + chunk.separator for chunk in chunks)


def split_code_fences(text: str) -> List[str]:
    """Split text into alternating prose and fenced code block segments."""
    return [part for part in CODE_FENCE.split(text) if part]


def is_code_fence(segment: str) -> bool:
    return segment.startswith("```")
