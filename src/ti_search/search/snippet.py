"""Snippet extraction with query-term highlighting for result pages.

Matching is on the raw query words, not on processed terms, so a snippet
highlights exactly what the user typed:

- every case-insensitive occurrence of a query word is wrapped in markers
- the snippet is the fixed-size window that covers the most occurrences
- the window is wrapped in ellipses
"""

from __future__ import annotations

from collections.abc import Sequence
import re


QUERY_WORD_PATTERN = re.compile(r"[^a-zA-Z0-9']+")


def query_words(query: str) -> list[str]:
    """Split a raw query into the words to highlight, longest first."""

    words = {word.lower() for word in QUERY_WORD_PATTERN.split(query) if word}
    return sorted(words, key=lambda word: (-len(word), word))


def highlight_terms(text: str, words: Sequence[str], marker: str = "*") -> tuple[str, list[int]]:
    """Wrap every occurrence of ``words`` in ``marker``.

    Returns:
        The highlighted text and the start offset of each highlight in it.
    """

    if not text or not words:
        return text, []

    pattern = re.compile("|".join(re.escape(word) for word in words), re.IGNORECASE)
    pieces: list[str] = []
    positions: list[int] = []
    cursor = 0
    length = 0
    for match in pattern.finditer(text):
        before = text[cursor : match.start()]
        pieces.append(before)
        length += len(before)
        positions.append(length)
        highlighted = f"{marker}{match.group(0)}{marker}"
        pieces.append(highlighted)
        length += len(highlighted)
        cursor = match.end()
    pieces.append(text[cursor:])
    return "".join(pieces), positions


def densest_window_start(positions: Sequence[int], window: int) -> int:
    """Return the position whose ``window``-sized span covers the most positions.

    Earlier positions win ties; no positions means the text start.
    """

    best_start, best_count = 0, 0
    upper = 0
    for lower, start in enumerate(positions):
        upper = max(upper, lower)
        while upper < len(positions) and positions[upper] < start + window:
            upper += 1
        count = upper - lower
        if count > best_count:
            best_start, best_count = start, count
    return best_start


def build_snippet(body: str, query: str, max_chars: int = 300, marker: str = "*") -> str:
    """Build a highlighted snippet of ``body`` for ``query``."""

    if not body:
        return ""
    highlighted, positions = highlight_terms(body, query_words(query), marker=marker)
    start = densest_window_start(positions, max_chars)
    window = highlighted[start : start + max_chars].strip()
    return f"...{window}..."


def truncate_title(title: str, max_chars: int = 60) -> str:
    if len(title) > max_chars:
        return title[:max_chars] + "..."
    return title
