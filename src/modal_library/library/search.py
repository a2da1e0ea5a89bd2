"""Default ranking used when the host does not inject a search engine."""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from .item import LibraryItem

SearchFn = Callable[[str, Sequence[LibraryItem]], List[LibraryItem]]


def _subsequence_score(needle: str, haystack: str) -> Optional[int]:
    # lower is better: sum of gaps between matched characters
    position = -1
    gaps = 0
    for char in needle:
        found = haystack.find(char, position + 1)
        if found < 0:
            return None
        if position >= 0:
            gaps += found - position - 1
        position = found
    return gaps


def default_search(query: str, items: Sequence[LibraryItem]) -> List[LibraryItem]:
    """Case-insensitive subsequence match over title and authors.

    Substring hits rank before scattered matches; ties keep list order.
    """

    needle = query.strip().lower()
    if not needle:
        return list(items)
    ranked: List[tuple[int, int, int, LibraryItem]] = []
    for order, item in enumerate(items):
        haystack = f"{item.title} {' '.join(item.authors)}".lower()
        if needle in haystack:
            ranked.append((0, haystack.index(needle), order, item))
            continue
        score = _subsequence_score(needle, haystack)
        if score is not None:
            ranked.append((1, score, order, item))
    ranked.sort(key=lambda entry: entry[:3])
    return [entry[3] for entry in ranked]


def matches_term(item: LibraryItem, term: str) -> bool:
    """Plain substring test used by ``n``/``N``."""

    lowered = term.lower()
    if lowered in item.title.lower():
        return True
    return any(lowered in author.lower() for author in item.authors)


__all__ = ["SearchFn", "default_search", "matches_term"]
