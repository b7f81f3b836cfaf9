"""Approximate token matching for search-as-you-type and highlight ranges.

Each whitespace-separated query token must match the text on its own.
An exact (case-insensitive) substring hit scores 1.0. Otherwise every
span whose length is close to the token's is compared by edit distance,
and the span with the lowest normalized distance wins if it stays under
MAX_ERROR_RATIO. Offsets are code point indices into the original text.

The approximate scan only looks at the first MAX_SCAN_LENGTH characters,
so one token costs at most MAX_SCAN_LENGTH * (2 * slack + 1) edit-distance
computations of O(len(token) ** 2) each, however long the title is. Exact
hits are still found anywhere in the text.
"""

import math

from nestlist.models import MatchResult

LENGTH_TOLERANCE = 0.4
MAX_ERROR_RATIO = 0.45
MAX_SCAN_LENGTH = 200


def levenshtein(source: str, target: str) -> int:
    """Unit-cost edit distance (insert, delete, substitute) over code points."""
    if source == target:
        return 0
    if not source:
        return len(target)
    if not target:
        return len(source)

    previous = list(range(len(target) + 1))
    for i, source_char in enumerate(source, start=1):
        current = [i]
        for j, target_char in enumerate(target, start=1):
            cost = 0 if source_char == target_char else 1
            current.append(min(
                current[j - 1] + 1,
                previous[j] + 1,
                previous[j - 1] + cost,
            ))
        previous = current
    return previous[-1]


def fold_case(text: str) -> str:
    """Lowercase per character, keeping characters whose lowercase form is longer.

    The result has the same length as text, so offsets map back one to one.
    """
    return "".join(c.lower() if len(c.lower()) == 1 else c for c in text)


def tokenize_query(query: str) -> list[str]:
    """Case-folded whitespace-separated tokens. Empty for a blank query."""
    return fold_case(query).split()


def match_token(
    token: str,
    text: str,
    *,
    tolerance: float = LENGTH_TOLERANCE,
    max_error_ratio: float = MAX_ERROR_RATIO,
) -> tuple[float, tuple[int, int]] | None:
    """Best (score, (start, end)) span of a fold_case()d token in text.

    Ties go to the earliest start, then the shortest span.
    """
    if not token or not text:
        return None

    haystack = fold_case(text)

    exact = haystack.find(token)
    if exact != -1:
        return 1.0, (exact, exact + len(token))

    token_length = len(token)
    slack = max(1, math.ceil(token_length * tolerance))
    min_window = max(1, token_length - slack)
    max_window = token_length + slack

    best_ratio: float | None = None
    best_span: tuple[int, int] | None = None
    scanned = haystack[:MAX_SCAN_LENGTH]
    for start in range(len(scanned)):
        longest = min(max_window, len(scanned) - start)
        shortest = min(min_window, longest)
        for length in range(shortest, longest + 1):
            span = scanned[start:start + length]
            ratio = levenshtein(token, span) / max(token_length, length)
            if ratio > max_error_ratio:
                continue
            if best_ratio is None or ratio < best_ratio:
                best_ratio = ratio
                best_span = (start, start + length)

    if best_ratio is None or best_span is None:
        return None
    return 1.0 - best_ratio, best_span


def merge_ranges(ranges: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Merge overlapping or adjacent half-open ranges, sorted by start."""
    merged: list[tuple[int, int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            last_start, last_end = merged[-1]
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def match(query: str, text: str) -> MatchResult | None:
    """Match every query token against text.

    Returns None when the query is blank or any token fails to match.
    The score is the mean of the per-token scores.
    """
    tokens = tokenize_query(query)
    if not tokens:
        return None

    scores: list[float] = []
    ranges: list[tuple[int, int]] = []
    for token in tokens:
        found = match_token(token, text)
        if found is None:
            return None
        score, span = found
        scores.append(score)
        ranges.append(span)

    return MatchResult(score=sum(scores) / len(scores), ranges=merge_ranges(ranges))
