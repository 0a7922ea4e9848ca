"""
Locate classifier-flagged terms inside the analyzed message.

Flagged terms are not guaranteed to be literal substrings of the message;
terms that cannot be found are simply not highlighted.
"""

import re
from dataclasses import dataclass
from typing import List, Sequence


@dataclass
class Segment:
    """A run of message text, flagged or not."""
    text: str
    flagged: bool


def find_term_spans(message: str, terms: Sequence[str]) -> List[tuple]:
    """
    Return non-overlapping (start, end) spans of flagged terms in message.

    Matching is case-insensitive. Longer terms win when two terms overlap.
    """
    candidates = []
    for term in terms:
        term = term.strip()
        if not term:
            continue
        for match in re.finditer(re.escape(term), message, flags=re.IGNORECASE):
            candidates.append((match.start(), match.end()))

    # Prefer earlier, then longer spans
    candidates.sort(key=lambda span: (span[0], -(span[1] - span[0])))

    spans = []
    last_end = -1
    for start, end in candidates:
        if start >= last_end:
            spans.append((start, end))
            last_end = end
    return spans


def split_highlighted(message: str, terms: Sequence[str]) -> List[Segment]:
    """Split message into plain and flagged segments, preserving every character."""
    segments = []
    cursor = 0
    for start, end in find_term_spans(message, terms):
        if start > cursor:
            segments.append(Segment(message[cursor:start], flagged=False))
        segments.append(Segment(message[start:end], flagged=True))
        cursor = end
    if cursor < len(message):
        segments.append(Segment(message[cursor:], flagged=False))
    return segments


def missing_terms(message: str, terms: Sequence[str]) -> List[str]:
    """Flagged terms that do not occur in the message (case-insensitive)."""
    lower = message.lower()
    return [t for t in terms if t.strip() and t.strip().lower() not in lower]
