"""Fuzzy resolution of a free-text term to one record.

Kept outside the document model: the index hands over ``(number, title,
filename stem)`` triples and gets back a :class:`MatchOutcome`.

Scoring tiers, highest first:

* exact: term equals the title or the filename stem/slug (score 1.0)
* substring: term occurs in the title or stem (0.75 to 1.0, longer
  coverage scores higher)
* fuzzy: ``difflib.SequenceMatcher`` ratio against the title, scaled by
  0.75, kept when the raw ratio reaches ``min_score``

:func:`contains` and :func:`text_snippet` serve full-text search, where
every hit counts and nothing is ranked.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from enum import StrEnum

from adrctl.domain.ids import FILENAME_PATTERN, slugify

DEFAULT_MIN_SCORE = 0.6
DEFAULT_MARGIN = 0.1
DEFAULT_LIMIT = 5

_SUBSTRING_BASE = 0.75
_FUZZY_WEIGHT = 0.75


class MatchStatus(StrEnum):
    MATCH = "match"
    NONE = "none"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Candidate:
    number: int
    title: str
    score: float
    reason: str


@dataclass(frozen=True)
class MatchOutcome:
    """Result of resolving *term*: one match, nothing, or several candidates."""

    status: MatchStatus
    term: str
    match: Candidate | None = None
    candidates: list[Candidate] = field(default_factory=list)


def _normalize(text: str) -> str:
    return " ".join(text.split()).casefold()


def _stem_slug(stem: str) -> str:
    match = FILENAME_PATTERN.match(f"{stem}.md")
    return match.group("slug") if match else stem


def score_candidate(term: str, number: int, title: str, stem: str, *, min_score: float) -> Candidate | None:
    """Score one record against *term*; None when it does not qualify."""
    wanted = _normalize(term)
    if not wanted:
        return None
    title_key = _normalize(title)
    stem_key = stem.casefold()
    term_slug = slugify(term)

    if wanted == title_key or wanted == stem_key or (term_slug and term_slug == _stem_slug(stem_key)):
        return Candidate(number=number, title=title, score=1.0, reason="exact")

    for haystack in (title_key, stem_key):
        if wanted in haystack:
            coverage = len(wanted) / max(len(haystack), 1)
            score = _SUBSTRING_BASE + (1.0 - _SUBSTRING_BASE) * coverage
            return Candidate(number=number, title=title, score=min(score, 0.99), reason="substring")

    ratio = SequenceMatcher(None, wanted, title_key).ratio()
    if ratio >= min_score:
        return Candidate(number=number, title=title, score=ratio * _FUZZY_WEIGHT, reason="fuzzy")
    return None


def rank_candidates(
    term: str,
    entries: Iterable[tuple[int, str, str]],
    *,
    min_score: float = DEFAULT_MIN_SCORE,
) -> list[Candidate]:
    """Score every entry; best first, ties broken by lowest number."""
    scored = [
        candidate
        for number, title, stem in entries
        if (candidate := score_candidate(term, number, title, stem, min_score=min_score)) is not None
    ]
    return sorted(scored, key=lambda c: (-c.score, c.number))


def resolve(
    term: str,
    entries: Iterable[tuple[int, str, str]],
    *,
    min_score: float = DEFAULT_MIN_SCORE,
    margin: float = DEFAULT_MARGIN,
    limit: int = DEFAULT_LIMIT,
) -> MatchOutcome:
    """Resolve *term* to at most one record.

    A purely numeric term is looked up by number. Otherwise the best
    candidate wins when it is the only one, when it is an exact match
    (exact ties go to the lowest number), or when it beats the runner-up
    by at least *margin*.
    """
    entries = list(entries)
    stripped = term.strip()
    if stripped.isdigit():
        wanted_number = int(stripped)
        for number, title, _stem in entries:
            if number == wanted_number:
                hit = Candidate(number=number, title=title, score=1.0, reason="number")
                return MatchOutcome(MatchStatus.MATCH, term, match=hit, candidates=[hit])
        return MatchOutcome(MatchStatus.NONE, term)

    ranked = rank_candidates(stripped, entries, min_score=min_score)
    if not ranked:
        return MatchOutcome(MatchStatus.NONE, term)

    best = ranked[0]
    if len(ranked) == 1 or best.reason == "exact":
        return MatchOutcome(MatchStatus.MATCH, term, match=best, candidates=ranked[:limit])
    if best.score - ranked[1].score >= margin:
        return MatchOutcome(MatchStatus.MATCH, term, match=best, candidates=ranked[:limit])
    return MatchOutcome(MatchStatus.AMBIGUOUS, term, candidates=ranked[:limit])


# ---------------------------------------------------------------------------
# Plain-text search
# ---------------------------------------------------------------------------

SNIPPET_CONTEXT = 40
_WHITESPACE_RE = re.compile(r"\s")


def _fold(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.lower()


def contains(text: str, query: str, *, case_sensitive: bool = False) -> bool:
    if not query:
        return False
    return _fold(query, case_sensitive) in _fold(text, case_sensitive)


def text_snippet(text: str, query: str, *, case_sensitive: bool = False, context: int = SNIPPET_CONTEXT) -> str:
    """Excerpt of *text* around the first *query* hit, widened to word boundaries.

    Cut ends are marked with ``...`` and whitespace runs collapse to one
    space. Without a hit the first ``2 * context`` characters are returned.
    """
    pos = _fold(text, case_sensitive).find(_fold(query, case_sensitive)) if query else -1
    if pos < 0:
        preview = " ".join(text[: 2 * context].split())
        return f"{preview}..." if len(text) > 2 * context else preview

    start = max(pos - context, 0)
    end = min(pos + len(query) + context, len(text))
    before = [m.start() for m in _WHITESPACE_RE.finditer(text, 0, start)]
    if before:
        start = before[-1] + 1
    after = _WHITESPACE_RE.search(text, end)
    if after:
        end = after.start()

    snippet = " ".join(text[start:end].split())
    if start > 0:
        snippet = f"...{snippet}"
    if end < len(text):
        snippet = f"{snippet}..."
    return snippet
