"""
Fuzzy full-text search over courses, resources and learning paths.

Scoring (lower is better, always within [0, 1]):
- every configured field is scored on its own:
    exact case-insensitive substring  -> 0.0
    otherwise 1 - best difflib ratio of the query against a same-width window
- a field only counts if its score <= threshold and it has a matched span of
  at least `min_match_char_length` characters
- an item's score is the weighted product of its matched field scores,
  so strong matches on heavy fields rank first
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field, replace
from difflib import SequenceMatcher
from typing import Any, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

from abmind.model import Course, LearningPath, Resource

T = TypeVar("T")

# Floor for perfect field scores so they still weigh into the product
_EPSILON = 1e-3


@dataclass(frozen=True)
class SearchKey:
    name: str
    weight: float


@dataclass(frozen=True)
class SearchOptions:
    keys: Tuple[SearchKey, ...]
    threshold: float = 0.4
    min_match_char_length: int = 2


COURSE_SEARCH_OPTIONS = SearchOptions(
    keys=(
        SearchKey("title", 0.4),
        SearchKey("summary", 0.3),
        SearchKey("tags", 0.2),
        SearchKey("instructors", 0.1),
    )
)

RESOURCE_SEARCH_OPTIONS = SearchOptions(
    keys=(
        SearchKey("title", 0.4),
        SearchKey("description", 0.3),
        SearchKey("tags", 0.3),
    )
)

LEARNING_PATH_SEARCH_OPTIONS = SearchOptions(
    keys=(
        SearchKey("title", 0.4),
        SearchKey("description", 0.4),
        SearchKey("recommended_audience", 0.2),
    )
)


@dataclass
class SearchMatch:
    """
    Matched spans inside one field value. `indices` are inclusive (start, end)
    pairs; `ref_index` is the position inside list fields such as tags.
    """

    key: str
    value: str
    indices: List[Tuple[int, int]]
    ref_index: Optional[int] = None


@dataclass
class SearchResult(Generic[T]):
    item: T
    score: float
    matches: List[SearchMatch] = field(default_factory=list)


@dataclass
class SearchResults:
    courses: List[SearchResult[Course]] = field(default_factory=list)
    resources: List[SearchResult[Resource]] = field(default_factory=list)
    learning_paths: List[SearchResult[LearningPath]] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.courses) + len(self.resources) + len(self.learning_paths)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_text(query: str, text: str, min_match_char_length: int = 2) -> Tuple[float, List[Tuple[int, int]]]:
    """
    Score one text against the query. Returns (score, inclusive spans).
    """
    q = query.lower()
    t = text.lower()
    if not q or not t:
        return 1.0, []

    pos = t.find(q)
    if pos >= 0:
        return 0.0, [(pos, pos + len(q) - 1)]

    width = len(q)
    starts = range(max(1, len(t) - width + 1))

    best_ratio = 0.0
    best_start = 0
    best_matcher: Optional[SequenceMatcher] = None
    for start in starts:
        matcher = SequenceMatcher(None, q, t[start : start + width], autojunk=False)
        # quick_ratio() is an upper bound of ratio()
        if matcher.quick_ratio() <= best_ratio:
            continue
        ratio = matcher.ratio()
        if ratio > best_ratio:
            best_ratio, best_start, best_matcher = ratio, start, matcher

    if best_matcher is None:
        return 1.0, []

    spans = [
        (best_start + block.b, best_start + block.b + block.size - 1)
        for block in best_matcher.get_matching_blocks()
        if block.size >= min_match_char_length
    ]
    return 1.0 - best_ratio, spans


def _field_values(item: Any, name: str) -> List[Tuple[Optional[int], str]]:
    value = getattr(item, name, None)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [(i, str(v)) for i, v in enumerate(value)]
    return [(None, str(value))]


def _score_item(item: Any, query: str, options: SearchOptions) -> Optional[SearchResult[Any]]:
    total_weight = sum(k.weight for k in options.keys) or 1.0
    score = 1.0
    matched_any = False
    matches: List[SearchMatch] = []

    for key in options.keys:
        best: Optional[float] = None
        for ref_index, value in _field_values(item, key.name):
            s, spans = score_text(query, value, options.min_match_char_length)
            if s > options.threshold or not spans:
                continue
            matches.append(SearchMatch(key=key.name, value=value, indices=spans, ref_index=ref_index))
            best = s if best is None else min(best, s)
        if best is None:
            continue
        matched_any = True
        score *= max(best, _EPSILON) ** (key.weight / total_weight)

    if not matched_any:
        return None
    return SearchResult(item=item, score=score, matches=matches)


def search_collection(items: Sequence[T], query: str, options: SearchOptions) -> List[SearchResult[T]]:
    """
    Rank one collection. Ties keep the collection's original order.
    """
    q = query.strip()
    if len(q) < max(1, options.min_match_char_length):
        return []

    hits = []
    for index, item in enumerate(items):
        result = _score_item(item, q, options)
        if result is not None:
            hits.append((result.score, index, result))
    hits.sort(key=lambda h: (h[0], h[1]))
    return [h[2] for h in hits]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class SearchEngine:
    """
    Holds the three collections and searches all of them at once.
    """

    def __init__(
        self,
        courses: Iterable[Course] = (),
        resources: Iterable[Resource] = (),
        learning_paths: Iterable[LearningPath] = (),
        threshold: Optional[float] = None,
    ) -> None:
        self.course_options = COURSE_SEARCH_OPTIONS
        self.resource_options = RESOURCE_SEARCH_OPTIONS
        self.learning_path_options = LEARNING_PATH_SEARCH_OPTIONS
        if threshold is not None:
            self.course_options = replace(self.course_options, threshold=threshold)
            self.resource_options = replace(self.resource_options, threshold=threshold)
            self.learning_path_options = replace(self.learning_path_options, threshold=threshold)

        self.update_data(courses, resources, learning_paths)

    def update_data(
        self,
        courses: Iterable[Course] = (),
        resources: Iterable[Resource] = (),
        learning_paths: Iterable[LearningPath] = (),
    ) -> None:
        self._courses = list(courses)
        self._resources = list(resources)
        self._learning_paths = list(learning_paths)

    def search(self, query: str) -> SearchResults:
        if not query or not query.strip():
            return SearchResults()

        return SearchResults(
            courses=search_collection(self._courses, query, self.course_options),
            resources=search_collection(self._resources, query, self.resource_options),
            learning_paths=search_collection(self._learning_paths, query, self.learning_path_options),
        )


# ---------------------------------------------------------------------------
# Highlighting
# ---------------------------------------------------------------------------


def highlight_matches(
    text: str,
    matches: Sequence[SearchMatch] = (),
    css_class: str = "bg-yellow-200 font-semibold",
) -> str:
    """
    Wrap the matched spans of `text` in <mark> tags (HTML-escaped output).

    Only matches whose value is exactly `text` are used, so the same match
    list can be passed for every field of a result.
    """
    spans = sorted((start, end + 1) for m in matches if m.value == text for start, end in m.indices)
    if not spans:
        return html.escape(text)

    merged: List[List[int]] = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    out: List[str] = []
    cursor = 0
    for start, end in merged:
        out.append(html.escape(text[cursor:start]))
        out.append(f'<mark class="{css_class}">{html.escape(text[start:end])}</mark>')
        cursor = end
    out.append(html.escape(text[cursor:]))
    return "".join(out)
