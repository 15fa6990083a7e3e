"""
Facet filtering for courses, resources and learning paths.

Rules:
- AND across facet categories, OR inside one category
- an empty category does not filter
- tags: some selected tag is a case-insensitive substring of some item tag
- domains: evaluated on the detected domains, not on a stored field
- no facet selected at all -> every item, same order

All functions are pure: inputs are never modified.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, Iterable, List, Mapping, Sequence, TypeVar

from abmind.domains import detect_domains
from abmind.model import Course, LearningPath, Resource

T = TypeVar("T", Course, Resource, LearningPath)

FACETS = ("difficulty", "tags", "year", "type", "language", "domains")


@dataclass
class FilterOptions:
    difficulty: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    year: List[str] = field(default_factory=list)
    type: List[str] = field(default_factory=list)
    language: List[str] = field(default_factory=list)
    domains: List[str] = field(default_factory=list)

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "FilterOptions":
        """
        Build from query-string style values, e.g. {"tags": "python,gis"}.
        """
        values: Dict[str, List[str]] = {}
        for name in FACETS:
            raw = params.get(name) or ""
            values[name] = [v.strip() for v in raw.split(",") if v.strip()]
        return cls(**values)

    def to_query(self) -> Dict[str, str]:
        # Only active facets are kept
        return {f.name: ",".join(getattr(self, f.name)) for f in fields(self) if getattr(self, f.name)}


def has_active_filters(filters: FilterOptions) -> bool:
    return any(getattr(filters, name) for name in FACETS)


def clear_all_filters() -> FilterOptions:
    return FilterOptions()


def get_active_filter_count(filters: FilterOptions) -> int:
    return sum(len(getattr(filters, name)) for name in FACETS)


# ---------------------------------------------------------------------------
# Matching helpers
# ---------------------------------------------------------------------------


def _tags_match(selected: Sequence[str], item_tags: Sequence[str]) -> bool:
    lowered = [t.lower() for t in item_tags]
    return any(s.lower() in tag for s in selected for tag in lowered)


def _domains_match(selected: Sequence[str], item: Course | Resource) -> bool:
    detected = detect_domains(item)
    return any(d in detected for d in selected)


def _course_matches(course: Course, f: FilterOptions) -> bool:
    if f.difficulty and course.difficulty not in f.difficulty:
        return False
    if f.tags and not _tags_match(f.tags, course.tags):
        return False
    if f.year and str(course.year) not in f.year:
        return False
    if f.type and course.type not in f.type:
        return False
    if f.language and course.language not in f.language:
        return False
    if f.domains and not _domains_match(f.domains, course):
        return False
    return True


def _resource_matches(resource: Resource, f: FilterOptions) -> bool:
    # Resources without a difficulty are never excluded by the difficulty facet
    if f.difficulty and resource.difficulty and resource.difficulty not in f.difficulty:
        return False
    if f.tags and not _tags_match(f.tags, resource.tags):
        return False
    if f.type and resource.type not in f.type:
        return False
    if f.language and resource.language not in f.language:
        return False
    if f.domains and not _domains_match(f.domains, resource):
        return False
    return True


def _learning_path_matches(path: LearningPath, f: FilterOptions) -> bool:
    if f.tags:
        text = f"{path.title} {path.description} {path.recommended_audience}".lower()
        if not any(tag.lower() in text for tag in f.tags):
            return False
    return True


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def filter_courses(courses: Iterable[Course], filters: FilterOptions) -> List[Course]:
    return [c for c in courses if _course_matches(c, filters)]


def filter_resources(resources: Iterable[Resource], filters: FilterOptions) -> List[Resource]:
    return [r for r in resources if _resource_matches(r, filters)]


def filter_learning_paths(paths: Iterable[LearningPath], filters: FilterOptions) -> List[LearningPath]:
    return [p for p in paths if _learning_path_matches(p, filters)]


def apply_filters(items: Iterable[T], filters: FilterOptions) -> List[T]:
    """
    Filter a homogeneous or mixed collection, dispatching on item type.
    """
    out: List[T] = []
    for item in items:
        if isinstance(item, Course):
            keep = _course_matches(item, filters)
        elif isinstance(item, Resource):
            keep = _resource_matches(item, filters)
        elif isinstance(item, LearningPath):
            keep = _learning_path_matches(item, filters)
        else:
            raise TypeError(f"Cannot filter object of type {type(item).__name__}")
        if keep:
            out.append(item)
    return out


def get_available_filters(
    courses: Iterable[Course],
    resources: Iterable[Resource],
    learning_paths: Iterable[LearningPath] = (),
) -> FilterOptions:
    """
    Collect every facet value present in the corpus.

    Years are sorted most recent first, everything else alphabetically.
    Learning paths carry no facet fields and are accepted only for symmetry.
    """
    difficulties: set[str] = set()
    tags: set[str] = set()
    years: set[str] = set()
    types: set[str] = set()
    languages: set[str] = set()
    domains: set[str] = set()

    for course in courses:
        difficulties.add(course.difficulty)
        tags.update(course.tags)
        years.add(str(course.year))
        types.add(course.type)
        languages.add(course.language)
        domains.update(detect_domains(course))

    for resource in resources:
        if resource.difficulty:
            difficulties.add(resource.difficulty)
        tags.update(resource.tags)
        types.add(resource.type)
        languages.add(resource.language)
        domains.update(detect_domains(resource))

    return FilterOptions(
        difficulty=sorted(difficulties),
        tags=sorted(tags),
        year=sorted(years, key=int, reverse=True),
        type=sorted(types),
        language=sorted(languages),
        domains=sorted(domains),
    )
