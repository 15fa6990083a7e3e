"""
Whole-corpus content validation.

Unlike ContentRepository (which stops at the first broken file when strict),
this walks every file, collects every problem and then checks references
between files:
- learning steps must point at existing courses/resources
- featured courses must exist
- course ids must be unique

Optionally every external URL is checked as well; broken links are warnings.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

from abmind.links import LinkChecker, extract_urls
from abmind.model import Course, LearningPath, Resource, SiteConfig
from abmind.parse import (
    ContentError,
    ValidationError,
    parse_course,
    parse_site_config,
)
from abmind.storage import (
    ContentRepository,
    parse_learning_paths_file,
    parse_resource_file,
    read_content,
    yaml_files,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    checked_files: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        logger.error(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)


def _describe(path: Path, exc: ContentError) -> List[str]:
    if isinstance(exc, ValidationError):
        return [f"{path}: {p}: {msg}" for p, msg in exc.issues]
    return [f"{path}: {exc}"]


def _load(path: Path, parser: Callable[[str], Any], report: ValidationReport) -> Optional[Any]:
    report.checked_files += 1
    try:
        return parser(read_content(path))
    except ContentError as exc:
        for line in _describe(path, exc):
            report.add_error(line)
        return None


def validate_content(data_dir: str | Path, link_checker: Optional[LinkChecker] = None) -> ValidationReport:
    """
    Validate every content file below `data_dir` and return a report.
    """
    repo = ContentRepository(data_dir)
    report = ValidationReport()

    courses: List[Tuple[Path, Course]] = []
    resources: List[Resource] = []
    paths: List[LearningPath] = []
    site_config: Optional[SiteConfig] = None
    sources: List[Tuple[Path, Any]] = []

    if repo.courses_dir.is_dir():
        for path in yaml_files(repo.courses_dir):
            course = _load(path, parse_course, report)
            if course is not None:
                courses.append((path, course))
                sources.append((path, course))
    else:
        report.add_error(f"Courses directory not found: {repo.courses_dir}")

    if repo.resources_dir.is_dir():
        for path in yaml_files(repo.resources_dir):
            loaded = _load(path, parse_resource_file, report)
            if loaded is not None:
                resources.extend(loaded if isinstance(loaded, list) else [loaded])
                sources.append((path, loaded))

    if repo.learning_paths_file.exists():
        loaded_paths = _load(repo.learning_paths_file, parse_learning_paths_file, report)
        if loaded_paths is not None:
            paths = loaded_paths
            sources.append((repo.learning_paths_file, loaded_paths))

    if repo.site_config_file.exists():
        site_config = _load(repo.site_config_file, parse_site_config, report)
        if site_config is not None:
            sources.append((repo.site_config_file, site_config))
    else:
        report.add_error(f"Site config not found: {repo.site_config_file}")

    _check_references(report, courses, resources, paths, site_config)

    if link_checker is not None:
        _check_links(report, sources, link_checker)

    return report


def _check_references(
    report: ValidationReport,
    courses: List[Tuple[Path, Course]],
    resources: List[Resource],
    paths: List[LearningPath],
    site_config: Optional[SiteConfig],
) -> None:
    course_ids = Counter(course.id for _, course in courses)
    for cid, n in sorted(course_ids.items()):
        if n > 1:
            report.add_error(f"Duplicate course id '{cid}' ({n} files)")

    for path, course in courses:
        if course.id != path.stem:
            report.add_warning(f"{path}: course id '{course.id}' does not match file name")

    resource_ids = {r.id for r in resources}

    for lp in paths:
        orders = Counter(step.order for step in lp.steps)
        if any(n > 1 for n in orders.values()):
            report.add_warning(f"Learning path '{lp.id}' has duplicate step orders")
        for step in lp.steps:
            if step.type == "course" and step.course_id not in course_ids:
                report.add_error(f"Learning path '{lp.id}' step {step.order}: unknown course '{step.course_id}'")
            if step.type == "resource" and step.resource_id not in resource_ids:
                report.add_error(f"Learning path '{lp.id}' step {step.order}: unknown resource '{step.resource_id}'")

    if site_config is not None:
        for cid in site_config.featured_courses:
            if cid not in course_ids:
                report.add_error(f"Featured course '{cid}' does not exist")


def _check_links(report: ValidationReport, sources: List[Tuple[Path, Any]], checker: LinkChecker) -> None:
    for path, obj in sources:
        urls = sorted(extract_urls(obj))
        broken = [r for r in checker.check_many(urls).values() if not r.ok]
        for result in broken:
            report.add_warning(f"{path}: broken link {result.url} ({result.error})")
