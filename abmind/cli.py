"""
CLI (Command Line Interface).

Quick terminal commands for content authors and for testing, e.g.:

    abmind validate [--check-links]
    abmind search <text>
    abmind filter --difficulty beginner --tag python
    abmind show <course_id>
    abmind domains
    abmind facets

Global options (before the command):
    --data-dir PATH   content directory (default: ABMIND_DATA_DIR or package data)
    --lenient         skip broken content files instead of aborting
    --verbose         debug logging
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, List

from rich import box
from rich.console import Console
from rich.table import Table

from abmind.config import Settings, get_settings
from abmind.domains import DOMAIN_CONFIG, detect_domains, get_domain_statistics
from abmind.filters import FilterOptions, filter_courses, filter_resources, get_available_filters
from abmind.links import LinkChecker
from abmind.logging_config import configure_logging
from abmind.model import Course, Resource
from abmind.parse import ContentError, ValidationError, format_validation_error
from abmind.search import SearchEngine
from abmind.storage import ContentRepository
from abmind.validate import validate_content

console = Console()

MAX_ROWS = 20


def _repository(args: argparse.Namespace, settings: Settings) -> ContentRepository:
    data_dir = args.data_dir if args.data_dir else settings.data_dir
    strict = settings.strict_loading and not args.lenient
    return ContentRepository(data_dir, cache=settings.make_cache(), strict=strict)


def _domains_label(item: Course | Resource) -> str:
    return ", ".join(DOMAIN_CONFIG[d].label for d in detect_domains(item)) or "-"


def _course_table(title: str, courses: List[Course]) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("ID", style="bold cyan")
    table.add_column("Title")
    table.add_column("Year", justify="right")
    table.add_column("Level")
    table.add_column("Domains")
    for c in courses[:MAX_ROWS]:
        table.add_row(c.id, c.title, str(c.year), c.difficulty, _domains_label(c))
    return table


def _resource_table(title: str, resources: List[Resource]) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("ID", style="bold cyan")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("URL")
    for r in resources[:MAX_ROWS]:
        table.add_row(r.id, r.title, r.type, r.url)
    return table


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    """
    Validate every content file and cross-reference; exit 1 on errors.
    """
    data_dir = args.data_dir if args.data_dir else settings.data_dir
    checker = LinkChecker(timeout=settings.link_timeout) if args.check_links else None
    report = validate_content(data_dir, link_checker=checker)

    for line in report.errors:
        console.print(f"[red]ERROR[/]   {line}")
    for line in report.warnings:
        console.print(f"[yellow]WARNING[/] {line}")

    console.print(
        f"Checked {report.checked_files} files: {len(report.errors)} errors, {len(report.warnings)} warnings"
    )
    return 0 if report.ok else 1


def _cmd_search(args: argparse.Namespace, repo: ContentRepository, settings: Settings) -> int:
    """
    Fuzzy search over courses, resources and learning paths.
    """
    query = (args.text or "").strip()
    if not query:
        console.print("Please provide a search text.")
        return 1

    engine = SearchEngine(
        repo.load_courses(),
        repo.load_resources(),
        repo.load_learning_paths(),
        threshold=settings.search_threshold,
    )
    results = engine.search(query)
    if results.total_count == 0:
        console.print("No results.")
        return 0

    table = Table(title=f"Results for '{query}' ({results.total_count})", box=box.SIMPLE)
    table.add_column("Kind")
    table.add_column("ID", style="bold cyan")
    table.add_column("Title")
    table.add_column("Score", justify="right")

    rows: List[Any] = (
        [("course", r) for r in results.courses]
        + [("resource", r) for r in results.resources]
        + [("path", r) for r in results.learning_paths]
    )
    for kind, r in rows[:MAX_ROWS]:
        table.add_row(kind, r.item.id, r.item.title, f"{r.score:.3f}")
    console.print(table)

    if len(rows) > MAX_ROWS:
        console.print(f"... and {len(rows) - MAX_ROWS} more results")
    return 0


def _cmd_filter(args: argparse.Namespace, repo: ContentRepository) -> int:
    filters = FilterOptions(
        difficulty=args.difficulty or [],
        tags=args.tag or [],
        year=args.year or [],
        type=args.type or [],
        language=args.language or [],
        domains=args.domain or [],
    )
    courses = filter_courses(repo.load_courses(), filters)
    resources = filter_resources(repo.load_resources(), filters)

    if not courses and not resources:
        console.print("No results.")
        return 0

    if courses:
        console.print(_course_table(f"Courses ({len(courses)})", courses))
    if resources:
        console.print(_resource_table(f"Resources ({len(resources)})", resources))
    return 0


def _cmd_show(args: argparse.Namespace, repo: ContentRepository) -> int:
    course = repo.load_course(args.course_id.strip())
    if course is None:
        console.print(f"Course not found: {args.course_id}")
        return 1

    console.print(f"[bold]{course.title}[/] ({course.id})")
    console.print(f"{course.type} | {course.year} | {course.difficulty} | {course.language}")
    console.print(f"Instructors: {', '.join(course.instructors)}")
    console.print(f"Tags: {', '.join(course.tags)}")
    console.print(f"Domains: {_domains_label(course)}")
    console.print(course.summary)

    table = Table(title="Sessions", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Session")
    table.add_column("Objectives")
    for i, session in enumerate(course.sessions, start=1):
        table.add_row(str(i), session.title, "\n".join(session.objectives))
    console.print(table)
    return 0


def _cmd_domains(args: argparse.Namespace, repo: ContentRepository) -> int:
    stats = get_domain_statistics(repo.load_courses(), repo.load_resources())

    table = Table(title="Domains", box=box.SIMPLE)
    table.add_column("Domain", style="bold cyan")
    table.add_column("Label")
    table.add_column("Courses", justify="right")
    table.add_column("Resources", justify="right")
    table.add_column("Total", justify="right")
    for domain, count in stats.items():
        table.add_row(domain, DOMAIN_CONFIG[domain].label, str(count.courses), str(count.resources), str(count.total))
    console.print(table)
    return 0


def _cmd_facets(args: argparse.Namespace, repo: ContentRepository) -> int:
    available = get_available_filters(repo.load_courses(), repo.load_resources(), repo.load_learning_paths())

    table = Table(title="Available filters", box=box.SIMPLE)
    table.add_column("Facet", style="bold cyan")
    table.add_column("Values")
    for name, values in vars(available).items():
        table.add_row(name, ", ".join(values) or "-")
    console.print(table)
    return 0


# ---------------------------------------------------------------------------
# Parser / entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="abmind", description="ABMind course content tools")
    parser.add_argument("--data-dir", type=str, default=None, help="Content directory")
    parser.add_argument("--lenient", action="store_true", help="Skip broken content files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Validate all content files")
    p_validate.add_argument("--check-links", action="store_true", help="Also check external URLs")

    p_search = sub.add_parser("search", help="Search courses, resources and learning paths")
    p_search.add_argument("text", type=str, help="Search text")

    p_filter = sub.add_parser("filter", help="Filter courses and resources by facets")
    p_filter.add_argument("--difficulty", action="append", help="beginner / intermediate / advanced")
    p_filter.add_argument("--tag", action="append", help="Tag (substring match)")
    p_filter.add_argument("--year", action="append", help="Course year")
    p_filter.add_argument("--type", action="append", help="Course or resource type")
    p_filter.add_argument("--language", action="append", help="zh / en")
    p_filter.add_argument("--domain", action="append", choices=list(DOMAIN_CONFIG), help="Topical domain")

    p_show = sub.add_parser("show", help="Show one course")
    p_show.add_argument("course_id", type=str, help="Course ID (e.g. mesa-basics)")

    sub.add_parser("domains", help="Course/resource counts per domain")
    sub.add_parser("facets", help="List available filter values")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(logging.DEBUG if args.verbose else settings.log_level)

    if args.command == "validate":
        raise SystemExit(_cmd_validate(args, settings))

    repo = _repository(args, settings)
    try:
        if args.command == "search":
            raise SystemExit(_cmd_search(args, repo, settings))
        if args.command == "filter":
            raise SystemExit(_cmd_filter(args, repo))
        if args.command == "show":
            raise SystemExit(_cmd_show(args, repo))
        if args.command == "domains":
            raise SystemExit(_cmd_domains(args, repo))
        if args.command == "facets":
            raise SystemExit(_cmd_facets(args, repo))
    except ValidationError as exc:
        console.print(format_validation_error(exc))
        raise SystemExit(1)
    except ContentError as exc:
        console.print(str(exc))
        raise SystemExit(1)

    raise SystemExit(2)
