"""
Parsing (YAML text -> validated content models).

- Deserializes YAML with yaml.safe_load
- Validates the result against the pydantic models in abmind.model
- Raises exactly one of two errors:
  - YAMLParseError  : the text is not well-formed YAML
  - ValidationError : the YAML parsed but violates the schema

Validation is all-or-nothing: a failing document never yields a partial result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Type, TypeVar, Union

import pydantic
import yaml
from pydantic import BaseModel, TypeAdapter

from abmind.model import (
    Course,
    CoursesCollection,
    LearningPath,
    LearningPathsCollection,
    Resource,
    ResourcesCollection,
    SiteConfig,
)

T = TypeVar("T")

Schema = Union[Type[BaseModel], TypeAdapter]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ContentError(Exception):
    """Base class for everything that can go wrong while reading content."""


class YAMLParseError(ContentError):
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ValidationError(ContentError):
    """
    Schema violation. `issues` holds every violated field as (path, message).
    """

    def __init__(self, message: str, issues: List[Tuple[str, str]]) -> None:
        super().__init__(message)
        self.issues = issues

    @property
    def paths(self) -> List[str]:
        return [path for path, _ in self.issues]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _format_loc(loc: Tuple[Any, ...]) -> str:
    # ("sessions", 0, "materials", "slides") -> "sessions.0.materials.slides"
    return ".".join(str(part) for part in loc) if loc else "root"


def _issues_from(exc: pydantic.ValidationError) -> List[Tuple[str, str]]:
    return [(_format_loc(tuple(err["loc"])), err["msg"]) for err in exc.errors()]


# ---------------------------------------------------------------------------
# Core
# ---------------------------------------------------------------------------


def parse_yaml(content: str) -> Any:
    """
    Parse YAML text into plain Python data.
    """
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise YAMLParseError(f"Failed to parse YAML: {exc}", exc) from exc


def validate_data(data: Any, schema: Schema) -> Any:
    """
    Validate plain data against a model class or a TypeAdapter.

    Every violation is collected, so a record with three bad fields
    reports three issues.
    """
    try:
        if isinstance(schema, TypeAdapter):
            return schema.validate_python(data)
        return schema.model_validate(data)
    except pydantic.ValidationError as exc:
        issues = _issues_from(exc)
        summary = ", ".join(f"{path}: {msg}" for path, msg in issues)
        raise ValidationError(f"Validation failed: {summary}", issues) from exc


def _parse(content: str, schema: Schema) -> Any:
    return validate_data(parse_yaml(content), schema)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_course(content: str) -> Course:
    return _parse(content, Course)


def parse_courses(content: str) -> List[Course]:
    return _parse(content, CoursesCollection)


def parse_learning_path(content: str) -> LearningPath:
    return _parse(content, LearningPath)


def parse_learning_paths(content: str) -> List[LearningPath]:
    return _parse(content, LearningPathsCollection)


def parse_resource(content: str) -> Resource:
    return _parse(content, Resource)


def parse_resources(content: str) -> List[Resource]:
    return _parse(content, ResourcesCollection)


def parse_site_config(content: str) -> SiteConfig:
    return _parse(content, SiteConfig)


def format_validation_error(error: ValidationError) -> str:
    """
    Render all issues of a ValidationError as a bulleted block for display.
    """
    lines = [f"• {path}: {msg}" for path, msg in error.issues]
    return "Validation failed:\n" + "\n".join(lines)


def is_valid_yaml(content: str) -> bool:
    try:
        parse_yaml(content)
    except YAMLParseError:
        return False
    return True


@dataclass
class ParseOutcome:
    success: bool
    data: Any = None
    error: Optional[str] = None


def safe_parse(content: str, schema: Schema) -> ParseOutcome:
    """
    Parse + validate without raising for the two known failure kinds.
    """
    try:
        return ParseOutcome(success=True, data=_parse(content, schema))
    except ValidationError as exc:
        return ParseOutcome(success=False, error=format_validation_error(exc))
    except YAMLParseError as exc:
        return ParseOutcome(success=False, error=str(exc))
