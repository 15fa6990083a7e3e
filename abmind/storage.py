"""
Content repository: YAML files on disk -> validated, cached models.

Layout of a data directory:

    data/courses/<course-id>.yaml     one course per file
    data/resources/<name>.yaml        one resource (or a list) per file
    data/learning_paths.yaml          all learning paths
    data/site_config.yaml             site metadata, navigation, announcements

Design rationale:
- Every file is cached under a key that includes its modification time,
  so an edited file is re-read while untouched ones are served from memory.
- The cache is an explicit object handed to the repository. Tests and
  long-running processes can share, replace or clear it.
- What happens with a broken file is a choice of the caller (strict=True
  raises, strict=False logs and skips).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from abmind.model import (
    Course,
    LearningPath,
    LearningPathsCollection,
    Resource,
    ResourcesCollection,
    SiteConfig,
)
from abmind.parse import (
    ContentError,
    YAMLParseError,
    parse_course,
    parse_site_config,
    parse_yaml,
    validate_data,
)

logger = logging.getLogger(__name__)

LoadError = Tuple[Path, ContentError]

YAML_SUFFIXES = (".yaml", ".yml")

PACKAGE_DIR = Path(__file__).resolve().parent


def default_data_dir() -> Path:
    """
    Return the data directory shipped inside the package.

    Using a function instead of a constant makes testing easier,
    because tests can pass their own directory.
    """
    return PACKAGE_DIR / "data"


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


@dataclass
class _CacheEntry:
    data: Any
    stored_at: float


class ContentCache:
    """
    In-memory cache for parsed content.

    ttl_seconds=None keeps entries for the lifetime of the process
    (static builds). A number expires entries after that many seconds.

    A key may be stored under a `slot` (e.g. the file path). Storing a new
    key in the same slot drops the previous one, so an edited file does not
    leave its old version behind.
    """

    def __init__(self, ttl_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._slots: Dict[str, str] = {}

    def _expired(self, entry: _CacheEntry, now: float) -> bool:
        return self.ttl_seconds is not None and now - entry.stored_at > self.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return None
        return entry.data

    def set(self, key: str, data: Any, slot: Optional[str] = None) -> None:
        now = self._clock()
        if slot is not None:
            previous = self._slots.get(slot)
            if previous is not None and previous != key:
                self._entries.pop(previous, None)
            self._slots[slot] = key
        if self.ttl_seconds is not None:
            for stale in [k for k, e in self._entries.items() if self._expired(e, now)]:
                del self._entries[stale]
        self._entries[key] = _CacheEntry(data=data, stored_at=now)

    def clear(self) -> None:
        self._entries.clear()
        self._slots.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)


def file_cache_key(path: Path) -> str:
    return f"{path}:{path.stat().st_mtime_ns}"


def yaml_files(directory: Path) -> List[Path]:
    """
    YAML files of a directory in file-name order.
    """
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix in YAML_SUFFIXES)


def directory_cache_key(prefix: str, files: List[Path]) -> str:
    # Any added, removed or touched file produces a different key
    parts = [f"{p.name}@{p.stat().st_mtime_ns}" for p in files]
    return f"{prefix}:{'|'.join(parts)}"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ContentRepository:
    """
    Loads courses, learning paths, resources and the site config from disk.
    """

    def __init__(
        self,
        data_dir: str | Path | None = None,
        cache: Optional[ContentCache] = None,
        strict: bool = True,
    ) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        self.cache = cache if cache is not None else ContentCache()
        self.strict = strict
        self.load_errors: List[LoadError] = []

    # -- paths -------------------------------------------------------------

    @property
    def courses_dir(self) -> Path:
        return self.data_dir / "courses"

    @property
    def resources_dir(self) -> Path:
        return self.data_dir / "resources"

    @property
    def learning_paths_file(self) -> Path:
        return self.data_dir / "learning_paths.yaml"

    @property
    def site_config_file(self) -> Path:
        return self.data_dir / "site_config.yaml"

    # -- internals ---------------------------------------------------------

    def _load_file(self, path: Path, parser: Callable[[str], Any]) -> Any:
        key = file_cache_key(path)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        logger.debug("Loading %s", path)
        data = parser(read_content(path))
        self.cache.set(key, data, slot=str(path))
        return data

    def _parse_directory(self, files: List[Path], parser: Callable[[str], Any]) -> Tuple[List[Any], List[LoadError]]:
        items: List[Any] = []
        errors: List[LoadError] = []
        for path in files:
            try:
                result = self._load_file(path, parser)
            except ContentError as exc:
                if self.strict:
                    raise
                logger.warning("Skipping %s: %s", path, exc)
                errors.append((path, exc))
                continue
            if isinstance(result, list):
                items.extend(result)
            else:
                items.append(result)
        return items, errors

    def _load_directory(self, directory: Path, prefix: str, parser: Callable[[str], Any]) -> List[Any]:
        """
        Parse every YAML file in a directory, honouring the strict setting.
        Each parser result may be one record or a list of records.

        Strict and lenient results are cached separately: a lenient list with
        skipped files must never satisfy a strict load.
        """
        files = yaml_files(directory)
        slot = f"{prefix}:{'strict' if self.strict else 'lenient'}:{directory}"
        key = directory_cache_key(slot, files)
        cached = self.cache.get(key)
        if cached is None:
            cached = self._parse_directory(files, parser)
            self.cache.set(key, cached, slot=slot)

        items, errors = cached
        self._record_errors(lambda p: p.parent == directory, errors)
        return items

    def _record_errors(self, scope: Callable[[Path], bool], errors: List[LoadError]) -> None:
        # Replace earlier failures of the same files instead of piling them up
        self.load_errors = [e for e in self.load_errors if not scope(e[0])] + list(errors)

    # -- public API --------------------------------------------------------

    def load_courses(self) -> List[Course]:
        """
        All courses, most recent year first.
        """
        if not self.courses_dir.is_dir():
            logger.warning("Courses directory not found: %s", self.courses_dir)
            return []

        courses = self._load_directory(self.courses_dir, "courses", parse_course)
        return sorted(courses, key=lambda c: c.year, reverse=True)

    def load_course(self, course_id: str) -> Optional[Course]:
        for course in self.load_courses():
            if course.id == course_id:
                return course
        return None

    def load_learning_paths(self) -> List[LearningPath]:
        path = self.learning_paths_file
        if not path.exists():
            return []
        try:
            paths = list(self._load_file(path, parse_learning_paths_file))
        except ContentError as exc:
            if self.strict:
                raise
            logger.warning("Skipping %s: %s", path, exc)
            self._record_errors(lambda p: p == path, [(path, exc)])
            return []
        self._record_errors(lambda p: p == path, [])
        return paths

    def load_resources(self) -> List[Resource]:
        if not self.resources_dir.is_dir():
            return []
        return list(self._load_directory(self.resources_dir, "resources", parse_resource_file))

    def load_site_config(self) -> SiteConfig:
        # A missing site config is a FileNotFoundError from stat()
        return self._load_file(self.site_config_file, parse_site_config)

    def get_all_course_ids(self) -> List[str]:
        return [course.id for course in self.load_courses()]


def read_content(path: Path) -> str:
    """
    Read a content file as UTF-8. Undecodable bytes are a YAMLParseError.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise YAMLParseError(f"Failed to read {path}: {exc}", exc) from exc


def parse_resource_file(content: str) -> Resource | List[Resource]:
    """
    A resource file holds a single mapping or a list of mappings.
    """
    data = parse_yaml(content)
    if isinstance(data, list):
        return validate_data(data, ResourcesCollection)
    return validate_data(data, Resource)


def parse_learning_paths_file(content: str) -> List[LearningPath]:
    data = parse_yaml(content)
    # An empty file means "no learning paths yet"
    if data is None:
        return []
    return validate_data(data, LearningPathsCollection)
