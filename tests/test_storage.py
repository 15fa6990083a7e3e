"""
Unit tests for the content repository and its cache.

Repository contract:
- courses sorted by year (most recent first)
- missing optional files -> empty lists, missing site config -> FileNotFoundError
- unchanged files are served from the cache, touched files are re-read
- strict=True raises on the first broken file, strict=False skips and records it
"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import abmind.storage as storage
from abmind.parse import ValidationError, YAMLParseError
from abmind.storage import ContentCache, ContentRepository
from content_fixtures import course_data, resource_data, write_corpus, write_yaml


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestContentCache(unittest.TestCase):
    def test_permanent_cache(self) -> None:
        clock = FakeClock()
        cache = ContentCache(ttl_seconds=None, clock=clock)
        cache.set("k", [1])
        clock.now = 10_000
        self.assertEqual(cache.get("k"), [1])

    def test_ttl_expiry(self) -> None:
        clock = FakeClock()
        cache = ContentCache(ttl_seconds=60, clock=clock)
        cache.set("k", "v")
        clock.now = 59
        self.assertEqual(cache.get("k"), "v")
        clock.now = 61
        self.assertIsNone(cache.get("k"))
        self.assertEqual(len(cache), 0)

    def test_clear(self) -> None:
        cache = ContentCache()
        cache.set("a", 1)
        self.assertIn("a", cache)
        cache.clear()
        self.assertNotIn("a", cache)

    def test_new_key_in_slot_replaces_old(self) -> None:
        cache = ContentCache()
        cache.set("a.yaml:1", "old", slot="a.yaml")
        cache.set("b.yaml:1", "other", slot="b.yaml")
        cache.set("a.yaml:2", "new", slot="a.yaml")

        self.assertNotIn("a.yaml:1", cache)
        self.assertEqual(cache.get("a.yaml:2"), "new")
        self.assertEqual(cache.get("b.yaml:1"), "other")
        self.assertEqual(len(cache), 2)

    def test_expired_entries_are_dropped_on_write(self) -> None:
        clock = FakeClock()
        cache = ContentCache(ttl_seconds=60, clock=clock)
        cache.set("old", 1)
        clock.now = 100
        cache.set("fresh", 2)
        self.assertEqual(len(cache), 1)


class TestRepository(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = write_corpus(Path(self._tmp.name))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_courses_sorted_by_year_desc(self) -> None:
        repo = ContentRepository(self.root)
        years = [c.year for c in repo.load_courses()]
        self.assertEqual(years, [2025, 2024, 2023])

    def test_load_course_by_id(self) -> None:
        repo = ContentRepository(self.root)
        course = repo.load_course("urban-traffic")
        assert course is not None
        self.assertEqual(course.type, "workshop")
        self.assertIsNone(repo.load_course("does-not-exist"))

    def test_get_all_course_ids(self) -> None:
        repo = ContentRepository(self.root)
        self.assertEqual(set(repo.get_all_course_ids()), {"mesa-basics", "urban-traffic", "ecology-reading"})

    def test_learning_paths_and_site_config(self) -> None:
        repo = ContentRepository(self.root)
        self.assertEqual([p.id for p in repo.load_learning_paths()], ["abm-starter"])
        self.assertEqual(repo.load_site_config().site_info.title, "ABMind")

    def test_missing_optional_content(self) -> None:
        (self.root / "learning_paths.yaml").unlink()
        for p in (self.root / "resources").iterdir():
            p.unlink()
        (self.root / "resources").rmdir()

        repo = ContentRepository(self.root)
        self.assertEqual(repo.load_learning_paths(), [])
        self.assertEqual(repo.load_resources(), [])

    def test_missing_site_config_raises(self) -> None:
        (self.root / "site_config.yaml").unlink()
        with self.assertRaises(FileNotFoundError):
            ContentRepository(self.root).load_site_config()

    def test_missing_courses_dir_is_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            self.assertEqual(ContentRepository(d).load_courses(), [])

    def test_resource_file_may_hold_a_list(self) -> None:
        write_yaml(
            self.root / "resources" / "papers.yml",
            [resource_data(id="p1", type="paper"), resource_data(id="p2", type="paper")],
        )
        ids = [r.id for r in ContentRepository(self.root).load_resources()]
        self.assertEqual(ids, ["mesa-docs", "p1", "p2"])

    def test_unchanged_files_are_not_reparsed(self) -> None:
        repo = ContentRepository(self.root)
        first = repo.load_courses()

        with mock.patch.object(storage, "parse_course", side_effect=AssertionError("re-parsed")):
            second = repo.load_courses()
        self.assertEqual(first, second)

    def test_touched_file_is_reloaded(self) -> None:
        repo = ContentRepository(self.root)
        self.assertEqual(repo.load_course("mesa-basics").title, "Mesa Framework Basics")

        path = self.root / "courses" / "mesa-basics.yaml"
        write_yaml(path, course_data(title="Mesa 2"))
        st = path.stat()
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + 5_000_000_000))

        self.assertEqual(repo.load_course("mesa-basics").title, "Mesa 2")

    def test_shared_cache_between_repositories(self) -> None:
        cache = ContentCache()
        ContentRepository(self.root, cache=cache).load_courses()
        filled = len(cache)
        self.assertGreater(filled, 0)

        ContentRepository(self.root, cache=cache).load_courses()
        self.assertEqual(len(cache), filled)

    def test_edits_do_not_grow_the_cache(self) -> None:
        cache = ContentCache()
        repo = ContentRepository(self.root, cache=cache)
        repo.load_courses()
        filled = len(cache)

        path = self.root / "courses" / "mesa-basics.yaml"
        for step in range(1, 4):
            st = path.stat()
            os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + step * 1_000_000_000))
            repo.load_courses()
        self.assertEqual(len(cache), filled)

    def test_resource_file_is_parsed_once(self) -> None:
        content = (self.root / "resources" / "mesa-docs.yaml").read_text(encoding="utf-8")
        with mock.patch.object(storage, "parse_yaml", wraps=storage.parse_yaml) as spy:
            resource = storage.parse_resource_file(content)
        self.assertEqual(resource.id, "mesa-docs")
        self.assertEqual(spy.call_count, 1)

    def test_empty_learning_paths_file(self) -> None:
        (self.root / "learning_paths.yaml").write_text("", encoding="utf-8")
        self.assertEqual(ContentRepository(self.root).load_learning_paths(), [])


class TestBrokenFiles(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = write_corpus(Path(self._tmp.name))
        write_yaml(self.root / "courses" / "broken.yaml", course_data(id="broken", last_updated="2024/01/01"))
        (self.root / "courses" / "garbage.yaml").write_text("id: [oops", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_strict_raises_first_error(self) -> None:
        # broken.yaml sorts before garbage.yaml
        with self.assertRaises(ValidationError):
            ContentRepository(self.root, strict=True).load_courses()

    def test_lenient_skips_and_records(self) -> None:
        repo = ContentRepository(self.root, strict=False)
        with self.assertLogs("abmind.storage", level="WARNING"):
            courses = repo.load_courses()

        self.assertEqual(len(courses), 3)
        failed = {path.name: type(err) for path, err in repo.load_errors}
        self.assertEqual(failed, {"broken.yaml": ValidationError, "garbage.yaml": YAMLParseError})

    def test_lenient_broken_learning_paths(self) -> None:
        (self.root / "learning_paths.yaml").write_text("- id: x\n", encoding="utf-8")
        repo = ContentRepository(self.root, strict=False)
        self.assertEqual(repo.load_learning_paths(), [])
        self.assertEqual(len(repo.load_errors), 1)

    def test_undecodable_file_strict_raises(self) -> None:
        (self.root / "courses" / "latin1.yaml").write_bytes(b"id: caf\xe9\n")
        # the other broken files sort first, so drop them for this case
        (self.root / "courses" / "broken.yaml").unlink()
        (self.root / "courses" / "garbage.yaml").unlink()
        with self.assertRaises(YAMLParseError) as ctx:
            ContentRepository(self.root, strict=True).load_courses()
        self.assertIn("latin1.yaml", str(ctx.exception))
        self.assertIsInstance(ctx.exception.cause, UnicodeDecodeError)

    def test_undecodable_file_lenient_skips(self) -> None:
        (self.root / "courses" / "latin1.yaml").write_bytes(b"id: caf\xe9\n")
        repo = ContentRepository(self.root, strict=False)
        with self.assertLogs("abmind.storage", level="WARNING"):
            courses = repo.load_courses()

        self.assertEqual(len(courses), 3)
        self.assertIn("latin1.yaml", {path.name for path, _ in repo.load_errors})

    def test_lenient_result_does_not_leak_into_strict(self) -> None:
        cache = ContentCache()
        with self.assertLogs("abmind.storage", level="WARNING"):
            lenient = ContentRepository(self.root, cache=cache, strict=False).load_courses()
        self.assertEqual(len(lenient), 3)

        with self.assertRaises(ValidationError):
            ContentRepository(self.root, cache=cache, strict=True).load_courses()

    def test_cached_lenient_load_reports_errors_to_every_repository(self) -> None:
        cache = ContentCache()
        with self.assertLogs("abmind.storage", level="WARNING"):
            ContentRepository(self.root, cache=cache, strict=False).load_courses()

        second = ContentRepository(self.root, cache=cache, strict=False)
        second.load_courses()
        self.assertEqual(len(second.load_errors), 2)

    def test_repeated_loads_do_not_duplicate_errors(self) -> None:
        repo = ContentRepository(self.root, strict=False)
        with self.assertLogs("abmind.storage", level="WARNING"):
            repo.load_courses()
            repo.load_learning_paths()
            lp_file = self.root / "learning_paths.yaml"
            lp_file.write_text("- id: x\n", encoding="utf-8")
            st = lp_file.stat()
            os.utime(lp_file, ns=(st.st_atime_ns, st.st_mtime_ns + 5_000_000_000))
            repo.load_learning_paths()
            repo.load_learning_paths()

            garbage = self.root / "courses" / "garbage.yaml"
            st = garbage.stat()
            os.utime(garbage, ns=(st.st_atime_ns, st.st_mtime_ns + 5_000_000_000))
            repo.load_courses()

        names = sorted(path.name for path, _ in repo.load_errors)
        self.assertEqual(names, ["broken.yaml", "garbage.yaml", "learning_paths.yaml"])

    def test_fixed_file_clears_its_error(self) -> None:
        repo = ContentRepository(self.root, strict=False)
        with self.assertLogs("abmind.storage", level="WARNING"):
            repo.load_courses()
        (self.root / "courses" / "broken.yaml").unlink()
        (self.root / "courses" / "garbage.yaml").unlink()

        self.assertEqual(len(repo.load_courses()), 3)
        self.assertEqual(repo.load_errors, [])


if __name__ == "__main__":
    unittest.main()
