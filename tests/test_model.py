"""
Unit tests for the content schemas.

Schema contract:
- closed enumerations (unknown values rejected, never coerced)
- absolute URLs, YYYY-MM-DD dates
- learning steps need course_id / resource_id depending on their type
"""

import datetime
import unittest

import pydantic

from abmind.model import Course, LearningStep, NavigationItem, Resource, SiteConfig
from content_fixtures import course_data, resource_data, site_config_data


class TestCourseModel(unittest.TestCase):
    def test_valid_course(self) -> None:
        course = Course.model_validate(course_data())
        self.assertEqual(course.id, "mesa-basics")
        self.assertEqual(course.sessions[0].materials.references[0].type, "docs")
        self.assertIsNone(course.sessions[0].materials.code_repo)

    def test_unknown_difficulty_rejected(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            Course.model_validate(course_data(difficulty="expert"))

    def test_year_bounds(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            Course.model_validate(course_data(year=1999))

        too_far = datetime.date.today().year + 6
        with self.assertRaises(pydantic.ValidationError):
            Course.model_validate(course_data(year=too_far))

        ok = Course.model_validate(course_data(year=datetime.date.today().year + 5))
        self.assertEqual(ok.year, datetime.date.today().year + 5)

    def test_year_must_be_integer(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            Course.model_validate(course_data(year="2024"))

    def test_summary_min_length(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            Course.model_validate(course_data(summary="too short"))

    def test_empty_tag_list_rejected(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            Course.model_validate(course_data(tags=[]))

    def test_relative_url_rejected(self) -> None:
        data = course_data(external_links={"course_page": "/courses/mesa"})
        with self.assertRaises(pydantic.ValidationError):
            Course.model_validate(data)

    def test_yaml_date_object_is_accepted(self) -> None:
        # unquoted dates come out of yaml.safe_load as datetime.date
        course = Course.model_validate(course_data(last_updated=datetime.date(2024, 1, 5)))
        self.assertEqual(course.last_updated, "2024-01-05")

    def test_unknown_keys_are_ignored(self) -> None:
        course = Course.model_validate(course_data(extra_field="whatever"))
        self.assertFalse(hasattr(course, "extra_field"))


class TestLearningStep(unittest.TestCase):
    def test_course_step_requires_course_id(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            LearningStep.model_validate({"order": 1, "type": "course", "note": "x"})

    def test_resource_step_requires_resource_id(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            LearningStep.model_validate({"order": 1, "type": "resource", "course_id": "a", "note": "x"})

    def test_practice_step_needs_no_target(self) -> None:
        step = LearningStep.model_validate({"order": 2, "type": "practice", "note": "Try it"})
        self.assertFalse(step.optional)
        self.assertIsNone(step.target_id)

    def test_order_must_be_positive(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            LearningStep.model_validate({"order": 0, "type": "practice", "note": "x"})


class TestOtherModels(unittest.TestCase):
    def test_resource_difficulty_is_optional(self) -> None:
        data = resource_data()
        del data["difficulty"]
        self.assertIsNone(Resource.model_validate(data).difficulty)

    def test_unknown_resource_type_rejected(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            Resource.model_validate(resource_data(type="video"))

    def test_site_config_nested_navigation(self) -> None:
        config = SiteConfig.model_validate(site_config_data())
        children = config.navigation[1].children
        assert children is not None
        self.assertIsInstance(children[0], NavigationItem)
        self.assertEqual(children[0].href, "/domains")

    def test_site_config_requires_navigation(self) -> None:
        with self.assertRaises(pydantic.ValidationError):
            SiteConfig.model_validate(site_config_data(navigation=[]))

    def test_site_config_defaults(self) -> None:
        data = site_config_data()
        del data["featured_courses"]
        del data["announcements"]
        config = SiteConfig.model_validate(data)
        self.assertEqual(config.featured_courses, [])
        self.assertEqual(config.announcements, [])


if __name__ == "__main__":
    unittest.main()
