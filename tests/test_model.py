"""
Unit tests for the entity model and snapshot serialization.
"""

import json
import unittest

from lmswatch.model import Lecture, Meeting, Subject, compare_lecture, compare_meeting, subject_key


def sample_subject() -> Subject:
    return Subject(
        course_id="CS101",
        name="Algorithms",
        code="CS101",
        lecturer="Dr. Ada",
        meetings=[
            Meeting(
                subject="Algorithms",
                title="Meeting 1",
                lectures=[
                    Lecture(title="Slides", link="/mod/resource/view.php?id=1", kind="resource"),
                    Lecture(title="HW 1", link="/mod/assign/view.php?id=2", kind="assign", due="Due: 1 March"),
                ],
            )
        ],
    )


class TestModel(unittest.TestCase):
    def test_subject_key(self) -> None:
        self.assertEqual(subject_key("CS101"), "subject_CS101")
        self.assertEqual(sample_subject().key, "subject_CS101")

    def test_json_roundtrip(self) -> None:
        s = sample_subject()
        self.assertEqual(Subject.from_json(s.to_json()), s)

    def test_unknown_keys_are_ignored(self) -> None:
        data = sample_subject().to_dict()
        data["legacy_field"] = 1
        data["meetings"][0]["lectures"][0]["extra"] = "x"

        s = Subject.from_json(json.dumps(data))

        self.assertEqual(s, sample_subject())

    def test_missing_course_id_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Subject.from_json(json.dumps({"name": "No id"}))

    def test_non_object_snapshot_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Subject.from_json("[]")

    def test_compare_lecture_is_field_by_field(self) -> None:
        a = Lecture(title="HW", link="/x", kind="assign", due="Mon")
        self.assertTrue(compare_lecture(a, Lecture(title="HW", link="/x", kind="assign", due="Mon")))
        self.assertFalse(compare_lecture(a, Lecture(title="HW", link="/x", kind="assign", due="Tue")))

    def test_compare_meeting_checks_lecture_count(self) -> None:
        m = sample_subject().meetings[0]
        shorter = Meeting(subject=m.subject, title=m.title, lectures=m.lectures[:1])
        self.assertTrue(compare_meeting(m, Meeting(m.subject, m.title, list(m.lectures))))
        self.assertFalse(compare_meeting(m, shorter))

    def test_with_meetings_does_not_touch_original(self) -> None:
        s = sample_subject()
        copy = s.with_meetings([])
        self.assertEqual(copy.meetings, [])
        self.assertEqual(len(s.meetings), 1)
        self.assertEqual(copy.course_id, s.course_id)


if __name__ == "__main__":
    unittest.main()
