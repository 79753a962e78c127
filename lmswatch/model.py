"""
Central data model definitions used across the project.

A Subject (one course on the LMS) holds an ordered list of Meetings,
and every Meeting holds an ordered list of Lectures (files, links,
assignments). The same objects are produced by the collectors, compared
by the diff engine and persisted as JSON snapshots.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, replace
from typing import Any, List, Optional

SUBJECT_KEY_PREFIX = "subject_"


@dataclass(frozen=True)
class Lecture:
    """
    One leaf resource inside a meeting.

    Lectures are never patched: a changed lecture is a new value.
    """

    title: str
    link: str
    kind: str = "resource"
    due: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Lecture":
        return cls(
            title=str(data.get("title", "")),
            link=str(data.get("link", "")),
            kind=str(data.get("kind") or "resource"),
            due=data.get("due"),
            status=data.get("status"),
        )


@dataclass
class Meeting:
    subject: str
    title: str
    lectures: List[Lecture] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Meeting":
        lectures = data.get("lectures") or []
        return cls(
            subject=str(data.get("subject", "")),
            title=str(data.get("title", "")),
            lectures=[Lecture.from_dict(x) for x in lectures if isinstance(x, dict)],
        )


@dataclass
class Subject:
    """
    Represents one course as seen on the LMS.

    course_id is the storage key and never changes between runs.
    """

    course_id: str
    name: str
    code: Optional[str] = None
    lecturer: Optional[str] = None
    meetings: List[Meeting] = field(default_factory=list)

    @property
    def key(self) -> str:
        return subject_key(self.course_id)

    def with_meetings(self, meetings: List[Meeting]) -> "Subject":
        """Copy of this subject carrying a different meeting list."""
        return replace(self, meetings=list(meetings))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Subject":
        # unknown keys from older snapshots are ignored
        course_id = str(data.get("course_id", "")).strip()
        if not course_id:
            raise ValueError("Snapshot has no course_id")
        meetings = data.get("meetings") or []
        return cls(
            course_id=course_id,
            name=str(data.get("name", "")),
            code=data.get("code"),
            lecturer=data.get("lecturer"),
            meetings=[Meeting.from_dict(x) for x in meetings if isinstance(x, dict)],
        )

    @classmethod
    def from_json(cls, text: str) -> "Subject":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Snapshot must be a JSON object")
        return cls.from_dict(data)


def subject_key(course_id: str) -> str:
    return f"{SUBJECT_KEY_PREFIX}{course_id}"


def compare_lecture(a: Lecture, b: Lecture) -> bool:
    return (
        a.title == b.title
        and a.link == b.link
        and a.kind == b.kind
        and a.due == b.due
        and a.status == b.status
    )


def compare_meeting(a: Meeting, b: Meeting) -> bool:
    """
    Full structural comparison: subject, title and every lecture in order.
    """
    if a.subject != b.subject or a.title != b.title:
        return False
    if len(a.lectures) != len(b.lectures):
        return False
    return all(compare_lecture(x, y) for x, y in zip(a.lectures, b.lectures))
