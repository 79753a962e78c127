"""
Change detection between two snapshots of the same subject.

Matching is positional: meetings and lectures are assumed to be
append-only upstream. Items inside the old length are reported when
they differ, items past the old length are new and reported as-is.
A removal upstream therefore shows up as a run of changed items.

Results are in ascending index order.
"""

from __future__ import annotations

from lmswatch.model import Lecture, Meeting, Subject, compare_lecture, compare_meeting


def diff_lectures(old: Meeting, new: Meeting) -> list[Lecture]:
    """
    Return the changed lectures followed by the appended ones.

    Only indices below the old length are compared. If the new meeting
    is shorter, the missing tail is not reported.
    """
    result: list[Lecture] = []

    for old_lecture, new_lecture in zip(old.lectures, new.lectures):
        if compare_lecture(old_lecture, new_lecture):
            continue
        result.append(new_lecture)

    result.extend(new.lectures[len(old.lectures):])
    return result


def diff_subjects(old: Subject, new: Subject) -> list[Meeting]:
    """
    Return only the part of `new` that is new or changed compared to `old`.

    - a changed meeting is returned with its new subject/title and
      ONLY the diffed lectures
    - meetings past the old length are returned unmodified
    """
    result: list[Meeting] = []

    for old_meeting, new_meeting in zip(old.meetings, new.meetings):
        lectures = diff_lectures(old_meeting, new_meeting)
        if compare_meeting(old_meeting, new_meeting) and not lectures:
            continue
        result.append(Meeting(subject=new_meeting.subject, title=new_meeting.title, lectures=lectures))

    result.extend(new.meetings[len(old.meetings):])
    return result
