"""
Collecting (HTML -> Subject / Meeting / Lecture).

Two entry points:
- collect_subjects(): bulk course listing fetched over HTTP, one
  'course-card' per subject, optionally sliced by position
- collect_meetings(): a single course page opened in the browser

Important rules:
- a broken lecture or course card is skipped, its siblings are kept
- document order is preserved (the diff engine matches by index)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from lmswatch.model import Lecture, Meeting, Subject

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

SUBJECT_SELECTOR = "div.course-card[data-course-id]"
MEETING_SELECTOR = "section.meeting"
LECTURE_SELECTOR = "li.activity"


@dataclass(frozen=True)
class SliceRange:
    """
    Positional window over the subject cards (end is exclusive).
    """

    start: Optional[int] = None
    end: Optional[int] = None

    def apply(self, items: list) -> list:
        return items[self.start:self.end]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _text(parent: Tag, selector: str) -> Optional[str]:
    el = parent.select_one(selector)
    if el is None:
        return None
    value = el.get_text(" ", strip=True)
    return value or None


def parse_lecture(item: Tag) -> Optional[Lecture]:
    """
    Parse one 'li.activity' element. Returns None if title or link is missing.
    """
    link_el = item.select_one("a.activity-link")
    if link_el is None:
        return None

    title = link_el.get_text(" ", strip=True)
    href = str(link_el.get("href") or "").strip()
    if not title or not href:
        return None

    return Lecture(
        title=title,
        link=href,
        kind=str(item.get("data-type") or "resource").strip() or "resource",
        due=_text(item, ".activity-dates"),
        status=_text(item, ".activity-status"),
    )


def parse_meeting(section: Tag, subject_name: str) -> Meeting:
    title = _text(section, "h3.meeting-title") or ""

    lectures: List[Lecture] = []
    for item in section.select(LECTURE_SELECTOR):
        lecture = parse_lecture(item)
        if lecture is None:
            logger.warning("Skipping malformed lecture in meeting %r of %r", title, subject_name)
            continue
        lectures.append(lecture)

    return Meeting(subject=subject_name, title=title, lectures=lectures)


def _parse_meetings(root: Tag, subject_name: str) -> List[Meeting]:
    return [parse_meeting(section, subject_name) for section in root.select(MEETING_SELECTOR)]


def parse_subject_card(card: Tag) -> Optional[Subject]:
    """
    Parse one course card. Returns None if the card has no course id.
    """
    course_id = str(card.get("data-course-id") or "").strip()
    if not course_id:
        return None

    name = _text(card, ".course-name") or course_id
    return Subject(
        course_id=course_id,
        name=name,
        code=_text(card, ".course-code"),
        lecturer=_text(card, ".course-lecturer"),
        meetings=_parse_meetings(card, name),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def collect_subjects(content: str, slice_range: Optional[SliceRange] = None) -> List[Subject]:
    """
    Parse the bulk course listing into subjects.

    slice_range selects which course cards are parsed at all, so a large
    listing can be processed in several smaller runs.
    """
    soup = BeautifulSoup(content, "html.parser")

    cards = soup.select(SUBJECT_SELECTOR)
    if slice_range is not None:
        cards = slice_range.apply(cards)

    subjects: List[Subject] = []
    for card in cards:
        subject = parse_subject_card(card)
        if subject is None:
            logger.warning("Skipping course card without course id")
            continue
        subjects.append(subject)

    return subjects


def collect_meetings(html: str) -> List[Meeting]:
    """
    Parse a single course page (browser path) into its meetings.
    """
    soup = BeautifulSoup(html, "html.parser")

    subject_name = _text(soup, "h1.course-title")
    if subject_name is None and soup.title is not None:
        subject_name = soup.title.get_text(strip=True)

    return _parse_meetings(soup, subject_name or "")
