"""
Discord webhook notifications.

Two kinds of messages:
- notify(subject): a subject carrying only its new/changed meetings
- error(message):  a failure report from the worker

Delivery is fire-and-forget: a failed POST is logged, never raised,
and never retried.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

from lmswatch.model import Subject

logger = logging.getLogger(__name__)

# Discord rejects content over 2000 characters
MAX_MESSAGE_LENGTH = 1950


def format_subject_message(subject: Subject) -> str:
    header = f"**{subject.name}**"
    if subject.code:
        header += f" ({subject.code})"
    lines = [f"📚 New activity in {header}"]
    if subject.lecturer:
        lines.append(f"Lecturer: {subject.lecturer}")

    for meeting in subject.meetings:
        lines.append(f"__{meeting.title or 'Untitled meeting'}__")
        if not meeting.lectures:
            lines.append("  • (meeting details changed)")
        for lecture in meeting.lectures:
            line = f"  • [{lecture.kind}] {lecture.title} <{lecture.link}>"
            extras = [x for x in (lecture.due, lecture.status) if x]
            if extras:
                line += f" ({', '.join(extras)})"
            lines.append(line)

    return "\n".join(lines)


def split_message(content: str, max_len: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Split on line boundaries so that every part stays below max_len.

    A single line longer than max_len is hard-cut.
    """
    parts: List[str] = []
    current = ""

    for line in content.splitlines():
        while len(line) > max_len:
            if current:
                parts.append(current)
                current = ""
            parts.append(line[:max_len])
            line = line[max_len:]

        if len(current) + len(line) + 1 > max_len:
            parts.append(current)
            current = ""
        current += line + "\n"

    if current.strip():
        parts.append(current)
    return [p for p in parts if p.strip()]


class DiscordWebhook:
    def __init__(
        self,
        url: Optional[str],
        user_id: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        self.url = url
        self.user_id = user_id
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _send(self, content: str, ping: bool = False) -> bool:
        if not self.url:
            logger.info("Discord webhook URL not configured. Skipping message.")
            return False

        if ping and self.user_id:
            content = f"<@{self.user_id}> {content}"

        for part in split_message(content):
            payload: dict = {"content": part}
            if ping and self.user_id:
                payload["allowed_mentions"] = {"users": [self.user_id]}
            try:
                resp = self.session.post(self.url, json=payload, timeout=self.timeout)
                resp.raise_for_status()
            except requests.exceptions.RequestException as e:
                logger.error("Error sending Discord message: %s", e)
                return False

        return True

    def notify(self, subject: Subject) -> bool:
        return self._send(format_subject_message(subject), ping=True)

    def error(self, message: str) -> bool:
        return self._send(f"⚠️ {message}")
