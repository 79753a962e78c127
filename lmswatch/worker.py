"""
The fetch -> collect -> diff -> notify -> persist pipeline.

Acquisition problems (cookies, listing download, parsing the listing)
end the run with an exception. Everything after that is per subject:
every subject runs in its own task, and whatever goes wrong inside it
is logged, reported to the error webhook and recorded in its
SubjectResult. One subject can never stop another one.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

from lmswatch.collect import SliceRange, collect_subjects
from lmswatch.diff import diff_subjects
from lmswatch.http_client import PortalClient
from lmswatch.model import Meeting, Subject
from lmswatch.storage import KeyValueStore

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, subject: Subject) -> object: ...

    def error(self, message: str) -> object: ...


class Outcome(str, enum.Enum):
    CHANGED = "changed"  # diff was non-empty and a notification went out
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"  # no usable baseline, nothing to compare
    FAILED = "failed"


@dataclass
class SubjectResult:
    course_id: str
    outcome: Outcome = Outcome.SKIPPED
    diff: List[Meeting] = field(default_factory=list)
    persisted: bool = False
    reasons: List[str] = field(default_factory=list)

    def fail(self, reason: str) -> None:
        self.outcome = Outcome.FAILED
        self.reasons.append(reason)


@dataclass
class RunReport:
    results: List[SubjectResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def ok(self) -> bool:
        return not self.errors and all(r.outcome != Outcome.FAILED for r in self.results)


class Worker:
    def __init__(
        self,
        client: PortalClient,
        store: KeyValueStore,
        webhook: Notifier,
        collect: Callable[..., List[Subject]] = collect_subjects,
        logger: logging.Logger = logger,
    ) -> None:
        self.client = client
        self.store = store
        self.webhook = webhook
        self.collect = collect
        self.logger = logger

    async def _report(self, message: str) -> None:
        self.logger.error(message)
        try:
            await asyncio.to_thread(self.webhook.error, message)
        except Exception as e:  # the notifier is best effort
            self.logger.error("Could not deliver error notification: %s", e)

    async def _load_old(self, subject: Subject, result: SubjectResult) -> Optional[Subject]:
        try:
            raw = await asyncio.to_thread(self.store.get, subject.key)
            if raw is None:
                return None
            return Subject.from_json(raw)
        except Exception as e:
            result.fail(f"lookup: {e}")
            await self._report(f"Failed to get old data for: {subject.course_id}. Reason: {e}")
            return None

    async def _diff_and_notify(self, old: Subject, subject: Subject, result: SubjectResult) -> None:
        if not subject.meetings or not old.meetings:
            return

        try:
            meetings = diff_subjects(old, subject)
            result.diff = meetings
            if not meetings:
                result.outcome = Outcome.UNCHANGED
                return
            await asyncio.to_thread(self.webhook.notify, subject.with_meetings(meetings))
            result.outcome = Outcome.CHANGED
        except Exception as e:
            result.fail(f"notify: {e}")
            await self._report(f"Failed to notify changes for: {subject.course_id}. Reason: {e}")

    async def _persist(self, subject: Subject, result: SubjectResult) -> None:
        try:
            await asyncio.to_thread(self.store.put, subject.key, subject.to_json())
            result.persisted = True
        except Exception as e:
            result.fail(f"persist: {e}")
            await self._report(f"Failed to save new data for: {subject.course_id}. Reason: {e}")

    async def process_subject(self, subject: Subject) -> SubjectResult:
        """
        Compare one subject against its stored snapshot, notify, then overwrite it.

        The new snapshot is written even if the lookup or the notification failed.
        """
        result = SubjectResult(course_id=subject.course_id)

        old = await self._load_old(subject, result)
        if old is not None:
            await self._diff_and_notify(old, subject, result)

        await self._persist(subject, result)
        return result

    async def handle(self, slice_range: Optional[SliceRange] = None) -> RunReport:
        await asyncio.to_thread(self.client.collect_cookies)
        self.logger.info("Fetching subjects...")
        content = await asyncio.to_thread(self.client.fetch_subjects_content)
        subjects = self.collect(content, slice_range)
        self.logger.info("Collected %d subjects", len(subjects))

        report = RunReport()
        outcomes = await asyncio.gather(
            *(self.process_subject(s) for s in subjects),
            return_exceptions=True,
        )
        for subject, outcome in zip(subjects, outcomes):
            if isinstance(outcome, BaseException):
                # anything process_subject did not handle itself
                message = f"Unhandled failure for: {subject.course_id}. Reason: {outcome}"
                report.errors.append(message)
                report.results.append(SubjectResult(course_id=subject.course_id, outcome=Outcome.FAILED, reasons=[message]))
                await self._report(message)
                continue
            report.results.append(outcome)

        self.logger.info(
            "Run finished: %d changed, %d unchanged, %d skipped, %d failed",
            report.count(Outcome.CHANGED),
            report.count(Outcome.UNCHANGED),
            report.count(Outcome.SKIPPED),
            report.count(Outcome.FAILED),
        )
        return report
