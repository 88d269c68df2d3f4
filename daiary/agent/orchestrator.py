import uuid
from dataclasses import dataclass, field
from typing import Optional

from daiary.config import settings
from daiary.core.errors import DaiaryError, PersistenceError, ValidationError
from daiary.core.logger import logger
from daiary.core.state_manager import StateManager, SubmissionState
from daiary.journal import date_key
from daiary.journal.journal_service import JournalService
from daiary.journal.streak import StreakState
from daiary.llm.feedback import FeedbackService, validate_content


@dataclass
class SubmissionResult:
    entry: dict
    streak: int
    milestone: Optional[int] = None
    milestone_feedback: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


class FeedbackOrchestrator:
    """Runs one diary submission from model call to milestone check.

    Holds the account's entries and celebrated milestones in memory. A
    failed durable write leaves the entry in memory and adds a warning to
    the result.
    """

    def __init__(
        self,
        user_id: str,
        journal: JournalService,
        feedback: FeedbackService | None = None,
        state: StateManager | None = None,
    ):
        self.user_id = user_id
        self.journal = journal
        self.feedback = feedback or FeedbackService()
        self.state = state or StateManager(name=user_id)
        self.entries: list[dict] = []
        self.streak = StreakState()

    async def load(self, today: str | None = None):
        rows = await self.journal.list_entries(self.user_id)
        self.entries = [r.to_dict() for r in rows]
        self.streak.celebrated_milestones = await self.journal.list_celebrated(self.user_id)
        self.streak.refresh(self.entries, today)
        return self

    @property
    def busy(self) -> bool:
        return self.state.is_busy()

    async def submit(
        self,
        content: str,
        profile,
        date: str | None = None,
        entry_id: str | None = None,
        today: str | None = None,
    ) -> Optional[SubmissionResult]:
        """Submit one entry. Returns None when a submission is already running.

        ``today`` is the writer's local day; it bounds ``date`` and anchors the
        streak. Defaults to the server's day.
        """
        if not self.state.try_begin():
            logger.info("Submission ignored for {}: another one is in flight", self.user_id)
            return None

        try:
            content = validate_content(content)
            today = today or date_key.today()
            date = self._check_date(date, today)

            self.state.set_state(SubmissionState.AWAITING_MODEL)
            daily = await self.feedback.daily(content, profile)

            self.state.set_state(SubmissionState.PERSISTING)
            entry = {
                "id": entry_id or uuid.uuid4().hex,
                "date": date,
                "content": content,
                "feedback": daily.feedback,
                "mood": daily.mood,
            }
            self._remember(entry)
            result = SubmissionResult(entry=entry, streak=0)
            try:
                await self.journal.upsert_entry(self.user_id, entry)
            except PersistenceError as e:
                logger.warning("Entry {} kept locally only: {}", entry["id"], e)
                result.warnings.append(f"entry could not be saved: {e.message}")

            self.state.set_state(SubmissionState.RECOMPUTING_STREAK)
            result.streak = self.streak.refresh(self.entries, today)

            self.state.set_state(SubmissionState.MILESTONE_CHECK)
            milestone = self.streak.pending_milestone(settings.MILESTONE_INTERVAL)
            if milestone is not None:
                self.state.set_state(SubmissionState.AWAITING_MILESTONE_MODEL)
                result.milestone_feedback = await self._celebrate(milestone, profile)
                if result.milestone_feedback is not None:
                    result.milestone = milestone

            self.state.set_state(SubmissionState.DONE)
            return result
        finally:
            self.state.reset()

    async def _celebrate(self, milestone: int, profile) -> Optional[str]:
        logger.info("{} reached a {}-day streak", self.user_id, milestone)
        try:
            message = await self.feedback.milestone(milestone, profile)
        except DaiaryError as e:
            logger.error("Milestone feedback failed for {}: {}", self.user_id, e)
            return None

        self.streak.celebrate(milestone)
        try:
            await self.journal.add_celebrated(self.user_id, milestone)
        except PersistenceError as e:
            logger.error("Could not record milestone {} for {}: {}", milestone, self.user_id, e)
        return message

    def _remember(self, entry: dict):
        for i, existing in enumerate(self.entries):
            if existing["id"] == entry["id"]:
                self.entries[i] = entry
                return
        self.entries.insert(0, entry)

    @staticmethod
    def _check_date(date: str | None, today: str) -> str:
        if date is None:
            return today
        date = date_key.parse(date)
        if date_key.compare(date, today) > 0:
            raise ValidationError("date cannot be in the future")
        return date
