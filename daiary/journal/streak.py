from dataclasses import dataclass, field
from typing import Iterable

from daiary.config import settings
from daiary.journal import date_key


def compute_streak(entries: Iterable, today: str | None = None) -> int:
    """Count consecutive days with at least one entry, walking back from today.

    No entry today means a streak of 0, even when yesterday has one.
    """
    present = {date_key.date_of(e) for e in entries}
    day = today or date_key.today()
    streak = 0
    while day in present:
        streak += 1
        day = date_key.add_days(day, -1)
    return streak


def is_milestone(streak: int, celebrated: Iterable[int], interval: int | None = None) -> bool:
    interval = interval or settings.MILESTONE_INTERVAL
    return streak > 0 and streak % interval == 0 and streak not in set(celebrated)


@dataclass
class StreakState:
    current_streak: int = 0
    celebrated_milestones: set[int] = field(default_factory=set)

    def refresh(self, entries: Iterable, today: str | None = None) -> int:
        self.current_streak = compute_streak(entries, today)
        return self.current_streak

    def pending_milestone(self, interval: int | None = None) -> int | None:
        if is_milestone(self.current_streak, self.celebrated_milestones, interval):
            return self.current_streak
        return None

    def celebrate(self, milestone: int):
        # append-only
        self.celebrated_milestones.add(milestone)
