from enum import Enum, auto
from daiary.core.logger import logger

class SubmissionState(Enum):
    IDLE = auto()
    SUBMITTING = auto()
    AWAITING_MODEL = auto()
    PERSISTING = auto()
    RECOMPUTING_STREAK = auto()
    MILESTONE_CHECK = auto()
    AWAITING_MILESTONE_MODEL = auto()
    DONE = auto()

class StateManager:
    """Tracks where one client's submission is. Anything but IDLE means busy."""

    def __init__(self, name: str = "submission"):
        self.name = name
        self._state = SubmissionState.IDLE
        self.history: list[SubmissionState] = []

    @property
    def state(self) -> SubmissionState:
        return self._state

    def set_state(self, new_state: SubmissionState):
        if self._state != new_state:
            logger.debug(f"[{self.name}] state changed: {self._state.name} -> {new_state.name}")
            self._state = new_state
            self.history.append(new_state)

    def try_begin(self) -> bool:
        """Enter SUBMITTING if idle. Returns False when already busy."""
        if self.is_busy():
            return False
        self.history = []
        self.set_state(SubmissionState.SUBMITTING)
        return True

    def reset(self):
        self.set_state(SubmissionState.IDLE)

    def is_busy(self) -> bool:
        return self._state != SubmissionState.IDLE

    def is_idle(self) -> bool:
        return self._state == SubmissionState.IDLE
