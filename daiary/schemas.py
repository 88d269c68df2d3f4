from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

# --- AI FEEDBACK ---
# Length and persona rules are checked by the feedback service so that every
# violation answers 400 with the same error body.

class PersonaRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    personality: Optional[str] = None
    custom_instruction: Optional[str] = Field(default=None, alias="customInstruction")


class FeedbackRequest(PersonaRequest):
    content: str


class FeedbackResponse(BaseModel):
    feedback: str
    mood: str


class MilestoneRequest(PersonaRequest):
    streak: int


class PeriodicEntry(BaseModel):
    date: str = ""
    content: str = ""


class PeriodicRequest(PersonaRequest):
    entries: List[PeriodicEntry]
    period: Literal["weekly", "monthly"] = "weekly"


class TextFeedbackResponse(BaseModel):
    feedback: str


# --- JOURNAL ---

class EntryRequest(BaseModel):
    content: str
    date: Optional[str] = None
    id: Optional[str] = None
    # writer's local day, YYYY-MM-DD
    today: Optional[str] = None


class EntryOut(BaseModel):
    id: str
    date: str
    content: str
    feedback: str
    mood: str

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    entry: EntryOut
    streak: int
    milestone: Optional[int] = None
    milestone_feedback: Optional[str] = None
    warnings: List[str] = []


class StreakResponse(BaseModel):
    current_streak: int
    celebrated_milestones: List[int]


class ProfileOut(BaseModel):
    name: str
    nickname: Optional[str] = None
    personality: str
    custom_instruction: Optional[str] = None
    profile_picture: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    nickname: Optional[str] = None
    personality: Optional[str] = None
    custom_instruction: Optional[str] = Field(default=None, alias="customInstruction")
    profile_picture: Optional[str] = Field(default=None, alias="profilePicture")


class CalendarDayOut(BaseModel):
    date: str
    day: int
    is_current_month: bool
    is_today: bool
    entry_count: int

    model_config = ConfigDict(from_attributes=True)


class CalendarResponse(BaseModel):
    year: int
    month: int
    days: List[CalendarDayOut]
