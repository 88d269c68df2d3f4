import uvicorn
from dataclasses import asdict
from datetime import MAXYEAR, MINYEAR
from typing import Optional
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from daiary.agent.orchestrator import FeedbackOrchestrator
from daiary.auth.tokens import Account, get_current_account
from daiary.config import settings
from daiary.core.errors import DaiaryError, ValidationError
from daiary.core.events import lifespan
from daiary.core.logger import logger
from daiary.core.state_manager import StateManager
from daiary.journal import calendar, date_key
from daiary.journal.journal_service import JournalService
from daiary.journal.streak import compute_streak
from daiary.llm.feedback import FeedbackService, validate_persona
from daiary.memory.database import get_session
from daiary.schemas import (
    CalendarResponse,
    EntryOut,
    EntryRequest,
    FeedbackRequest,
    FeedbackResponse,
    MilestoneRequest,
    PeriodicRequest,
    ProfileOut,
    ProfileUpdate,
    StreakResponse,
    SubmissionResponse,
    TextFeedbackResponse,
)

app = FastAPI(title="dAIary API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DaiaryError)
async def daiary_error_handler(request: Request, exc: DaiaryError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "invalid request", "details": jsonable_encoder(exc.errors())},
    )


# One submission state per account while it has a submission in flight
_submission_states: dict[str, StateManager] = {}

def get_submission_state(user_id: str) -> StateManager:
    if user_id not in _submission_states:
        _submission_states[user_id] = StateManager(name=user_id)
    return _submission_states[user_id]


def release_submission_state(user_id: str):
    state = _submission_states.get(user_id)
    if state is not None and state.is_idle():
        del _submission_states[user_id]


def get_feedback_service() -> FeedbackService:
    return FeedbackService()


def get_journal(db: Session = Depends(get_session)) -> JournalService:
    return JournalService(db)


@app.get("/health")
async def health():
    return {"status": "ok", "name": "dAIary"}


# ----------------------------------------------------
# AI feedback
# ----------------------------------------------------

@app.post("/feedback", response_model=FeedbackResponse)
async def daily_feedback(
    request: FeedbackRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    persona = validate_persona(request.personality, request.custom_instruction)
    result = await service.daily(request.content, persona)
    return FeedbackResponse(feedback=result.feedback, mood=result.mood)


@app.post("/milestone", response_model=TextFeedbackResponse)
async def milestone_feedback(
    request: MilestoneRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    persona = validate_persona(request.personality, request.custom_instruction)
    return TextFeedbackResponse(feedback=await service.milestone(request.streak, persona))


async def _periodic(request: PeriodicRequest, service: FeedbackService, period: str):
    persona = validate_persona(request.personality, request.custom_instruction)
    entries = [e.model_dump() for e in request.entries]
    return TextFeedbackResponse(feedback=await service.periodic(entries, persona, period))


@app.post("/periodic", response_model=TextFeedbackResponse)
async def periodic_feedback(
    request: PeriodicRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    return await _periodic(request, service, request.period)


@app.post("/weekly", response_model=TextFeedbackResponse)
async def weekly_feedback(
    request: PeriodicRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    return await _periodic(request, service, "weekly")


@app.post("/monthly", response_model=TextFeedbackResponse)
async def monthly_feedback(
    request: PeriodicRequest,
    service: FeedbackService = Depends(get_feedback_service),
):
    return await _periodic(request, service, "monthly")


# ----------------------------------------------------
# Journal
# ----------------------------------------------------

@app.get("/entries", response_model=list[EntryOut])
async def list_entries(
    date: Optional[str] = None,
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
):
    entries = await journal.list_entries(account.user_id)
    if date is not None:
        entries = calendar.entries_for_date(entries, date_key.parse(date))
    return entries


@app.post("/entries", response_model=SubmissionResponse)
async def submit_entry(
    request: EntryRequest,
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
    service: FeedbackService = Depends(get_feedback_service),
):
    today = date_key.resolve_today(request.today)
    state = get_submission_state(account.user_id)
    if state.is_busy():
        raise HTTPException(status_code=409, detail="a submission is already in progress")

    try:
        profile = await journal.get_or_create_profile(account.user_id, account.email)
        orchestrator = await FeedbackOrchestrator(account.user_id, journal, service, state).load(today)
        result = await orchestrator.submit(
            request.content, profile, date=request.date, entry_id=request.id, today=today,
        )
    finally:
        release_submission_state(account.user_id)
    if result is None:
        raise HTTPException(status_code=409, detail="a submission is already in progress")

    return SubmissionResponse(
        entry=EntryOut(**result.entry),
        streak=result.streak,
        milestone=result.milestone,
        milestone_feedback=result.milestone_feedback,
        warnings=result.warnings,
    )


@app.delete("/entries/{entry_id}")
async def delete_entry(
    entry_id: str,
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
):
    if not await journal.delete_entry(account.user_id, entry_id):
        raise HTTPException(status_code=404, detail="Entry not found")
    return {"deleted": 1}


@app.delete("/entries")
async def delete_all_entries(
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
):
    return {"deleted": await journal.delete_all_entries(account.user_id)}


@app.post("/entries/feedback/{period}", response_model=TextFeedbackResponse)
async def own_periodic_feedback(
    period: str,
    year: Optional[int] = None,
    month: Optional[int] = None,
    today: Optional[str] = None,
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Weekly reflection over the current week, or monthly over ``year``/``month``."""
    today = date_key.resolve_today(today)
    entries = await journal.list_entries(account.user_id)
    if period == "weekly":
        start, end = calendar.week_range(today)
        selected = calendar.entries_in_range(entries, start, end)
    elif period == "monthly":
        current = date_key.to_date(today)
        year, month = year or current.year, month or current.month
        _check_year(year)
        _check_month(month)
        selected = calendar.entries_for_month(entries, year, month)
    else:
        raise ValidationError("period must be weekly or monthly")

    profile = await journal.get_or_create_profile(account.user_id, account.email)
    # oldest first reads better in a log
    selected = [e.to_dict() for e in reversed(selected)]
    return TextFeedbackResponse(feedback=await service.periodic(selected, profile, period))


@app.get("/streak", response_model=StreakResponse)
async def get_streak(
    today: Optional[str] = None,
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
):
    entries = await journal.list_entries(account.user_id)
    celebrated = await journal.list_celebrated(account.user_id)
    return StreakResponse(
        current_streak=compute_streak(entries, date_key.resolve_today(today)),
        celebrated_milestones=sorted(celebrated),
    )


@app.get("/calendar/{year}/{month}", response_model=CalendarResponse)
async def get_calendar(
    year: int,
    month: int,
    today: Optional[str] = None,
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
):
    _check_year(year)
    _check_month(month)
    entries = await journal.list_entries(account.user_id)
    days = calendar.month_grid(year, month, entries, today=date_key.resolve_today(today))
    return CalendarResponse(year=year, month=month, days=[asdict(d) for d in days])


def _check_year(year: int):
    # the 6-week grid pads into the neighbouring years
    if not MINYEAR < year < MAXYEAR:
        raise ValidationError(f"year must be between {MINYEAR + 1} and {MAXYEAR - 1}")


def _check_month(month: int):
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")


# ----------------------------------------------------
# Profile
# ----------------------------------------------------

@app.get("/profile", response_model=ProfileOut)
async def get_profile(
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
):
    return await journal.get_or_create_profile(account.user_id, account.email)


@app.put("/profile", response_model=ProfileOut)
async def update_profile(
    request: ProfileUpdate,
    account: Account = Depends(get_current_account),
    journal: JournalService = Depends(get_journal),
):
    fields = request.model_dump(exclude_unset=True)
    logger.info("Updating profile for {}: {}", account.user_id, sorted(fields))
    return await journal.upsert_profile(account.user_id, account.email, **fields)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
