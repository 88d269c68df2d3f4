from datetime import datetime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from daiary.config import settings
from daiary.core.errors import PersistenceError, ProfileNotFound
from daiary.core.logger import logger
from daiary.llm.feedback import validate_persona
from daiary.memory.models import CelebratedMilestone, DiaryEntry, UserProfile

PROFILE_FIELDS = ("name", "nickname", "personality", "custom_instruction", "profile_picture")


def default_name(email: str | None) -> str:
    if email and email.split("@")[0]:
        return email.split("@")[0]
    return settings.DEFAULT_DISPLAY_NAME


class JournalService:
    """Account-scoped storage for entries, profiles and celebrated milestones."""

    def __init__(self, db: Session):
        self.db = db

    # Entries

    async def upsert_entry(self, user_id: str, entry: dict) -> DiaryEntry:
        existing = self.db.get(DiaryEntry, entry["id"])
        if existing is not None and existing.user_id != user_id:
            raise PersistenceError(f"entry {entry['id']} belongs to another account")

        row = DiaryEntry(
            id=entry["id"],
            user_id=user_id,
            date=entry["date"],
            content=entry["content"],
            feedback=entry.get("feedback", ""),
            mood=entry.get("mood") or settings.UNKNOWN_MOOD,
            updated_at=datetime.utcnow(),
        )
        if existing is not None:
            row.created_at = existing.created_at
        row = self._commit(lambda: self.db.merge(row), "upsert entry")
        logger.info("Entry {} saved for {} ({})", row.id, user_id, row.date)
        return row

    async def list_entries(self, user_id: str) -> list[DiaryEntry]:
        return (
            self.db.query(DiaryEntry)
            .filter(DiaryEntry.user_id == user_id)
            .order_by(DiaryEntry.date.desc(), DiaryEntry.created_at.desc())
            .all()
        )

    async def delete_entry(self, user_id: str, entry_id: str) -> bool:
        deleted = self._commit(
            lambda: self.db.query(DiaryEntry)
            .filter(DiaryEntry.id == entry_id, DiaryEntry.user_id == user_id)
            .delete(),
            "delete entry",
        )
        return deleted > 0

    async def delete_all_entries(self, user_id: str) -> int:
        deleted = self._commit(
            lambda: self.db.query(DiaryEntry).filter(DiaryEntry.user_id == user_id).delete(),
            "delete entries",
        )
        logger.info("Deleted {} entries for {}", deleted, user_id)
        return deleted

    # Profile

    async def get_profile(self, user_id: str) -> UserProfile:
        profile = self.db.get(UserProfile, user_id)
        if profile is None:
            raise ProfileNotFound(f"no profile for {user_id}")
        return profile

    async def get_or_create_profile(self, user_id: str, email: str | None = None) -> UserProfile:
        try:
            return await self.get_profile(user_id)
        except ProfileNotFound:
            logger.info("Profile not found for {}, creating default", user_id)

        profile = UserProfile(user_id=user_id, name=default_name(email), personality="supportive")
        self._commit(lambda: self.db.add(profile), "create profile")
        return profile

    async def upsert_profile(self, user_id: str, email: str | None = None, **fields) -> UserProfile:
        profile = await self.get_or_create_profile(user_id, email)
        changes = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}

        persona = validate_persona(
            changes.get("personality", profile.personality),
            changes.get("custom_instruction", profile.custom_instruction),
        )
        changes["personality"] = persona.personality.value
        changes["custom_instruction"] = persona.custom_instruction
        if "name" in changes and not (changes["name"] or "").strip():
            changes["name"] = default_name(email)

        for key, value in changes.items():
            setattr(profile, key, value)
        profile.updated_at = datetime.utcnow()
        self._commit(lambda: None, "update profile")
        return profile

    # Milestones

    async def list_celebrated(self, user_id: str) -> set[int]:
        rows = self.db.query(CelebratedMilestone.streak).filter(CelebratedMilestone.user_id == user_id).all()
        return {r[0] for r in rows}

    async def add_celebrated(self, user_id: str, streak: int):
        if streak in await self.list_celebrated(user_id):
            return
        self._commit(
            lambda: self.db.add(CelebratedMilestone(user_id=user_id, streak=streak)),
            "record milestone",
        )

    def _commit(self, op, what: str):
        try:
            result = op()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to {}: {}", what, e)
            raise PersistenceError(f"failed to {what}") from e
        return result
