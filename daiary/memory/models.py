from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class DiaryEntry(Base):
    __tablename__ = "diary_entries"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    content = Column(Text, nullable=False)
    feedback = Column(Text, nullable=False, default="")
    mood = Column(String(50), nullable=False, default="unknown")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "content": self.content,
            "feedback": self.feedback,
            "mood": self.mood,
        }

class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    nickname = Column(String(255))
    personality = Column(String(20), nullable=False, default="supportive")
    custom_instruction = Column(Text)
    profile_picture = Column(Text)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class CelebratedMilestone(Base):
    __tablename__ = "celebrated_milestones"
    __table_args__ = (UniqueConstraint("user_id", "streak"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    streak = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
