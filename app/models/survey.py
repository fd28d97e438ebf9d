"""
Survey Models

Two tables back the whole application:
- surveys: the survey definition, with its questions stored as a JSON array
- survey_responses: one row per respondent submission, answers as a JSON array

Questions are never versioned; an edit replaces the array wholesale.
"""

import uuid

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from app.database import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Survey(Base):
    """A named, ordered set of questions created by one user."""

    __tablename__ = "surveys"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")

    # [{"id": "q1", "text": "...", "type": "rating", "options": [...]}]
    questions = Column(JSON, nullable=False, default=list)

    user_id = Column(String(255), nullable=False, default="anonymous", index=True)
    status = Column(
        SQLEnum("draft", "live", name="survey_status_enum"),
        nullable=False,
        default="draft",
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Survey id={self.id} title='{self.title}' status={self.status}>"


class SurveyResponse(Base):
    """One respondent's answers, submitted atomically and never edited."""

    __tablename__ = "survey_responses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # Nullable: the delete fallback detaches responses it cannot remove
    survey_id = Column(String(36), ForeignKey("surveys.id"), nullable=True, index=True)

    # [{"question_id": "q1", "response": "5"}]
    answers = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<SurveyResponse id={self.id} survey_id={self.survey_id}>"
