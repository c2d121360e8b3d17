"""Question database model."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Text

from polygram.infra.db.base import Base, JSONBType


class QuestionModel(Base):
    """Question with an immutable ordered list of options."""

    __tablename__ = "questions"

    id = Column(String(24), primary_key=True)
    author_id = Column(String(24), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    options = Column(JSONBType, nullable=False)  # ordered list of strings
    topics = Column(JSONBType, nullable=False)  # topic names, mirrored in question_topics
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
