"""Topic database models."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey

from polygram.infra.db.base import Base


class TopicModel(Base):
    """Topic. Questions and users reference topics by name, not id."""

    __tablename__ = "topics"

    id = Column(String(24), primary_key=True)
    name = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class QuestionTopicModel(Base):
    """Index from topic name to the questions tagged with it."""

    __tablename__ = "question_topics"

    question_id = Column(String(24), ForeignKey("questions.id"), primary_key=True)
    topic_name = Column(String, primary_key=True, index=True)
