"""Opinion and vote database models."""
from datetime import datetime
import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, UniqueConstraint

from polygram.infra.db.base import Base


class VoteKind(str, enum.Enum):
    UP = "up"
    DOWN = "down"


class OpinionModel(Base):
    """A user's opinion on one option of a question. One per (question, author)."""

    __tablename__ = "opinions"

    id = Column(String(24), primary_key=True)
    question_id = Column(String(24), ForeignKey("questions.id"), nullable=False, index=True)
    author_id = Column(String(24), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    option = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("question_id", "author_id", name="uq_opinion_question_author"),
    )


class OpinionVoteModel(Base):
    """Vote ledger row. The (opinion, user) key keeps upvotes and downvotes disjoint."""

    __tablename__ = "opinion_votes"

    opinion_id = Column(String(24), ForeignKey("opinions.id"), primary_key=True)
    user_id = Column(String(24), ForeignKey("users.id"), primary_key=True, index=True)
    kind = Column(String(4), nullable=False)  # VoteKind value
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
