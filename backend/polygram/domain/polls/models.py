"""Polls domain models."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from polygram.domain.polls.aggregation import OptionPercentage


@dataclass
class AuthorSummary:
    """Public fields of a user shown next to their content."""
    id: str
    username: str
    first_name: str
    last_name: Optional[str]
    profile_picture: Optional[str]


@dataclass
class VoteCounts:
    """Vote totals of one opinion after a vote action."""
    upvote_count: int
    downvote_count: int


@dataclass
class Question:
    """Question domain model. Options are fixed at creation."""
    id: str
    author: AuthorSummary
    title: str
    content: str
    options: list[str]
    topics: list[str]
    created_at: datetime


@dataclass
class QuestionDetail:
    """Question with the percentage breakdown over its options."""
    question: Question
    options: list[OptionPercentage]
    opinion_count: int


@dataclass
class Opinion:
    """Opinion domain model as listed under a question."""
    id: str
    question_id: str
    author: AuthorSummary
    content: str
    option: str
    upvote_count: int
    downvote_count: int
    created_at: datetime
    is_upvoted: Optional[bool] = None  # None when there is no viewer
    is_downvoted: Optional[bool] = None


@dataclass
class Topic:
    """Topic domain model."""
    id: str
    name: str
    created_at: datetime
    followed_by_user: bool = False
    question_count: Optional[int] = None


@dataclass
class Notification:
    """Notification domain model."""
    id: str
    receiver_id: str
    type: str
    message: str
    has_read: bool
    created_at: datetime
    sender: Optional[AuthorSummary] = None
    target_content_id: Optional[str] = None


@dataclass
class Page:
    """One cursor page of results."""
    items: list = field(default_factory=list)
