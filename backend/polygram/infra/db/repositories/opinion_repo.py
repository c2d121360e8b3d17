"""Opinion repository and vote ledger."""
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, or_

from polygram.domain.common.pagination import CursorQuery
from polygram.domain.common.types import utc_now
from polygram.domain.polls.aggregation import OpinionTally
from polygram.domain.polls.models import VoteCounts
from polygram.infra.db.base import dialect_insert
from polygram.infra.db.models.opinion import OpinionModel, OpinionVoteModel, VoteKind
from polygram.infra.db.models.user import UserModel


@dataclass
class OpinionRow:
    """Opinion joined with its author, vote counts and the viewer's vote."""

    opinion: OpinionModel
    author: UserModel
    upvote_count: int
    downvote_count: int
    viewer_vote: Optional[str] = None


def _vote_count(kind: VoteKind):
    return (
        select(func.count())
        .select_from(OpinionVoteModel)
        .where(OpinionVoteModel.opinion_id == OpinionModel.id, OpinionVoteModel.kind == kind.value)
        .correlate(OpinionModel)
        .scalar_subquery()
    )


class OpinionRepository:
    """Opinion repository. Writes are flushed, never committed."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, opinion: OpinionModel) -> OpinionModel:
        self.session.add(opinion)
        await self.session.flush()
        return opinion

    async def get(self, opinion_id: str) -> Optional[OpinionModel]:
        result = await self.session.execute(select(OpinionModel).where(OpinionModel.id == opinion_id))
        return result.scalar_one_or_none()

    async def exists_for(self, question_id: str, author_id: str) -> bool:
        """Whether the author already has an opinion on the question."""
        result = await self.session.execute(
            select(OpinionModel.id).where(
                OpinionModel.question_id == question_id,
                OpinionModel.author_id == author_id,
            )
        )
        return result.first() is not None

    async def find_page(
        self, query: CursorQuery, viewer_id: Optional[str] = None
    ) -> list[OpinionRow]:
        """Page of opinions on ``question_id`` (a required filter)."""
        columns = [
            OpinionModel,
            UserModel,
            _vote_count(VoteKind.UP).label("upvote_count"),
            _vote_count(VoteKind.DOWN).label("downvote_count"),
        ]
        if viewer_id is not None:
            columns.append(
                select(OpinionVoteModel.kind)
                .where(
                    OpinionVoteModel.opinion_id == OpinionModel.id,
                    OpinionVoteModel.user_id == viewer_id,
                )
                .correlate(OpinionModel)
                .scalar_subquery()
                .label("viewer_vote")
            )
        q = (
            select(*columns)
            .join(UserModel, UserModel.id == OpinionModel.author_id)
            .where(OpinionModel.question_id == query.filters["question_id"])
        )
        result = await self.session.execute(query.apply(q, OpinionModel.id))
        return [
            OpinionRow(
                opinion=row[0],
                author=row[1],
                upvote_count=row[2] or 0,
                downvote_count=row[3] or 0,
                viewer_vote=row[4] if viewer_id is not None else None,
            )
            for row in result.all()
        ]

    async def tallies_for_question(self, question_id: str) -> list[OpinionTally]:
        """(option, upvotes, downvotes) for every opinion on a question."""
        result = await self.session.execute(
            select(
                OpinionModel.option,
                _vote_count(VoteKind.UP),
                _vote_count(VoteKind.DOWN),
            ).where(OpinionModel.question_id == question_id)
        )
        return [
            OpinionTally(option=option, upvotes=up or 0, downvotes=down or 0)
            for option, up, down in result.all()
        ]

    # Vote ledger

    async def set_vote(self, opinion_id: str, user_id: str, kind: VoteKind) -> None:
        """Record the user's vote, replacing an opposite vote in the same statement."""
        stmt = dialect_insert(self.session, OpinionVoteModel).values(
            opinion_id=opinion_id,
            user_id=user_id,
            kind=kind.value,
            created_at=utc_now(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[OpinionVoteModel.opinion_id, OpinionVoteModel.user_id],
            set_={"kind": kind.value, "created_at": stmt.excluded.created_at},
        )
        await self.session.execute(stmt)

    async def remove_vote(self, opinion_id: str, user_id: str, kind: VoteKind) -> int:
        """Remove the user's vote of this kind only. Returns rows removed (0 is fine)."""
        result = await self.session.execute(
            delete(OpinionVoteModel).where(
                OpinionVoteModel.opinion_id == opinion_id,
                OpinionVoteModel.user_id == user_id,
                OpinionVoteModel.kind == kind.value,
            )
        )
        return result.rowcount or 0

    async def vote_counts(self, opinion_id: str) -> VoteCounts:
        result = await self.session.execute(
            select(OpinionVoteModel.kind, func.count())
            .where(OpinionVoteModel.opinion_id == opinion_id)
            .group_by(OpinionVoteModel.kind)
        )
        counts = dict(result.all())
        return VoteCounts(
            upvote_count=counts.get(VoteKind.UP.value, 0),
            downvote_count=counts.get(VoteKind.DOWN.value, 0),
        )

    async def has_vote(self, opinion_id: str, user_id: str, kind: VoteKind) -> bool:
        result = await self.session.execute(
            select(OpinionVoteModel.kind).where(
                OpinionVoteModel.opinion_id == opinion_id,
                OpinionVoteModel.user_id == user_id,
                OpinionVoteModel.kind == kind.value,
            )
        )
        return result.first() is not None

    # Deletes

    async def delete(self, opinion_id: str) -> int:
        """Delete one opinion and its votes."""
        await self.session.execute(
            delete(OpinionVoteModel).where(OpinionVoteModel.opinion_id == opinion_id)
        )
        result = await self.session.execute(delete(OpinionModel).where(OpinionModel.id == opinion_id))
        return result.rowcount or 0

    async def delete_by_questions(self, question_ids: list[str]) -> int:
        """Delete every opinion (and its votes) on the given questions."""
        if not question_ids:
            return 0
        opinion_ids = select(OpinionModel.id).where(OpinionModel.question_id.in_(question_ids))
        await self.session.execute(
            delete(OpinionVoteModel).where(OpinionVoteModel.opinion_id.in_(opinion_ids))
        )
        result = await self.session.execute(
            delete(OpinionModel).where(OpinionModel.question_id.in_(question_ids))
        )
        return result.rowcount or 0

    async def delete_by_author(self, author_id: str) -> int:
        """Delete the author's opinions, their votes, and every vote the author cast."""
        opinion_ids = select(OpinionModel.id).where(OpinionModel.author_id == author_id)
        await self.session.execute(
            delete(OpinionVoteModel).where(
                or_(
                    OpinionVoteModel.user_id == author_id,
                    OpinionVoteModel.opinion_id.in_(opinion_ids),
                )
            )
        )
        result = await self.session.execute(
            delete(OpinionModel).where(OpinionModel.author_id == author_id)
        )
        return result.rowcount or 0
