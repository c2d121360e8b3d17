"""Tests for the opinion vote ledger (/api/opinions/{id}/upvote|downvote)."""
import pytest

from polygram.infra.db.models.opinion import VoteKind
from polygram.infra.db.repositories.opinion_repo import OpinionRepository

pytestmark = pytest.mark.integration


@pytest.fixture
async def opinion_setup(client_factory, make_user, make_topics, create_question, create_opinion):
    await make_topics("science")
    author = await make_user("author")
    responder = await make_user("responder")
    voter = await make_user("voter")
    question = await create_question(client_factory(author))
    opinion = await create_opinion(client_factory(responder), question["id"])
    return {
        "question": question,
        "opinion": opinion,
        "responder": responder,
        "voter": voter,
        "voter_client": client_factory(voter),
    }


async def test_new_opinion_is_upvoted_by_its_author(opinion_setup, session_factory):
    opinion = opinion_setup["opinion"]

    assert opinion["upvote_count"] == 1
    assert opinion["downvote_count"] == 0
    async with session_factory() as session:
        repo = OpinionRepository(session)
        assert await repo.has_vote(opinion["id"], opinion_setup["responder"].id, VoteKind.UP)


async def test_upvote_then_downvote_switches_sides(opinion_setup, session_factory):
    client = opinion_setup["voter_client"]
    opinion_id = opinion_setup["opinion"]["id"]
    voter = opinion_setup["voter"]

    response = await client.post(f"/api/opinions/{opinion_id}/upvote")
    assert response.status_code == 201
    assert response.json()["data"] == {"upvote_count": 2, "downvote_count": 0}

    response = await client.post(f"/api/opinions/{opinion_id}/downvote")
    assert response.json()["data"] == {"upvote_count": 1, "downvote_count": 1}

    async with session_factory() as session:
        repo = OpinionRepository(session)
        assert not await repo.has_vote(opinion_id, voter.id, VoteKind.UP)
        assert await repo.has_vote(opinion_id, voter.id, VoteKind.DOWN)


async def test_repeated_upvote_counts_once(opinion_setup):
    client = opinion_setup["voter_client"]
    opinion_id = opinion_setup["opinion"]["id"]

    await client.post(f"/api/opinions/{opinion_id}/upvote")
    response = await client.post(f"/api/opinions/{opinion_id}/upvote")

    assert response.json()["data"] == {"upvote_count": 2, "downvote_count": 0}


async def test_removing_a_vote_never_cast_is_a_no_op(opinion_setup):
    client = opinion_setup["voter_client"]
    opinion_id = opinion_setup["opinion"]["id"]

    response = await client.delete(f"/api/opinions/{opinion_id}/downvote")
    assert response.status_code == 200
    assert response.json()["data"] == {"upvote_count": 1, "downvote_count": 0}

    response = await client.delete(f"/api/opinions/{opinion_id}/upvote")
    assert response.json()["data"] == {"upvote_count": 1, "downvote_count": 0}


async def test_remove_only_touches_the_named_side(opinion_setup):
    client = opinion_setup["voter_client"]
    opinion_id = opinion_setup["opinion"]["id"]
    await client.post(f"/api/opinions/{opinion_id}/downvote")

    response = await client.delete(f"/api/opinions/{opinion_id}/upvote")
    assert response.json()["data"] == {"upvote_count": 1, "downvote_count": 1}

    response = await client.delete(f"/api/opinions/{opinion_id}/downvote")
    assert response.json()["data"] == {"upvote_count": 1, "downvote_count": 0}


async def test_vote_on_missing_opinion(opinion_setup):
    client = opinion_setup["voter_client"]

    response = await client.post("/api/opinions/" + "f" * 24 + "/upvote")
    assert response.status_code == 404

    response = await client.post("/api/opinions/not-an-id/upvote")
    assert response.status_code == 400


async def test_voting_requires_session(opinion_setup, client):
    opinion_id = opinion_setup["opinion"]["id"]

    response = await client.post(f"/api/opinions/{opinion_id}/upvote")

    assert response.status_code == 401


async def test_viewer_flags_in_listing(opinion_setup, client):
    question_id = opinion_setup["question"]["id"]
    voter_client = opinion_setup["voter_client"]
    opinion_id = opinion_setup["opinion"]["id"]
    await voter_client.post(f"/api/opinions/{opinion_id}/downvote")

    response = await voter_client.get("/api/opinions", params={"question_id": question_id})
    (listed,) = response.json()["data"]["opinions"]
    assert listed["is_upvoted"] is False
    assert listed["is_downvoted"] is True
    assert listed["downvote_count"] == 1

    response = await client.get("/api/opinions", params={"question_id": question_id})
    (anonymous,) = response.json()["data"]["opinions"]
    assert anonymous["is_upvoted"] is None
    assert anonymous["is_downvoted"] is None
