"""Tests for opinions and the question percentage breakdown."""
import pytest
from sqlalchemy import select

from polygram.infra.db.models.notification import NotificationModel

pytestmark = pytest.mark.integration


@pytest.fixture
async def question_setup(client_factory, make_user, make_topics, create_question):
    await make_topics("science")
    author = await make_user("author")
    question = await create_question(client_factory(author))
    return {"author": author, "question": question}


async def test_one_opinion_per_user_per_question(question_setup, client_factory, make_user, create_opinion):
    user = await make_user("responder")
    client = client_factory(user)
    question_id = question_setup["question"]["id"]
    await create_opinion(client, question_id)

    response = await client.post(
        "/api/opinions",
        json={"question_id": question_id, "content": "Second thoughts", "option": "B"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["message"] == "User can only post single opinion for a question"


async def test_option_must_belong_to_question(question_setup, client_factory, make_user):
    client = client_factory(await make_user("responder"))

    response = await client.post(
        "/api/opinions",
        json={"question_id": question_setup["question"]["id"], "content": "Neither", "option": "C"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid option"


async def test_opinion_on_missing_question(client_factory, make_user):
    client = client_factory(await make_user("responder"))

    response = await client.post(
        "/api/opinions",
        json={"question_id": "e" * 24, "content": "Hello there", "option": "A"},
    )

    assert response.status_code == 404


async def test_opinion_notifies_question_author(question_setup, client_factory, make_user, create_opinion, session_factory):
    responder = await make_user("responder")
    question = question_setup["question"]
    await create_opinion(client_factory(responder), question["id"])

    async with session_factory() as session:
        (note,) = (await session.execute(select(NotificationModel))).scalars().all()
    assert note.receiver_id == question_setup["author"].id
    assert note.sender_id == responder.id
    assert note.type == "added-opinion"
    assert note.target_content_id == question["id"]
    assert note.message == question["title"]


async def test_question_detail_percentages(question_setup, client_factory, make_user, create_opinion, client):
    question_id = question_setup["question"]["id"]
    u1, u2, u3, u4 = [client_factory(await make_user(f"user{i}")) for i in range(1, 5)]
    on_a = await create_opinion(u1, question_id, "A")
    on_b = await create_opinion(u2, question_id, "B")
    # A: 3 up / 0 down, B: 1 up / 1 down
    await u3.post(f"/api/opinions/{on_a['id']}/upvote")
    await u4.post(f"/api/opinions/{on_a['id']}/upvote")
    await u3.post(f"/api/opinions/{on_b['id']}/downvote")

    response = await client.get(f"/api/questions/{question_id}")

    assert response.status_code == 200
    question = response.json()["data"]["question"]
    percentages = {o["option"]: o["percentage"] for o in question["options"]}
    assert percentages["A"] == pytest.approx(66.67, abs=0.01)
    assert percentages["B"] == pytest.approx(33.33, abs=0.01)
    assert question["opinion_count"] == 2
    assert question["author"]["username"] == "author"


async def test_question_without_opinions_is_all_zero(question_setup, client):
    response = await client.get(f"/api/questions/{question_setup['question']['id']}")

    options = response.json()["data"]["question"]["options"]
    assert options == [{"option": "A", "percentage": 0.0}, {"option": "B", "percentage": 0.0}]


async def test_only_author_deletes_opinion(question_setup, client_factory, make_user, create_opinion):
    owner = client_factory(await make_user("responder"))
    other = client_factory(await make_user("intruder"))
    opinion = await create_opinion(owner, question_setup["question"]["id"])

    response = await other.delete(f"/api/opinions/{opinion['id']}")
    assert response.status_code == 401

    response = await owner.delete(f"/api/opinions/{opinion['id']}")
    assert response.status_code == 200

    response = await owner.delete(f"/api/opinions/{opinion['id']}")
    assert response.status_code == 404


async def test_opinion_list_requires_question_id(client):
    response = await client.get("/api/opinions")

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "question_id field cannot be empty"
