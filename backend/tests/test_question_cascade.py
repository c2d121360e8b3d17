"""Tests for the question, opinion and account cascades, including rollbacks."""
import pytest
from sqlalchemy import func, select

from polygram.infra.db.models.device import DeviceModel
from polygram.infra.db.models.notification import NotificationModel
from polygram.infra.db.models.opinion import OpinionModel, OpinionVoteModel
from polygram.infra.db.models.picture import PictureModel
from polygram.infra.db.models.question import QuestionModel
from polygram.infra.db.models.topic import QuestionTopicModel
from polygram.infra.db.models.user import UserModel
from polygram.infra.db.repositories.notification_repo import NotificationRepository
from polygram.infra.db.repositories.question_repo import QuestionRepository

pytestmark = pytest.mark.integration

PASSWORD = "Passw0rd!"


async def _count(session_factory, model, *where):
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(model).where(*where))
        return result.scalar()


@pytest.fixture
async def populated(client_factory, make_user, make_topics, create_question, create_opinion):
    """Author with a question; a responder who also asked one and answered the author's."""
    await make_topics("science")
    author = await make_user("author")
    responder = await make_user("responder")
    author_client = client_factory(author)
    responder_client = client_factory(responder)

    question = await create_question(author_client)
    other_question = await create_question(responder_client, title="Another question for everyone?")
    answer = await create_opinion(responder_client, question["id"], "A")
    reply = await create_opinion(author_client, other_question["id"], "B")
    await author_client.post(f"/api/opinions/{answer['id']}/downvote")
    await author_client.post(
        "/api/notifications/subscribe", json={"push_token": "device-token-123", "platform": "web"}
    )
    return {
        "author": author,
        "responder": responder,
        "author_client": author_client,
        "responder_client": responder_client,
        "question": question,
        "other_question": other_question,
        "answer": answer,
        "reply": reply,
    }


async def test_delete_question_removes_its_opinions_and_votes(populated, session_factory):
    question_id = populated["question"]["id"]

    response = await populated["author_client"].delete(f"/api/questions/{question_id}")

    assert response.status_code == 200
    assert await _count(session_factory, QuestionModel, QuestionModel.id == question_id) == 0
    assert await _count(session_factory, OpinionModel, OpinionModel.question_id == question_id) == 0
    assert await _count(
        session_factory, OpinionVoteModel, OpinionVoteModel.opinion_id == populated["answer"]["id"]
    ) == 0
    assert await _count(
        session_factory, QuestionTopicModel, QuestionTopicModel.question_id == question_id
    ) == 0
    # the other question is untouched
    assert await _count(session_factory, OpinionModel) == 1


async def test_only_author_deletes_question(populated, client_factory):
    question_id = populated["question"]["id"]

    response = await populated["responder_client"].delete(f"/api/questions/{question_id}")
    assert response.status_code == 401

    response = await populated["author_client"].delete("/api/questions/" + "b" * 24)
    assert response.status_code == 404


async def test_delete_account_removes_everything_linked(populated, session_factory):
    author = populated["author"]
    client = populated["author_client"]
    data = "data:image/png;base64," + "A" * 8000
    assert (await client.put("/api/users/profile-picture", json={"image": data})).status_code == 201

    response = await client.post("/api/users/delete-account", json={"password": PASSWORD})

    assert response.status_code == 200
    assert await _count(session_factory, UserModel, UserModel.id == author.id) == 0
    assert await _count(session_factory, QuestionModel, QuestionModel.author_id == author.id) == 0
    # the responder's opinion on the author's question goes with it
    assert await _count(session_factory, OpinionModel) == 0
    assert await _count(session_factory, OpinionVoteModel) == 0
    assert await _count(session_factory, PictureModel, PictureModel.owner_key == author.username) == 0
    assert await _count(session_factory, DeviceModel) == 0
    assert await _count(
        session_factory,
        NotificationModel,
        (NotificationModel.receiver_id == author.id) | (NotificationModel.sender_id == author.id),
    ) == 0
    # the responder's own question survives
    assert await _count(session_factory, QuestionModel) == 1
    assert (await client.get("/api/users/me")).status_code == 401


async def test_delete_account_wrong_password(populated):
    response = await populated["author_client"].post(
        "/api/users/delete-account", json={"password": "Wr0ng-pass"}
    )

    assert response.status_code == 401


async def test_failed_cascade_rolls_back(populated, session_factory, monkeypatch):
    author = populated["author"]

    async def broken(self, user_id):
        raise RuntimeError("storage went away")

    monkeypatch.setattr(NotificationRepository, "delete_for_user", broken)

    response = await populated["author_client"].post(
        "/api/users/delete-account", json={"password": PASSWORD}
    )

    assert response.status_code == 500
    assert response.json()["error"] == {"status": 500, "message": "Error deleting account"}
    assert await _count(session_factory, UserModel, UserModel.id == author.id) == 1
    assert await _count(session_factory, QuestionModel) == 2
    assert await _count(session_factory, OpinionModel) == 2
    assert await _count(session_factory, OpinionVoteModel) == 3
    assert await _count(session_factory, DeviceModel) == 1


async def test_failed_question_delete_rolls_back(populated, session_factory, monkeypatch):
    question_id = populated["question"]["id"]

    async def broken(self, question_ids):
        raise RuntimeError("storage went away")

    monkeypatch.setattr(QuestionRepository, "delete_many", broken)

    response = await populated["author_client"].delete(f"/api/questions/{question_id}")

    assert response.status_code == 500
    assert response.json()["error"] == {"status": 500, "message": "Error deleting question"}
    assert await _count(session_factory, QuestionModel, QuestionModel.id == question_id) == 1
    assert await _count(session_factory, OpinionModel, OpinionModel.question_id == question_id) == 1
    assert await _count(
        session_factory, OpinionVoteModel, OpinionVoteModel.opinion_id == populated["answer"]["id"]
    ) == 2


async def test_failed_opinion_notification_rolls_back(
    populated, client_factory, make_user, session_factory, monkeypatch
):
    newcomer = await make_user("newcomer")

    async def broken(self, notification):
        raise RuntimeError("storage went away")

    monkeypatch.setattr(NotificationRepository, "add", broken)

    response = await client_factory(newcomer).post(
        "/api/opinions",
        json={"question_id": populated["question"]["id"], "content": "My reasoning here", "option": "B"},
    )

    assert response.status_code == 500
    assert response.json()["error"] == {"status": 500, "message": "Error creating opinion"}
    assert await _count(session_factory, OpinionModel, OpinionModel.author_id == newcomer.id) == 0
    assert await _count(session_factory, OpinionVoteModel, OpinionVoteModel.user_id == newcomer.id) == 0
    assert await _count(session_factory, OpinionModel) == 2
