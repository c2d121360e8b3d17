"""Tests for topics, follows and the question feed filters."""
import asyncio

import pytest

from polygram.infra.db.repositories.user_repo import UserRepositoryImpl

pytestmark = pytest.mark.integration


async def test_create_topic_is_admin_only(client, settings_override):
    settings_override(master_password="let-me-in")

    response = await client.post("/api/topics", json={"name": "music", "master_password": "nope"})
    assert response.status_code == 401

    response = await client.post("/api/topics", json={"name": "music", "master_password": "let-me-in"})
    assert response.status_code == 201
    assert response.json()["data"]["topic"]["name"] == "music"

    response = await client.post("/api/topics", json={"name": "music", "master_password": "let-me-in"})
    assert response.status_code == 409


async def test_create_topic_disabled_without_master_password(client):
    response = await client.post("/api/topics", json={"name": "music", "master_password": ""})

    assert response.status_code == 401


async def test_follow_and_unfollow(client_factory, make_user, make_topics):
    await make_topics("science", "sports", "music")
    client = client_factory(await make_user("fan1"))

    response = await client.post("/api/topics/follow", json={"topics": ["science", "sports"]})
    assert response.status_code == 200
    assert response.json()["data"]["followed_topics"] == ["science", "sports"]

    response = await client.post("/api/topics/follow", json={"topics": ["sports", "music"]})
    assert response.json()["data"]["followed_topics"] == ["science", "sports", "music"]

    response = await client.post("/api/topics/unfollow", json={"topics": ["sports", "unknown"]})
    assert response.json()["data"]["followed_topics"] == ["science", "music"]

    me = (await client.get("/api/users/me")).json()["data"]["user"]
    assert me["followed_topics"] == ["science", "music"]


async def test_follow_unknown_topic(client_factory, make_user, make_topics):
    await make_topics("science")
    client = client_factory(await make_user("fan1"))

    response = await client.post("/api/topics/follow", json={"topics": ["science", "astrology"]})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Some or all topics provided does not exist"


async def test_list_with_counts_search_and_flags(client_factory, make_user, make_topics, create_question):
    await make_topics("science", "sports", "music")
    user = await make_user("fan1")
    client = client_factory(user)
    await client.post("/api/topics/follow", json={"topics": ["music"]})
    await create_question(client, topics=("science", "music"))
    await create_question(client, topics=("music",), title="Second question about music?")

    response = await client.get("/api/topics", params={"count": "true"})
    topics = {t["name"]: t for t in response.json()["data"]["topics"]}
    assert topics["music"]["question_count"] == 2
    assert topics["science"]["question_count"] == 1
    assert topics["sports"]["question_count"] == 0
    assert topics["music"]["followed_by_user"] is True
    assert topics["science"]["followed_by_user"] is False

    response = await client.get("/api/topics", params={"search": "SPO"})
    assert [t["name"] for t in response.json()["data"]["topics"]] == ["sports"]

    response = await client_factory().get("/api/topics")
    assert all(t["question_count"] is None for t in response.json()["data"]["topics"])


async def test_get_topic(client, make_topics):
    (topic_id,) = await make_topics("science")

    response = await client.get(f"/api/topics/{topic_id}")
    assert response.status_code == 200
    assert response.json()["data"]["topic"]["name"] == "science"

    assert (await client.get("/api/topics/" + "c" * 24)).status_code == 404


async def test_question_feed_filters(client_factory, make_user, make_topics, create_question):
    await make_topics("science", "sports")
    alice = await make_user("alice")
    bobby = await make_user("bobby")
    alice_client = client_factory(alice)
    bobby_client = client_factory(bobby)
    science = await create_question(alice_client, topics=("science",), title="Is light a wave or particle?")
    sports = await create_question(bobby_client, topics=("sports",), title="Who wins the league this year?")

    async def ids(client, **params):
        response = await client.get("/api/questions", params=params)
        assert response.status_code == 200, response.text
        return [q["id"] for q in response.json()["data"]["questions"]]

    assert await ids(alice_client) == [sports["id"], science["id"]]
    assert await ids(alice_client, topic="sports") == [sports["id"]]
    assert await ids(alice_client, user_id=alice.id) == [science["id"]]
    assert await ids(alice_client, search="LEAGUE") == [sports["id"]]

    # no followed topics: no filter
    assert await ids(alice_client, following="true") == [sports["id"], science["id"]]
    await alice_client.post("/api/topics/follow", json={"topics": ["science"]})
    assert await ids(alice_client, following="true") == [science["id"]]


async def test_question_validation(client_factory, make_user, make_topics):
    await make_topics("science")
    client = client_factory(await make_user("alice"))
    base = {
        "title": "What is the best option here?",
        "content": "Which of these options would you pick and why do you think so?",
        "options": ["A", "B"],
        "topics": ["science"],
    }

    response = await client.post("/api/questions", json={**base, "topics": ["unknown"]})
    assert response.status_code == 400

    response = await client.post("/api/questions", json={**base, "options": ["A", "A"]})
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "options must be unique"

    response = await client.post("/api/questions", json={**base, "options": ["A"]})
    assert response.status_code == 400

    response = await client.post("/api/questions", json={**base, "title": "Too short"})
    assert response.status_code == 400

    response = await client_factory().post("/api/questions", json=base)
    assert response.status_code == 401


async def test_concurrent_follows_keep_every_topic(client_factory, make_user, make_topics, session_factory):
    await make_topics("science", "sports", "music")
    user = await make_user("fan1")
    first, second = client_factory(user), client_factory(user)

    responses = await asyncio.gather(
        first.post("/api/topics/follow", json={"topics": ["science"]}),
        second.post("/api/topics/follow", json={"topics": ["sports"]}),
    )

    assert [r.status_code for r in responses] == [200, 200]
    async with session_factory() as session:
        stored = await UserRepositoryImpl(session).get_followed_topics(user.id)
    assert sorted(stored) == ["science", "sports"]


async def test_concurrent_follow_and_unfollow(client_factory, make_user, make_topics, session_factory):
    await make_topics("science", "sports", "music")
    user = await make_user("fan1")
    client = client_factory(user)
    await client.post("/api/topics/follow", json={"topics": ["science", "sports"]})

    await asyncio.gather(
        client_factory(user).post("/api/topics/unfollow", json={"topics": ["science"]}),
        client_factory(user).post("/api/topics/follow", json={"topics": ["music"]}),
    )

    me = (await client.get("/api/users/me")).json()["data"]["user"]
    assert sorted(me["followed_topics"]) == ["music", "sports"]
