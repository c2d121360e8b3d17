"""Tests for cursor pagination."""
import pytest

from polygram.domain.common.errors import ValidationError
from polygram.domain.common.pagination import CursorParams, build_cursor_query
from polygram.domain.common.types import generate_id


def test_defaults_when_no_params():
    query = build_cursor_query(CursorParams(), default_size=10, min_size=5, max_size=50)

    assert query.limit == 10
    assert query.id_gt is None
    assert query.id_lt is None
    assert query.descending is True


def test_after_id_wins_over_before_id():
    after, before = generate_id(), generate_id()

    query = build_cursor_query(
        CursorParams(before_id=before, after_id=after), default_size=5
    )

    assert query.id_gt == after
    assert query.id_lt is None


def test_before_id_bounds_from_above():
    before = generate_id()

    query = build_cursor_query(CursorParams(before_id=before), default_size=5)

    assert query.id_lt == before


@pytest.mark.parametrize("page_size", [0, 4, 51])
def test_page_size_out_of_range(page_size):
    with pytest.raises(ValidationError) as exc:
        build_cursor_query(
            CursorParams(page_size=page_size), default_size=10, min_size=5, max_size=50
        )
    assert exc.value.field == "page_size"


def test_malformed_cursor_rejected():
    with pytest.raises(ValidationError) as exc:
        build_cursor_query(CursorParams(after_id="not-an-id"), default_size=5)
    assert exc.value.field == "after_id"


def test_none_filters_are_dropped():
    query = build_cursor_query(
        CursorParams(), default_size=5, filters={"search": None, "topic": "science"}
    )

    assert query.filters == {"topic": "science"}


async def test_topic_pages_follow_cursor(client, make_topics):
    ids = await make_topics(*[f"topic{i}" for i in range(8)])

    response = await client.get("/api/topics", params={"page_size": 5})
    assert response.status_code == 200
    first_page = [t["id"] for t in response.json()["data"]["topics"]]
    assert first_page == sorted(ids, reverse=True)[:5]

    response = await client.get(
        "/api/topics", params={"page_size": 5, "before_id": first_page[-1]}
    )
    second_page = [t["id"] for t in response.json()["data"]["topics"]]
    assert second_page == sorted(ids, reverse=True)[5:]

    pivot = ids[2]
    response = await client.get("/api/topics", params={"page_size": 5, "after_id": pivot})
    newer = [t["id"] for t in response.json()["data"]["topics"]]
    assert len(newer) == 5
    assert all(i > pivot for i in newer)
    assert newer == sorted(newer, reverse=True)


async def test_invalid_page_size_is_400(client):
    response = await client.get("/api/questions", params={"page_size": 2})

    assert response.status_code == 400
    assert response.json()["error"] == {
        "status": 400,
        "message": "page_size must be between 5 and 50",
    }
