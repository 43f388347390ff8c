from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import ADMIN, ALICE, BOB, SUB_ADMIN, contest_payload
from quizhub.api.deps import db_session, get_clock
from quizhub.core.config import get_settings
from quizhub.core.security import issue_access_token
from quizhub.main import create_app

PREFIX = get_settings().api_prefix


@pytest_asyncio.fixture
async def client(sessionmaker, clock):
    app = create_app()

    async def override_db():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[db_session] = override_db
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth(identity, clock) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_access_token(identity, clock=clock)}"}


def json_payload(clock, start_in: int = 0, length: int = 60, **overrides) -> dict:
    start = clock() + timedelta(minutes=start_in)
    payload = contest_payload(start, start + timedelta(minutes=length), **overrides)
    payload["startDate"] = payload["startDate"].isoformat()
    payload["endDate"] = payload["endDate"].isoformat()
    return payload


async def test_missing_token_is_401(client):
    res = await client.get(f"{PREFIX}/contests")
    assert res.status_code == 401
    assert res.json()["detail"]["code"] == "UNAUTHENTICATED"
    assert res.headers["www-authenticate"] == "Bearer"


async def test_expired_token_is_401(client, clock):
    headers = auth(ALICE, clock)
    clock.advance(minutes=get_settings().jwt_access_ttl_min)
    res = await client.get(f"{PREFIX}/me", headers=headers)
    assert res.status_code == 401


async def test_me_returns_identity(client, clock):
    res = await client.get(f"{PREFIX}/me", headers=auth(ALICE, clock))
    assert res.status_code == 200
    assert res.json() == {"id": ALICE.id, "email": ALICE.email, "role": "USER"}


async def test_player_cannot_create_contest(client, clock):
    res = await client.post(f"{PREFIX}/contests", json=json_payload(clock), headers=auth(ALICE, clock))
    assert res.status_code == 403
    assert res.json()["detail"]["code"] == "UNAUTHORIZED"


async def test_invalid_question_payload_is_422(client, clock):
    payload = json_payload(clock)
    payload["questions"][0]["correctAnswer"] = "42"
    res = await client.post(f"{PREFIX}/contests", json=payload, headers=auth(SUB_ADMIN, clock))
    assert res.status_code == 422


async def test_inverted_schedule_is_400(client, clock):
    payload = json_payload(clock, length=-10)
    res = await client.post(f"{PREFIX}/contests", json=payload, headers=auth(SUB_ADMIN, clock))
    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "INVALID_SCHEDULE"


async def test_full_contest_flow(client, clock):
    created = await client.post(f"{PREFIX}/contests", json=json_payload(clock), headers=auth(SUB_ADMIN, clock))
    assert created.status_code == 201
    contest = created.json()
    assert contest["state"] == "active"
    contest_id = contest["id"]

    play = await client.get(f"{PREFIX}/contests/{contest_id}/play", headers=auth(ALICE, clock))
    assert play.status_code == 200
    questions = play.json()["questions"]
    assert all(q["correctAnswer"] is None for q in questions)

    answers = {q["id"]: a for q, a in zip(questions, ["4", "Paris", "6"])}
    submitted = await client.post(
        f"{PREFIX}/contests/{contest_id}/attempts", json={"answers": answers}, headers=auth(ALICE, clock)
    )
    assert submitted.status_code == 201
    assert submitted.json()["score"] == 2
    assert submitted.json()["percentageScore"] == 67

    again = await client.post(
        f"{PREFIX}/contests/{contest_id}/attempts", json={"answers": answers}, headers=auth(ALICE, clock)
    )
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "DUPLICATE_ATTEMPT"

    locked = await client.patch(
        f"{PREFIX}/contests/{contest_id}",
        json={"endDate": (clock() + timedelta(hours=5)).isoformat()},
        headers=auth(SUB_ADMIN, clock),
    )
    assert locked.status_code == 409
    assert locked.json()["detail"]["code"] == "IMMUTABLE_FIELD"

    clock.advance(minutes=61)
    late = await client.post(
        f"{PREFIX}/contests/{contest_id}/attempts", json={"answers": answers}, headers=auth(BOB, clock)
    )
    assert late.status_code == 409
    assert late.json()["detail"]["code"] == "CONTEST_NOT_ACTIVE"

    board = await client.get(f"{PREFIX}/contests/{contest_id}/leaderboard", headers=auth(BOB, clock))
    assert board.status_code == 200
    body = board.json()
    assert body["frozen"] is True
    assert [e["participantId"] for e in body["entries"]] == [ALICE.id]

    mine = await client.get(f"{PREFIX}/contests/{contest_id}/attempts/me", headers=auth(ALICE, clock))
    assert mine.json()["rank"] == 1

    completed = await client.get(f"{PREFIX}/contests/completed", headers=auth(BOB, clock))
    assert [c["id"] for c in completed.json()] == [contest_id]

    history = await client.get(f"{PREFIX}/me/attempts", headers=auth(ALICE, clock))
    assert [h["contestTitle"] for h in history.json()] == ["Friday Quiz"]


async def test_admin_override_and_delete(client, clock):
    contest_id = (
        await client.post(f"{PREFIX}/contests", json=json_payload(clock), headers=auth(SUB_ADMIN, clock))
    ).json()["id"]
    await client.post(f"{PREFIX}/contests/{contest_id}/attempts", json={"answers": {}}, headers=auth(BOB, clock))

    forbidden = await client.patch(
        f"{PREFIX}/contests/{contest_id}/attempts/{BOB.id}/score", json={"score": 3}, headers=auth(SUB_ADMIN, clock)
    )
    assert forbidden.status_code == 403
    override = await client.patch(
        f"{PREFIX}/contests/{contest_id}/attempts/{BOB.id}/score",
        json={"score": 3, "reason": "regrade"},
        headers=auth(ADMIN, clock),
    )
    assert override.status_code == 200
    assert override.json()["previousScore"] == 0
    assert override.json()["score"] == 3

    deleted = await client.delete(f"{PREFIX}/contests/{contest_id}", headers=auth(ADMIN, clock))
    assert deleted.json() == {"message": "Contest deleted"}
    missing = await client.get(f"{PREFIX}/contests/{contest_id}", headers=auth(ADMIN, clock))
    assert missing.status_code == 404


async def test_submissions_are_rate_limited(client, clock, monkeypatch):
    monkeypatch.setattr(get_settings(), "submit_rate_limit", 1)
    contest_id = (
        await client.post(f"{PREFIX}/contests", json=json_payload(clock), headers=auth(SUB_ADMIN, clock))
    ).json()["id"]
    url = f"{PREFIX}/contests/{contest_id}/attempts"
    first = await client.post(url, json={"answers": {}}, headers=auth(ALICE, clock))
    second = await client.post(url, json={"answers": {}}, headers=auth(ALICE, clock))
    assert first.status_code == 201
    assert second.status_code == 429
    assert second.json()["detail"]["code"] == "RATE_LIMITED"


@pytest.mark.parametrize("path", ["/health/live", "/metrics"])
async def test_probes_need_no_token(client, path):
    res = await client.get(f"{PREFIX}{path}")
    assert res.status_code == 200


async def test_request_id_is_echoed(client):
    res = await client.get(f"{PREFIX}/health/live", headers={"X-Request-ID": "probe-42"})
    assert res.headers["x-request-id"] == "probe-42"


async def test_patch_with_empty_question_list_is_422(client, clock):
    contest_id = (
        await client.post(f"{PREFIX}/contests", json=json_payload(clock, start_in=60), headers=auth(SUB_ADMIN, clock))
    ).json()["id"]
    res = await client.patch(f"{PREFIX}/contests/{contest_id}", json={"questions": []}, headers=auth(SUB_ADMIN, clock))
    assert res.status_code == 422
