from datetime import timedelta

import pytest
from sqlalchemy import select

from conftest import ADMIN, ALICE, BOB, SUB_ADMIN, answers_for, contest_payload, question
from quizhub.core.constants import ContestState
from quizhub.core.errors import (
    ContestNotActive,
    DuplicateAttempt,
    ImmutableField,
    InvalidContest,
    InvalidSchedule,
    NotFound,
    Unauthenticated,
    Unauthorized,
)
from quizhub.models.domain import Attempt, AuditLog
from quizhub.services.attempt_service import AttemptService
from quizhub.services.contest_service import ContestService


async def test_create_rejects_start_not_before_end(db, clock):
    service = ContestService(db, clock)
    with pytest.raises(InvalidSchedule) as exc:
        await service.create_contest(SUB_ADMIN, contest_payload(clock(), clock()))
    assert exc.value.status_code == 400
    with pytest.raises(InvalidSchedule):
        await service.create_contest(SUB_ADMIN, contest_payload(clock() + timedelta(hours=1), clock()))


async def test_create_without_dates_is_draft(make_contest):
    detail = await make_contest(start_in=None)
    assert detail["state"] == ContestState.DRAFT.value
    assert detail["startDate"] is None
    assert detail["totalQuestions"] == 3
    assert detail["creatorId"] == SUB_ADMIN.id


async def test_create_with_future_dates_is_scheduled(make_contest):
    detail = await make_contest(start_in=60)
    assert detail["state"] == ContestState.SCHEDULED.value
    assert [q["options"] for q in detail["questions"]][0] == ["3", "4", "5"]
    assert detail["questions"][0]["correctAnswer"] == "4"


async def test_create_requires_staff_role(db, clock):
    service = ContestService(db, clock)
    with pytest.raises(Unauthorized):
        await service.create_contest(ALICE, contest_payload())
    with pytest.raises(Unauthenticated):
        await service.create_contest(None, contest_payload())


async def test_answer_key_is_hidden_from_players(db, clock, make_contest):
    detail = await make_contest(start_in=60)
    service = ContestService(db, clock)
    player_view = await service.get_contest(detail["id"], ALICE)
    staff_view = await service.get_contest(detail["id"], SUB_ADMIN)
    assert all(q["correctAnswer"] is None for q in player_view["questions"])
    assert [q["correctAnswer"] for q in staff_view["questions"]] == ["4", "Paris", "9"]


async def test_unknown_contest_is_not_found(db, clock):
    from uuid import uuid4

    with pytest.raises(NotFound) as exc:
        await ContestService(db, clock).get_contest(uuid4(), ALICE)
    assert exc.value.status_code == 404


async def test_scheduled_contest_is_fully_editable(db, clock, make_contest):
    detail = await make_contest(start_in=60)
    service = ContestService(db, clock)
    updated = await service.update_contest(
        detail["id"],
        SUB_ADMIN,
        {
            "title": "Saturday Quiz",
            "startDate": clock() + timedelta(hours=2),
            "endDate": clock() + timedelta(hours=3),
            "scoringType": "weighted",
            "questions": [question("1 + 1", ["2", "3"], "2")],
        },
    )
    assert updated["title"] == "Saturday Quiz"
    assert updated["scoringType"] == "weighted"
    assert updated["totalQuestions"] == 1
    assert updated["questions"][0]["text"] == "1 + 1"


async def test_questions_can_be_appended(db, clock, make_contest):
    detail = await make_contest(start_in=60)
    updated = await ContestService(db, clock).update_contest(
        detail["id"],
        SUB_ADMIN,
        {"questions": [question("Largest ocean", ["Pacific", "Atlantic"], "Pacific")], "operation": "add"},
    )
    assert updated["totalQuestions"] == 4
    assert updated["questions"][-1]["text"] == "Largest ocean"


async def test_update_rejects_inverted_schedule(db, clock, make_contest):
    detail = await make_contest(start_in=60)
    with pytest.raises(InvalidSchedule):
        await ContestService(db, clock).update_contest(
            detail["id"], SUB_ADMIN, {"endDate": clock() + timedelta(minutes=30)}
        )


async def test_active_contest_locks_questions_and_dates(db, clock, make_contest):
    detail = await make_contest(start_in=0)
    service = ContestService(db, clock)
    with pytest.raises(ImmutableField) as exc:
        await service.update_contest(
            detail["id"], SUB_ADMIN, {"questions": [question("1 + 1", ["2", "3"], "2")], "endDate": clock()}
        )
    assert exc.value.status_code == 409
    assert exc.value.detail["fields"] == ["endDate", "questions"]
    assert exc.value.detail["state"] == "active"

    updated = await service.update_contest(detail["id"], SUB_ADMIN, {"title": "Renamed", "price": 5})
    assert updated["title"] == "Renamed"
    assert updated["price"] == 5.0
    assert updated["totalQuestions"] == 3


async def test_update_requires_staff_role(db, clock, make_contest):
    detail = await make_contest(start_in=60)
    with pytest.raises(Unauthorized):
        await ContestService(db, clock).update_contest(detail["id"], ALICE, {"title": "Mine now"})


async def test_list_filters_by_state(db, clock, make_contest):
    await make_contest(start_in=None, title="Draft")
    await make_contest(start_in=60, title="Later")
    await make_contest(start_in=-10, title="Running")
    service = ContestService(db, clock)
    assert len(await service.list_contests(ALICE)) == 3
    active = await service.list_contests(ALICE, ContestState.ACTIVE)
    assert [c["title"] for c in active] == ["Running"]


async def test_list_completed_reports_participants_and_frozen_entries(db, clock, make_contest):
    detail = await make_contest(start_in=0, length=30)
    await make_contest(start_in=0, length=120, title="Still running")
    clock.advance(minutes=1)
    attempts = AttemptService(db, clock)
    await attempts.submit(detail["id"], ALICE, answers_for(detail, correct=3))
    await attempts.submit(detail["id"], BOB, answers_for(detail, correct=1))

    clock.advance(minutes=30)
    completed = await ContestService(db, clock).list_completed(ALICE)
    assert [c["id"] for c in completed] == [detail["id"]]
    summary = completed[0]
    assert summary["state"] == "completed"
    assert summary["totalParticipants"] == 2
    assert summary["leaderboardEntries"] == 2
    assert summary["leaderboardFrozenAt"] is not None


async def test_delete_is_admin_only_and_removes_attempts(db, clock, make_contest):
    detail = await make_contest(start_in=0)
    await AttemptService(db, clock).submit(detail["id"], ALICE, answers_for(detail, correct=1))
    service = ContestService(db, clock)
    with pytest.raises(Unauthorized):
        await service.delete_contest(detail["id"], SUB_ADMIN)

    await service.delete_contest(detail["id"], ADMIN)
    with pytest.raises(NotFound):
        await service.get_contest(detail["id"], ADMIN)
    remaining = (await db.execute(select(Attempt).where(Attempt.contest_id == detail["id"]))).scalars().all()
    assert remaining == []
    audit = await db.scalar(select(AuditLog).where(AuditLog.action == "contest_deleted"))
    assert audit.actor_id == ADMIN.id


async def test_play_view_requires_active_contest(db, clock, make_contest):
    detail = await make_contest(start_in=10)
    service = ContestService(db, clock)
    with pytest.raises(ContestNotActive) as exc:
        await service.play_view(detail["id"], ALICE)
    assert exc.value.detail["state"] == "scheduled"


async def test_play_view_hides_answers_and_filters_by_category(db, clock, make_contest):
    detail = await make_contest(start_in=0)
    service = ContestService(db, clock)
    view = await service.play_view(detail["id"], ALICE, category="MATH")
    assert view["totalQuestions"] == 2
    assert all(q["correctAnswer"] is None for q in view["questions"])
    assert await service.categories(detail["id"], ALICE) == ["MATH", "GEOGRAPHY"]


async def test_play_view_refuses_players_who_already_submitted(db, clock, make_contest):
    detail = await make_contest(start_in=0)
    await AttemptService(db, clock).submit(detail["id"], ALICE, answers_for(detail, correct=1))
    with pytest.raises(DuplicateAttempt):
        await ContestService(db, clock).play_view(detail["id"], ALICE)


@pytest.mark.parametrize("field", ["startDate", "endDate"])
async def test_scheduled_contest_cannot_fall_back_to_draft(db, clock, make_contest, field):
    detail = await make_contest(start_in=60)
    service = ContestService(db, clock)
    with pytest.raises(InvalidSchedule) as exc:
        await service.update_contest(detail["id"], SUB_ADMIN, {field: None})
    assert exc.value.detail["state"] == "scheduled"
    assert (await service.get_contest(detail["id"], SUB_ADMIN))["state"] == "scheduled"


async def test_draft_contest_may_clear_its_dates(db, clock, make_contest):
    detail = await make_contest(start_in=None)
    service = ContestService(db, clock)
    scheduled = await service.update_contest(
        detail["id"], SUB_ADMIN, {"startDate": clock() + timedelta(hours=1), "endDate": None}
    )
    assert scheduled["state"] == "draft"
    assert scheduled["startDate"] is not None


async def test_completed_contest_locks_questions_and_dates(db, clock, make_contest):
    detail = await make_contest(start_in=0, length=30)
    clock.advance(minutes=45)
    service = ContestService(db, clock)
    with pytest.raises(ImmutableField) as exc:
        await service.update_contest(detail["id"], SUB_ADMIN, {"startDate": clock() + timedelta(hours=1)})
    assert exc.value.detail["state"] == "completed"
    with pytest.raises(ImmutableField):
        await service.update_contest(detail["id"], SUB_ADMIN, {"questions": [question("1 + 1", ["2", "3"], "2")]})


async def test_question_set_cannot_be_emptied(db, clock, make_contest):
    detail = await make_contest(start_in=60)
    service = ContestService(db, clock)
    with pytest.raises(InvalidContest) as exc:
        await service.update_contest(detail["id"], SUB_ADMIN, {"questions": []})
    assert exc.value.status_code == 400
    assert (await service.get_contest(detail["id"], SUB_ADMIN))["totalQuestions"] == 3


async def test_create_requires_questions(db, clock):
    with pytest.raises(InvalidContest):
        await ContestService(db, clock).create_contest(SUB_ADMIN, contest_payload(questions=[]))


async def test_negative_price_is_a_domain_error(db, clock, make_contest):
    service = ContestService(db, clock)
    with pytest.raises(InvalidContest) as exc:
        await service.create_contest(SUB_ADMIN, contest_payload(price=-1))
    assert exc.value.detail["code"] == "INVALID_CONTEST"

    detail = await make_contest(start_in=60)
    with pytest.raises(InvalidContest):
        await service.update_contest(detail["id"], SUB_ADMIN, {"price": -5})
