from enum import StrEnum


class Role(StrEnum):
    ADMIN = "ADMIN"
    SUB_ADMIN = "SUB_ADMIN"
    USER = "USER"


class Action(StrEnum):
    CREATE_CONTEST = "create_contest"
    UPDATE_CONTEST = "update_contest"
    DELETE_CONTEST = "delete_contest"
    VIEW_CONTEST = "view_contest"
    VIEW_ANSWER_KEY = "view_answer_key"
    PLAY_CONTEST = "play_contest"
    VIEW_PARTICIPANTS = "view_participants"
    VIEW_LEADERBOARD = "view_leaderboard"
    OVERRIDE_SCORE = "override_score"
    FREEZE_LEADERBOARD = "freeze_leaderboard"


class ContestState(StrEnum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"


class ScoringType(StrEnum):
    COUNT_CORRECT = "count-correct"
    WEIGHTED = "weighted"


class QuestionsOperation(StrEnum):
    REPLACE = "replace"
    ADD = "add"


DEFAULT_CATEGORY = "GENERAL"

ALL_ROLES = frozenset(Role)
STAFF_ROLES = frozenset({Role.ADMIN, Role.SUB_ADMIN})

PERMISSIONS: dict[Action, frozenset[Role]] = {
    Action.CREATE_CONTEST: STAFF_ROLES,
    Action.UPDATE_CONTEST: STAFF_ROLES,
    Action.DELETE_CONTEST: frozenset({Role.ADMIN}),
    Action.VIEW_CONTEST: ALL_ROLES,
    Action.VIEW_ANSWER_KEY: STAFF_ROLES,
    Action.PLAY_CONTEST: ALL_ROLES,
    Action.VIEW_PARTICIPANTS: STAFF_ROLES,
    Action.VIEW_LEADERBOARD: ALL_ROLES,
    Action.OVERRIDE_SCORE: frozenset({Role.ADMIN}),
    Action.FREEZE_LEADERBOARD: frozenset({Role.ADMIN}),
}
