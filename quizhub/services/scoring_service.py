from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from quizhub.core.constants import ScoringType
from quizhub.models.domain import Question

Answers = Mapping[str, str | int | float]


@dataclass(frozen=True)
class QuestionResult:
    question_id: str
    correct: bool
    answer: str


@dataclass(frozen=True)
class ScoreResult:
    score: float
    max_score: float
    correct_count: int
    total_questions: int
    results: list[QuestionResult] = field(default_factory=list)

    @property
    def percentage(self) -> int:
        if self.max_score <= 0:
            return 0
        return round(self.score / self.max_score * 100)


Scorer = Callable[[Sequence[Question], Answers], ScoreResult]


def _normalize(value: str | int | float | None) -> str:
    return str(value if value is not None else "").strip()


def is_question_correct(question: Question, raw_answer: str | int | float | None) -> bool:
    answer = _normalize(raw_answer)
    return bool(answer) and answer == _normalize(question.correct_answer)


def grade_answers(questions: Sequence[Question], answers: Answers) -> list[QuestionResult]:
    """Mark every question of the set; unknown question ids in ``answers`` are ignored."""
    return [
        QuestionResult(
            question_id=str(q.id),
            correct=is_question_correct(q, answers.get(str(q.id))),
            answer=_normalize(answers.get(str(q.id))),
        )
        for q in questions
    ]


def count_correct(questions: Sequence[Question], answers: Answers) -> ScoreResult:
    results = grade_answers(questions, answers)
    correct = sum(1 for r in results if r.correct)
    return ScoreResult(
        score=float(correct),
        max_score=float(len(questions)),
        correct_count=correct,
        total_questions=len(questions),
        results=results,
    )


def weighted(questions: Sequence[Question], answers: Answers) -> ScoreResult:
    results = grade_answers(questions, answers)
    points = {str(q.id): max(float(q.points or 0), 0.0) for q in questions}
    score = sum(points[r.question_id] for r in results if r.correct)
    return ScoreResult(
        score=score,
        max_score=sum(points.values()),
        correct_count=sum(1 for r in results if r.correct),
        total_questions=len(questions),
        results=results,
    )


SCORERS: dict[ScoringType, Scorer] = {
    ScoringType.COUNT_CORRECT: count_correct,
    ScoringType.WEIGHTED: weighted,
}


def get_scorer(scoring_type: ScoringType) -> Scorer:
    return SCORERS[ScoringType(scoring_type)]


def score_answers(
    questions: Sequence[Question],
    answers: Answers,
    scoring_type: ScoringType = ScoringType.COUNT_CORRECT,
) -> ScoreResult:
    return get_scorer(scoring_type)(questions, answers)
