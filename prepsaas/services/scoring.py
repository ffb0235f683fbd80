from typing import Dict, List, Mapping

from ..core.errors import InvalidAttemptStateError, NotFoundError
from ..domain.model import (
    DEFAULT_TOPIC,
    DIFFICULTIES,
    AnswerRecord,
    Attempt,
    AttemptStatus,
    DifficultyScore,
    Question,
    Quiz,
    ResultsSummary,
    TopicScore,
)
from .grading import UNIT_MARKS, is_skipped


def _pct(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def calculate_results(
    questions: List[Question],
    answers: List[AnswerRecord],
    passing_score: float,
    time_spent: int = 0,
) -> ResultsSummary:
    """
    Roll graded answers up into a results summary.

    Walks the quiz questions in their fixed order, so questions without an
    answer record count as skipped and the three counts always add up to
    ``len(questions)``. The percentage only weighs answered questions, each
    worth its awarded marks when positive and one unit otherwise.
    """
    by_question = {ans.question_id: ans for ans in answers}

    correct = incorrect = skipped = 0
    earned = possible = 0.0
    topics: Dict[str, List[int]] = {}
    difficulty = {level: [0, 0] for level in DIFFICULTIES}

    for question in questions:
        ans = by_question.get(question.id)
        answered = ans is not None and not is_skipped(ans.answer)
        is_correct = answered and ans.is_correct

        if not answered:
            skipped += 1
        elif is_correct:
            correct += 1
            earned += ans.marks_awarded
        else:
            incorrect += 1

        if answered:
            possible += ans.marks_awarded if ans.marks_awarded > 0 else UNIT_MARKS

        bucket = topics.setdefault(question.topic or DEFAULT_TOPIC, [0, 0])
        bucket[1] += 1
        if is_correct:
            bucket[0] += 1

        if question.difficulty in difficulty:
            difficulty[question.difficulty][1] += 1
            if is_correct:
                difficulty[question.difficulty][0] += 1

    percentage = _pct(earned, possible)
    return ResultsSummary(
        score=earned,
        percentage=percentage,
        correct_answers=correct,
        incorrect_answers=incorrect,
        skipped_questions=skipped,
        total_questions=len(questions),
        is_passed=percentage >= passing_score,
        time_spent=time_spent,
        topic_breakdown=[
            TopicScore(topic=topic, correct=c, total=t, percentage=_pct(c, t))
            for topic, (c, t) in topics.items()
        ],
        difficulty_breakdown={
            level: DifficultyScore(correct=c, total=t) for level, (c, t) in difficulty.items()
        },
    )


def resolve_questions(quiz: Quiz, bank: Mapping[str, Question]) -> List[Question]:
    missing = [qid for qid in quiz.question_ids if qid not in bank]
    if missing:
        raise NotFoundError(f"Questions not found for quiz {quiz.id}: {', '.join(missing)}")
    return [bank[qid] for qid in quiz.question_ids]


def summarize_attempt(
    attempt: Attempt,
    quiz: Quiz,
    bank: Mapping[str, Question],
    time_spent: int = 0,
) -> ResultsSummary:
    if attempt.status != AttemptStatus.IN_PROGRESS:
        raise InvalidAttemptStateError(
            f"Attempt {attempt.id} is {attempt.status.value}, only in-progress attempts can be finalized"
        )
    questions = resolve_questions(quiz, bank)
    return calculate_results(questions, attempt.answers, quiz.passing_score, time_spent)
