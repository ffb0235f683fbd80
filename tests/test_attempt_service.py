import pytest

from prepsaas.core.errors import (
    ForbiddenError,
    InvalidAttemptStateError,
    NotFoundError,
    PayloadValidationError,
)
from prepsaas.domain.model import AttemptStatus, Option, Question, QuizStats
from prepsaas.services.attempt_service import AnswerSubmission

pytestmark = pytest.mark.asyncio

USER = "user-1"


async def _answer(svc, attempt_id, question_id, value, user=USER):
    return await svc.record_answer(attempt_id, user, AnswerSubmission(question_id, value, time_spent=5))


async def test_start_creates_in_progress_attempt(attempt_service, attempt_store, quiz_bank):
    attempt, quiz = await attempt_service.start_attempt("quiz-1", USER)

    stored = attempt_store.get_attempt(attempt.id)
    assert stored.status == AttemptStatus.IN_PROGRESS
    assert stored.user_id == USER
    assert [q["id"] for q in quiz["questions"]] == ["q1", "q2", "q3"]
    assert all("isCorrect" not in o for q in quiz["questions"] for o in q["options"])
    # counters move on completion only
    assert quiz_bank.get_quiz("quiz-1").stats == QuizStats()


@pytest.mark.parametrize("quiz_id", ["missing", "quiz-draft"])
async def test_start_rejects_unavailable_quiz(attempt_service, quiz_id):
    with pytest.raises(NotFoundError):
        await attempt_service.start_attempt(quiz_id, USER)


async def test_resubmitted_answer_replaces_earlier_one(attempt_service, attempt_store):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)

    await _answer(attempt_service, attempt.id, "q1", "X")
    record = await _answer(attempt_service, attempt.id, "q1", "A")

    stored = attempt_store.get_attempt(attempt.id)
    assert len(stored.answers) == 1
    assert stored.answers[0].answer == "A"
    assert record.is_correct is True


async def test_record_answer_errors(attempt_service):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)

    with pytest.raises(NotFoundError):
        await _answer(attempt_service, "nope", "q1", "A")
    with pytest.raises(ForbiddenError):
        await _answer(attempt_service, attempt.id, "q1", "A", user="intruder")
    with pytest.raises(NotFoundError):
        await _answer(attempt_service, attempt.id, "q999", "A")


async def test_record_answer_rejects_question_from_another_quiz(attempt_service, question_bank):
    question_bank.questions["other"] = Question(
        id="other", title="Other", type="mcq", difficulty="easy", options=[Option("Z", True)]
    )
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)

    with pytest.raises(PayloadValidationError):
        await _answer(attempt_service, attempt.id, "other", "Z")


async def test_finalize_grades_and_updates_stats(attempt_service, attempt_store, quiz_bank):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)
    await _answer(attempt_service, attempt.id, "q1", "A")
    await _answer(attempt_service, attempt.id, "q2", "X")

    outcome = await attempt_service.finalize_attempt(
        attempt.id, USER, [AnswerSubmission("q3", "C", time_spent=12)]
    )

    results = outcome.attempt.results
    assert outcome.stats_updated is True
    assert (results.correct_answers, results.incorrect_answers, results.skipped_questions) == (2, 1, 0)
    assert results.percentage == 66.67
    assert results.is_passed is True
    assert outcome.attempt.rank == 1

    stored = attempt_store.get_attempt(attempt.id)
    assert stored.status == AttemptStatus.COMPLETED
    assert stored.end_time is not None
    assert quiz_bank.get_quiz("quiz-1").stats == QuizStats(1, 66.67, 66.67, 66.67)


async def test_final_answers_override_recorded_ones(attempt_service):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)
    await _answer(attempt_service, attempt.id, "q1", "X")

    outcome = await attempt_service.finalize_attempt(
        attempt.id, USER, [AnswerSubmission("q1", "A"), AnswerSubmission("q2", None)]
    )

    results = outcome.attempt.results
    assert results.correct_answers == 1
    assert results.skipped_questions == 2
    assert len(outcome.attempt.answers) == 2


async def test_double_finalize_fails_and_leaves_stats_alone(attempt_service, quiz_bank):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)
    await attempt_service.finalize_attempt(attempt.id, USER, [AnswerSubmission("q1", "A")])
    stats_after_first = quiz_bank.get_quiz("quiz-1").stats

    with pytest.raises(InvalidAttemptStateError):
        await attempt_service.finalize_attempt(attempt.id, USER, [AnswerSubmission("q2", "B")])

    assert quiz_bank.get_quiz("quiz-1").stats == stats_after_first
    assert stats_after_first.total_attempts == 1


async def test_answers_are_refused_after_completion(attempt_service):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)
    await attempt_service.finalize_attempt(attempt.id, USER, [])

    with pytest.raises(InvalidAttemptStateError):
        await _answer(attempt_service, attempt.id, "q1", "A")


async def test_finalize_rejects_foreign_and_unknown_input(attempt_service):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)

    with pytest.raises(ForbiddenError):
        await attempt_service.finalize_attempt(attempt.id, "intruder", [])
    with pytest.raises(NotFoundError):
        await attempt_service.finalize_attempt(attempt.id, USER, [AnswerSubmission("q404", "A")])

    # a rejected finalization leaves the attempt open
    outcome = await attempt_service.finalize_attempt(attempt.id, USER, [])
    assert outcome.attempt.status == AttemptStatus.COMPLETED


async def test_stats_failure_keeps_attempt_completed(broken_stats_service, attempt_store):
    attempt, _ = await broken_stats_service.start_attempt("quiz-1", USER)

    outcome = await broken_stats_service.finalize_attempt(
        attempt.id, USER, [AnswerSubmission("q1", "A")]
    )

    assert outcome.stats_updated is False
    assert attempt_store.get_attempt(attempt.id).status == AttemptStatus.COMPLETED
    assert outcome.attempt.results.correct_answers == 1


async def test_abandoned_attempt_cannot_be_finalized(attempt_service, quiz_bank):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)
    abandoned = await attempt_service.abandon_attempt(attempt.id, USER)
    assert abandoned.status == AttemptStatus.ABANDONED

    with pytest.raises(InvalidAttemptStateError):
        await attempt_service.finalize_attempt(attempt.id, USER, [])
    with pytest.raises(InvalidAttemptStateError):
        await attempt_service.abandon_attempt(attempt.id, USER)
    assert quiz_bank.get_quiz("quiz-1").stats.total_attempts == 0


async def test_results_are_owner_only_and_reveal_after_completion(attempt_service):
    attempt, _ = await attempt_service.start_attempt("quiz-1", USER)
    await _answer(attempt_service, attempt.id, "q1", "A")

    pending = await attempt_service.get_results(attempt.id, USER)
    assert pending["status"] == "in_progress"
    assert pending["results"] is None
    assert pending["answers"][0]["isCorrect"] is None
    assert pending["answers"][0]["solution"] is None

    await attempt_service.finalize_attempt(attempt.id, USER, [])
    done = await attempt_service.get_results(attempt.id, USER)
    assert done["results"]["correctAnswers"] == 1
    assert done["answers"][0]["isCorrect"] is True
    assert done["answers"][0]["solution"] == {"approach": "pick A"}
    assert done["quiz"]["passingScore"] == 60

    with pytest.raises(ForbiddenError):
        await attempt_service.get_results(attempt.id, "intruder")
    with pytest.raises(NotFoundError):
        await attempt_service.get_results("nope", USER)


async def test_history_and_analytics(attempt_service, quiz_bank):
    first, _ = await attempt_service.start_attempt("quiz-1", USER)
    await attempt_service.finalize_attempt(
        first.id, USER, [AnswerSubmission("q1", "A"), AnswerSubmission("q2", "B"), AnswerSubmission("q3", "C")]
    )
    second, _ = await attempt_service.start_attempt("quiz-1", USER)
    await attempt_service.finalize_attempt(
        second.id, USER, [AnswerSubmission("q1", "X"), AnswerSubmission("q2", "B")]
    )
    await attempt_service.start_attempt("quiz-1", USER)  # still open, not listed

    page = await attempt_service.list_user_attempts(USER, limit=5)
    assert page["total"] == 2
    assert {a["percentage"] for a in page["attempts"]} == {100.0, 50.0}
    assert page["attempts"][0]["quiz"]["title"] == "Aptitude Basics"

    assert (await attempt_service.list_user_attempts(USER, quiz_type="coding"))["total"] == 0

    stats = await attempt_service.analytics(USER)
    assert stats["totalAttempts"] == 2
    assert stats["averageScore"] == 75.0
    assert stats["bestScore"] == 100.0
    assert stats["passRate"] == 50.0

    quiz_stats = quiz_bank.get_quiz("quiz-1").stats
    assert quiz_stats.total_attempts == 2
    assert quiz_stats.average_score == 75.0
    assert quiz_stats.lowest_score == 50.0


async def test_lock_map_is_empty_after_many_attempts(attempt_service):
    for _ in range(20):
        attempt, _ = await attempt_service.start_attempt("quiz-1", USER)
        await _answer(attempt_service, attempt.id, "q1", "A")
        await attempt_service.finalize_attempt(attempt.id, USER, [])

    assert attempt_service.locks._locks == {}
